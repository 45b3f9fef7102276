"""Worknest - project and ticket management backend."""

__version__ = "0.2.0"
