"""
Worknest - API Package
======================

FastAPI routers and application factory.
"""
