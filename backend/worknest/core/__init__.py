"""
Worknest - Core Package
=======================

Models, schemas, storage and domain services.
"""

from worknest.core.config import settings
from worknest.core.database import Base, Database

__all__ = ["Base", "Database", "settings"]
