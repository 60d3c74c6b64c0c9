"""
SQLAlchemy declarative base.

All ORM models inherit from this Base class so their tables are
registered on a single metadata object.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass
