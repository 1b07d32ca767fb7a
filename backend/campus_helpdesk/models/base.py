"""
Base model class for all SQLAlchemy models.

WHY: Centralizing common model functionality (timestamps) in one module
keeps timestamp behavior identical across users, tickets and comments.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    WHY: Columns are stored without timezone so SQLite and PostgreSQL
    return comparable values.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.
    """

    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    """

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
