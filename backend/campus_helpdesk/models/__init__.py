"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from campus_helpdesk.models.base import Base, TimestampMixin, utcnow
from campus_helpdesk.models.user import User, UserRole
from campus_helpdesk.models.ticket import (
    Ticket,
    TicketStatus,
    TicketPriority,
    TicketComment,
    HIGH_PRIORITIES,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "User",
    "UserRole",
    "Ticket",
    "TicketStatus",
    "TicketPriority",
    "TicketComment",
    "HIGH_PRIORITIES",
]
