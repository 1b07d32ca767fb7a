"""
Ticket models for the IT support portal.

WHAT: SQLAlchemy models for tickets and their comments.

WHY: Provides structured support request management with:
1. Status lifecycle (new → in-progress → resolved → closed), informational only
2. Priority levels, with high and critical counted as "high" in statistics
3. Append-only comment threads with staff-only internal notes

HOW: Uses SQLAlchemy 2.0 with:
- String columns holding enum values, validated at the schema layer
- Foreign keys to users for submitter, assignee and comment author
- Indexes for the list and statistics queries
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import (
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from campus_helpdesk.models.base import Base, utcnow

if TYPE_CHECKING:
    from campus_helpdesk.models.user import User


# ============================================================================
# Enums
# ============================================================================


class TicketStatus(str, Enum):
    """
    Ticket status values.

    Admins may set any value at any time; no transition order is enforced.
    """

    NEW = "new"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    """
    Ticket priority levels.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Priorities counted by the "high" statistics counters
HIGH_PRIORITIES = (TicketPriority.HIGH, TicketPriority.CRITICAL)


# ============================================================================
# Ticket Model
# ============================================================================


class Ticket(Base):
    """
    Support ticket submitted by a student or faculty member.

    Security: Visible to its submitter and to admins only.
    """

    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submitter_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.id"), nullable=False
    )
    assigned_to_id: Mapped[Optional[str]] = mapped_column(
        String(255), ForeignKey("users.id"), nullable=True
    )

    # Ticket details
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    issue_type: Mapped[str] = mapped_column(String(50), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Classification
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TicketStatus.NEW.value
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    # Relationships
    submitter: Mapped["User"] = relationship(
        "User", foreign_keys=[submitter_id], back_populates="submitted_tickets"
    )
    assignee: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[assigned_to_id], back_populates="assigned_tickets"
    )
    comments: Mapped[List["TicketComment"]] = relationship(
        "TicketComment", back_populates="ticket"
    )

    # Indexes for common queries
    __table_args__ = (
        Index("ix_tickets_submitter_id", "submitter_id"),
        Index("ix_tickets_assigned_to_id", "assigned_to_id"),
        Index("ix_tickets_status", "status"),
        Index("ix_tickets_priority", "priority"),
        Index("ix_tickets_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, subject='{self.subject[:30]}...', status={self.status})>"


# ============================================================================
# TicketComment Model
# ============================================================================


class TicketComment(Base):
    """
    Comment on a ticket.

    Comments are append-only. is_internal notes are only ever served to admins.
    """

    __tablename__ = "ticket_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tickets.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.id"), nullable=False
    )

    comment: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    # Relationships
    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="comments")
    user: Mapped["User"] = relationship("User", back_populates="ticket_comments")

    __table_args__ = (
        Index("ix_ticket_comments_ticket_id", "ticket_id"),
        Index("ix_ticket_comments_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<TicketComment(id={self.id}, ticket_id={self.ticket_id}, is_internal={self.is_internal})>"
