"""
User model.

WHY: Users are created the first time the identity provider presents them
and are never hard-deleted. Their role is the only input to authorization.
"""

import enum
from typing import Optional

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from campus_helpdesk.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    WHY: An exhaustive enum lets the authorization gate keep a total
    capability mapping; anything outside it fails closed.
    """

    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: object) -> Optional["UserRole"]:
        """
        Parse a raw role value, returning None for anything unknown.

        WHY: Unknown roles must not silently fall back to student access.

        Example:
            >>> UserRole.parse("admin")
            <UserRole.ADMIN: 'admin'>
            >>> UserRole.parse("superuser") is None
            True
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class User(Base, TimestampMixin):
    """
    User model representing students, faculty and IT staff.

    The primary key is the identity provider's opaque subject id.
    """

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    profile_image_url = Column(String(1024), nullable=True)

    # Stored as the enum value ("student", "faculty", "admin")
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value, index=True)

    # Ticket relationships
    submitted_tickets = relationship(
        "Ticket",
        back_populates="submitter",
        foreign_keys="Ticket.submitter_id",
    )
    assigned_tickets = relationship(
        "Ticket",
        back_populates="assignee",
        foreign_keys="Ticket.assigned_to_id",
    )
    ticket_comments = relationship("TicketComment", back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
