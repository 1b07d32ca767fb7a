"""
Persistence store interface.

WHAT: The contract every storage backend implements: create/read/update and
query operations over users, tickets and comments.

WHY: The repository and service layers receive a store instance by
injection and never reference a concrete backend. The durable SQL store
and the in-memory store are interchangeable and are chosen once at
process start.

HOW: Backends return Pydantic records (UserResponse, TicketResponse,
CommentResponse) that are detached copies, so callers never hold a live
reference into the store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional

from campus_helpdesk.models.user import UserRole
from campus_helpdesk.schemas.stats import TicketStats
from campus_helpdesk.schemas.ticket import CommentResponse, TicketResponse
from campus_helpdesk.schemas.user import UserResponse


@dataclass(frozen=True)
class TicketQuery:
    """
    Filters for ticket listings. None means "no restriction".

    Results are always ordered newest-created first.
    """

    submitter_id: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to_id: Optional[str] = None
    unassigned_only: bool = False


class PersistenceStore(ABC):
    """
    Abstract storage backend.

    Every mutation is durable when the coroutine returns. Backend failures
    are raised as StoreError; a failed mutation leaves nothing behind.
    """

    # =========================================================================
    # Users
    # =========================================================================

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserResponse]:
        """Return the user or None."""

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        """Return the user owning this email (case-insensitive) or None."""

    @abstractmethod
    async def upsert_user(self, values: Dict[str, Any]) -> UserResponse:
        """
        Insert the user or overwrite its profile fields.

        ``values`` carries id, email, first_name, last_name,
        profile_image_url, role, created_at and updated_at. An existing
        record keeps its original created_at.
        """

    @abstractmethod
    async def list_users(self, role: Optional[UserRole] = None) -> List[UserResponse]:
        """Return users, optionally restricted to one role."""

    # =========================================================================
    # Tickets
    # =========================================================================

    @abstractmethod
    async def insert_ticket(self, values: Dict[str, Any]) -> TicketResponse:
        """Insert a ticket and return it with its new id, submitter joined."""

    @abstractmethod
    async def get_ticket(self, ticket_id: int) -> Optional[TicketResponse]:
        """Return the ticket joined with submitter and assignee, or None."""

    @abstractmethod
    async def list_tickets(self, query: TicketQuery) -> List[TicketResponse]:
        """Return matching tickets, newest first, joined with submitter and assignee."""

    @abstractmethod
    async def update_ticket(self, ticket_id: int, values: Dict[str, Any]) -> Optional[TicketResponse]:
        """Apply ``values`` to the ticket; return the joined result, or None if absent."""

    # =========================================================================
    # Comments
    # =========================================================================

    @abstractmethod
    async def insert_comment(self, values: Dict[str, Any]) -> CommentResponse:
        """Insert a comment and return it with its new id, author joined."""

    @abstractmethod
    async def list_comments(self, ticket_id: int) -> List[CommentResponse]:
        """Return every comment of the ticket, newest first, author joined."""

    # =========================================================================
    # Aggregates
    # =========================================================================

    @abstractmethod
    async def ticket_counts(self, submitter_id: Optional[str] = None) -> TicketStats:
        """
        Count tickets by status and priority from one consistent snapshot.

        Args:
            submitter_id: Restrict to this submitter's tickets when given
        """

    @abstractmethod
    async def count_assigned(self, user_id: str) -> int:
        """Count tickets currently assigned to the user."""

    @abstractmethod
    async def resolution_durations(self) -> List[timedelta]:
        """updated_at - created_at for every ticket with status resolved."""
