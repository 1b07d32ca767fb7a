"""
In-memory persistence store.

WHAT: PersistenceStore backed by plain dictionaries.

WHY: Used by tests and by demo runs without a database. It is created
once by the store provider and injected like the SQL store; business
code never references it directly.

HOW: No method awaits between reading and writing its dictionaries, so
each call is atomic on the event loop. Records are stored as Pydantic
models and deep-copied on the way in and out.
"""

import itertools
from datetime import timedelta
from typing import Any, Dict, List, Optional

from campus_helpdesk.core.exceptions import StoreError
from campus_helpdesk.models.base import utcnow
from campus_helpdesk.models.ticket import TicketStatus, HIGH_PRIORITIES
from campus_helpdesk.models.user import UserRole
from campus_helpdesk.schemas.stats import TicketStats
from campus_helpdesk.schemas.ticket import CommentResponse, TicketResponse
from campus_helpdesk.schemas.user import UserResponse
from campus_helpdesk.store.base import PersistenceStore, TicketQuery


class MemoryStore(PersistenceStore):
    """PersistenceStore over process-local dictionaries."""

    def __init__(self):
        self._users: Dict[str, UserResponse] = {}
        self._tickets: Dict[int, TicketResponse] = {}
        self._comments: Dict[int, CommentResponse] = {}
        self._ticket_ids = itertools.count(1)
        self._comment_ids = itertools.count(1)

    # =========================================================================
    # Joins
    # =========================================================================

    def _user_copy(self, user_id: Optional[str]) -> Optional[UserResponse]:
        if user_id is None or user_id not in self._users:
            return None
        return self._users[user_id].model_copy(deep=True)

    def _joined_ticket(self, ticket: TicketResponse) -> TicketResponse:
        return ticket.model_copy(
            deep=True,
            update={
                "submitter": self._user_copy(ticket.submitter_id),
                "assignee": self._user_copy(ticket.assigned_to_id),
            },
        )

    def _joined_comment(self, comment: CommentResponse) -> CommentResponse:
        return comment.model_copy(deep=True, update={"user": self._user_copy(comment.user_id)})

    def _require_user(self, user_id: Optional[str], field: str) -> None:
        # Mirrors the foreign key constraints of the relational schema.
        if user_id is not None and user_id not in self._users:
            raise StoreError(f"Foreign key violation on {field}")

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[UserResponse]:
        return self._user_copy(user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        email = email.lower()
        for user in self._users.values():
            if user.email is not None and user.email.lower() == email:
                return user.model_copy(deep=True)
        return None

    async def upsert_user(self, values: Dict[str, Any]) -> UserResponse:
        values = dict(values)
        user_id = values["id"]
        email = values.get("email")
        if email is not None:
            for other in self._users.values():
                if other.id != user_id and other.email is not None and other.email.lower() == email.lower():
                    raise StoreError("Unique constraint violation on email")

        now = utcnow()
        existing = self._users.get(user_id)
        if existing is not None:
            values["created_at"] = existing.created_at
        values.setdefault("created_at", now)
        values.setdefault("updated_at", now)
        values["role"] = UserRole(values.get("role", UserRole.STUDENT)).value

        self._users[user_id] = UserResponse(**values)
        return self._user_copy(user_id)

    async def list_users(self, role: Optional[UserRole] = None) -> List[UserResponse]:
        users = sorted(self._users.values(), key=lambda u: u.id)
        if role is not None:
            users = [u for u in users if u.role == role.value]
        return [u.model_copy(deep=True) for u in users]

    # =========================================================================
    # Tickets
    # =========================================================================

    async def insert_ticket(self, values: Dict[str, Any]) -> TicketResponse:
        self._require_user(values.get("submitter_id"), "submitter_id")
        self._require_user(values.get("assigned_to_id"), "assigned_to_id")

        now = utcnow()
        record = dict(values)
        record.setdefault("status", TicketStatus.NEW.value)
        record.setdefault("created_at", now)
        record.setdefault("updated_at", record["created_at"])
        record["id"] = next(self._ticket_ids)

        ticket = TicketResponse(**record)
        self._tickets[ticket.id] = ticket
        return self._joined_ticket(ticket)

    async def get_ticket(self, ticket_id: int) -> Optional[TicketResponse]:
        ticket = self._tickets.get(ticket_id)
        return self._joined_ticket(ticket) if ticket else None

    async def list_tickets(self, query: TicketQuery) -> List[TicketResponse]:
        tickets = []
        for ticket in self._tickets.values():
            if query.submitter_id is not None and ticket.submitter_id != query.submitter_id:
                continue
            if query.status is not None and ticket.status.value != query.status:
                continue
            if query.priority is not None and ticket.priority.value != query.priority:
                continue
            if query.assigned_to_id is not None:
                if ticket.assigned_to_id != query.assigned_to_id:
                    continue
            elif query.unassigned_only and ticket.assigned_to_id is not None:
                continue
            tickets.append(ticket)

        tickets.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [self._joined_ticket(t) for t in tickets]

    async def update_ticket(self, ticket_id: int, values: Dict[str, Any]) -> Optional[TicketResponse]:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            return None
        if "assigned_to_id" in values:
            self._require_user(values["assigned_to_id"], "assigned_to_id")

        # Validate the merged record before replacing the stored one.
        merged = ticket.model_dump()
        merged.update(values)
        updated = TicketResponse(**merged)
        self._tickets[ticket_id] = updated
        return self._joined_ticket(updated)

    # =========================================================================
    # Comments
    # =========================================================================

    async def insert_comment(self, values: Dict[str, Any]) -> CommentResponse:
        if values.get("ticket_id") not in self._tickets:
            raise StoreError("Foreign key violation on ticket_id")
        self._require_user(values.get("user_id"), "user_id")

        record = dict(values)
        record.setdefault("is_internal", False)
        record.setdefault("created_at", utcnow())
        record["id"] = next(self._comment_ids)

        comment = CommentResponse(**record)
        self._comments[comment.id] = comment
        return self._joined_comment(comment)

    async def list_comments(self, ticket_id: int) -> List[CommentResponse]:
        comments = [c for c in self._comments.values() if c.ticket_id == ticket_id]
        comments.sort(key=lambda c: (c.created_at, c.id), reverse=True)
        return [self._joined_comment(c) for c in comments]

    # =========================================================================
    # Aggregates
    # =========================================================================

    async def ticket_counts(self, submitter_id: Optional[str] = None) -> TicketStats:
        tickets = [
            t for t in self._tickets.values()
            if submitter_id is None or t.submitter_id == submitter_id
        ]
        return TicketStats(
            total=len(tickets),
            new=sum(1 for t in tickets if t.status == TicketStatus.NEW),
            in_progress=sum(1 for t in tickets if t.status == TicketStatus.IN_PROGRESS),
            resolved=sum(1 for t in tickets if t.status == TicketStatus.RESOLVED),
            high=sum(1 for t in tickets if t.priority in HIGH_PRIORITIES),
        )

    async def count_assigned(self, user_id: str) -> int:
        return sum(1 for t in self._tickets.values() if t.assigned_to_id == user_id)

    async def resolution_durations(self) -> List[timedelta]:
        return [
            t.updated_at - t.created_at
            for t in self._tickets.values()
            if t.status == TicketStatus.RESOLVED
        ]
