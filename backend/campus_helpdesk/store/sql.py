"""
Relational persistence store.

WHAT: PersistenceStore backed by an SQLAlchemy AsyncSession.

WHY: The durable backend for production (PostgreSQL) and local runs
(SQLite). Every mutation commits before returning, so a ticket or comment
handed back to the caller is already durable.

HOW: Delegates statements to the DAO classes and converts ORM instances to
detached Pydantic records. Driver failures roll the session back, are
logged with their traceback and re-raised as StoreError.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from campus_helpdesk.core.exceptions import StoreError, StoreUnavailableError
from campus_helpdesk.dao.ticket import TicketDAO, TicketCommentDAO
from campus_helpdesk.dao.user import UserDAO
from campus_helpdesk.models.ticket import Ticket, TicketComment
from campus_helpdesk.models.user import User, UserRole
from campus_helpdesk.schemas.stats import TicketStats
from campus_helpdesk.schemas.ticket import CommentResponse, TicketResponse
from campus_helpdesk.schemas.user import UserResponse
from campus_helpdesk.store.base import PersistenceStore, TicketQuery

logger = logging.getLogger(__name__)


def _loaded(instance: Any, attr_name: str) -> Any:
    """Return a relationship only if it is already loaded, else None."""
    if attr_name in inspect(instance).unloaded:
        return None
    return getattr(instance, attr_name)


def _user_record(user: Optional[User]) -> Optional[UserResponse]:
    if user is None:
        return None
    return UserResponse.model_validate(user)


def _ticket_record(ticket: Ticket) -> TicketResponse:
    return TicketResponse(
        id=ticket.id,
        subject=ticket.subject,
        description=ticket.description,
        issue_type=ticket.issue_type,
        priority=ticket.priority,
        status=ticket.status,
        location=ticket.location,
        submitter_id=ticket.submitter_id,
        assigned_to_id=ticket.assigned_to_id,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        submitter=_user_record(_loaded(ticket, "submitter")),
        assignee=_user_record(_loaded(ticket, "assignee")),
    )


def _comment_record(comment: TicketComment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        ticket_id=comment.ticket_id,
        user_id=comment.user_id,
        comment=comment.comment,
        is_internal=comment.is_internal,
        created_at=comment.created_at,
        user=_user_record(_loaded(comment, "user")),
    )


class SQLAlchemyStore(PersistenceStore):
    """
    PersistenceStore over one AsyncSession.

    One instance serves one request; the session is owned by the caller.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserDAO(session)
        self.tickets = TicketDAO(session)
        self.comments = TicketCommentDAO(session)

    # =========================================================================
    # Transaction helpers
    # =========================================================================

    def _translate(self, operation: str, exc: Exception) -> StoreError:
        logger.exception("Store operation %s failed", operation, exc_info=exc)
        if isinstance(exc, OSError) or (
            isinstance(exc, DBAPIError) and exc.connection_invalidated
        ):
            return StoreUnavailableError()
        return StoreError()

    @asynccontextmanager
    async def _reading(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except (SQLAlchemyError, OSError) as exc:
            raise self._translate(operation, exc) from exc

    @asynccontextmanager
    async def _writing(self, operation: str) -> AsyncIterator[None]:
        """
        Commit on success; roll back and raise StoreError on failure.
        """
        try:
            yield
            await self.session.commit()
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            raise self._translate(operation, exc) from exc

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[UserResponse]:
        async with self._reading("get_user"):
            user = await self.users.get_by_id(user_id)
        return _user_record(user)

    async def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        async with self._reading("get_user_by_email"):
            user = await self.users.get_by_email(email)
        return _user_record(user)

    async def upsert_user(self, values: Dict[str, Any]) -> UserResponse:
        values = dict(values)
        user_id = values.pop("id")
        async with self._writing("upsert_user"):
            user = await self.users.upsert(user_id, **values)
        return UserResponse.model_validate(user)

    async def list_users(self, role: Optional[UserRole] = None) -> List[UserResponse]:
        async with self._reading("list_users"):
            if role is None:
                users = await self.users.get_all()
            else:
                users = await self.users.list_by_role(role)
        return [UserResponse.model_validate(user) for user in users]

    # =========================================================================
    # Tickets
    # =========================================================================

    async def insert_ticket(self, values: Dict[str, Any]) -> TicketResponse:
        async with self._writing("insert_ticket"):
            ticket = await self.tickets.create(**values)
        async with self._reading("insert_ticket"):
            ticket = await self.tickets.get_by_id_with_relations(ticket.id)
        return _ticket_record(ticket)

    async def get_ticket(self, ticket_id: int) -> Optional[TicketResponse]:
        async with self._reading("get_ticket"):
            ticket = await self.tickets.get_by_id_with_relations(ticket_id)
        return _ticket_record(ticket) if ticket else None

    async def list_tickets(self, query: TicketQuery) -> List[TicketResponse]:
        async with self._reading("list_tickets"):
            tickets = await self.tickets.list(
                submitter_id=query.submitter_id,
                status=query.status,
                priority=query.priority,
                assigned_to_id=query.assigned_to_id,
                unassigned_only=query.unassigned_only,
            )
        return [_ticket_record(ticket) for ticket in tickets]

    async def update_ticket(self, ticket_id: int, values: Dict[str, Any]) -> Optional[TicketResponse]:
        async with self._writing("update_ticket"):
            ticket = await self.tickets.get_by_id(ticket_id)
            if ticket is None:
                return None
            await self.tickets.update(ticket, **values)
        async with self._reading("update_ticket"):
            ticket = await self.tickets.get_by_id_with_relations(ticket_id)
        return _ticket_record(ticket)

    # =========================================================================
    # Comments
    # =========================================================================

    async def insert_comment(self, values: Dict[str, Any]) -> CommentResponse:
        async with self._writing("insert_comment"):
            comment = await self.comments.create(**values)
        async with self._reading("insert_comment"):
            comment = await self.comments.get_by_id_with_user(comment.id)
        return _comment_record(comment)

    async def list_comments(self, ticket_id: int) -> List[CommentResponse]:
        async with self._reading("list_comments"):
            comments = await self.comments.list_for_ticket(ticket_id)
        return [_comment_record(comment) for comment in comments]

    # =========================================================================
    # Aggregates
    # =========================================================================

    async def ticket_counts(self, submitter_id: Optional[str] = None) -> TicketStats:
        async with self._reading("ticket_counts"):
            counts = await self.tickets.get_stats(submitter_id)
        return TicketStats(**counts)

    async def count_assigned(self, user_id: str) -> int:
        async with self._reading("count_assigned"):
            return await self.tickets.count_assigned(user_id)

    async def resolution_durations(self) -> List[timedelta]:
        async with self._reading("resolution_durations"):
            return await self.tickets.resolution_durations()
