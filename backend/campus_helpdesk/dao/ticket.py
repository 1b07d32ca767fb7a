"""
Ticket Data Access Object.

WHAT: DAOs for ticket and comment persistence.

WHY: Encapsulates all ticket SQL with:
1. Joined reads of submitter, assignee and comment author
2. Newest-first listings with optional filters
3. Single-statement aggregate counters for statistics

HOW: Uses SQLAlchemy 2.0 async with eager loading; relationships are never
lazy-loaded in async context.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from campus_helpdesk.dao.base import BaseDAO
from campus_helpdesk.models.ticket import (
    Ticket,
    TicketComment,
    TicketStatus,
    HIGH_PRIORITIES,
)


def _count_where(condition):
    """SUM(CASE WHEN condition THEN 1 ELSE 0 END), 0 on an empty set."""
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


class TicketDAO(BaseDAO[Ticket]):
    """
    Data Access Object for Ticket operations.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize TicketDAO with database session.

        Args:
            session: AsyncSession for database operations
        """
        super().__init__(Ticket, session)

    async def get_by_id_with_relations(self, ticket_id: int) -> Optional[Ticket]:
        """
        Get ticket by ID with submitter and assignee loaded.

        WHY: populate_existing reloads relationships of an instance already
        in the identity map, so a changed assigned_to_id is reflected in
        the assignee returned.

        Args:
            ticket_id: Ticket ID

        Returns:
            Ticket with relations or None
        """
        query = (
            select(Ticket)
            .options(
                selectinload(Ticket.submitter),
                selectinload(Ticket.assignee),
            )
            .where(Ticket.id == ticket_id)
            .execution_options(populate_existing=True)
        )

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list(
        self,
        submitter_id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to_id: Optional[str] = None,
        unassigned_only: bool = False,
    ) -> List[Ticket]:
        """
        List tickets newest-created first, with submitter and assignee loaded.

        Args:
            submitter_id: Filter by submitter
            status: Filter by status value
            priority: Filter by priority value
            assigned_to_id: Filter by assignee
            unassigned_only: Only tickets without an assignee

        Returns:
            List of tickets
        """
        query = select(Ticket)

        if submitter_id is not None:
            query = query.where(Ticket.submitter_id == submitter_id)

        if status is not None:
            query = query.where(Ticket.status == status)

        if priority is not None:
            query = query.where(Ticket.priority == priority)

        if assigned_to_id is not None:
            query = query.where(Ticket.assigned_to_id == assigned_to_id)
        elif unassigned_only:
            query = query.where(Ticket.assigned_to_id.is_(None))

        query = (
            query.options(
                selectinload(Ticket.submitter),
                selectinload(Ticket.assignee),
            )
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
            .execution_options(populate_existing=True)
        )

        result = await self.session.execute(query)
        return list(result.scalars().all())

    # =========================================================================
    # Statistics
    # =========================================================================

    async def get_stats(self, submitter_id: Optional[str] = None) -> Dict[str, int]:
        """
        Count tickets by status and priority in one SELECT.

        WHY: A single aggregate statement reads one snapshot, so the five
        counters can never disagree with each other.

        Args:
            submitter_id: Restrict to one submitter when given

        Returns:
            Dictionary with total, new, in_progress, resolved and high
        """
        query = select(
            func.count(Ticket.id),
            _count_where(Ticket.status == TicketStatus.NEW.value),
            _count_where(Ticket.status == TicketStatus.IN_PROGRESS.value),
            _count_where(Ticket.status == TicketStatus.RESOLVED.value),
            _count_where(Ticket.priority.in_([p.value for p in HIGH_PRIORITIES])),
        )

        if submitter_id is not None:
            query = query.where(Ticket.submitter_id == submitter_id)

        row = (await self.session.execute(query)).one()

        return {
            "total": int(row[0]),
            "new": int(row[1]),
            "in_progress": int(row[2]),
            "resolved": int(row[3]),
            "high": int(row[4]),
        }

    async def count_assigned(self, user_id: str) -> int:
        """Count tickets assigned to a user."""
        return await self.count(assigned_to_id=user_id)

    async def resolution_durations(self) -> List[timedelta]:
        """
        Time from creation to last update for resolved tickets.

        Returns:
            One timedelta per resolved ticket
        """
        query = select(Ticket.created_at, Ticket.updated_at).where(
            Ticket.status == TicketStatus.RESOLVED.value
        )
        result = await self.session.execute(query)
        return [updated - created for created, updated in result.all()]


class TicketCommentDAO(BaseDAO[TicketComment]):
    """
    Data Access Object for TicketComment operations.

    Comments are append-only: there is no update or delete.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(TicketComment, session)

    async def get_by_id_with_user(self, comment_id: int) -> Optional[TicketComment]:
        """Get a comment with its author loaded."""
        query = (
            select(TicketComment)
            .options(selectinload(TicketComment.user))
            .where(TicketComment.id == comment_id)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_for_ticket(self, ticket_id: int) -> List[TicketComment]:
        """
        List comments for a ticket, newest first.

        Internal notes are included; filtering by reader is the service's job.

        Args:
            ticket_id: Ticket ID

        Returns:
            List of comments with authors loaded
        """
        query = (
            select(TicketComment)
            .options(selectinload(TicketComment.user))
            .where(TicketComment.ticket_id == ticket_id)
            .order_by(TicketComment.created_at.desc(), TicketComment.id.desc())
        )

        result = await self.session.execute(query)
        return list(result.scalars().all())
