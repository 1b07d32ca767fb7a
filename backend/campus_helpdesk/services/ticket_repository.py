"""
Ticket repository.

WHAT: Ticket, comment and user operations on top of an injected
PersistenceStore.

WHY: The store only persists records. The repository adds:
1. Input validation (raw dicts are parsed through the request schemas)
2. Referential checks: submitter, assignee and comment author must be
   known users; an assignee must be IT staff
3. Timestamps: createdAt on insert, a strictly increasing updatedAt on
   every ticket mutation
4. Aggregate statistics for the dashboards

HOW: Raises ValidationError, TicketNotFoundError and UserNotFoundError;
store failures propagate as StoreError. No authorization happens here.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from campus_helpdesk.core.exceptions import (
    TicketNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from campus_helpdesk.models.base import utcnow
from campus_helpdesk.models.ticket import TicketStatus
from campus_helpdesk.models.user import UserRole
from campus_helpdesk.schemas.stats import AdminStats, TicketStats
from campus_helpdesk.schemas.ticket import (
    CommentCreate,
    CommentResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
)
from campus_helpdesk.schemas.user import UserResponse, UserUpsert
from campus_helpdesk.store.base import PersistenceStore, TicketQuery

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)

# Smallest step used to keep updatedAt strictly increasing
UPDATED_AT_STEP = timedelta(microseconds=1)


def parse_model(schema: Type[SchemaType], data: Union[SchemaType, Dict[str, Any]]) -> SchemaType:
    """
    Validate raw input against a request schema.

    Args:
        schema: Pydantic request model
        data: An instance of it, or a dict with camelCase or snake_case keys

    Returns:
        Validated model instance

    Raises:
        ValidationError: With one ``{field, message, type}`` entry per problem
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]) or "body",
                "message": error["msg"],
                "type": error["type"],
            }
            for error in e.errors()
        ]
        raise ValidationError(message=f"Invalid {schema.__name__} data", errors=errors)


def next_updated_at(previous: datetime) -> datetime:
    """Current time, or one step past ``previous`` if the clock has not advanced."""
    now = utcnow()
    if now <= previous:
        return previous + UPDATED_AT_STEP
    return now


def format_duration(duration: timedelta) -> str:
    """
    Format a resolution time for the admin dashboard.

    Example:
        >>> format_duration(timedelta(days=2, hours=7))
        '2.3d'
        >>> format_duration(timedelta(hours=5))
        '5.0h'
        >>> format_duration(timedelta(minutes=42))
        '42m'
    """
    seconds = duration.total_seconds()
    if seconds >= 86400:
        return f"{seconds / 86400:.1f}d"
    if seconds >= 3600:
        return f"{seconds / 3600:.1f}h"
    return f"{round(seconds / 60)}m"


class TicketRepository:
    """
    Ticket, comment and user operations with referential integrity.

    Example:
        >>> repo = TicketRepository(MemoryStore())
        >>> ticket = await repo.create_ticket("student1", {...})
    """

    def __init__(self, store: PersistenceStore):
        self.store = store

    # =========================================================================
    # Users
    # =========================================================================

    async def upsert_user(self, data: Union[UserUpsert, Dict[str, Any]]) -> UserResponse:
        """
        Create the user on first sight or refresh its profile and role.

        Returns:
            The stored user record
        """
        user = parse_model(UserUpsert, data)
        values = user.model_dump(mode="json")

        now = utcnow()
        values["created_at"] = now
        values["updated_at"] = now

        if user.email is not None:
            owner = await self.store.get_user_by_email(user.email)
            if owner is not None and owner.id != user.id:
                raise ValidationError.for_field("email", "Email is already in use", "unique")

        record = await self.store.upsert_user(values)
        logger.info("Upserted user %s (role=%s)", record.id, record.role)
        return record

    async def find_user(self, user_id: str) -> Optional[UserResponse]:
        return await self.store.get_user(user_id)

    async def find_user_by_email(self, email: str) -> Optional[UserResponse]:
        return await self.store.get_user_by_email(email)

    async def get_user(self, user_id: str) -> UserResponse:
        """
        Raises:
            UserNotFoundError: If no such user exists
        """
        user = await self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id=user_id)
        return user

    async def get_it_staff(self) -> List[UserResponse]:
        """All users with the admin role."""
        return await self.store.list_users(role=UserRole.ADMIN)

    # =========================================================================
    # Tickets
    # =========================================================================

    async def create_ticket(
        self,
        submitter_id: str,
        data: Union[TicketCreate, Dict[str, Any]],
    ) -> TicketResponse:
        """
        Create a ticket with status "new".

        Args:
            submitter_id: Id of an existing user
            data: Ticket fields

        Returns:
            The persisted ticket

        Raises:
            ValidationError: If fields are missing or ill-typed, or the
                submitter is unknown
        """
        ticket = parse_model(TicketCreate, data)

        if await self.store.get_user(submitter_id) is None:
            raise ValidationError.for_field("submitterId", "Submitter is not a known user", "reference")

        now = utcnow()
        values = ticket.model_dump(mode="json")
        values.update(
            submitter_id=submitter_id,
            status=TicketStatus.NEW.value,
            created_at=now,
            updated_at=now,
        )

        created = await self.store.insert_ticket(values)
        logger.info(
            "Created ticket %s by %s (priority=%s, issue_type=%s)",
            created.id,
            submitter_id,
            created.priority.value,
            created.issue_type,
        )
        return created

    async def get_ticket_by_id(self, ticket_id: int) -> TicketResponse:
        """
        Get a ticket joined with submitter and assignee.

        Raises:
            TicketNotFoundError: If no such ticket exists
        """
        ticket = await self.store.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id=ticket_id)
        return ticket

    async def get_tickets_by_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to_id: Optional[str] = None,
        unassigned_only: bool = False,
    ) -> List[TicketResponse]:
        """Tickets submitted by a user, newest first."""
        return await self.store.list_tickets(
            TicketQuery(
                submitter_id=user_id,
                status=status,
                priority=priority,
                assigned_to_id=assigned_to_id,
                unassigned_only=unassigned_only,
            )
        )

    async def get_all_tickets(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to_id: Optional[str] = None,
        unassigned_only: bool = False,
    ) -> List[TicketResponse]:
        """Every ticket, newest first, joined with submitter and assignee."""
        return await self.store.list_tickets(
            TicketQuery(
                status=status,
                priority=priority,
                assigned_to_id=assigned_to_id,
                unassigned_only=unassigned_only,
            )
        )

    async def update_ticket(
        self,
        ticket_id: int,
        data: Union[TicketUpdate, Dict[str, Any]],
    ) -> TicketResponse:
        """
        Apply the fields present in ``data`` and refresh updatedAt.

        updatedAt is refreshed even when no field changes, and always ends
        up later than its previous value.

        Raises:
            ValidationError: Invalid fields, or an assignee that is not IT staff
            TicketNotFoundError: If no such ticket exists
        """
        update = parse_model(TicketUpdate, data)
        changes = update.changes()

        current = await self.get_ticket_by_id(ticket_id)

        assignee_id = changes.get("assigned_to_id")
        if assignee_id is not None:
            assignee = await self.store.get_user(assignee_id)
            if assignee is None or UserRole.parse(assignee.role) is not UserRole.ADMIN:
                raise ValidationError.for_field(
                    "assignedToId", "Assignee must be an IT staff member", "reference"
                )

        changes["updated_at"] = next_updated_at(current.updated_at)

        updated = await self.store.update_ticket(ticket_id, changes)
        if updated is None:
            raise TicketNotFoundError(ticket_id=ticket_id)

        logger.info(
            "Updated ticket %s: %s",
            ticket_id,
            ", ".join(sorted(k for k in changes if k != "updated_at")) or "no fields",
        )
        return updated

    # =========================================================================
    # Comments
    # =========================================================================

    async def add_comment(
        self,
        ticket_id: int,
        user_id: str,
        data: Union[CommentCreate, Dict[str, Any]],
    ) -> CommentResponse:
        """
        Append a comment to a ticket.

        Raises:
            ValidationError: Empty text or unknown author
            TicketNotFoundError: If the ticket does not exist
        """
        comment = parse_model(CommentCreate, data)

        await self.get_ticket_by_id(ticket_id)
        if await self.store.get_user(user_id) is None:
            raise ValidationError.for_field("userId", "Author is not a known user", "reference")

        created = await self.store.insert_comment(
            {
                "ticket_id": ticket_id,
                "user_id": user_id,
                "comment": comment.comment,
                "is_internal": comment.is_internal,
                "created_at": utcnow(),
            }
        )
        logger.info(
            "Added %s comment %s to ticket %s by %s",
            "internal" if created.is_internal else "public",
            created.id,
            ticket_id,
            user_id,
        )
        return created

    async def get_ticket_comments(self, ticket_id: int) -> List[CommentResponse]:
        """All comments of a ticket, newest first, internal ones included."""
        return await self.store.list_comments(ticket_id)

    # =========================================================================
    # Statistics
    # =========================================================================

    async def get_ticket_stats(self, user_id: Optional[str] = None) -> TicketStats:
        """Counters for one submitter's tickets, or for all tickets."""
        return await self.store.ticket_counts(submitter_id=user_id)

    async def count_assigned(self, user_id: str) -> int:
        return await self.store.count_assigned(user_id)

    async def get_admin_stats(self, admin_id: str) -> AdminStats:
        """
        Global dashboard counters.

        Args:
            admin_id: The calling admin; assignedToMe counts their tickets

        Returns:
            AdminStats with the mean resolution time of resolved tickets
        """
        counts = await self.store.ticket_counts()
        assigned = await self.store.count_assigned(admin_id)
        durations = await self.store.resolution_durations()

        avg_resolution = "n/a"
        if durations:
            avg_resolution = format_duration(sum(durations, timedelta()) / len(durations))

        return AdminStats(
            new_tickets=counts.new,
            in_progress=counts.in_progress,
            high_priority=counts.high,
            assigned_to_me=assigned,
            avg_resolution=avg_resolution,
        )
