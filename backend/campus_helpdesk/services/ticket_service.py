"""
Ticket service.

WHAT: The operations behind the ticket API, performed on behalf of a
principal.

WHY: Each operation follows the same steps:
1. Check the request with the authorization gate (ForbiddenError on deny,
   before any side effect)
2. Delegate to the TicketRepository
3. Project the result for the caller: internal comments are removed for
   non-staff readers, assignedToMe is computed for the calling admin
"""

import logging
from typing import Any, Dict, List, Optional, Union

from campus_helpdesk.core.exceptions import ValidationError
from campus_helpdesk.schemas.stats import AdminStats, TicketStats
from campus_helpdesk.schemas.ticket import (
    CommentCreate,
    CommentResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
)
from campus_helpdesk.schemas.user import UserResponse, UserUpsert
from campus_helpdesk.services.authorization import (
    Capability,
    CreateComment,
    ListComments,
    ListStaff,
    Principal,
    ReadTicket,
    SubmitTicket,
    WriteTicket,
    can_view_internal,
    enforce,
    has_capability,
)
from campus_helpdesk.services.ticket_repository import TicketRepository, parse_model

logger = logging.getLogger(__name__)

ASSIGNEE_FILTERS = ("me", "unassigned")


class TicketService:
    """
    Authorized ticket workflows.

    Example:
        >>> service = TicketService(TicketRepository(store))
        >>> ticket = await service.create_ticket(principal, {...})
    """

    def __init__(self, repository: TicketRepository):
        self.repository = repository

    # =========================================================================
    # Users
    # =========================================================================

    async def sync_principal(self, principal: Principal, profile: Dict[str, Any]) -> None:
        """
        Create or refresh the principal's user record from token claims.

        Nothing is stored for a principal with an unknown role; the gate
        denies such a principal everything anyway. An email claim already
        held by another user is not applied; the stored email is kept.

        Args:
            principal: The authenticated principal
            profile: email, first_name, last_name, profile_image_url claims
        """
        if principal.role is None:
            return

        desired = parse_model(UserUpsert, {"id": principal.id, "role": principal.role, **profile})
        existing = await self.repository.find_user(principal.id)

        if desired.email is not None:
            owner = await self.repository.find_user_by_email(desired.email)
            if owner is not None and owner.id != principal.id:
                logger.warning(
                    "Email claim of principal %s is held by user %s; keeping stored email",
                    principal.id,
                    owner.id,
                )
                desired = desired.model_copy(
                    update={"email": existing.email if existing else None}
                )

        if existing is not None and _same_profile(existing, desired):
            return

        await self.repository.upsert_user(desired)

    async def get_current_user(self, principal: Principal) -> UserResponse:
        return await self.repository.get_user(principal.id)

    async def get_it_staff(self, principal: Principal) -> List[UserResponse]:
        enforce(principal, ListStaff())
        return await self.repository.get_it_staff()

    # =========================================================================
    # Tickets
    # =========================================================================

    async def create_ticket(
        self,
        principal: Principal,
        data: Union[TicketCreate, Dict[str, Any]],
    ) -> TicketResponse:
        """The calling principal is always the submitter."""
        enforce(principal, SubmitTicket())
        return await self.repository.create_ticket(principal.id, data)

    async def list_tickets(
        self,
        principal: Principal,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assignee: Optional[str] = None,
    ) -> List[TicketResponse]:
        """
        Tickets visible to the principal, newest first.

        Staff see every ticket; everybody else sees their own. The optional
        filters narrow that set further.

        Args:
            principal: Caller
            status: Only tickets with this status
            priority: Only tickets with this priority
            assignee: "me" or "unassigned"

        Raises:
            ValidationError: Unknown assignee filter
            ForbiddenError: Principal has an unknown role
        """
        if assignee is not None and assignee not in ASSIGNEE_FILTERS:
            raise ValidationError.for_field(
                "assignee", "assignee must be 'me' or 'unassigned'", "enum"
            )

        filters = {
            "status": status,
            "priority": priority,
            "assigned_to_id": principal.id if assignee == "me" else None,
            "unassigned_only": assignee == "unassigned",
        }

        if has_capability(principal, Capability.VIEW_ALL_TICKETS):
            return await self.repository.get_all_tickets(**filters)

        enforce(principal, SubmitTicket())
        return await self.repository.get_tickets_by_user(principal.id, **filters)

    async def get_ticket(self, principal: Principal, ticket_id: int) -> TicketResponse:
        """
        Raises:
            TicketNotFoundError: If the ticket does not exist
            ForbiddenError: If the principal may not read it
        """
        ticket = await self.repository.get_ticket_by_id(ticket_id)
        enforce(principal, ReadTicket(submitter_id=ticket.submitter_id, ticket_id=ticket_id))
        return ticket

    async def update_ticket(
        self,
        principal: Principal,
        ticket_id: int,
        data: Union[TicketUpdate, Dict[str, Any]],
    ) -> TicketResponse:
        """
        Staff-only partial update.

        The gate is checked first, so a non-staff caller learns nothing
        about whether the ticket exists.
        """
        enforce(principal, WriteTicket(ticket_id=ticket_id))
        return await self.repository.update_ticket(ticket_id, data)

    # =========================================================================
    # Comments
    # =========================================================================

    async def add_comment(
        self,
        principal: Principal,
        ticket_id: int,
        data: Union[CommentCreate, Dict[str, Any]],
    ) -> CommentResponse:
        """
        Raises:
            ValidationError: Empty comment text
            TicketNotFoundError: If the ticket does not exist
            ForbiddenError: If the principal may not read the ticket, or
                sets isInternal without staff rights
        """
        comment = parse_model(CommentCreate, data)
        ticket = await self.repository.get_ticket_by_id(ticket_id)
        enforce(
            principal,
            CreateComment(
                submitter_id=ticket.submitter_id,
                is_internal=comment.is_internal,
                ticket_id=ticket_id,
            ),
        )
        return await self.repository.add_comment(ticket_id, principal.id, comment)

    async def list_comments(self, principal: Principal, ticket_id: int) -> List[CommentResponse]:
        """Comments newest first; internal ones only for staff."""
        ticket = await self.repository.get_ticket_by_id(ticket_id)
        enforce(principal, ListComments(submitter_id=ticket.submitter_id, ticket_id=ticket_id))

        comments = await self.repository.get_ticket_comments(ticket_id)
        if can_view_internal(principal):
            return comments
        return [c for c in comments if not c.is_internal]

    # =========================================================================
    # Statistics
    # =========================================================================

    async def get_stats(self, principal: Principal) -> Union[AdminStats, TicketStats]:
        """Global dashboard counters for staff, own ticket counters otherwise."""
        if has_capability(principal, Capability.GLOBAL_STATS):
            return await self.repository.get_admin_stats(principal.id)

        enforce(principal, SubmitTicket())
        return await self.repository.get_ticket_stats(principal.id)


def _same_profile(existing: UserResponse, desired: UserUpsert) -> bool:
    return (
        existing.email == desired.email
        and existing.first_name == desired.first_name
        and existing.last_name == desired.last_name
        and existing.profile_image_url == desired.profile_image_url
        and existing.role == desired.role.value
    )
