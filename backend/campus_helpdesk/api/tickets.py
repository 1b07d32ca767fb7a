"""
Ticket API endpoints.

WHAT: JSON API for tickets and their comments.

WHY: The presentation layer consumes these routes only. Who may see or
change what is decided by the TicketService, never here.

HOW: FastAPI router with:
- The calling principal resolved from the bearer token
- Request bodies validated by the ticket schemas (400 on failure)
- camelCase JSON responses
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from campus_helpdesk.core.deps import get_current_principal, get_ticket_service
from campus_helpdesk.models.ticket import TicketPriority, TicketStatus
from campus_helpdesk.schemas.ticket import (
    CommentCreate,
    CommentResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
)
from campus_helpdesk.services.authorization import Principal
from campus_helpdesk.services.ticket_service import TicketService


router = APIRouter(prefix="/tickets", tags=["tickets"])


# ============================================================================
# Ticket Endpoints
# ============================================================================


@router.post(
    "",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create ticket",
    description="Submit a new support ticket as the calling user",
)
async def create_ticket(
    data: TicketCreate,
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> TicketResponse:
    """
    Create a new support ticket.

    The ticket starts as "new" and its submitter is the caller.

    Raises:
        ValidationError (400): Missing or invalid fields
        ForbiddenError (403): Caller's role may not submit tickets
    """
    return await service.create_ticket(principal, data)


@router.get(
    "",
    response_model=List[TicketResponse],
    summary="List tickets",
    description="Own tickets for students and faculty, all tickets for IT staff",
)
async def list_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status", description="Filter by status"),
    priority: Optional[TicketPriority] = Query(None, description="Filter by priority"),
    assignee: Optional[Literal["me", "unassigned"]] = Query(
        None, description="Tickets assigned to the caller, or unassigned tickets"
    ),
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> List[TicketResponse]:
    return await service.list_tickets(
        principal,
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        assignee=assignee,
    )


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get ticket",
)
async def get_ticket(
    ticket_id: int,
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> TicketResponse:
    """
    Get a ticket with its submitter and assignee.

    Raises:
        NotFoundError (404): No such ticket
        ForbiddenError (403): Caller is neither the submitter nor IT staff
    """
    return await service.get_ticket(principal, ticket_id)


@router.patch(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Update ticket",
    description="Change status, priority, assignment or details (IT staff only)",
)
async def update_ticket(
    ticket_id: int,
    data: TicketUpdate,
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> TicketResponse:
    """
    Apply a partial update.

    Raises:
        ForbiddenError (403): Caller is not IT staff
        NotFoundError (404): No such ticket
        ValidationError (400): Invalid fields or assignee
    """
    return await service.update_ticket(principal, ticket_id, data)


# ============================================================================
# Comment Endpoints
# ============================================================================


@router.post(
    "/{ticket_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
)
async def add_comment(
    ticket_id: int,
    data: CommentCreate,
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> CommentResponse:
    """
    Add a comment to a ticket.

    Anyone who can read the ticket may comment; only IT staff may post
    internal notes.
    """
    return await service.add_comment(principal, ticket_id, data)


@router.get(
    "/{ticket_id}/comments",
    response_model=List[CommentResponse],
    summary="List comments",
)
async def list_comments(
    ticket_id: int,
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> List[CommentResponse]:
    """Comments newest first. Internal notes are omitted for non-staff callers."""
    return await service.list_comments(principal, ticket_id)
