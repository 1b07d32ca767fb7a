"""
Dashboard statistics endpoint.
"""

from typing import Union

from fastapi import APIRouter, Depends

from campus_helpdesk.core.deps import get_current_principal, get_ticket_service
from campus_helpdesk.schemas.stats import AdminStats, TicketStats
from campus_helpdesk.services.authorization import Principal
from campus_helpdesk.services.ticket_service import TicketService


router = APIRouter(prefix="/stats", tags=["stats"])


@router.get(
    "",
    response_model=Union[AdminStats, TicketStats],
    summary="Ticket statistics",
    description=(
        "IT staff get global counters plus assignedToMe and avgResolution; "
        "everybody else gets counters over their own tickets"
    ),
)
async def get_stats(
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> Union[AdminStats, TicketStats]:
    return await service.get_stats(principal)
