"""
IT staff directory endpoint.
"""

from typing import List

from fastapi import APIRouter, Depends

from campus_helpdesk.core.deps import get_current_principal, get_ticket_service
from campus_helpdesk.schemas.user import UserResponse
from campus_helpdesk.services.authorization import Principal
from campus_helpdesk.services.ticket_service import TicketService


router = APIRouter(prefix="/it-staff", tags=["staff"])


@router.get(
    "",
    response_model=List[UserResponse],
    summary="List IT staff",
    description="Users who can be assigned tickets (IT staff only)",
)
async def list_it_staff(
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> List[UserResponse]:
    return await service.get_it_staff(principal)
