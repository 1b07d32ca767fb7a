"""
Authentication endpoints.

WHY: Login itself happens at the identity provider. The presentation
layer only needs the record of whoever holds the current bearer token.
"""

from fastapi import APIRouter, Depends

from campus_helpdesk.core.deps import get_current_principal, get_ticket_service
from campus_helpdesk.schemas.user import UserResponse
from campus_helpdesk.services.authorization import Principal
from campus_helpdesk.services.ticket_service import TicketService


router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/user",
    response_model=UserResponse,
    summary="Current user",
)
async def get_current_user(
    principal: Principal = Depends(get_current_principal),
    service: TicketService = Depends(get_ticket_service),
) -> UserResponse:
    """
    Return the calling user's record.

    Raises:
        AuthenticationError (401): Missing or invalid token
        NotFoundError (404): No record exists (unknown role on first sight)
    """
    return await service.get_current_user(principal)
