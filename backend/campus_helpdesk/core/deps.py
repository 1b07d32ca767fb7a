"""
FastAPI dependencies for storage, services and the calling principal.

WHY: Dependencies give every request its own store and service instances
and resolve the principal once, so route handlers only orchestrate.
"""

import logging
from typing import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from campus_helpdesk.core.auth import PROFILE_CLAIMS, verify_token
from campus_helpdesk.core.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError,
)
from campus_helpdesk.models.user import UserRole
from campus_helpdesk.services.authorization import Principal
from campus_helpdesk.services.ticket_repository import TicketRepository
from campus_helpdesk.services.ticket_service import TicketService
from campus_helpdesk.store.base import PersistenceStore
from campus_helpdesk.store.provider import StoreProvider

logger = logging.getLogger(__name__)


# HTTP Bearer token security scheme
# WHY: auto_error=False lets a missing header surface as our own 401 body
# instead of FastAPI's default 403.
security = HTTPBearer(auto_error=False)


async def get_store(request: Request) -> AsyncIterator[PersistenceStore]:
    """
    Yield the request's PersistenceStore.

    The provider is chosen at startup (see create_app) and kept on app.state.
    """
    provider: StoreProvider = request.app.state.store_provider
    async with provider.store() as store:
        yield store


def get_repository(store: PersistenceStore = Depends(get_store)) -> TicketRepository:
    return TicketRepository(store)


def get_ticket_service(
    repository: TicketRepository = Depends(get_repository),
) -> TicketService:
    return TicketService(repository)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    service: TicketService = Depends(get_ticket_service),
) -> Principal:
    """
    Resolve the calling principal from the bearer token.

    WHY: This dependency:
    1. Rejects requests without a bearer token (401)
    2. Verifies token signature and expiration (401)
    3. Reads the role claim; an unknown role yields a principal the
       authorization gate denies everything
    4. Creates or refreshes the user record from the token's claims

    Usage:
        @router.get("/tickets")
        async def list_tickets(principal: Principal = Depends(get_current_principal)):
            ...

    Raises:
        AuthenticationError: If the token is missing, expired or invalid
    """
    if credentials is None:
        raise AuthenticationError()

    try:
        payload = verify_token(credentials.credentials)
    except (TokenExpiredError, TokenInvalidError) as e:
        logger.warning("Rejected bearer token: %s", e.message)
        raise

    principal = Principal(id=payload["sub"], role=UserRole.parse(payload.get("role")))
    if principal.role is None:
        logger.warning("Principal %s presented unknown role %r", principal.id, payload.get("role"))

    profile = {claim: payload.get(claim) for claim in PROFILE_CLAIMS}
    await service.sync_principal(principal, profile)

    return principal
