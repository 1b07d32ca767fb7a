"""
Authorization gate.

WHAT: Stateless decisions about what a principal may do with a ticket.

WHY: Every rule lives in one place and depends only on the principal's id
and role and on the ticket's submitter id. No database access, no hidden
state, so every rule is unit-testable with plain values.

HOW:
- Roles map to capabilities through a mapping that covers every UserRole.
  A principal whose role is not a known UserRole has no capabilities.
- Requests are small frozen dataclasses (ReadTicket, WriteTicket, ...).
  ``decide`` dispatches on the request type with functools.singledispatch.
- ``enforce`` raises ForbiddenError and logs the denial.
"""

import enum
import logging
from dataclasses import dataclass
from functools import singledispatch
from typing import Dict, FrozenSet, Optional

from campus_helpdesk.core.exceptions import ForbiddenError
from campus_helpdesk.models.user import UserRole

logger = logging.getLogger(__name__)


# ============================================================================
# Principal and capabilities
# ============================================================================


@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor making a request.

    role is None when the identity provider supplied a role this service
    does not know.
    """

    id: str
    role: Optional[UserRole]


class Capability(str, enum.Enum):
    """Things a role may do, independent of any particular ticket."""

    SUBMIT_TICKETS = "submit_tickets"
    VIEW_ALL_TICKETS = "view_all_tickets"
    MANAGE_TICKETS = "manage_tickets"
    INTERNAL_COMMENTS = "internal_comments"
    LIST_STAFF = "list_staff"
    GLOBAL_STATS = "global_stats"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.STUDENT: frozenset({Capability.SUBMIT_TICKETS}),
    UserRole.FACULTY: frozenset({Capability.SUBMIT_TICKETS}),
    UserRole.ADMIN: frozenset(Capability),
}


def capabilities(principal: Principal) -> FrozenSet[Capability]:
    """Capabilities of the principal's role; empty for an unknown role."""
    if principal.role is None:
        return frozenset()
    return ROLE_CAPABILITIES[principal.role]


def has_capability(principal: Principal, capability: Capability) -> bool:
    return capability in capabilities(principal)


def can_view_internal(principal: Principal) -> bool:
    """Whether internal comments may be served to this principal."""
    return has_capability(principal, Capability.INTERNAL_COMMENTS)


# ============================================================================
# Request shapes
# ============================================================================


@dataclass(frozen=True)
class SubmitTicket:
    action = "submit ticket"


@dataclass(frozen=True)
class ReadTicket:
    submitter_id: str
    ticket_id: Optional[int] = None

    action = "read ticket"


@dataclass(frozen=True)
class WriteTicket:
    """Status, priority, assignment or text change."""

    ticket_id: Optional[int] = None

    action = "update ticket"


@dataclass(frozen=True)
class CreateComment:
    submitter_id: str
    is_internal: bool = False
    ticket_id: Optional[int] = None

    action = "add comment"


@dataclass(frozen=True)
class ListComments:
    submitter_id: str
    ticket_id: Optional[int] = None

    action = "list comments"


@dataclass(frozen=True)
class ListStaff:
    action = "list IT staff"


# ============================================================================
# Decisions
# ============================================================================


@singledispatch
def decide(request: object, principal: Principal) -> bool:
    # Unknown request shapes are denied.
    return False


def _may_read(principal: Principal, submitter_id: str) -> bool:
    if has_capability(principal, Capability.VIEW_ALL_TICKETS):
        return True
    return (
        has_capability(principal, Capability.SUBMIT_TICKETS)
        and principal.id == submitter_id
    )


@decide.register
def _(request: SubmitTicket, principal: Principal) -> bool:
    return has_capability(principal, Capability.SUBMIT_TICKETS)


@decide.register
def _(request: ReadTicket, principal: Principal) -> bool:
    return _may_read(principal, request.submitter_id)


@decide.register
def _(request: WriteTicket, principal: Principal) -> bool:
    return has_capability(principal, Capability.MANAGE_TICKETS)


@decide.register
def _(request: CreateComment, principal: Principal) -> bool:
    if not _may_read(principal, request.submitter_id):
        return False
    return not request.is_internal or can_view_internal(principal)


@decide.register
def _(request: ListComments, principal: Principal) -> bool:
    return _may_read(principal, request.submitter_id)


@decide.register
def _(request: ListStaff, principal: Principal) -> bool:
    return has_capability(principal, Capability.LIST_STAFF)


def is_allowed(principal: Principal, request: object) -> bool:
    """
    Decide a request for a principal.

    Example:
        >>> student = Principal(id="s1", role=UserRole.STUDENT)
        >>> is_allowed(student, ReadTicket(submitter_id="s1"))
        True
        >>> is_allowed(student, WriteTicket())
        False
    """
    return decide(request, principal)


def enforce(principal: Principal, request: object) -> None:
    """
    Raise ForbiddenError unless the request is allowed.

    Raises:
        ForbiddenError: On denial, before any side effect
    """
    if is_allowed(principal, request):
        return

    action = getattr(request, "action", type(request).__name__)
    logger.warning(
        "Denied %s for principal %s (role=%s, ticket=%s)",
        action,
        principal.id,
        principal.role.value if principal.role else "unknown",
        getattr(request, "ticket_id", None),
    )
    raise ForbiddenError()
