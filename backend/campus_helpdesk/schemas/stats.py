"""
Pydantic schemas for the role-dependent statistics endpoint.
"""

from pydantic import Field

from campus_helpdesk.schemas.common import CamelModel


class TicketStats(CamelModel):
    """
    Ticket counters for one submitter or for all tickets.

    All five counters come from the same snapshot. Closed tickets count
    towards total only, so new + in_progress + resolved may be below total.
    """

    total: int = Field(0, ge=0)
    new: int = Field(0, ge=0)
    in_progress: int = Field(0, ge=0)
    resolved: int = Field(0, ge=0)
    high: int = Field(0, ge=0, description="Priority high or critical")


class AdminStats(CamelModel):
    """
    Dashboard counters for IT staff.

    assigned_to_me is relative to the calling admin.
    """

    new_tickets: int = Field(0, ge=0)
    in_progress: int = Field(0, ge=0)
    high_priority: int = Field(0, ge=0)
    assigned_to_me: int = Field(0, ge=0)
    avg_resolution: str = Field("n/a", description='Mean time to resolve, e.g. "2.3d"')
