"""
Pydantic schemas for ticket endpoints.

WHAT: Request/response schemas for tickets and comments.

WHY: Schemas define the JSON contract consumed by the presentation layer:
1. Validate incoming request data (non-empty text, known priority/status)
2. Document the API for OpenAPI/Swagger
3. Carry joined submitter/assignee/author records in responses

HOW: Uses Pydantic v2 with camelCase aliases and ORM attribute loading.
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from campus_helpdesk.models.ticket import TicketStatus, TicketPriority
from campus_helpdesk.schemas.common import CamelModel, clean_text
from campus_helpdesk.schemas.user import UserResponse


def _clean_issue_type(value: str) -> str:
    """Issue types are an open set of lowercase slugs ("hardware", "printing", ...)."""
    return clean_text(value).lower()


def _clean_location(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ============================================================================
# Ticket Schemas
# ============================================================================


class TicketCreate(CamelModel):
    """
    Ticket creation request.

    The submitter is always the calling principal; status always starts
    as "new", so neither is accepted here.
    """

    subject: str = Field(..., max_length=500, description="Short summary of the issue")
    description: str = Field(..., max_length=50000, description="Detailed description")
    issue_type: str = Field(..., max_length=50, description="hardware, software, network, ...")
    priority: TicketPriority = Field(..., description="low, medium, high or critical")
    location: Optional[str] = Field(None, max_length=1000, description="Where the problem is")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "subject": "Printer jam",
                "description": "Tray 2 stuck",
                "issueType": "printing",
                "priority": "low",
                "location": "Library, 2nd floor",
            }
        }
    )

    @field_validator("subject", "description")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return clean_text(v)

    @field_validator("issue_type")
    @classmethod
    def validate_issue_type(cls, v: str) -> str:
        return _clean_issue_type(v)

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: Optional[str]) -> Optional[str]:
        return _clean_location(v)


class TicketUpdate(CamelModel):
    """
    Partial ticket update (admin only).

    Only fields present in the request are applied. ``assignedToId: null``
    unassigns the ticket; ``location: null`` clears it. The other fields
    cannot be set to null. Ticket id and submitter are immutable, so
    unknown fields are rejected instead of silently dropped.
    """

    subject: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=50000)
    issue_type: Optional[str] = Field(None, max_length=50)
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    location: Optional[str] = Field(None, max_length=1000)
    assigned_to_id: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(extra="forbid")

    @field_validator("subject", "description")
    @classmethod
    def validate_text(cls, v: Optional[str]) -> Optional[str]:
        return clean_text(v) if v is not None else None

    @field_validator("issue_type")
    @classmethod
    def validate_issue_type(cls, v: Optional[str]) -> Optional[str]:
        return _clean_issue_type(v) if v is not None else None

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: Optional[str]) -> Optional[str]:
        return _clean_location(v)

    @field_validator("assigned_to_id")
    @classmethod
    def validate_assignee(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("must be a user id or null")
        return v

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "TicketUpdate":
        for name in ("subject", "description", "issue_type", "priority", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly present in the request, keyed by attribute name, enums as values."""
        return self.model_dump(exclude_unset=True, mode="json")


class TicketResponse(CamelModel):
    """
    Ticket response schema.

    submitter and assignee are populated by joined reads; they are None
    on the bare record returned right after creation when not loaded.
    """

    id: int = Field(..., description="Ticket ID")
    subject: str
    description: str
    issue_type: str
    priority: TicketPriority
    status: TicketStatus
    location: Optional[str] = None
    submitter_id: str
    assigned_to_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    submitter: Optional[UserResponse] = Field(None, description="Submitting user")
    assignee: Optional[UserResponse] = Field(None, description="Assigned IT staff member")


# ============================================================================
# Comment Schemas
# ============================================================================


class CommentCreate(CamelModel):
    """
    Comment creation request.

    Only admins may set isInternal.
    """

    comment: str = Field(..., max_length=50000, description="Comment text")
    is_internal: bool = Field(default=False, description="Staff-only note")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "comment": "Replaced the feed roller, please try again.",
                "isInternal": False,
            }
        }
    )

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: str) -> str:
        return clean_text(v)


class CommentResponse(CamelModel):
    """
    Comment response schema.

    Internal comments never reach non-admin readers; the service filters
    them before this schema is rendered.
    """

    id: int = Field(..., description="Comment ID")
    ticket_id: int = Field(..., description="Parent ticket ID")
    user_id: str = Field(..., description="Author user ID")
    comment: str
    is_internal: bool
    created_at: datetime
    user: Optional[UserResponse] = Field(None, description="Author")
