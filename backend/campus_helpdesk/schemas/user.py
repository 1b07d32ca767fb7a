"""
Pydantic schemas for user records.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from campus_helpdesk.models.user import UserRole
from campus_helpdesk.schemas.common import CamelModel


class UserUpsert(CamelModel):
    """
    User data presented by the identity provider.

    WHAT: Everything needed to create or refresh a user record.
    """

    id: str = Field(..., min_length=1, max_length=255, description="Identity provider subject id")
    email: Optional[str] = Field(None, max_length=255, description="Email address (unique)")
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    profile_image_url: Optional[str] = Field(None, max_length=1024)
    role: UserRole = Field(default=UserRole.STUDENT, description="Authoritative role")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Emails are unique case-insensitively, so store them lowercased."""
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class UserResponse(CamelModel):
    """
    User record as served to the presentation layer.

    role stays a plain string so a record carrying an unknown role can
    still be displayed; authorization never reads it from here.
    """

    id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="User email")
    first_name: Optional[str] = Field(None, description="First name")
    last_name: Optional[str] = Field(None, description="Last name")
    profile_image_url: Optional[str] = Field(None, description="Avatar URL")
    role: str = Field(..., description="student, faculty or admin")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
