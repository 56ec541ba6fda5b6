"""
Team management form and response schemas.
"""

from datetime import datetime
from typing import ClassVar, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from infrastructure.database.models import MAX_ID

from .auth import ActionForm


class RemoveTeamMemberForm(ActionForm):
    """Remove-member form schema."""

    member_id: int = Field(..., alias="memberId", ge=1, le=MAX_ID)


class InviteTeamMemberForm(ActionForm):
    """Invite-member form schema."""

    email: EmailStr
    role: Literal["MEMBER", "OWNER", "ADMIN"]

    error_messages: ClassVar[dict[str, str]] = {
        "email": "Invalid email address",
    }

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("role", mode="before")
    @classmethod
    def upper_role(cls, v):
        return v.upper() if isinstance(v, str) else v


class TeamMemberUser(BaseModel):
    """Public user fields shown in a team listing."""

    id: int
    name: Optional[str] = None
    email: str

    model_config = ConfigDict(from_attributes=True)


class TeamMemberResponse(BaseModel):
    """Team member response schema."""

    id: int
    role: str
    joined_at: datetime
    user: TeamMemberUser

    model_config = ConfigDict(from_attributes=True)


class TeamResponse(BaseModel):
    """Team response schema."""

    id: int
    name: str
    plan_name: Optional[str] = None
    subscription_status: Optional[str] = None
    members: List[TeamMemberResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ActivityLogResponse(BaseModel):
    """Activity log entry response schema."""

    id: int
    action: str
    timestamp: datetime
    ip_address: Optional[str] = None
    user_name: Optional[str] = None
