"""
Authentication and account form schemas.

Field aliases match the names posted by the browser forms (camelCase).
"""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError


class ActionForm(BaseModel):
    """Base class for submitted action forms."""

    model_config = ConfigDict(populate_by_name=True)

    # "<field>.<error type>" or "<field>" -> message shown instead of pydantic's
    error_messages: ClassVar[dict[str, str]] = {}


def _normalize_email(v: str) -> str:
    return v.strip().lower()


class SignInForm(ActionForm):
    """Sign-in form schema."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("email", mode="before")
    @classmethod
    def email_length(cls, v):
        if isinstance(v, str) and not 3 <= len(v) <= 255:
            raise PydanticCustomError(
                "email_length", "Email must be between 3 and 255 characters"
            )
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)


class SignUpForm(ActionForm):
    """Sign-up form schema."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    invite_id: Optional[str] = Field(default=None, alias="inviteId")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("invite_id")
    @classmethod
    def blank_invite_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Forms post an empty string when the hidden field has no value."""
        if v is None or not v.strip():
            return None
        return v.strip()


class UpdatePasswordForm(ActionForm):
    """Password change form schema."""

    current_password: str = Field(..., alias="currentPassword", min_length=8, max_length=100)
    new_password: str = Field(..., alias="newPassword", min_length=8, max_length=100)
    confirm_password: str = Field(..., alias="confirmPassword", min_length=8, max_length=100)

    @model_validator(mode="after")
    def passwords_match(self) -> "UpdatePasswordForm":
        if self.new_password != self.confirm_password:
            raise PydanticCustomError("password_mismatch", "Passwords don't match")
        return self


class DeleteAccountForm(ActionForm):
    """Account deletion form schema."""

    password: str = Field(..., min_length=8, max_length=100)


class UpdateAccountForm(ActionForm):
    """Account update form schema."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr

    error_messages: ClassVar[dict[str, str]] = {
        "name.missing": "Name is required",
        "name.string_too_short": "Name is required",
        "email": "Invalid email address",
    }

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserResponse(BaseModel):
    """Current user response schema."""

    id: int
    name: Optional[str] = None
    email: str
    role: str
    avatar_url: Optional[str] = None
    preferred_language: Optional[str] = None
    bio: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
