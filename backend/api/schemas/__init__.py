"""
API request and response schemas.
"""

from .auth import (
    ActionForm,
    DeleteAccountForm,
    SignInForm,
    SignUpForm,
    UpdateAccountForm,
    UpdatePasswordForm,
    UserResponse,
)
from .team import (
    ActivityLogResponse,
    InviteTeamMemberForm,
    RemoveTeamMemberForm,
    TeamMemberResponse,
    TeamResponse,
)

__all__ = [
    "ActionForm",
    "SignInForm",
    "SignUpForm",
    "UpdatePasswordForm",
    "DeleteAccountForm",
    "UpdateAccountForm",
    "UserResponse",
    "RemoveTeamMemberForm",
    "InviteTeamMemberForm",
    "TeamMemberResponse",
    "TeamResponse",
    "ActivityLogResponse",
]
