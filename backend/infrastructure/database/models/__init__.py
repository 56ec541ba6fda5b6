"""
SQLAlchemy database models.
"""

from .activity import ActivityLog, ActivityType
from .base import MAX_ID, Base, TimestampMixin
from .team import Invitation, InvitationStatus, Team, TeamMember, TeamRole
from .user import User

__all__ = [
    "Base",
    "MAX_ID",
    "TimestampMixin",
    "User",
    "Team",
    "TeamMember",
    "TeamRole",
    "Invitation",
    "InvitationStatus",
    "ActivityLog",
    "ActivityType",
]
