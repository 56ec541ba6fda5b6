"""
Read queries shared by the actions and the read endpoints.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from infrastructure.database.models import ActivityLog, Team, TeamMember, User
from services.session import SessionStore


async def get_active_user(db: AsyncSession, user_id: int) -> Optional[User]:
    """Return the user with ``user_id`` unless it has been soft-deleted."""
    result = await db.execute(
        select(User).where(User.id == user_id, User.deleted_at.is_(None)).limit(1)
    )
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """Return the active user registered with ``email`` (case-insensitive)."""
    result = await db.execute(
        select(User)
        .where(func.lower(User.email) == email.lower(), User.deleted_at.is_(None))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, session: SessionStore) -> Optional[User]:
    """Resolve the current user from the session, or None."""
    payload = session.get_session()
    if payload is None:
        return None
    return await get_active_user(db, payload.user_id)


async def get_user_with_team(
    db: AsyncSession, user_id: int
) -> Optional[tuple[User, Optional[int]]]:
    """Return ``(user, team_id)``; ``team_id`` is None when the user has no team."""
    result = await db.execute(
        select(User, TeamMember.team_id)
        .outerjoin(TeamMember, TeamMember.user_id == User.id)
        .where(User.id == user_id)
        .order_by(TeamMember.joined_at)
        .limit(1)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def get_team_for_user(db: AsyncSession, user_id: int) -> Optional[Team]:
    """Return the user's team with its members (and their users) loaded."""
    result = await db.execute(
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == user_id)
        .options(selectinload(Team.members).joinedload(TeamMember.user))
        .execution_options(populate_existing=True)
        .order_by(TeamMember.joined_at)
        .limit(1)
    )
    return result.scalars().first()


async def get_activity_logs(db: AsyncSession, user_id: int, limit: int = 10) -> list[ActivityLog]:
    """Return the user's most recent activity, newest first."""
    result = await db.execute(
        select(ActivityLog)
        .where(ActivityLog.user_id == user_id)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
