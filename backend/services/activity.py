"""
Team activity logging.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import ActivityLog, ActivityType

logger = logging.getLogger(__name__)


async def log_activity(
    db: AsyncSession,
    team_id: Optional[int],
    user_id: int,
    action: ActivityType,
    ip_address: Optional[str] = None,
) -> Optional[ActivityLog]:
    """
    Append an activity row for ``team_id``.

    Users without a team have no audit trail, so the call is a no-op when
    ``team_id`` is None. The row joins the caller's transaction; it is only
    persisted when the surrounding action commits.
    """
    if team_id is None:
        return None

    entry = ActivityLog(
        team_id=team_id,
        user_id=user_id,
        action=action.value,
        ip_address=ip_address or "",
    )
    db.add(entry)
    logger.debug("activity team_id=%s user_id=%s action=%s", team_id, user_id, action.value)
    return entry
