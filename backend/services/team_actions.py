"""
Team membership actions.
"""

import logging

from sqlalchemy import delete, func, select

from api.schemas.team import InviteTeamMemberForm, RemoveTeamMemberForm
from core.exceptions import ConflictError, StateError
from infrastructure.database.models import (
    ActivityType,
    Invitation,
    InvitationStatus,
    TeamMember,
    User,
)
from services.actions import ActionContext, ActionResult, FormData, validated_action_with_user
from services.activity import log_activity
from services.queries import get_user_with_team

logger = logging.getLogger(__name__)

NO_TEAM = "User is not part of a team"


async def _require_team_id(ctx: ActionContext, user: User) -> int:
    user_with_team = await get_user_with_team(ctx.db, user.id)
    team_id = user_with_team[1] if user_with_team else None
    if team_id is None:
        raise StateError(NO_TEAM)
    return team_id


@validated_action_with_user(RemoveTeamMemberForm)
async def remove_team_member(
    data: RemoveTeamMemberForm, form: FormData, user: User, ctx: ActionContext
) -> ActionResult:
    """Delete a membership row, scoped to the caller's own team."""
    team_id = await _require_team_id(ctx, user)

    result = await ctx.db.execute(
        delete(TeamMember).where(
            TeamMember.id == data.member_id,
            TeamMember.team_id == team_id,
        )
    )
    await log_activity(ctx.db, team_id, user.id, ActivityType.REMOVE_TEAM_MEMBER, ctx.ip_address)
    logger.info(
        "Team member removed: team_id=%s member_id=%s rows=%s",
        team_id,
        data.member_id,
        result.rowcount,
    )
    return {"success": "Team member removed successfully"}


@validated_action_with_user(InviteTeamMemberForm)
async def invite_team_member(
    data: InviteTeamMemberForm, form: FormData, user: User, ctx: ActionContext
) -> ActionResult:
    """
    Record a pending invitation for ``data.email`` to join the caller's team.

    The invitee accepts by signing up with the invitation id; no email is sent.
    """
    db = ctx.db
    team_id = await _require_team_id(ctx, user)

    existing_member = await db.execute(
        select(TeamMember.id)
        .join(User, User.id == TeamMember.user_id)
        .where(
            func.lower(User.email) == data.email,
            User.deleted_at.is_(None),
            TeamMember.team_id == team_id,
        )
        .limit(1)
    )
    if existing_member.scalar_one_or_none() is not None:
        raise ConflictError("User is already a member of this team")

    existing_invitation = await db.execute(
        select(Invitation.id)
        .where(
            func.lower(Invitation.email) == data.email,
            Invitation.team_id == team_id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .limit(1)
    )
    if existing_invitation.scalar_one_or_none() is not None:
        raise ConflictError("An invitation has already been sent to this email")

    invitation = Invitation(
        team_id=team_id,
        email=data.email,
        role=data.role,
        invited_by=user.id,
        status=InvitationStatus.PENDING.value,
    )
    db.add(invitation)
    await db.flush()
    await log_activity(db, team_id, user.id, ActivityType.INVITE_TEAM_MEMBER, ctx.ip_address)
    logger.info("Invitation created: team_id=%s invitation_id=%s", team_id, invitation.id)

    return {"success": "Invitation sent successfully", "inviteId": invitation.id}
