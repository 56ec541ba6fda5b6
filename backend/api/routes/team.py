"""
Team membership and activity routes.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.dependencies import get_action_context, get_current_user, run_action
from api.schemas.team import ActivityLogResponse, TeamResponse
from infrastructure.database.models import User
from services.actions import ActionContext
from services.queries import get_activity_logs, get_team_for_user
from services.team_actions import invite_team_member, remove_team_member

router = APIRouter(tags=["Team"])


@router.get("/team", response_model=TeamResponse)
async def get_team(
    current_user: User = Depends(get_current_user),
    ctx: ActionContext = Depends(get_action_context),
):
    """Get the signed-in user's team with its members."""
    team = await get_team_for_user(ctx.db, current_user.id)
    if team is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not part of a team",
        )
    return team


@router.get("/activity", response_model=list[ActivityLogResponse])
async def get_activity(
    current_user: User = Depends(get_current_user),
    ctx: ActionContext = Depends(get_action_context),
):
    """List the signed-in user's ten most recent activity entries."""
    logs = await get_activity_logs(ctx.db, current_user.id)
    return [
        ActivityLogResponse(
            id=log.id,
            action=log.action,
            timestamp=log.timestamp,
            ip_address=log.ip_address,
            user_name=log.user.name if log.user else None,
        )
        for log in logs
    ]


@router.post("/team/members/remove")
async def remove_team_member_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Remove a member from the caller's team."""
    return await run_action(remove_team_member, request, ctx)


@router.post("/team/invitations")
async def invite_team_member_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Invite an email address to join the caller's team."""
    return await run_action(invite_team_member, request, ctx)
