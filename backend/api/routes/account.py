"""
Account settings routes.
"""

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_action_context, get_current_user, run_action
from api.schemas.auth import UserResponse
from infrastructure.database.models import User
from services.actions import ActionContext
from services.auth_actions import delete_account, update_account, update_password

router = APIRouter(tags=["Account"])


@router.get("/user", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the signed-in user's profile."""
    return current_user


@router.post("/account")
async def update_account_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Update name and email."""
    return await run_action(update_account, request, ctx)


@router.post("/account/password")
async def update_password_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Change password."""
    return await run_action(update_password, request, ctx)


@router.post("/account/delete")
async def delete_account_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Soft-delete the account and sign out."""
    return await run_action(delete_account, request, ctx)
