"""
Authentication routes.

Form posts from the sign-in and sign-up pages. Responses are either the
action's result value (200) or a 303 redirect carrying the session cookie.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_action_context, run_action
from api.middleware.rate_limit import get_rate_limit, limiter
from services.actions import ActionContext
from services.auth_actions import sign_in, sign_out, sign_up

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/sign-in")
@limiter.limit(get_rate_limit("sign_in"))
async def sign_in_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Sign in with email and password."""
    return await run_action(sign_in, request, ctx)


@router.post("/sign-up")
@limiter.limit(get_rate_limit("sign_up"))
async def sign_up_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Create an account, optionally accepting a team invitation."""
    return await run_action(sign_up, request, ctx)


@router.post("/sign-out")
async def sign_out_route(
    request: Request,
    ctx: ActionContext = Depends(get_action_context),
):
    """Sign out and clear the session cookie."""
    result = await sign_out(ctx)
    return ctx.session.apply(JSONResponse(content=result))
