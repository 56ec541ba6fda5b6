"""
API dependencies shared by the action and read routes.
"""

import logging
from typing import Awaitable, Callable
from urllib.parse import urljoin

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.middleware.rate_limit import get_real_ip
from core.exceptions import Redirect
from infrastructure.config.settings import settings
from infrastructure.database import get_db
from infrastructure.database.models import User
from services.actions import ActionContext, ActionResult, FormData
from services.queries import get_user
from services.session import SessionStore

logger = logging.getLogger(__name__)


async def get_action_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> ActionContext:
    """Build the per-request context handed to action handlers."""
    return ActionContext(
        db=db,
        session=SessionStore(request),
        ip_address=get_real_ip(request),
    )


async def get_current_user(
    ctx: ActionContext = Depends(get_action_context),
) -> User:
    """
    Dependency to get the signed-in user for read endpoints.

    Raises 401 when the session cookie is missing, invalid or expired, or the
    user has been deleted.
    """
    user = await get_user(ctx.db, ctx.session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user


def resolve_redirect(url: str) -> str:
    """Resolve app-relative redirect targets against the frontend URL."""
    if url.startswith("/"):
        return urljoin(settings.frontend_url.rstrip("/") + "/", url.lstrip("/"))
    return url


async def run_action(
    action: Callable[[FormData, ActionContext], Awaitable[ActionResult]],
    request: Request,
    ctx: ActionContext,
) -> Response:
    """
    Run a form action against the submitted form.

    The result value is returned as JSON; a ``Redirect`` becomes a 303. Queued
    session cookie changes are written onto whichever response is returned.
    """
    form = await request.form()
    try:
        result = await action(form, ctx)
        response: Response = JSONResponse(content=result)
    except Redirect as redirect:
        logger.debug("Action %s redirected to %s", action.__name__, redirect.url)
        response = RedirectResponse(
            url=resolve_redirect(redirect.url),
            status_code=status.HTTP_303_SEE_OTHER,
        )
    return ctx.session.apply(response)
