"""
Validated form actions.

An action is an async handler wrapped with schema validation of the raw
submitted form and, optionally, an authenticated-user gate. Wrapped actions
are called as ``await action(form, ctx)`` and always return a result value:

    {"error": "..."}     recoverable failure (validation, auth, conflict, state)
    {"success": "..."}   completed mutation

A handler may also raise ``Redirect`` to abort normal return; the route layer
turns it into a 303 response. Each action runs in a single database
transaction that is committed on success or redirect and rolled back on
``ActionError``.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ActionError, Redirect
from services.queries import get_user
from services.session import SessionStore

logger = logging.getLogger(__name__)

ActionResult = dict[str, Any]
FormData = Mapping[str, Any]

UNAUTHORIZED = "Unauthorized"


@dataclass
class ActionContext:
    """Per-request collaborators handed to every action handler."""

    db: AsyncSession
    session: SessionStore
    ip_address: Optional[str] = None


def first_error_message(schema: type[BaseModel], exc: ValidationError) -> str:
    """
    Return the message of the first validation error.

    Schemas may override pydantic's wording through an ``error_messages``
    mapping keyed by ``"<field>.<error type>"`` or just ``"<field>"``.
    """
    errors = exc.errors()
    if not errors:
        return "Invalid form data"
    first = errors[0]
    field = str(first["loc"][0]) if first.get("loc") else ""
    overrides = getattr(schema, "error_messages", {})
    message = overrides.get(f"{field}.{first['type']}") or overrides.get(field)
    return message or first["msg"]


async def _run_in_transaction(ctx: ActionContext, action: Awaitable[ActionResult]) -> ActionResult:
    try:
        result = await action
    except ActionError as exc:
        await ctx.db.rollback()
        return {"error": exc.message, **exc.fields}
    except Redirect:
        await ctx.db.commit()
        raise
    await ctx.db.commit()
    return result


def _parse(schema: type[BaseModel], form: FormData) -> tuple[Optional[BaseModel], Optional[str]]:
    try:
        return schema.model_validate(dict(form)), None
    except ValidationError as exc:
        return None, first_error_message(schema, exc)


def validated_action(schema: type[BaseModel]):
    """Wrap ``handler(data, form, ctx)`` with validation of ``form`` against ``schema``."""

    def decorator(
        handler: Callable[[Any, FormData, ActionContext], Awaitable[ActionResult]],
    ) -> Callable[[FormData, ActionContext], Awaitable[ActionResult]]:
        @functools.wraps(handler)
        async def wrapper(form: FormData, ctx: ActionContext) -> ActionResult:
            data, error = _parse(schema, form)
            if error is not None:
                return {"error": error}
            return await _run_in_transaction(ctx, handler(data, form, ctx))

        return wrapper

    return decorator


def validated_action_with_user(schema: type[BaseModel]):
    """
    Like ``validated_action`` but requires a signed-in user.

    The handler is called as ``handler(data, form, user, ctx)``. Without a
    valid session the action returns ``{"error": "Unauthorized"}`` and the
    handler never runs.
    """

    def decorator(
        handler: Callable[[Any, FormData, Any, ActionContext], Awaitable[ActionResult]],
    ) -> Callable[[FormData, ActionContext], Awaitable[ActionResult]]:
        @functools.wraps(handler)
        async def wrapper(form: FormData, ctx: ActionContext) -> ActionResult:
            user = await get_user(ctx.db, ctx.session)
            if user is None:
                return {"error": UNAUTHORIZED}

            data, error = _parse(schema, form)
            if error is not None:
                return {"error": error}
            return await _run_in_transaction(ctx, handler(data, form, user, ctx))

        return wrapper

    return decorator
