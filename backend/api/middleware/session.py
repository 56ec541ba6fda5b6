"""
Sliding session expiry.

Every GET request that carries a valid session cookie gets the cookie
re-issued with a fresh expiry. A cookie that fails verification is deleted.
"""

import logging

from starlette.requests import Request

from core.security.tokens import SessionTokenError
from infrastructure.config.settings import settings
from services.session import delete_session_cookie, session_codec, write_session_cookie

logger = logging.getLogger(__name__)


async def refresh_session_middleware(request: Request, call_next):
    """Re-sign the session cookie on GET requests."""
    token = request.cookies.get(settings.session_cookie_name)
    if request.method != "GET" or not token:
        return await call_next(request)

    try:
        payload = session_codec.verify(token)
    except SessionTokenError as exc:
        logger.debug("Dropping invalid session cookie: %s", exc)
        response = await call_next(request)
        delete_session_cookie(response)
        return response

    response = await call_next(request)
    refreshed = session_codec.new_payload(payload.user_id)
    write_session_cookie(response, session_codec.sign(refreshed), refreshed)
    return response
