"""
Cookie-backed session store.

One ``SessionStore`` is built per request from the inbound ``Request`` and
handed to action handlers explicitly. Cookie writes are queued and flushed
onto whichever response the route finally returns (JSON or redirect) via
``apply()``.
"""

import logging
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from core.security.tokens import SessionCodec, SessionPayload, SessionTokenError
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

session_codec = SessionCodec(
    secret_key=settings.auth_secret,
    algorithm=settings.session_algorithm,
    expire_hours=settings.session_expire_hours,
)


def session_cookie_kwargs() -> dict:
    """Attributes shared by every write or delete of the session cookie."""
    return dict(httponly=True, secure=True, samesite="lax", path="/")


def write_session_cookie(response: Response, token: str, payload: SessionPayload) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        expires=payload.expires_at,
        **session_cookie_kwargs(),
    )


def delete_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name, **session_cookie_kwargs())


class SessionStore:
    """Reads, issues and clears the session cookie for a single request."""

    def __init__(self, request: Request, codec: SessionCodec = session_codec):
        self._request = request
        self._codec = codec
        self._issued: Optional[tuple[str, SessionPayload]] = None
        self._cleared = False

    def set_session(self, user) -> SessionPayload:
        """Sign a fresh token for ``user`` and queue it as the session cookie."""
        payload = self._codec.new_payload(user.id)
        token = self._codec.sign(payload)
        self._issued = (token, payload)
        self._cleared = False
        return payload

    def get_session(self) -> Optional[SessionPayload]:
        """
        Return the verified session payload, or None.

        A session issued earlier in this request takes precedence over the
        inbound cookie. Missing, tampered and expired tokens all yield None.
        """
        if self._cleared:
            return None
        if self._issued is not None:
            return self._issued[1]

        token = self._request.cookies.get(settings.session_cookie_name)
        if not token:
            return None
        try:
            return self._codec.verify(token)
        except SessionTokenError as exc:
            logger.debug("Rejected session cookie: %s", exc)
            return None

    def clear_session(self) -> None:
        """Queue deletion of the session cookie."""
        self._issued = None
        self._cleared = True

    def apply(self, response: Response) -> Response:
        """Write queued cookie operations onto ``response``."""
        if self._issued is not None:
            token, payload = self._issued
            write_session_cookie(response, token, payload)
        elif self._cleared:
            delete_session_cookie(response)
        return response
