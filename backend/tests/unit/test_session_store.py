"""
Unit tests for the cookie-backed session store and the refresh middleware.
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest
from starlette.requests import Request
from starlette.responses import Response

from api.middleware.session import refresh_session_middleware
from core.security.tokens import SessionCodec, SessionPayload
from services.session import SessionStore

SECRET = "session-store-test-secret-0123456789"


@pytest.fixture
def codec():
    return SessionCodec(secret_key=SECRET)


def make_request(cookie: str | None = None, method: str = "GET") -> Request:
    headers = []
    if cookie is not None:
        headers.append((b"cookie", cookie.encode()))
    return Request(
        {
            "type": "http",
            "method": method,
            "path": "/",
            "headers": headers,
            "query_string": b"",
        }
    )


def set_cookie_headers(response: Response) -> list[str]:
    return response.headers.getlist("set-cookie")


class TestSessionStore:
    """Tests for SessionStore."""

    def test_no_cookie_is_no_session(self, codec):
        store = SessionStore(make_request(), codec)
        assert store.get_session() is None

    def test_valid_cookie_is_returned(self, codec):
        token = codec.sign(codec.new_payload(5))
        store = SessionStore(make_request(f"session={token}"), codec)

        payload = store.get_session()

        assert payload is not None
        assert payload.user_id == 5

    def test_invalid_and_expired_cookies_are_no_session(self, codec):
        assert SessionStore(make_request("session=garbage"), codec).get_session() is None

        expired = codec.sign(
            SessionPayload(user_id=5, expires_at=datetime.now(UTC) - timedelta(hours=1))
        )
        assert SessionStore(make_request(f"session={expired}"), codec).get_session() is None

    def test_set_session_takes_precedence_and_writes_cookie(self, codec):
        old = codec.sign(codec.new_payload(1))
        store = SessionStore(make_request(f"session={old}"), codec)

        store.set_session(SimpleNamespace(id=2))
        response = store.apply(Response())

        assert store.get_session().user_id == 2
        cookies = set_cookie_headers(response)
        assert len(cookies) == 1
        cookie = cookies[0].lower()
        assert cookie.startswith("session=")
        assert "httponly" in cookie
        assert "secure" in cookie
        assert "samesite=lax" in cookie
        assert "path=/" in cookie
        assert "expires=" in cookie

    def test_clear_session_deletes_cookie(self, codec):
        token = codec.sign(codec.new_payload(1))
        store = SessionStore(make_request(f"session={token}"), codec)

        store.clear_session()
        response = store.apply(Response())

        assert store.get_session() is None
        cookies = set_cookie_headers(response)
        assert len(cookies) == 1
        assert cookies[0].startswith('session=""') or "max-age=0" in cookies[0].lower()

    def test_apply_without_changes_leaves_response_alone(self, codec):
        store = SessionStore(make_request(), codec)
        response = store.apply(Response())
        assert set_cookie_headers(response) == []


class TestRefreshSessionMiddleware:
    """Tests for the sliding-expiry middleware."""

    @staticmethod
    async def call_next(request):
        return Response("ok")

    async def test_get_with_valid_session_is_refreshed(self):
        from services.session import session_codec

        token = session_codec.sign(session_codec.new_payload(9))
        response = await refresh_session_middleware(
            make_request(f"session={token}"), self.call_next
        )

        cookies = set_cookie_headers(response)
        assert len(cookies) == 1
        refreshed = cookies[0].split(";")[0].split("=", 1)[1]
        assert session_codec.verify(refreshed).user_id == 9

    async def test_get_with_invalid_session_deletes_cookie(self):
        response = await refresh_session_middleware(
            make_request("session=garbage"), self.call_next
        )

        cookies = set_cookie_headers(response)
        assert len(cookies) == 1
        assert "max-age=0" in cookies[0].lower()

    async def test_post_is_left_alone(self):
        from services.session import session_codec

        token = session_codec.sign(session_codec.new_payload(9))
        response = await refresh_session_middleware(
            make_request(f"session={token}", method="POST"), self.call_next
        )

        assert set_cookie_headers(response) == []

    async def test_get_without_cookie_is_left_alone(self):
        response = await refresh_session_middleware(make_request(), self.call_next)
        assert set_cookie_headers(response) == []
