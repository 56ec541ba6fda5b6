"""
Signed session token codec.

A session token is a compact HS256 JWT carrying the user id and the expiry
instant. It is never persisted server-side; possession of a token that
verifies and has not expired proves identity.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt


class SessionTokenError(Exception):
    """Base exception for session tokens that must not be accepted."""


class InvalidSessionSignature(SessionTokenError):
    """Token is malformed, tampered with, or signed with another secret."""


class SessionExpired(SessionTokenError):
    """Token signature is valid but its expiry has passed."""


@dataclass
class SessionPayload:
    """Session token payload structure."""

    user_id: int
    expires_at: datetime

    def to_claims(self) -> dict:
        return {
            "user": {"id": self.user_id},
            "expires": self.expires_at.isoformat(),
            "exp": self.expires_at,
        }


class SessionCodec:
    """Signs and verifies session tokens with a process-wide symmetric secret."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_hours: int = 24,
    ):
        """
        Initialize the codec.

        Args:
            secret_key: Secret key for signing tokens
            algorithm: JWT algorithm (default: HS256)
            expire_hours: Session lifetime from issuance, in hours
        """
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_hours = expire_hours

    def new_payload(self, user_id: int) -> SessionPayload:
        """Build a payload for ``user_id`` expiring one session lifetime from now."""
        expires_at = datetime.now(UTC) + timedelta(hours=self._expire_hours)
        return SessionPayload(user_id=user_id, expires_at=expires_at)

    def sign(self, payload: SessionPayload) -> str:
        """
        Sign a session payload.

        Returns:
            Encoded JWT string
        """
        claims = payload.to_claims()
        claims["iat"] = datetime.now(UTC)
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionPayload:
        """
        Verify a session token.

        Raises:
            InvalidSessionSignature: signature or structure is wrong
            SessionExpired: signature is valid but the token has expired
        """
        if not token:
            raise InvalidSessionSignature("Empty session token")
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except ExpiredSignatureError as exc:
            raise SessionExpired("Session has expired") from exc
        except JWTError as exc:
            raise InvalidSessionSignature("Session signature is invalid") from exc

        user = claims.get("user")
        if not isinstance(user, dict) or not isinstance(user.get("id"), int):
            raise InvalidSessionSignature("Session payload is missing the user id")
        if "exp" not in claims:
            raise InvalidSessionSignature("Session payload is missing the expiry")

        expires_at = datetime.fromtimestamp(claims["exp"], tz=UTC)
        # exp is verified by jose; re-check in case the leeway ever changes
        if expires_at <= datetime.now(UTC):
            raise SessionExpired("Session has expired")

        return SessionPayload(user_id=user["id"], expires_at=expires_at)
