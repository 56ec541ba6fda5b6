"""
Security utilities for authentication and session handling.
"""

from .password import PasswordHasher, password_hasher
from .tokens import (
    InvalidSessionSignature,
    SessionCodec,
    SessionExpired,
    SessionPayload,
    SessionTokenError,
)

__all__ = [
    "PasswordHasher",
    "password_hasher",
    "SessionCodec",
    "SessionPayload",
    "SessionTokenError",
    "InvalidSessionSignature",
    "SessionExpired",
]
