"""
bcrypt password hashing.

The work factor comes from ``BCRYPT_ROUNDS``. Hashes below it are still
accepted but reported by ``needs_rehash`` so sign-in can upgrade them.
"""

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from infrastructure.config.settings import settings


class PasswordHasher:
    """bcrypt hashing with a fixed work factor."""

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__min_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """Return a salted bcrypt hash of ``password``."""
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Check ``plain_password`` against a stored hash.

        Empty input and malformed hashes count as a mismatch rather than
        raising, so callers only ever branch on the boolean.
        """
        if not plain_password or not hashed_password:
            return False
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """True when the hash was made with fewer rounds than configured."""
        return self._context.needs_update(hashed_password)

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, plain_password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(self.verify, plain_password, hashed_password)


password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
