"""
Unit tests for the bcrypt password hasher.
"""

import pytest

from core.security.password import PasswordHasher


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher."""

    def test_hash_is_salted(self, hasher):
        first = hasher.hash("password123")
        second = hasher.hash("password123")

        assert first != second
        assert first.startswith("$2b$")
        assert hasher.verify("password123", first)
        assert hasher.verify("password123", second)

    def test_verify_rejects_wrong_password(self, hasher):
        hashed = hasher.hash("password123")
        assert hasher.verify("password124", hashed) is False

    def test_verify_treats_malformed_hash_as_mismatch(self, hasher):
        assert hasher.verify("password123", "not-a-bcrypt-hash") is False
        assert hasher.verify("password123", "") is False

    def test_verify_rejects_empty_password(self, hasher):
        hashed = hasher.hash("password123")
        assert hasher.verify("", hashed) is False

    def test_needs_rehash_when_rounds_change(self, hasher):
        weak = hasher.hash("password123")
        stronger = PasswordHasher(rounds=5)

        assert hasher.needs_rehash(weak) is False
        assert stronger.needs_rehash(weak) is True

    async def test_async_helpers(self, hasher):
        hashed = await hasher.hash_async("password123")

        assert await hasher.verify_async("password123", hashed) is True
        assert await hasher.verify_async("wrong-password", hashed) is False
