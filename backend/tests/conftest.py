"""
Shared fixtures: an in-memory database, seeded teams/users and an HTTP client
bound to the app with the database dependency overridden.
"""

import os

# Cheap hashes for tests; must be set before settings are first loaded
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("FRONTEND_URL", "https://app.example.com")

import pytest
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from infrastructure.database.models import (
    Base,
    Invitation,
    InvitationStatus,
    Team,
    TeamMember,
    TeamRole,
    User,
)
from infrastructure.database.connection import get_db
from core.security import PasswordHasher
from services.session import session_codec

password_hasher = PasswordHasher(rounds=4)

TEST_PASSWORD = "testpassword123"

# One shared connection so every session sees the same in-memory schema
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    """Fresh schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by fixtures and the overridden get_db dependency."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_team(db_session: AsyncSession) -> Team:
    """Create a team with no members."""
    team = Team(name="test's Team")
    db_session.add(team)
    await db_session.commit()
    await db_session.refresh(team)
    return team


@pytest.fixture
async def test_user(db_session: AsyncSession, test_team: Team) -> User:
    """Create a test user who owns ``test_team``."""
    user = User(
        email="test@example.com",
        password_hash=password_hasher.hash(TEST_PASSWORD),
        name="Test User",
        role=TeamRole.OWNER.value,
    )
    db_session.add(user)
    await db_session.flush()
    db_session.add(
        TeamMember(user_id=user.id, team_id=test_team.id, role=TeamRole.OWNER.value)
    )
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def member_user(db_session: AsyncSession, test_team: Team, test_user: User) -> User:
    """Create a second user who is a MEMBER of ``test_team``."""
    user = User(
        email="member@example.com",
        password_hash=password_hasher.hash(TEST_PASSWORD),
        name="Member User",
        role=TeamRole.MEMBER.value,
    )
    db_session.add(user)
    await db_session.flush()
    db_session.add(
        TeamMember(user_id=user.id, team_id=test_team.id, role=TeamRole.MEMBER.value)
    )
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def teamless_user(db_session: AsyncSession) -> User:
    """Create a user that belongs to no team."""
    user = User(
        email="loner@example.com",
        password_hash=password_hasher.hash(TEST_PASSWORD),
        name="Lone User",
        role=TeamRole.MEMBER.value,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def pending_invitation(
    db_session: AsyncSession, test_team: Team, test_user: User
) -> Invitation:
    """Create a pending MEMBER invitation for invitee@example.com."""
    invitation = Invitation(
        team_id=test_team.id,
        email="invitee@example.com",
        role=TeamRole.MEMBER.value,
        invited_by=test_user.id,
        status=InvitationStatus.PENDING.value,
    )
    db_session.add(invitation)
    await db_session.commit()
    await db_session.refresh(invitation)
    return invitation


def session_headers_for(user_id: int) -> dict:
    """Build a Cookie header carrying a fresh session for ``user_id``."""
    token = session_codec.sign(session_codec.new_payload(user_id))
    return {"Cookie": f"session={token}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Session cookie header for the team owner."""
    return session_headers_for(test_user.id)


@pytest.fixture
def make_session_headers():
    """Factory for session cookie headers of arbitrary users."""
    return session_headers_for


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    # https so Secure cookies round-trip
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="https://test",
        follow_redirects=False,
    ) as client:
        yield client

    app.dependency_overrides.clear()
