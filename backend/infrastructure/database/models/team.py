"""
Team and multi-tenancy database models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class TeamRole(str, Enum):
    """Team member role enumeration."""

    OWNER = "OWNER"  # Full control, manages billing
    ADMIN = "ADMIN"  # Manage members
    MEMBER = "MEMBER"


class InvitationStatus(str, Enum):
    """Invitation status enumeration. Transitions are one-way."""

    PENDING = "pending"
    ACCEPTED = "accepted"


class Team(Base, TimestampMixin):
    """Team/organization model for multi-tenancy."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Billing (populated by the payment provider)
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(Text, unique=True, nullable=True)
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(
        Text, unique=True, nullable=True
    )
    stripe_product_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    plan_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    subscription_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    members = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name})>"


class TeamMember(Base):
    """Team member model (junction table between users and teams)."""

    __tablename__ = "team_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    team_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("teams.id"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    team = relationship("Team", back_populates="members")
    user = relationship("User", lazy="joined")

    # Uniqueness per (user, team) is enforced by the actions, not the schema
    __table_args__ = (
        Index("ix_team_members_team_user", "team_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<TeamMember(id={self.id}, team_id={self.team_id}, user_id={self.user_id}, role={self.role})>"


class Invitation(Base):
    """Pending grant allowing an email address to join a team at sign-up."""

    __tablename__ = "invitations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("teams.id"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    invited_by: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
    )
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=InvitationStatus.PENDING.value, nullable=False
    )
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_invitations_team_email_status", "team_id", "email", "status"),
    )

    def __repr__(self) -> str:
        return f"<Invitation(id={self.id}, email={self.email}, team_id={self.team_id}, status={self.status})>"

    @property
    def is_pending(self) -> bool:
        """Check if invitation is still pending."""
        return self.status == InvitationStatus.PENDING.value
