"""
User database model.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from .team import TeamRole

EMAIL_MAX_LENGTH = 255


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Basic info
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # Soft-deleted rows get a mangled email so the unique slot is freed
    email: Mapped[str] = mapped_column(
        String(EMAIL_MAX_LENGTH),
        unique=True,
        nullable=False,
        index=True,
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    phone_verified: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    preferred_language: Mapped[Optional[str]] = mapped_column(
        String(5), default="en", nullable=True
    )
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Authentication
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        default=TeamRole.MEMBER.value,
        nullable=False,
    )
    email_verified: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Login tracking
    failed_login_attempts: Mapped[int] = mapped_column(default=0, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_ip: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)

    # Soft delete
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_users_deleted_at", "deleted_at"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def is_active(self) -> bool:
        """Check if user account is active (not soft-deleted)."""
        return self.deleted_at is None

    @property
    def deleted_email(self) -> str:
        """Email value written on soft delete, unique per user id.

        The original address is cut short when needed so the suffix always
        fits the column.
        """
        suffix = f"-{self.id}-deleted"
        return self.email[: EMAIL_MAX_LENGTH - len(suffix)] + suffix
