# src/ideanest/models/user.py
"""User accounts and roles."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ideanest.db.session import Base
from ideanest.db.time import utcnow

if TYPE_CHECKING:
    from .idea import Idea
    from .refresh_token import RefreshToken


class UserRole(str, Enum):
    """Roles ordered from least to most privileged."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class User(Base):
    """Registered account.

    Accounts are never removed; deletion stamps ``deleted_at`` and
    anonymizes the personal fields.
    """

    __tablename__ = "user_account"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'moderator', 'admin')", name="ck_user_account_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.USER.value)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    ideas: Mapped[list[Idea]] = relationship("Idea", back_populates="author")
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_usable(self) -> bool:
        """Active and not soft-deleted."""
        return self.is_active and not self.is_deleted

    @property
    def is_admin(self) -> bool:
        return self.is_usable and self.role == UserRole.ADMIN.value

    @property
    def is_moderator(self) -> bool:
        return self.is_usable and self.role == UserRole.MODERATOR.value

    @property
    def can_moderate(self) -> bool:
        """Admins and moderators may act on other people's content."""
        return self.is_admin or self.is_moderator
