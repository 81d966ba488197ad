# src/ideanest/models/like.py
"""Likes on ideas."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ideanest.db.session import Base
from ideanest.db.time import utcnow

if TYPE_CHECKING:
    from .idea import Idea


class Like(Base):
    """One like from exactly one identity: a user or an anonymous fingerprint.

    Rows are inserted and deleted, never updated.
    """

    __tablename__ = "idea_like"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (fingerprint IS NULL)",
            name="ck_idea_like_single_identity",
        ),
        # At most one like per (idea, identity) on each identity path.
        Index(
            "uq_idea_like_user",
            "idea_id",
            "user_id",
            unique=True,
            sqlite_where=text("user_id IS NOT NULL"),
            postgresql_where=text("user_id IS NOT NULL"),
        ),
        Index(
            "uq_idea_like_fingerprint",
            "idea_id",
            "fingerprint",
            unique=True,
            sqlite_where=text("fingerprint IS NOT NULL"),
            postgresql_where=text("fingerprint IS NOT NULL"),
        ),
        Index("ix_idea_like_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idea_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("idea.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    fingerprint: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(512))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    idea: Mapped[Idea] = relationship("Idea", back_populates="likes")
