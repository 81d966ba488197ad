# src/ideanest/models/idea.py
"""Ideas and their tags."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ideanest.db.session import Base
from ideanest.db.time import utcnow

if TYPE_CHECKING:
    from .like import Like
    from .user import User

AUTHOR_TYPE_USER = "user"
AUTHOR_TYPE_ANONYMOUS = "anonymous"
MAX_TAGS = 10
MAX_TAG_LENGTH = 50


class Idea(Base):
    """A short post authored by a user or by an anonymous fingerprint."""

    __tablename__ = "idea"
    __table_args__ = (
        CheckConstraint(
            "(author_id IS NULL) <> (anonymous_fingerprint IS NULL)",
            name="ck_idea_single_author",
        ),
        CheckConstraint("like_count >= 0", name="ck_idea_like_count"),
        CheckConstraint("view_count >= 0", name="ck_idea_view_count"),
        Index("ix_idea_created_at", "created_at"),
        Index("ix_idea_like_count", "like_count"),
        Index("ix_idea_public_created", "is_public", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    anonymous_fingerprint: Mapped[str | None] = mapped_column(String(64), index=True)
    author_type: Mapped[str] = mapped_column(String(16), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(512))
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trending_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    author: Mapped[User | None] = relationship("User", back_populates="ideas")
    tag_links: Mapped[list[IdeaTag]] = relationship(
        "IdeaTag",
        back_populates="idea",
        cascade="all, delete-orphan",
        order_by="IdeaTag.position",
        lazy="selectin",
    )
    likes: Mapped[list[Like]] = relationship(
        "Like",
        back_populates="idea",
        cascade="all, delete-orphan",
    )

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]

    def set_tags(self, tags: list[str]) -> None:
        """Replace the tag list, keeping the given order."""
        self.tag_links = [IdeaTag(tag=tag, position=index) for index, tag in enumerate(tags)]

    def is_owned_by(self, user_id: int | None) -> bool:
        return user_id is not None and self.author_id == user_id


class IdeaTag(Base):
    """One tag attached to an idea."""

    __tablename__ = "idea_tag"

    idea_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("idea.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(String(50), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    idea: Mapped[Idea] = relationship("Idea", back_populates="tag_links")
