"""Data access helpers for likes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ideanest.models import Idea, Like
from ideanest.services.identity import ActorIdentity

__all__ = ["LikeRepository"]


class LikeRepository:
    """Thin wrapper around database access for likes."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, idea_id: int, identity: ActorIdentity) -> Like | None:
        """Return the like left on ``idea_id`` by ``identity``, if any.

        Only the identity's own path is consulted; a user's like never
        matches a fingerprint and vice versa.
        """
        stmt = select(Like).where(Like.idea_id == idea_id)
        if identity.is_user:
            stmt = stmt.where(Like.user_id == identity.user_id)
        else:
            stmt = stmt.where(Like.fingerprint == identity.fingerprint)
        return self.session.scalar(stmt)

    def add(self, like: Like) -> Like:
        self.session.add(like)
        return like

    def delete(self, like: Like) -> bool:
        """Delete ``like`` by id; ``False`` when another transaction already removed it."""
        result = self.session.execute(
            delete(Like).where(Like.id == like.id).execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def count_for_idea(self, idea_id: int) -> int:
        return self.session.scalar(
            select(func.count(Like.id)).where(Like.idea_id == idea_id)
        ) or 0

    def count(self, *conditions) -> int:
        return self.session.scalar(select(func.count(Like.id)).where(*conditions)) or 0

    def liked_ideas_page(
        self,
        user_id: int,
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[tuple[Idea, datetime]], int]:
        """Return ``(idea, liked_at)`` pairs for a user, newest like first."""
        condition = (Like.user_id == user_id, Idea.is_public.is_(True))
        total = self.session.scalar(
            select(func.count(Like.id)).join(Idea, Idea.id == Like.idea_id).where(*condition)
        ) or 0
        rows = self.session.execute(
            select(Idea, Like.created_at)
            .join(Like, Like.idea_id == Idea.id)
            .where(*condition)
            .order_by(Like.created_at.desc(), Like.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [(idea, liked_at) for idea, liked_at in rows], total

    def recent_by_user(self, user_id: int, limit: int) -> list[Like]:
        stmt = (
            select(Like)
            .where(Like.user_id == user_id)
            .order_by(Like.created_at.desc(), Like.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def anonymous_counts_before(self, cutoff: datetime) -> dict[int, int]:
        """Count anonymous likes older than ``cutoff`` per idea."""
        rows = self.session.execute(
            select(Like.idea_id, func.count(Like.id))
            .where(Like.user_id.is_(None), Like.created_at < cutoff)
            .group_by(Like.idea_id)
        )
        return {idea_id: count for idea_id, count in rows}

    def delete_anonymous_before(self, cutoff: datetime) -> None:
        self.session.execute(
            delete(Like)
            .where(Like.user_id.is_(None), Like.created_at < cutoff)
            .execution_options(synchronize_session="fetch")
        )

    def count_created_per_day(self, since: datetime) -> dict[str, int]:
        day = func.date(Like.created_at)
        rows = self.session.execute(
            select(day, func.count(Like.id)).where(Like.created_at >= since).group_by(day)
        )
        return {str(bucket): count for bucket, count in rows}
