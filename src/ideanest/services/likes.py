"""Like toggling and like queries.

A toggle flips the presence of the caller's like and moves the idea's
``like_count`` by the same amount inside one transaction, so the counter
always equals the number of stored likes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ideanest.core.errors import NotFoundError
from ideanest.db.time import utcnow
from ideanest.models import Idea, Like
from ideanest.repositories.idea_repo import IdeaRepository
from ideanest.repositories.like_repo import LikeRepository
from ideanest.services.identity import ActorIdentity
from ideanest.utils.pagination import PageInfo, PageRequest, page_info

logger = logging.getLogger(__name__)


class ToggleStatus(str, Enum):
    OK = "ok"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of a toggle; on conflict the fields describe the current state."""

    status: ToggleStatus
    liked: bool
    like_count: int


@dataclass(frozen=True)
class LikeStatus:
    liked: bool
    like_count: int


@dataclass(frozen=True)
class LikedIdea:
    idea: Idea
    liked_at: datetime


class _StaleLike(Exception):
    """The like read at the start of a toggle was removed concurrently."""


class LikeToggleEngine:
    """Like/unlike ideas for a single identity."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.ideas = IdeaRepository(db)
        self.likes = LikeRepository(db)

    def toggle(
        self,
        idea_id: int,
        identity: ActorIdentity,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ToggleResult:
        """Like the idea if ``identity`` has not, otherwise remove the like.

        A concurrent toggle by the same identity that wins the race leaves
        this one with ``ToggleStatus.CONFLICT`` and no changes applied.
        """
        try:
            if self.ideas.get(idea_id) is None:
                raise NotFoundError("Idea not found")

            existing = self.likes.find(idea_id, identity)
            if existing is not None:
                if not self.likes.delete(existing):
                    raise _StaleLike()
                delta = -1
            else:
                self.likes.add(
                    Like(
                        idea_id=idea_id,
                        user_id=identity.user_id,
                        fingerprint=identity.fingerprint,
                        ip_address=ip_address,
                        user_agent=user_agent,
                    )
                )
                delta = 1
            self.db.flush()
            self.ideas.apply_like_delta(idea_id, delta)
            self.db.commit()
        except (IntegrityError, _StaleLike):
            self.db.rollback()
            logger.info("Concurrent like toggle on idea %s lost the race", idea_id)
            status = self.status(idea_id, identity)
            return ToggleResult(ToggleStatus.CONFLICT, status.liked, status.like_count)
        except Exception:
            self.db.rollback()
            raise

        return ToggleResult(
            ToggleStatus.OK,
            liked=delta > 0,
            like_count=self.ideas.like_count(idea_id) or 0,
        )

    def status(self, idea_id: int, identity: ActorIdentity) -> LikeStatus:
        """Return whether ``identity`` likes the idea and its like count."""
        like_count = self.ideas.like_count(idea_id)
        if like_count is None:
            raise NotFoundError("Idea not found")
        return LikeStatus(liked=self.likes.find(idea_id, identity) is not None, like_count=like_count)

    def count(self, idea_id: int) -> int:
        """Count stored likes for an idea."""
        if self.ideas.get(idea_id) is None:
            raise NotFoundError("Idea not found")
        return self.likes.count_for_idea(idea_id)

    def liked_ideas(self, user_id: int, page: PageRequest) -> tuple[list[LikedIdea], PageInfo]:
        """Return the public ideas a user liked, newest like first."""
        rows, total = self.likes.liked_ideas_page(user_id, offset=page.offset, limit=page.limit)
        return [LikedIdea(idea, liked_at) for idea, liked_at in rows], page_info(page, total)

    def cleanup_old_anonymous_likes(self, days_old: int = 30, *, now: datetime | None = None) -> int:
        """Delete anonymous likes older than ``days_old`` days.

        Counters of the affected ideas are decremented in the same
        transaction. Returns the number of likes removed.
        """
        cutoff = (now or utcnow()) - timedelta(days=days_old)
        try:
            per_idea = self.likes.anonymous_counts_before(cutoff)
            if not per_idea:
                return 0
            self.likes.delete_anonymous_before(cutoff)
            removed = sum(per_idea.values())
            for idea_id, count in per_idea.items():
                self.ideas.apply_like_delta(idea_id, -count)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Removed %s anonymous likes older than %s days", removed, days_old)
        return removed
