"""Trending scores, top lists and trending tags."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ideanest.core.settings import Settings
from ideanest.db.time import as_utc, utcnow
from ideanest.models import Idea
from ideanest.repositories.idea_repo import IdeaFilter, IdeaFilterField, IdeaRepository, IdeaSort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendingOptions:
    time_window_hours: float = 24.0
    decay_factor: float = 0.8
    min_likes: int = 1
    limit: int = 20
    recent_boost: float = 1.3
    recent_hours: float = 2.0

    @classmethod
    def from_settings(cls, settings: Settings) -> TrendingOptions:
        return cls(
            time_window_hours=settings.trending_time_window_hours,
            decay_factor=settings.trending_decay_factor,
            min_likes=settings.trending_min_likes,
            limit=settings.trending_limit,
            recent_boost=settings.trending_recent_boost,
            recent_hours=settings.trending_recent_hours,
        )


class TopTimeframe(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


_TIMEFRAME_SPANS = {
    TopTimeframe.DAY: timedelta(days=1),
    TopTimeframe.WEEK: timedelta(days=7),
    TopTimeframe.MONTH: timedelta(days=30),
    TopTimeframe.ALL: None,
}


@dataclass(frozen=True)
class ScoredIdea:
    idea: Idea
    score: float


@dataclass(frozen=True)
class TagTrend:
    tag: str
    idea_count: int
    like_count: int


def calculate_trending_score(
    like_count: int,
    created_at: datetime,
    now: datetime,
    options: TrendingOptions = TrendingOptions(),
) -> float:
    """Score an idea by likes decayed per hour of age.

    ``like_count * decay ** hours_old``, boosted for very fresh ideas and
    zero once the idea is older than the time window.
    """
    hours_old = max((now - as_utc(created_at)).total_seconds() / 3600.0, 0.0)
    if hours_old > options.time_window_hours:
        return 0.0
    boost = options.recent_boost if hours_old < options.recent_hours else 1.0
    return like_count * (options.decay_factor ** hours_old) * boost


class TrendingService:
    """Rank ideas by recency-weighted popularity."""

    def __init__(self, db: Session, options: TrendingOptions | None = None) -> None:
        self.db = db
        self.ideas = IdeaRepository(db)
        self.options = options or TrendingOptions()

    def trending_ideas(self, *, limit: int | None = None, now: datetime | None = None) -> list[ScoredIdea]:
        """Score public ideas inside the time window and return the best ones."""
        now = now or utcnow()
        window_start = now - timedelta(hours=self.options.time_window_hours)
        candidates = self.ideas.list_matching([
            IdeaFilter(IdeaFilterField.PUBLIC, True),
            IdeaFilter(IdeaFilterField.CREATED_SINCE, window_start),
            IdeaFilter(IdeaFilterField.MIN_LIKES, self.options.min_likes),
        ])
        scored = [
            ScoredIdea(idea, calculate_trending_score(idea.like_count, idea.created_at, now, self.options))
            for idea in candidates
        ]
        scored.sort(key=lambda item: (item.score, item.idea.like_count, item.idea.id), reverse=True)
        return scored[: limit or self.options.limit]

    def top_ideas(
        self,
        timeframe: TopTimeframe = TopTimeframe.WEEK,
        *,
        limit: int = 10,
        now: datetime | None = None,
    ) -> list[Idea]:
        """Return the most-liked public ideas within ``timeframe``."""
        filters = [IdeaFilter(IdeaFilterField.PUBLIC, True)]
        span = _TIMEFRAME_SPANS[timeframe]
        if span is not None:
            filters.append(IdeaFilter(IdeaFilterField.CREATED_SINCE, (now or utcnow()) - span))
        ideas, _ = self.ideas.list_page(filters, sort=IdeaSort.LIKE_COUNT, limit=limit)
        return ideas

    def trending_tags(self, *, limit: int = 10, now: datetime | None = None) -> list[TagTrend]:
        """Return tags of liked public ideas from the last 24 hours, weighted by likes."""
        since = (now or utcnow()) - timedelta(hours=24)
        rows = self.ideas.tag_totals(
            Idea.is_public.is_(True),
            Idea.created_at >= since,
            Idea.like_count > 0,
            limit=limit,
            weight_by_likes=True,
        )
        return [TagTrend(tag=tag, idea_count=count, like_count=likes) for tag, count, likes in rows]

    def update_trending_scores(self, *, now: datetime | None = None) -> int:
        """Recompute and persist ``trending_score`` for every idea that needs it.

        Ideas inside the window get a fresh score; ideas that still carry a
        score but have aged out are reset to zero. Safe to re-run.
        """
        now = now or utcnow()
        window_start = now - timedelta(hours=self.options.time_window_hours)
        stmt = (
            select(Idea)
            .where(or_(Idea.created_at >= window_start, Idea.trending_score != 0))
            .execution_options(populate_existing=True)
        )
        updated = 0
        try:
            for idea in list(self.db.scalars(stmt)):
                score = 0.0
                if idea.is_public and idea.like_count >= self.options.min_likes:
                    score = calculate_trending_score(idea.like_count, idea.created_at, now, self.options)
                if idea.trending_score != score:
                    self.ideas.set_trending_score(idea.id, score)
                    updated += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Updated trending scores for %s ideas", updated)
        return updated
