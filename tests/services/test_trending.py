"""Tests for trending scores and rankings."""

from __future__ import annotations

from datetime import timedelta

import pytest

from ideanest.db.time import utcnow
from ideanest.services.trending import (
    TopTimeframe,
    TrendingOptions,
    TrendingService,
    calculate_trending_score,
)


def test_fresh_ideas_get_the_recent_boost() -> None:
    now = utcnow()
    assert calculate_trending_score(10, now, now) == pytest.approx(13.0)
    assert calculate_trending_score(10, now - timedelta(hours=1), now) == pytest.approx(10 * 0.8 * 1.3)


def test_score_decays_per_hour() -> None:
    now = utcnow()
    assert calculate_trending_score(10, now - timedelta(hours=3), now) == pytest.approx(10 * 0.8**3)


def test_score_is_zero_outside_window() -> None:
    now = utcnow()
    assert calculate_trending_score(100, now - timedelta(hours=25), now) == 0.0


def test_custom_options_are_honoured() -> None:
    now = utcnow()
    options = TrendingOptions(decay_factor=0.5, recent_boost=1.0, time_window_hours=48)
    assert calculate_trending_score(8, now - timedelta(hours=30), now, options) == pytest.approx(8 * 0.5**30)


def test_update_trending_scores_is_idempotent(db_session, make_idea) -> None:
    now = utcnow()
    fresh = make_idea(like_count=4, created_at=now - timedelta(hours=3))
    stale = make_idea(like_count=9, created_at=now - timedelta(days=3))
    stale.trending_score = 5.0
    db_session.commit()

    service = TrendingService(db_session)
    assert service.update_trending_scores(now=now) == 2

    db_session.refresh(fresh)
    db_session.refresh(stale)
    assert fresh.trending_score == pytest.approx(4 * 0.8**3)
    assert stale.trending_score == 0.0

    assert service.update_trending_scores(now=now) == 0


def test_hidden_ideas_are_not_scored(db_session, make_idea) -> None:
    now = utcnow()
    hidden = make_idea(like_count=4, is_public=False, created_at=now - timedelta(hours=1))

    TrendingService(db_session).update_trending_scores(now=now)

    db_session.refresh(hidden)
    assert hidden.trending_score == 0.0


def test_trending_ideas_ranked_by_score(db_session, make_idea) -> None:
    now = utcnow()
    older = make_idea(like_count=10, created_at=now - timedelta(hours=10))
    newer = make_idea(like_count=3, created_at=now - timedelta(minutes=30))
    make_idea(like_count=0, created_at=now - timedelta(minutes=5))
    make_idea(like_count=50, created_at=now - timedelta(days=2))

    ranked = TrendingService(db_session).trending_ideas(now=now)

    assert [item.idea.id for item in ranked] == [newer.id, older.id]
    assert ranked[0].score > ranked[1].score


def test_top_ideas_respects_timeframe(db_session, make_idea) -> None:
    now = utcnow()
    recent = make_idea(like_count=2, created_at=now - timedelta(hours=5))
    old = make_idea(like_count=20, created_at=now - timedelta(days=20))

    service = TrendingService(db_session)
    assert [idea.id for idea in service.top_ideas(TopTimeframe.DAY, now=now)] == [recent.id]
    assert [idea.id for idea in service.top_ideas(TopTimeframe.ALL, now=now)] == [old.id, recent.id]


def test_trending_tags_weighted_by_likes(db_session, make_idea) -> None:
    now = utcnow()
    make_idea(like_count=5, tags=["python", "web"], created_at=now - timedelta(hours=1))
    make_idea(like_count=1, tags=["web"], created_at=now - timedelta(hours=2))
    make_idea(like_count=0, tags=["ignored"], created_at=now - timedelta(hours=2))

    tags = TrendingService(db_session).trending_tags(now=now)

    by_tag = {trend.tag: trend for trend in tags}
    assert set(by_tag) == {"python", "web"}
    assert by_tag["web"].idea_count == 2
    assert by_tag["web"].like_count == 6
    assert tags[0].tag == "web"
