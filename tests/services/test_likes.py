"""Tests for the like toggle engine."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ideanest.core.errors import NotFoundError
from ideanest.db.time import utcnow
from ideanest.models import Like
from ideanest.services.identity import ActorIdentity
from ideanest.services.likes import LikeToggleEngine, ToggleStatus
from ideanest.utils.pagination import PageRequest

FINGERPRINT_A = "a" * 64
FINGERPRINT_B = "b" * 64


def _stored_likes(db_session, idea_id: int) -> int:
    return len(list(db_session.scalars(select(Like).where(Like.idea_id == idea_id))))


def test_toggle_likes_then_unlikes(db_session, user, make_idea) -> None:
    """Two toggles by the same identity cancel out."""
    idea = make_idea(author=user)
    engine = LikeToggleEngine(db_session)
    identity = ActorIdentity.for_user(user.id)

    first = engine.toggle(idea.id, identity)
    assert first.status is ToggleStatus.OK
    assert first.liked is True
    assert first.like_count == 1

    second = engine.toggle(idea.id, identity)
    assert second.liked is False
    assert second.like_count == 0
    assert _stored_likes(db_session, idea.id) == 0


def test_user_and_fingerprint_are_separate_identities(db_session, user, make_idea) -> None:
    """Signing in does not inherit or collide with an anonymous like."""
    idea = make_idea()
    engine = LikeToggleEngine(db_session)

    assert engine.toggle(idea.id, ActorIdentity.for_user(user.id)).like_count == 1
    assert engine.toggle(idea.id, ActorIdentity.anonymous(FINGERPRINT_A)).like_count == 2
    assert engine.toggle(idea.id, ActorIdentity.for_user(user.id)).like_count == 1

    status = engine.status(idea.id, ActorIdentity.anonymous(FINGERPRINT_A))
    assert status.liked is True
    assert engine.status(idea.id, ActorIdentity.for_user(user.id)).liked is False
    assert engine.count(idea.id) == 1


def test_counter_matches_stored_likes(db_session, user, other_user, make_idea) -> None:
    idea = make_idea()
    engine = LikeToggleEngine(db_session)
    identities = [
        ActorIdentity.for_user(user.id),
        ActorIdentity.for_user(other_user.id),
        ActorIdentity.anonymous(FINGERPRINT_A),
        ActorIdentity.anonymous(FINGERPRINT_B),
    ]
    for identity in identities:
        engine.toggle(idea.id, identity)
    engine.toggle(idea.id, identities[2])

    db_session.refresh(idea)
    assert idea.like_count == _stored_likes(db_session, idea.id) == 3


def test_toggle_does_not_touch_updated_at(db_session, user, make_idea) -> None:
    idea = make_idea(author=user)
    db_session.refresh(idea)
    before = idea.updated_at
    LikeToggleEngine(db_session).toggle(idea.id, ActorIdentity.for_user(user.id))
    db_session.refresh(idea)
    assert idea.updated_at == before


def test_toggle_missing_idea_raises(db_session, user) -> None:
    engine = LikeToggleEngine(db_session)
    with pytest.raises(NotFoundError):
        engine.toggle(9999, ActorIdentity.for_user(user.id))
    with pytest.raises(NotFoundError):
        engine.status(9999, ActorIdentity.for_user(user.id))


def test_like_row_cannot_carry_both_identities(db_session, user, make_idea) -> None:
    idea = make_idea()
    db_session.add(Like(idea_id=idea.id, user_id=user.id, fingerprint=FINGERPRINT_A))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_like_row_needs_an_identity(db_session, make_idea) -> None:
    idea = make_idea()
    db_session.add(Like(idea_id=idea.id))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_duplicate_like_rows_are_rejected(db_session, make_idea) -> None:
    idea = make_idea()
    db_session.add(Like(idea_id=idea.id, fingerprint=FINGERPRINT_A))
    db_session.commit()
    db_session.add(Like(idea_id=idea.id, fingerprint=FINGERPRINT_A))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_lost_race_reports_conflict(db_session, user, make_idea, monkeypatch) -> None:
    """A toggle that read stale state hits the unique index and changes nothing."""
    idea = make_idea()
    identity = ActorIdentity.for_user(user.id)
    engine = LikeToggleEngine(db_session)
    engine.toggle(idea.id, identity)

    original_find = engine.likes.find
    calls: list[int] = []

    def stale_find(idea_id, who):
        calls.append(idea_id)
        if len(calls) == 1:
            return None
        return original_find(idea_id, who)

    monkeypatch.setattr(engine.likes, "find", stale_find)
    result = engine.toggle(idea.id, identity)

    assert result.status is ToggleStatus.CONFLICT
    assert result.liked is True
    assert result.like_count == 1
    db_session.refresh(idea)
    assert idea.like_count == _stored_likes(db_session, idea.id) == 1


def test_stale_unlike_reports_conflict(db_session, user, make_idea, monkeypatch) -> None:
    """An unlike whose row was already removed elsewhere leaves the counter alone."""
    idea = make_idea()
    identity = ActorIdentity.for_user(user.id)
    LikeToggleEngine(db_session).toggle(idea.id, ActorIdentity.anonymous(FINGERPRINT_A))
    LikeToggleEngine(db_session).toggle(idea.id, identity)

    late = LikeToggleEngine(db_session)
    stale_like = late.likes.find(idea.id, identity)
    assert stale_like is not None

    first = LikeToggleEngine(db_session).toggle(idea.id, identity)
    assert first.status is ToggleStatus.OK
    assert first.liked is False

    original_find = late.likes.find
    calls: list[int] = []

    def stale_find(idea_id, who):
        calls.append(idea_id)
        if len(calls) == 1:
            return stale_like
        return original_find(idea_id, who)

    monkeypatch.setattr(late.likes, "find", stale_find)
    result = late.toggle(idea.id, identity)

    assert result.status is ToggleStatus.CONFLICT
    assert result.liked is False
    assert result.like_count == 1
    db_session.refresh(idea)
    assert idea.like_count == _stored_likes(db_session, idea.id) == 1


def test_liked_ideas_lists_public_ideas_newest_first(db_session, user, make_idea) -> None:
    first = make_idea(title="First liked idea")
    second = make_idea(title="Second liked idea")
    hidden = make_idea(title="Hidden liked idea", is_public=False)
    engine = LikeToggleEngine(db_session)
    identity = ActorIdentity.for_user(user.id)
    for idea in (first, second, hidden):
        engine.toggle(idea.id, identity)
    db_session.execute(
        update(Like).where(Like.idea_id == first.id).values(created_at=utcnow() - timedelta(hours=1))
    )
    db_session.commit()

    items, info = engine.liked_ideas(user.id, PageRequest(page=1, limit=10))

    assert [item.idea.id for item in items] == [second.id, first.id]
    assert info.total == 2


def test_cleanup_removes_only_stale_anonymous_likes(db_session, user, make_idea) -> None:
    idea = make_idea()
    engine = LikeToggleEngine(db_session)
    engine.toggle(idea.id, ActorIdentity.anonymous(FINGERPRINT_A))
    engine.toggle(idea.id, ActorIdentity.anonymous(FINGERPRINT_B))
    engine.toggle(idea.id, ActorIdentity.for_user(user.id))

    old = utcnow() - timedelta(days=45)
    db_session.execute(
        update(Like)
        .where(Like.fingerprint == FINGERPRINT_A)
        .values(created_at=old)
    )
    db_session.execute(update(Like).where(Like.user_id == user.id).values(created_at=old))
    db_session.commit()

    removed = engine.cleanup_old_anonymous_likes(30)

    assert removed == 1
    db_session.refresh(idea)
    assert idea.like_count == _stored_likes(db_session, idea.id) == 2
    assert engine.cleanup_old_anonymous_likes(30) == 0
