"""Tests for idea business rules."""

from __future__ import annotations

from datetime import timedelta

import pytest

from ideanest.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from ideanest.db.time import utcnow
from ideanest.repositories.idea_repo import IdeaSort
from ideanest.services.identity import ActorIdentity, ClientInfo
from ideanest.services.ideas import IdeaChanges, IdeaQuery, IdeaService, NewIdea, normalize_tags
from ideanest.utils.pagination import PageRequest

CLIENT = ClientInfo(ip="198.51.100.4", user_agent="pytest")


def _new(title: str = "Solar powered kettle", **kwargs) -> NewIdea:
    return NewIdea(title=title, content="Boil water using only sunlight and patience.", **kwargs)


def test_normalize_tags() -> None:
    assert normalize_tags([" Python", "python", "", "Web "]) == ["python", "web"]
    assert normalize_tags(None) == []


def test_create_records_author_and_tags(db_session, user) -> None:
    idea = IdeaService(db_session).create(
        _new(tags=["Energy", "energy", "Home"]),
        ActorIdentity.for_user(user.id),
        CLIENT,
    )

    assert idea.id is not None
    assert idea.author_type == "user"
    assert idea.author_id == user.id
    assert idea.anonymous_fingerprint is None
    assert idea.tags == ["energy", "home"]
    assert idea.ip_address == CLIENT.ip


def test_anonymous_create_uses_fingerprint(db_session) -> None:
    idea = IdeaService(db_session).create(_new(), ActorIdentity.anonymous("f" * 64), CLIENT)
    assert idea.author_type == "anonymous"
    assert idea.author_id is None
    assert idea.anonymous_fingerprint == "f" * 64


def test_duplicate_title_within_window(db_session, user) -> None:
    service = IdeaService(db_session, duplicate_window=timedelta(minutes=60))
    identity = ActorIdentity.for_user(user.id)
    now = utcnow()
    service.create(_new(), identity, CLIENT, now=now)

    with pytest.raises(ConflictError):
        service.create(_new(), identity, CLIENT, now=now + timedelta(minutes=10))

    later = service.create(_new(), identity, CLIENT, now=now + timedelta(minutes=61))
    assert later.id is not None


def test_duplicate_check_is_per_identity(db_session, user, other_user) -> None:
    service = IdeaService(db_session)
    service.create(_new(), ActorIdentity.for_user(user.id), CLIENT)
    assert service.create(_new(), ActorIdentity.for_user(other_user.id), CLIENT).id is not None


def test_public_view_is_counted(db_session, make_idea) -> None:
    idea = make_idea()
    service = IdeaService(db_session)

    service.get_for_viewer(idea.id)
    viewed = service.get_for_viewer(idea.id)

    assert viewed.view_count == 2


def test_private_idea_visibility(db_session, user, other_user, moderator, make_idea) -> None:
    idea = make_idea(author=user, is_public=False)
    service = IdeaService(db_session)

    with pytest.raises(NotFoundError):
        service.get_for_viewer(idea.id)
    with pytest.raises(NotFoundError):
        service.get_for_viewer(idea.id, other_user)

    assert service.get_for_viewer(idea.id, user).view_count == 0
    assert service.get_for_viewer(idea.id, moderator).id == idea.id


def test_only_owner_or_admin_can_edit(db_session, user, other_user, admin, make_idea) -> None:
    idea = make_idea(author=user)
    service = IdeaService(db_session)

    with pytest.raises(PermissionDeniedError):
        service.update(idea.id, IdeaChanges(title="Hijacked title"), other_user)

    updated = service.update(idea.id, IdeaChanges(title="Better title", tags=["New"]), user)
    assert updated.title == "Better title"
    assert updated.tags == ["new"]

    service.delete(idea.id, admin)
    with pytest.raises(NotFoundError):
        service.get_for_viewer(idea.id)


def test_moderator_hides_idea(db_session, user, moderator, make_idea) -> None:
    idea = make_idea(author=user)
    service = IdeaService(db_session)

    with pytest.raises(PermissionDeniedError):
        service.set_visibility(idea.id, False, user)

    assert service.set_visibility(idea.id, False, moderator).is_public is False
    ideas, info = service.list_ideas(IdeaQuery())
    assert info.total == 0


def test_list_filters_and_sorting(db_session, user, make_idea) -> None:
    make_idea(author=user, title="Rain harvesting", tags=["water"], like_count=1)
    popular = make_idea(title="Water from air", tags=["water", "tech"], like_count=5)
    make_idea(title="Quiet keyboards", tags=["tech"])
    service = IdeaService(db_session)

    ideas, info = service.list_ideas(IdeaQuery(tags=["Water"], sort_by=IdeaSort.LIKE_COUNT))
    assert [idea.id for idea in ideas][0] == popular.id
    assert info.total == 2

    ideas, _ = service.list_ideas(IdeaQuery(search="keyboard"))
    assert [idea.title for idea in ideas] == ["Quiet keyboards"]

    ideas, _ = service.list_ideas(IdeaQuery(author_type="user"))
    assert [idea.title for idea in ideas] == ["Rain harvesting"]

    _, info = service.list_ideas(IdeaQuery(page=PageRequest(page=2, limit=2)))
    assert info.total == 3
    assert info.has_prev is True
    assert info.has_next is False
