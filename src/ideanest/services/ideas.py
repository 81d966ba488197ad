"""Idea creation, listing and ownership rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ideanest.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from ideanest.db.time import utcnow
from ideanest.models import Idea, User
from ideanest.models.idea import AUTHOR_TYPE_ANONYMOUS, AUTHOR_TYPE_USER
from ideanest.repositories.idea_repo import IdeaFilter, IdeaFilterField, IdeaRepository, IdeaSort
from ideanest.services.identity import ActorIdentity, ClientInfo
from ideanest.utils.pagination import PageInfo, PageRequest, page_info

logger = logging.getLogger(__name__)


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Lower-case, trim and de-duplicate tags, keeping first-seen order."""
    result: list[str] = []
    for raw in tags or []:
        tag = raw.strip().lower()
        if tag and tag not in result:
            result.append(tag)
    return result


@dataclass(frozen=True)
class IdeaQuery:
    """Listing parameters accepted by ``GET /ideas``."""

    page: PageRequest = field(default_factory=PageRequest)
    search: str | None = None
    tags: list[str] = field(default_factory=list)
    author_type: str | None = None
    sort_by: IdeaSort = IdeaSort.CREATED_AT
    descending: bool = True

    def filters(self) -> list[IdeaFilter]:
        filters = [IdeaFilter(IdeaFilterField.PUBLIC, True)]
        if self.search and self.search.strip():
            filters.append(IdeaFilter(IdeaFilterField.SEARCH, self.search.strip()))
        if self.tags:
            filters.append(IdeaFilter(IdeaFilterField.TAGS, normalize_tags(self.tags)))
        if self.author_type:
            filters.append(IdeaFilter(IdeaFilterField.AUTHOR_TYPE, self.author_type))
        return filters


@dataclass(frozen=True)
class NewIdea:
    title: str
    content: str
    tags: list[str] = field(default_factory=list)
    is_public: bool = True


@dataclass(frozen=True)
class IdeaChanges:
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    is_public: bool | None = None


class IdeaService:
    """Business rules around ideas."""

    def __init__(self, db: Session, *, duplicate_window: timedelta = timedelta(minutes=60)) -> None:
        self.db = db
        self.ideas = IdeaRepository(db)
        self.duplicate_window = duplicate_window

    def create(
        self,
        data: NewIdea,
        identity: ActorIdentity,
        client: ClientInfo,
        *,
        now: datetime | None = None,
    ) -> Idea:
        """Store a new idea for ``identity``.

        The same identity may not post the same title twice within the
        duplicate window.
        """
        now = now or utcnow()
        title = data.title.strip()
        duplicate = self.ideas.find_recent_duplicate(
            title,
            author_id=identity.user_id,
            fingerprint=identity.fingerprint,
            since=now - self.duplicate_window,
        )
        if duplicate is not None:
            raise ConflictError("You have already posted an idea with this title recently")

        idea = Idea(
            title=title,
            content=data.content.strip(),
            author_id=identity.user_id,
            anonymous_fingerprint=identity.fingerprint,
            author_type=AUTHOR_TYPE_USER if identity.is_user else AUTHOR_TYPE_ANONYMOUS,
            ip_address=client.ip,
            user_agent=client.user_agent,
            is_public=data.is_public,
            created_at=now,
            updated_at=now,
        )
        idea.set_tags(normalize_tags(data.tags))
        try:
            self.ideas.add(idea)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Idea %s created by %s identity", idea.id, identity.kind)
        return idea

    def list_ideas(self, query: IdeaQuery) -> tuple[list[Idea], PageInfo]:
        ideas, total = self.ideas.list_page(
            query.filters(),
            sort=query.sort_by,
            descending=query.descending,
            offset=query.page.offset,
            limit=query.page.limit,
        )
        return ideas, page_info(query.page, total)

    def get_for_viewer(self, idea_id: int, viewer: User | None = None) -> Idea:
        """Return a visible idea and count the view.

        Private ideas are visible to their author and to moderators only,
        and such views are not counted.
        """
        idea = self.ideas.get(idea_id)
        if idea is None:
            raise NotFoundError("Idea not found")
        if not idea.is_public:
            if viewer is None or not (idea.is_owned_by(viewer.id) or viewer.can_moderate):
                raise NotFoundError("Idea not found")
            return idea

        try:
            self.ideas.increment_view_count(idea_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(idea)
        return idea

    def _get_owned(self, idea_id: int, user: User) -> Idea:
        idea = self.ideas.get(idea_id)
        if idea is None:
            raise NotFoundError("Idea not found")
        if not (idea.is_owned_by(user.id) or user.is_admin):
            raise PermissionDeniedError("You can only modify your own ideas")
        return idea

    def update(self, idea_id: int, changes: IdeaChanges, user: User) -> Idea:
        """Apply ``changes`` for the idea's author or an admin."""
        idea = self._get_owned(idea_id, user)
        if changes.title is not None:
            idea.title = changes.title.strip()
        if changes.content is not None:
            idea.content = changes.content.strip()
        if changes.tags is not None:
            idea.set_tags(normalize_tags(changes.tags))
        if changes.is_public is not None:
            idea.is_public = changes.is_public
        idea.updated_at = utcnow()
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(idea)
        return idea

    def delete(self, idea_id: int, user: User) -> None:
        """Remove an idea and its likes for its author or an admin."""
        idea = self._get_owned(idea_id, user)
        try:
            self.ideas.delete(idea)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Idea %s deleted by user %s", idea_id, user.id)

    def set_visibility(self, idea_id: int, is_public: bool, moderator: User) -> Idea:
        """Hide or restore an idea; moderators and admins only."""
        if not moderator.can_moderate:
            raise PermissionDeniedError()
        idea = self.ideas.get(idea_id)
        if idea is None:
            raise NotFoundError("Idea not found")
        idea.is_public = is_public
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(
            "Idea %s visibility set to %s by user %s",
            idea_id,
            "public" if is_public else "hidden",
            moderator.id,
        )
        return idea

    def user_ideas(
        self,
        user_id: int,
        page: PageRequest,
        *,
        include_private: bool = False,
    ) -> tuple[list[Idea], PageInfo]:
        """List ideas by one author, newest first."""
        filters = [IdeaFilter(IdeaFilterField.AUTHOR_ID, user_id)]
        if not include_private:
            filters.append(IdeaFilter(IdeaFilterField.PUBLIC, True))
        ideas, total = self.ideas.list_page(filters, offset=page.offset, limit=page.limit)
        return ideas, page_info(page, total)
