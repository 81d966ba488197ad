"""Profiles, statistics, activity and account deletion."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from ideanest.core.errors import AuthenticationError, NotFoundError
from ideanest.core.security import verify_password
from ideanest.db.time import as_utc, utcnow
from ideanest.models import Idea, Like, User
from ideanest.repositories.idea_repo import IdeaFilter, IdeaFilterField, IdeaRepository
from ideanest.repositories.like_repo import LikeRepository
from ideanest.repositories.user_repo import UserRepository
from ideanest.schemas.user import (
    ActivityItem,
    PublicUserProfile,
    TagCount,
    UserProfile,
    UserStats,
)
from ideanest.services.cache import (
    PROFILE_TTL_SECONDS,
    PUBLIC_PROFILE_TTL_SECONDS,
    USER_STATS_TTL_SECONDS,
    CacheService,
)
from ideanest.services.tokens import TokenService
from ideanest.utils.pagination import PageInfo, PageRequest, page_info

logger = logging.getLogger(__name__)

_PROFILE = TypeAdapter(UserProfile)
_PUBLIC_PROFILE = TypeAdapter(PublicUserProfile)
_STATS = TypeAdapter(UserStats)

DELETED_USER_NAME = "Deleted User"


@dataclass(frozen=True)
class ProfileChanges:
    name: str | None = None
    bio: str | None = None
    avatar: str | None = None


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def anonymize(user: User, now: datetime) -> None:
    """Soft-delete ``user`` and scrub personal fields."""
    user.deleted_at = now
    user.is_active = False
    user.email = f"deleted_{user.id}@deleted.ideanest.local"
    user.name = DELETED_USER_NAME
    user.bio = None
    user.avatar = None


class UserService:
    """Account-level operations for signed-in users."""

    def __init__(self, db: Session, cache: CacheService) -> None:
        self.db = db
        self.cache = cache
        self.users = UserRepository(db)
        self.ideas = IdeaRepository(db)
        self.likes = LikeRepository(db)

    def _require_active(self, user_id: int) -> User:
        user = self.users.find_active(user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User not found")
        return user

    def invalidate(self, user_id: int) -> None:
        self.cache.delete(
            self.cache.key("user", "profile", user_id),
            self.cache.key("user", "public", user_id),
            self.cache.key("user", "stats", user_id),
        )

    def profile(self, user: User) -> UserProfile:
        return self.cache.get_or_load(
            self.cache.key("user", "profile", user.id),
            _PROFILE,
            lambda: UserProfile.model_validate(user),
            PROFILE_TTL_SECONDS,
        )

    def public_profile(self, user_id: int) -> PublicUserProfile:
        def load() -> PublicUserProfile:
            user = self._require_active(user_id)
            idea_count = self.ideas.count(Idea.author_id == user.id, Idea.is_public.is_(True))
            return PublicUserProfile(
                id=user.id,
                name=user.name,
                bio=user.bio,
                avatar=user.avatar,
                role=user.role,
                created_at=user.created_at,
                idea_count=idea_count,
            )

        return self.cache.get_or_load(
            self.cache.key("user", "public", user_id),
            _PUBLIC_PROFILE,
            load,
            PUBLIC_PROFILE_TTL_SECONDS,
        )

    def update_profile(self, user: User, changes: ProfileChanges) -> UserProfile:
        if changes.name is not None:
            user.name = changes.name.strip() or None
        if changes.bio is not None:
            user.bio = changes.bio.strip() or None
        if changes.avatar is not None:
            user.avatar = changes.avatar or None
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.invalidate(user.id)
        self.db.refresh(user)
        return UserProfile.model_validate(user)

    def stats(self, user_id: int, *, now: datetime | None = None) -> UserStats:
        """Return totals for one author; cached for half an hour."""

        def load() -> UserStats:
            user = self._require_active(user_id)
            since = month_start(now or utcnow())
            owned = Idea.author_id == user.id
            top_tags = self.ideas.tag_totals(owned, limit=5)
            return UserStats(
                total_ideas=self.ideas.count(owned),
                public_ideas=self.ideas.count(owned, Idea.is_public.is_(True)),
                total_likes_received=self.ideas.sum_column(Idea.like_count, owned),
                total_views=self.ideas.sum_column(Idea.view_count, owned),
                ideas_this_month=self.ideas.count(owned, Idea.created_at >= since),
                likes_given=self.likes.count(Like.user_id == user.id),
                top_tags=[TagCount(tag=tag, count=count) for tag, count, _ in top_tags],
            )

        return self.cache.get_or_load(
            self.cache.key("user", "stats", user_id),
            _STATS,
            load,
            USER_STATS_TTL_SECONDS,
        )

    def activity(self, user: User, *, limit: int = 20) -> list[ActivityItem]:
        """Merge the user's recent ideas and likes into one timeline."""
        ideas, _ = self.ideas.list_page(
            [IdeaFilter(IdeaFilterField.AUTHOR_ID, user.id)],
            offset=0,
            limit=limit,
        )
        items = [
            ActivityItem(
                type="idea_created",
                idea_id=idea.id,
                idea_title=idea.title,
                occurred_at=as_utc(idea.created_at),
            )
            for idea in ideas
        ]
        for like in self.likes.recent_by_user(user.id, limit):
            items.append(
                ActivityItem(
                    type="idea_liked",
                    idea_id=like.idea_id,
                    idea_title=like.idea.title,
                    occurred_at=as_utc(like.created_at),
                )
            )
        items.sort(key=lambda item: item.occurred_at, reverse=True)
        return items[:limit]

    def search(self, query: str, page: PageRequest) -> tuple[list[User], PageInfo]:
        users, total = self.users.search_active(query, page)
        return users, page_info(page, total)

    def delete_account(self, user: User, password: str, tokens: TokenService) -> None:
        """Soft-delete the caller's account after re-checking the password."""
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Password is incorrect")
        try:
            anonymize(user, utcnow())
            tokens.revoke_all(self.db, user.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.invalidate(user.id)
        logger.info("User %s deleted their account", user.id)
