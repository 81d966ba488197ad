# src/ideanest/services/admin.py
"""Administrative user management, dashboards and moderation queue."""

from __future__ import annotations

import logging
import platform
from datetime import date, datetime, timedelta

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from ideanest import __version__
from ideanest.core.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from ideanest.db.session import ping
from ideanest.db.time import as_utc, utcnow
from ideanest.models import Idea, Like, User, UserRole
from ideanest.repositories.idea_repo import IdeaFilter, IdeaFilterField, IdeaRepository, IdeaSort
from ideanest.repositories.like_repo import LikeRepository
from ideanest.repositories.user_repo import UserFilters, UserRepository
from ideanest.schemas.admin import AnalyticsDay, DashboardStats, SystemHealth
from ideanest.services.cache import ADMIN_STATS_TTL_SECONDS, CacheService
from ideanest.services.tokens import TokenService
from ideanest.services.users import UserService, anonymize, month_start
from ideanest.utils.pagination import PageInfo, PageRequest, page_info

logger = logging.getLogger(__name__)

_DASHBOARD = TypeAdapter(DashboardStats)

MAX_ANALYTICS_DAYS = 365
MAX_BULK_USERS = 50


class AdminService:
    """Operations reserved for admins (and, for the queue, moderators)."""

    def __init__(self, db: Session, cache: CacheService, tokens: TokenService) -> None:
        self.db = db
        self.cache = cache
        self.tokens = tokens
        self.users = UserRepository(db)
        self.ideas = IdeaRepository(db)
        self.likes = LikeRepository(db)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _target(self, user_id: int) -> User:
        user = self.users.find_active(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _forget(self, *user_ids: int) -> None:
        users = UserService(self.db, self.cache)
        for user_id in user_ids:
            users.invalidate(user_id)
        self.cache.delete(self.cache.key("admin", "stats"))

    # --- Dashboard ------------------------------------------------------------
    def dashboard_stats(self, *, now: datetime | None = None) -> DashboardStats:
        def load() -> DashboardStats:
            since = month_start(now or utcnow())
            return DashboardStats(
                total_users=self.users.count(),
                active_users=self.users.count(User.is_active.is_(True)),
                verified_users=self.users.count(User.is_email_verified.is_(True)),
                admin_users=self.users.count(User.role == UserRole.ADMIN.value),
                moderator_users=self.users.count(User.role == UserRole.MODERATOR.value),
                total_ideas=self.ideas.count(),
                public_ideas=self.ideas.count(Idea.is_public.is_(True)),
                total_likes=self.likes.count(),
                anonymous_likes=self.likes.count(Like.user_id.is_(None)),
                ideas_this_month=self.ideas.count(Idea.created_at >= since),
                likes_this_month=self.likes.count(Like.created_at >= since),
            )

        return self.cache.get_or_load(
            self.cache.key("admin", "stats"), _DASHBOARD, load, ADMIN_STATS_TTL_SECONDS
        )

    def activity_analytics(self, days: int = 30, *, now: datetime | None = None) -> list[AnalyticsDay]:
        """Per-day counts of new users, ideas and likes over the last ``days`` days."""
        if not 1 <= days <= MAX_ANALYTICS_DAYS:
            raise ValidationFailedError(f"days must be between 1 and {MAX_ANALYTICS_DAYS}")
        now = now or utcnow()
        first_day = now.date() - timedelta(days=days - 1)
        since = datetime.combine(first_day, datetime.min.time(), tzinfo=now.tzinfo)

        users = self.users.count_created_per_day(since)
        ideas = self.ideas.count_created_per_day(since)
        likes = self.likes.count_created_per_day(since)
        series = []
        for offset in range(days):
            day: date = first_day + timedelta(days=offset)
            key = day.isoformat()
            series.append(
                AnalyticsDay(
                    date=day,
                    new_users=users.get(key, 0),
                    new_ideas=ideas.get(key, 0),
                    new_likes=likes.get(key, 0),
                )
            )
        return series

    def system_health(self, *, started_at: datetime | None = None) -> SystemHealth:
        database_ok = ping(self.db)
        cache_ok = self.cache.ping()
        uptime = None
        if started_at is not None:
            uptime = int((utcnow() - as_utc(started_at)).total_seconds())
        return SystemHealth(
            status="healthy" if database_ok and cache_ok is not False else "degraded",
            database="connected" if database_ok else "unreachable",
            cache={None: "disabled", True: "connected", False: "unreachable"}[cache_ok],
            version=__version__,
            python_version=platform.python_version(),
            uptime_seconds=uptime,
            checked_at=utcnow(),
        )

    # --- Users ----------------------------------------------------------------
    def list_users(self, filters: UserFilters, page: PageRequest) -> tuple[list[User], PageInfo]:
        users, total = self.users.list_page(filters, page)
        return users, page_info(page, total)

    def get_user(self, user_id: int) -> User:
        user = self.users.find_including_deleted(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_role(self, actor: User, user_id: int, role: UserRole) -> User:
        if actor.id == user_id:
            raise PermissionDeniedError("Cannot change your own role")
        user = self._target(user_id)
        user.role = role.value
        self._commit()
        self._forget(user.id)
        logger.info("User %s changed role of user %s to %s", actor.id, user.id, role.value)
        return user

    def bulk_update_roles(self, actor: User, user_ids: list[int], role: UserRole) -> list[User]:
        unique_ids = list(dict.fromkeys(user_ids))
        if not 1 <= len(unique_ids) <= MAX_BULK_USERS:
            raise ValidationFailedError(f"Provide between 1 and {MAX_BULK_USERS} user ids")
        if actor.id in unique_ids:
            raise PermissionDeniedError("Cannot change your own role")
        users = self.users.find_many_active(unique_ids)
        missing = sorted(set(unique_ids) - {user.id for user in users})
        if missing:
            raise NotFoundError("Some users were not found", details={"missingIds": missing})
        for user in users:
            user.role = role.value
        self._commit()
        self._forget(*unique_ids)
        logger.info("User %s changed role of %s users to %s", actor.id, len(users), role.value)
        return users

    def set_status(self, actor: User, user_id: int, is_active: bool) -> User:
        """Activate or deactivate an account; deactivation ends its sessions."""
        if actor.id == user_id:
            raise PermissionDeniedError("Cannot change your own account status")
        user = self._target(user_id)
        user.is_active = is_active
        if not is_active:
            self.tokens.revoke_all(self.db, user.id)
        self._commit()
        self._forget(user.id)
        logger.info(
            "User %s %s user %s", actor.id, "activated" if is_active else "deactivated", user.id
        )
        return user

    def delete_user(self, actor: User, user_id: int) -> None:
        if actor.id == user_id:
            raise PermissionDeniedError("Cannot delete your own account from the admin panel")
        user = self._target(user_id)
        anonymize(user, utcnow())
        self.tokens.revoke_all(self.db, user.id)
        self._commit()
        self._forget(user.id)
        logger.info("User %s deleted user %s", actor.id, user_id)

    # --- Moderation -----------------------------------------------------------
    def moderation_queue(
        self,
        page: PageRequest,
        *,
        now: datetime | None = None,
    ) -> tuple[list[Idea], PageInfo]:
        """Public ideas from the last 24 hours, most liked first."""
        since = (now or utcnow()) - timedelta(hours=24)
        ideas, total = self.ideas.list_page(
            [
                IdeaFilter(IdeaFilterField.PUBLIC, True),
                IdeaFilter(IdeaFilterField.CREATED_SINCE, since),
            ],
            sort=IdeaSort.LIKE_COUNT,
            offset=page.offset,
            limit=page.limit,
        )
        return ideas, page_info(page, total)
