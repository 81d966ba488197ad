"""Data access helpers for user accounts.

Every lookup states whether soft-deleted accounts are visible: the
``find_active*`` methods never return them, ``find_including_deleted*``
methods do.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from ideanest.models import User
from ideanest.utils.pagination import PageRequest

__all__ = ["UserFilters", "UserRepository"]


@dataclass(frozen=True)
class UserFilters:
    """Optional filters for account listings."""

    role: str | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None
    search: str | None = None
    include_deleted: bool = False


class UserRepository:
    """Thin wrapper around database access for user accounts."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_active(self, user_id: int) -> User | None:
        """Return a non-deleted user by id."""
        return self.session.scalar(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )

    def find_active_by_email(self, email: str) -> User | None:
        return self.session.scalar(
            select(User).where(User.email == email.lower(), User.deleted_at.is_(None))
        )

    def find_including_deleted(self, user_id: int) -> User | None:
        """Return a user by id even if the account was deleted."""
        return self.session.get(User, user_id)

    def find_including_deleted_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email.lower()))

    def find_many_active(self, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        stmt = select(User).where(User.id.in_(user_ids), User.deleted_at.is_(None))
        return list(self.session.scalars(stmt))

    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    def list_page(self, filters: UserFilters, page: PageRequest) -> tuple[list[User], int]:
        """Return one page of users matching ``filters`` plus the total count."""
        stmt = self._apply_filters(select(User), filters)
        total = self.session.scalar(
            self._apply_filters(select(func.count(User.id)), filters)
        ) or 0
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc())
        users = self.session.scalars(stmt.offset(page.offset).limit(page.limit))
        return list(users), total

    def search_active(self, query: str, page: PageRequest) -> tuple[list[User], int]:
        """Search active accounts by display name."""
        pattern = f"%{query.strip()}%"
        condition = (
            User.deleted_at.is_(None),
            User.is_active.is_(True),
            User.name.ilike(pattern),
        )
        total = self.session.scalar(select(func.count(User.id)).where(*condition)) or 0
        users = self.session.scalars(
            select(User)
            .where(*condition)
            .order_by(User.name.asc(), User.id.asc())
            .offset(page.offset)
            .limit(page.limit)
        )
        return list(users), total

    def count(self, *conditions) -> int:
        """Count non-deleted users matching extra ``conditions``."""
        stmt = select(func.count(User.id)).where(User.deleted_at.is_(None), *conditions)
        return self.session.scalar(stmt) or 0

    def count_created_per_day(self, since: datetime) -> dict[str, int]:
        day = func.date(User.created_at)
        rows = self.session.execute(
            select(day, func.count(User.id)).where(User.created_at >= since).group_by(day)
        )
        return {str(bucket): count for bucket, count in rows}

    @staticmethod
    def _apply_filters(stmt: Select, filters: UserFilters) -> Select:
        if not filters.include_deleted:
            stmt = stmt.where(User.deleted_at.is_(None))
        if filters.role is not None:
            stmt = stmt.where(User.role == filters.role)
        if filters.is_active is not None:
            stmt = stmt.where(User.is_active.is_(filters.is_active))
        if filters.is_email_verified is not None:
            stmt = stmt.where(User.is_email_verified.is_(filters.is_email_verified))
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        return stmt
