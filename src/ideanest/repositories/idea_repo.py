"""Data access helpers for ideas.

Listing filters are expressed as :class:`IdeaFilter` values tagged with an
:class:`IdeaFilterField`; :func:`build_clause` turns each one into a typed
SQLAlchemy expression, so callers never assemble raw query fragments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import ColumnElement, and_, exists, func, or_, select, true, update
from sqlalchemy.orm import Session

from ideanest.models import Idea, IdeaTag

__all__ = [
    "IdeaFilter",
    "IdeaFilterField",
    "IdeaRepository",
    "IdeaSort",
    "build_clause",
]


class IdeaFilterField(str, Enum):
    """Filterable facets of an idea listing."""

    PUBLIC = "public"
    SEARCH = "search"
    TAGS = "tags"
    AUTHOR_TYPE = "author_type"
    AUTHOR_ID = "author_id"
    CREATED_SINCE = "created_since"
    MIN_LIKES = "min_likes"


@dataclass(frozen=True)
class IdeaFilter:
    field: IdeaFilterField
    value: Any


class IdeaSort(str, Enum):
    """Sort keys accepted by idea listings (camelCase on the wire)."""

    CREATED_AT = "createdAt"
    LIKE_COUNT = "likeCount"
    VIEW_COUNT = "viewCount"
    UPDATED_AT = "updatedAt"


_SORT_COLUMNS = {
    IdeaSort.CREATED_AT: Idea.created_at,
    IdeaSort.LIKE_COUNT: Idea.like_count,
    IdeaSort.VIEW_COUNT: Idea.view_count,
    IdeaSort.UPDATED_AT: Idea.updated_at,
}


def build_clause(item: IdeaFilter) -> ColumnElement[bool]:
    """Translate one tagged filter into a SQL boolean expression."""
    field, value = item.field, item.value
    if field is IdeaFilterField.PUBLIC:
        return Idea.is_public.is_(bool(value))
    if field is IdeaFilterField.SEARCH:
        pattern = f"%{value}%"
        return or_(
            Idea.title.ilike(pattern),
            Idea.content.ilike(pattern),
            exists().where(IdeaTag.idea_id == Idea.id, IdeaTag.tag.ilike(pattern)),
        )
    if field is IdeaFilterField.TAGS:
        return exists().where(IdeaTag.idea_id == Idea.id, IdeaTag.tag.in_(list(value)))
    if field is IdeaFilterField.AUTHOR_TYPE:
        return Idea.author_type == value
    if field is IdeaFilterField.AUTHOR_ID:
        return Idea.author_id == value
    if field is IdeaFilterField.CREATED_SINCE:
        return Idea.created_at >= value
    if field is IdeaFilterField.MIN_LIKES:
        return Idea.like_count >= value
    raise ValueError(f"Unsupported idea filter: {field!r}")


class IdeaRepository:
    """Thin wrapper around database access for ideas."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, idea_id: int) -> Idea | None:
        return self.session.get(Idea, idea_id)

    def add(self, idea: Idea) -> Idea:
        self.session.add(idea)
        self.session.flush()
        return idea

    def delete(self, idea: Idea) -> None:
        self.session.delete(idea)

    def list_page(
        self,
        filters: list[IdeaFilter],
        *,
        sort: IdeaSort = IdeaSort.CREATED_AT,
        descending: bool = True,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Idea], int]:
        """Return one page of ideas plus the total count of matches."""
        condition = and_(true(), *(build_clause(item) for item in filters))
        total = self.session.scalar(select(func.count(Idea.id)).where(condition)) or 0

        column = _SORT_COLUMNS[sort]
        primary = column.desc() if descending else column.asc()
        stmt = (
            select(Idea)
            .where(condition)
            .order_by(primary, Idea.created_at.desc(), Idea.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.scalars(stmt)), total

    def list_matching(self, filters: list[IdeaFilter]) -> list[Idea]:
        condition = and_(true(), *(build_clause(item) for item in filters))
        return list(self.session.scalars(select(Idea).where(condition)))

    def find_recent_duplicate(
        self,
        title: str,
        *,
        author_id: int | None,
        fingerprint: str | None,
        since: datetime,
    ) -> Idea | None:
        """Return an idea with the same title from the same identity since ``since``."""
        owner = Idea.author_id == author_id if author_id is not None else (
            Idea.anonymous_fingerprint == fingerprint
        )
        stmt = select(Idea).where(Idea.title == title, owner, Idea.created_at >= since).limit(1)
        return self.session.scalar(stmt)

    def apply_like_delta(self, idea_id: int, delta: int) -> None:
        """Atomically add ``delta`` to the stored like counter."""
        self.session.execute(
            update(Idea)
            .where(Idea.id == idea_id)
            .values(like_count=Idea.like_count + delta, updated_at=Idea.updated_at)
            .execution_options(synchronize_session="fetch")
        )

    def increment_view_count(self, idea_id: int) -> None:
        self.session.execute(
            update(Idea)
            .where(Idea.id == idea_id)
            .values(view_count=Idea.view_count + 1, updated_at=Idea.updated_at)
            .execution_options(synchronize_session="fetch")
        )

    def set_trending_score(self, idea_id: int, score: float) -> None:
        self.session.execute(
            update(Idea)
            .where(Idea.id == idea_id)
            .values(trending_score=score, updated_at=Idea.updated_at)
            .execution_options(synchronize_session="fetch")
        )

    def like_count(self, idea_id: int) -> int | None:
        return self.session.scalar(select(Idea.like_count).where(Idea.id == idea_id))

    def count(self, *conditions) -> int:
        return self.session.scalar(select(func.count(Idea.id)).where(*conditions)) or 0

    def sum_column(self, column, *conditions) -> int:
        return int(self.session.scalar(select(func.coalesce(func.sum(column), 0)).where(*conditions)))

    def count_created_per_day(self, since: datetime) -> dict[str, int]:
        day = func.date(Idea.created_at)
        rows = self.session.execute(
            select(day, func.count(Idea.id)).where(Idea.created_at >= since).group_by(day)
        )
        return {str(bucket): count for bucket, count in rows}

    def tag_totals(
        self,
        *conditions,
        limit: int,
        weight_by_likes: bool = False,
    ) -> list[tuple[str, int, int]]:
        """Return ``(tag, idea_count, like_total)`` rows for ideas matching ``conditions``."""
        idea_count = func.count(Idea.id)
        like_total = func.coalesce(func.sum(Idea.like_count), 0)
        order = like_total.desc() if weight_by_likes else idea_count.desc()
        stmt = (
            select(IdeaTag.tag, idea_count, like_total)
            .join(Idea, Idea.id == IdeaTag.idea_id)
            .where(*conditions)
            .group_by(IdeaTag.tag)
            .order_by(order, IdeaTag.tag.asc())
            .limit(limit)
        )
        return [(tag, int(count), int(likes)) for tag, count, likes in self.session.execute(stmt)]
