"""Shared Pydantic schemas for common API elements."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ideanest.db.time import utcnow
from ideanest.utils.pagination import PageInfo

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and reads ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_info(cls, info: PageInfo) -> PaginationMeta:
        return cls(
            page=info.page,
            limit=info.limit,
            total=info.total,
            total_pages=info.total_pages,
            has_next=info.has_next,
            has_prev=info.has_prev,
        )


class Page(CamelModel, Generic[T]):
    """One page of results."""

    items: list[T]
    pagination: PaginationMeta


class ApiResponse(CamelModel, Generic[T]):
    """Envelope wrapped around every response body."""

    success: bool = True
    message: str
    data: T | None = None
    error: Any | None = None
    timestamp: datetime = Field(default_factory=utcnow)


def ok(data: Any = None, message: str = "OK") -> ApiResponse[Any]:
    """Build a success envelope."""
    return ApiResponse(success=True, message=message, data=data)
