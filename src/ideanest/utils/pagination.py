"""Page/limit pagination helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


@dataclass(frozen=True)
class PageRequest:
    """1-based page number and page size."""

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageInfo:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


def page_info(request: PageRequest, total: int) -> PageInfo:
    """Build the pagination block for ``total`` matching rows."""
    total_pages = math.ceil(total / request.limit) if total else 0
    return PageInfo(
        page=request.page,
        limit=request.limit,
        total=total,
        total_pages=total_pages,
        has_next=request.page < total_pages,
        has_prev=request.page > 1,
    )
