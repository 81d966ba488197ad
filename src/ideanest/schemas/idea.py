# src/ideanest/schemas/idea.py
"""Idea-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from ideanest.models.idea import MAX_TAG_LENGTH, MAX_TAGS
from ideanest.schemas.common import CamelModel
from ideanest.schemas.user import UserSummary


def _check_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    if len(tags) > MAX_TAGS:
        raise ValueError(f"Cannot have more than {MAX_TAGS} tags")
    for tag in tags:
        if len(tag.strip()) > MAX_TAG_LENGTH:
            raise ValueError(f"Each tag must be at most {MAX_TAG_LENGTH} characters")
    return tags


class IdeaCreate(CamelModel):
    title: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=10, max_length=5000)
    tags: list[str] = Field(default_factory=list)
    is_public: bool = True

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str]) -> list[str]:
        return _check_tags(value) or []


class IdeaUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=3, max_length=200)
    content: str | None = Field(default=None, min_length=10, max_length=5000)
    tags: list[str] | None = None
    is_public: bool | None = None

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str] | None) -> list[str] | None:
        return _check_tags(value)


class IdeaRead(CamelModel):
    """Public view of an idea; submitter IP and user agent are never exposed."""

    id: int
    title: str
    content: str
    tags: list[str]
    author: UserSummary | None = None
    author_type: str
    is_public: bool
    view_count: int
    like_count: int
    created_at: datetime
    updated_at: datetime


class TrendingIdea(IdeaRead):
    trending_score: float


class LikedIdeaRead(IdeaRead):
    liked_at: datetime


class TrendingTag(CamelModel):
    tag: str
    idea_count: int
    like_count: int


class IdeaVisibilityUpdate(CamelModel):
    is_public: bool
