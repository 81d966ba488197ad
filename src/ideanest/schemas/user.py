"""User-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, HttpUrl, field_validator

from ideanest.schemas.common import CamelModel

_IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".webp")


class UserProfile(CamelModel):
    """The caller's own account, as returned by ``/auth/profile``."""

    id: int
    email: str
    name: str | None = None
    bio: str | None = None
    avatar: str | None = None
    role: str
    is_email_verified: bool
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AdminUserView(UserProfile):
    deleted_at: datetime | None = None


class PublicUserProfile(CamelModel):
    id: int
    name: str | None = None
    bio: str | None = None
    avatar: str | None = None
    role: str
    created_at: datetime
    idea_count: int = 0


class UserSummary(CamelModel):
    id: int
    name: str | None = None
    avatar: str | None = None


class UserUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=500)
    avatar: HttpUrl | None = None

    @field_validator("avatar")
    @classmethod
    def _image_url(cls, value: HttpUrl | None) -> HttpUrl | None:
        if value is not None and not (value.path or "").lower().endswith(_IMAGE_SUFFIXES):
            raise ValueError("Avatar must be an image URL (jpg, jpeg, png, gif or webp)")
        return value


class DeleteAccountRequest(CamelModel):
    password: str = Field(..., min_length=1)


class TagCount(CamelModel):
    tag: str
    count: int


class UserStats(CamelModel):
    total_ideas: int
    public_ideas: int
    total_likes_received: int
    total_views: int
    ideas_this_month: int
    likes_given: int
    top_tags: list[TagCount]


class ActivityItem(CamelModel):
    type: Literal["idea_created", "idea_liked"]
    idea_id: int
    idea_title: str
    occurred_at: datetime
