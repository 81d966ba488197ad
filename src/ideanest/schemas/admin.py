# src/ideanest/schemas/admin.py
"""Admin dashboard and user-management schemas."""

from __future__ import annotations

import datetime as dt

from pydantic import Field

from ideanest.models.user import UserRole
from ideanest.schemas.common import CamelModel


class DashboardStats(CamelModel):
    total_users: int
    active_users: int
    verified_users: int
    admin_users: int
    moderator_users: int
    total_ideas: int
    public_ideas: int
    total_likes: int
    anonymous_likes: int
    ideas_this_month: int
    likes_this_month: int


class AnalyticsDay(CamelModel):
    date: dt.date
    new_users: int
    new_ideas: int
    new_likes: int


class SystemHealth(CamelModel):
    status: str
    database: str
    cache: str
    version: str
    python_version: str
    uptime_seconds: int | None = None
    checked_at: dt.datetime


class RoleUpdate(CamelModel):
    role: UserRole


class BulkRoleUpdate(CamelModel):
    user_ids: list[int] = Field(..., min_length=1, max_length=50)
    role: UserRole


class StatusUpdate(CamelModel):
    is_active: bool
