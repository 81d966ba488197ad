# src/ideanest/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    ideas_router,
    likes_router,
    system_router,
    users_router,
)

__all__ = [
    "admin_router",
    "auth_router",
    "ideas_router",
    "likes_router",
    "system_router",
    "users_router",
]
