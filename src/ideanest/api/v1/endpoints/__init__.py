# src/ideanest/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .ideas import router as ideas_router
from .likes import router as likes_router
from .system import router as system_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "ideas_router",
    "likes_router",
    "system_router",
    "users_router",
]
