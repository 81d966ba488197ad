# src/ideanest/models/__init__.py
"""SQLAlchemy models for the IdeaNest API."""

from .idea import Idea, IdeaTag
from .like import Like
from .refresh_token import RefreshToken
from .user import User, UserRole

__all__ = [
    "Idea", "IdeaTag",
    "Like",
    "RefreshToken",
    "User", "UserRole",
]
