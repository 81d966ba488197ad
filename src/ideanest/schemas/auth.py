# src/ideanest/schemas/auth.py
"""Authentication request and response schemas."""

from __future__ import annotations

from pydantic import EmailStr, Field, field_validator

from ideanest.core.security import password_problems
from ideanest.schemas.common import CamelModel
from ideanest.schemas.user import UserProfile


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(default=None, max_length=50)

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        problems = password_problems(value)
        if problems:
            raise ValueError("; ".join(problems))
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(CamelModel):
    """Body fallback for clients that cannot send the refresh cookie."""

    refresh_token: str | None = None


class AuthTokens(CamelModel):
    """Access token payload; the refresh token travels in an httpOnly cookie."""

    user: UserProfile
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
