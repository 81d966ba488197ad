# src/ideanest/api/v1/endpoints/auth.py
"""Authentication endpoints for the IdeaNest API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Request, Response, status

from ideanest.api.v1.dependencies import (
    CacheDep,
    CurrentUserDep,
    SessionDep,
    SettingsDep,
    TokenServiceDep,
)
from ideanest.api.v1.responses import clear_refresh_cookie, set_refresh_cookie
from ideanest.core.errors import AuthenticationError, ValidationFailedError
from ideanest.core.settings import Settings
from ideanest.models import User
from ideanest.schemas.auth import AuthTokens, LoginRequest, RefreshRequest, RegisterRequest
from ideanest.schemas.common import ApiResponse
from ideanest.schemas.user import UserProfile
from ideanest.services.auth import AuthService
from ideanest.services.tokens import RefreshStatus, TokenPair
from ideanest.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

_REFRESH_FAILURES = {
    RefreshStatus.INVALID: "Invalid refresh token",
    RefreshStatus.REVOKED: "Invalid refresh token",
    RefreshStatus.USER_NOT_FOUND: "User not found",
}


def _issue(response: Response, user: User, pair: TokenPair, settings: Settings) -> AuthTokens:
    set_refresh_cookie(response, pair.refresh_token, settings)
    return AuthTokens(
        user=UserProfile.model_validate(user),
        access_token=pair.access_token,
        expires_in=pair.access_expires_in,
    )


def _refresh_token_from(request: Request, body: RefreshRequest | None, settings: Settings) -> str | None:
    token = request.cookies.get(settings.refresh_cookie_name)
    if not token and body is not None:
        token = body.refresh_token
    return token or None


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    response: Response,
    db: SessionDep,
    tokens: TokenServiceDep,
    settings: SettingsDep,
) -> ApiResponse[AuthTokens]:
    """Create an account and start a session."""
    user, pair = AuthService(db, tokens).register(data.email, data.password, data.name)
    return ApiResponse(message="User registered successfully", data=_issue(response, user, pair, settings))


@router.post("/login")
def login(
    data: LoginRequest,
    response: Response,
    db: SessionDep,
    tokens: TokenServiceDep,
    settings: SettingsDep,
) -> ApiResponse[AuthTokens]:
    """Exchange credentials for an access token and a refresh cookie."""
    user, pair = AuthService(db, tokens).login(data.email, data.password)
    return ApiResponse(message="Login successful", data=_issue(response, user, pair, settings))


@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    db: SessionDep,
    tokens: TokenServiceDep,
    settings: SettingsDep,
    body: RefreshRequest | None = Body(default=None),
) -> ApiResponse[AuthTokens]:
    """Rotate the refresh token; the presented one stops working immediately."""
    token = _refresh_token_from(request, body, settings)
    if token is None:
        raise ValidationFailedError("Refresh token required")

    outcome = AuthService(db, tokens).refresh(token)
    if not outcome.ok:
        logger.info("Refresh rejected: %s", outcome.status.value)
        raise AuthenticationError(_REFRESH_FAILURES[outcome.status])

    return ApiResponse(
        message="Token refreshed successfully",
        data=_issue(response, outcome.user, outcome.tokens, settings),  # type: ignore[arg-type]
    )


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    current_user: CurrentUserDep,
    db: SessionDep,
    tokens: TokenServiceDep,
    settings: SettingsDep,
    body: RefreshRequest | None = Body(default=None),
) -> ApiResponse[None]:
    """End the current session."""
    AuthService(db, tokens).logout(current_user, _refresh_token_from(request, body, settings))
    clear_refresh_cookie(response, settings)
    return ApiResponse(message="Logout successful")


@router.post("/logout-all")
def logout_all(
    response: Response,
    current_user: CurrentUserDep,
    db: SessionDep,
    tokens: TokenServiceDep,
    settings: SettingsDep,
) -> ApiResponse[None]:
    """End every session of the current user."""
    AuthService(db, tokens).logout_all(current_user)
    clear_refresh_cookie(response, settings)
    return ApiResponse(message="Logged out from all devices")


@router.get("/profile")
def profile(current_user: CurrentUserDep, db: SessionDep, cache: CacheDep) -> ApiResponse[UserProfile]:
    """Return the authenticated user's profile."""
    return ApiResponse(message="Profile retrieved", data=UserService(db, cache).profile(current_user))
