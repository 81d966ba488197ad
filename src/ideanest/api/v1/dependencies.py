"""Shared API dependencies for authentication and common functionality."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ideanest.core.errors import AuthenticationError, PermissionDeniedError
from ideanest.core.settings import Settings
from ideanest.db.session import get_db
from ideanest.models import User, UserRole
from ideanest.repositories.user_repo import UserRepository
from ideanest.services.cache import CacheService
from ideanest.services.identity import ActorIdentity, ClientInfo, resolve_identity
from ideanest.services.tokens import TokenService
from ideanest.utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest

# HTTP Bearer scheme; missing credentials are reported through AuthenticationError
bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[Session, Depends(get_db)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_cache(request: Request) -> CacheService:
    return request.app.state.cache


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo.from_request(request)


SettingsDep = Annotated[Settings, Depends(get_settings)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
CacheDep = Annotated[CacheService, Depends(get_cache)]
ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]


def _user_from_token(token: str, db: Session, tokens: TokenService) -> User:
    payload = tokens.verify_access(token)
    user = UserRepository(db).find_active(payload.user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user


def get_current_user(
    credentials: BearerDep,
    db: SessionDep,
    tokens: TokenServiceDep,
) -> User:
    """Return the user behind a valid bearer access token.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired, or
            the account no longer exists or is deactivated.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return _user_from_token(credentials.credentials, db, tokens)


def get_optional_user(
    credentials: BearerDep,
    db: SessionDep,
    tokens: TokenServiceDep,
) -> User | None:
    """Like :func:`get_current_user` but anonymous callers yield ``None``.

    A token that is present but invalid is still rejected.
    """
    if credentials is None or not credentials.credentials:
        return None
    return _user_from_token(credentials.credentials, db, tokens)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    """Build a dependency that admits only users holding one of ``roles``."""
    allowed = {role.value for role in roles}

    def _checker(current_user: CurrentUserDep) -> User:
        if current_user.role not in allowed:
            raise PermissionDeniedError()
        return current_user

    return _checker


AdminUserDep = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
ModeratorUserDep = Annotated[User, Depends(require_roles(UserRole.ADMIN, UserRole.MODERATOR))]


def get_actor_identity(user: OptionalUserDep, client: ClientInfoDep) -> ActorIdentity:
    return resolve_identity(user.id if user is not None else None, client)


ActorIdentityDep = Annotated[ActorIdentity, Depends(get_actor_identity)]


def page_request(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> PageRequest:
    return PageRequest(page=page, limit=limit)


PageDep = Annotated[PageRequest, Depends(page_request)]
