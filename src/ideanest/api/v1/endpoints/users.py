"""User profile endpoints for the IdeaNest API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from ideanest.api.v1.dependencies import (
    CacheDep,
    CurrentUserDep,
    PageDep,
    SessionDep,
    SettingsDep,
    TokenServiceDep,
)
from ideanest.api.v1.responses import clear_refresh_cookie, idea_page, page_of
from ideanest.schemas.common import ApiResponse, Page
from ideanest.schemas.idea import IdeaRead
from ideanest.schemas.user import (
    ActivityItem,
    DeleteAccountRequest,
    PublicUserProfile,
    UserProfile,
    UserStats,
    UserSummary,
    UserUpdate,
)
from ideanest.services.ideas import IdeaService
from ideanest.services.users import ProfileChanges, UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(db: SessionDep, cache: CacheDep) -> UserService:
    return UserService(db, cache)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("/profile")
def get_profile(current_user: CurrentUserDep, service: UserServiceDep) -> ApiResponse[UserProfile]:
    """Return the caller's profile."""
    return ApiResponse(message="Profile retrieved", data=service.profile(current_user))


@router.put("/profile")
def update_profile(
    data: UserUpdate,
    current_user: CurrentUserDep,
    service: UserServiceDep,
) -> ApiResponse[UserProfile]:
    """Update name, bio or avatar."""
    changes = ProfileChanges(
        name=data.name,
        bio=data.bio,
        avatar=str(data.avatar) if data.avatar is not None else None,
    )
    return ApiResponse(message="Profile updated successfully", data=service.update_profile(current_user, changes))


@router.delete("/account")
def delete_account(
    data: DeleteAccountRequest,
    response: Response,
    current_user: CurrentUserDep,
    service: UserServiceDep,
    tokens: TokenServiceDep,
    settings: SettingsDep,
) -> ApiResponse[None]:
    """Soft-delete the caller's account after confirming the password."""
    service.delete_account(current_user, data.password, tokens)
    clear_refresh_cookie(response, settings)
    return ApiResponse(message="Account deleted successfully")


@router.get("/activity")
def activity(
    current_user: CurrentUserDep,
    service: UserServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
) -> ApiResponse[list[ActivityItem]]:
    """Recent ideas and likes of the caller, newest first."""
    return ApiResponse(message="Activity retrieved", data=service.activity(current_user, limit=limit))


@router.get("/search")
def search_users(
    service: UserServiceDep,
    page: PageDep,
    q: Annotated[str, Query(min_length=2, max_length=50)],
) -> ApiResponse[Page[UserSummary]]:
    """Search active users by name."""
    users, info = service.search(q, page)
    return ApiResponse(
        message="Users retrieved",
        data=page_of([UserSummary.model_validate(user) for user in users], info),
    )


@router.get("/{user_id}")
def public_profile(user_id: int, service: UserServiceDep) -> ApiResponse[PublicUserProfile]:
    """Public profile of any active user."""
    return ApiResponse(message="User profile retrieved", data=service.public_profile(user_id))


@router.get("/{user_id}/ideas")
def user_ideas(
    user_id: int,
    db: SessionDep,
    service: UserServiceDep,
    page: PageDep,
) -> ApiResponse[Page[IdeaRead]]:
    """Public ideas of one user."""
    service.public_profile(user_id)
    ideas, info = IdeaService(db).user_ideas(user_id, page)
    return ApiResponse(message="User ideas retrieved", data=idea_page(ideas, info))


@router.get("/{user_id}/stats")
def user_stats(user_id: int, service: UserServiceDep) -> ApiResponse[UserStats]:
    """Idea and like totals for one user."""
    return ApiResponse(message="User statistics retrieved", data=service.stats(user_id))
