# src/ideanest/api/v1/endpoints/admin.py
"""Administration endpoints for the IdeaNest API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from ideanest.api.v1.dependencies import (
    AdminUserDep,
    CacheDep,
    ModeratorUserDep,
    PageDep,
    SessionDep,
    TokenServiceDep,
)
from ideanest.api.v1.responses import idea_page, page_of
from ideanest.models import UserRole
from ideanest.repositories.user_repo import UserFilters
from ideanest.schemas.admin import (
    AnalyticsDay,
    BulkRoleUpdate,
    DashboardStats,
    RoleUpdate,
    StatusUpdate,
    SystemHealth,
)
from ideanest.schemas.common import ApiResponse, Page
from ideanest.schemas.idea import IdeaRead, IdeaVisibilityUpdate
from ideanest.schemas.user import AdminUserView
from ideanest.services.admin import MAX_ANALYTICS_DAYS, AdminService
from ideanest.services.ideas import IdeaService

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(db: SessionDep, cache: CacheDep, tokens: TokenServiceDep) -> AdminService:
    return AdminService(db, cache, tokens)


AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]


@router.get("/dashboard/stats")
def dashboard_stats(_: AdminUserDep, service: AdminServiceDep) -> ApiResponse[DashboardStats]:
    """Headline counts for the admin dashboard."""
    return ApiResponse(message="Dashboard statistics retrieved", data=service.dashboard_stats())


@router.get("/dashboard/analytics")
def activity_analytics(
    _: AdminUserDep,
    service: AdminServiceDep,
    days: Annotated[int, Query(ge=1, le=MAX_ANALYTICS_DAYS)] = 30,
) -> ApiResponse[list[AnalyticsDay]]:
    """New users, ideas and likes per day."""
    return ApiResponse(message="Analytics retrieved", data=service.activity_analytics(days))


@router.get("/system/health")
def system_health(
    request: Request,
    _: AdminUserDep,
    service: AdminServiceDep,
) -> ApiResponse[SystemHealth]:
    """Database and cache reachability."""
    started_at = getattr(request.app.state, "started_at", None)
    return ApiResponse(message="System health retrieved", data=service.system_health(started_at=started_at))


@router.get("/users")
def list_users(
    _: AdminUserDep,
    service: AdminServiceDep,
    page: PageDep,
    role: UserRole | None = None,
    is_active: Annotated[bool | None, Query(alias="isActive")] = None,
    is_email_verified: Annotated[bool | None, Query(alias="isEmailVerified")] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    include_deleted: Annotated[bool, Query(alias="includeDeleted")] = False,
) -> ApiResponse[Page[AdminUserView]]:
    """All accounts with optional filters."""
    filters = UserFilters(
        role=role.value if role is not None else None,
        is_active=is_active,
        is_email_verified=is_email_verified,
        search=search,
        include_deleted=include_deleted,
    )
    users, info = service.list_users(filters, page)
    return ApiResponse(
        message="Users retrieved",
        data=page_of([AdminUserView.model_validate(user) for user in users], info),
    )


@router.put("/users/bulk/roles")
def bulk_update_roles(
    data: BulkRoleUpdate,
    admin: AdminUserDep,
    service: AdminServiceDep,
) -> ApiResponse[list[AdminUserView]]:
    """Assign one role to up to 50 users."""
    users = service.bulk_update_roles(admin, data.user_ids, data.role)
    return ApiResponse(
        message=f"Updated role for {len(users)} users",
        data=[AdminUserView.model_validate(user) for user in users],
    )


@router.get("/users/{user_id}")
def get_user(user_id: int, _: AdminUserDep, service: AdminServiceDep) -> ApiResponse[AdminUserView]:
    """One account, deleted ones included."""
    return ApiResponse(message="User retrieved", data=AdminUserView.model_validate(service.get_user(user_id)))


@router.put("/users/{user_id}/role")
def update_user_role(
    user_id: int,
    data: RoleUpdate,
    admin: AdminUserDep,
    service: AdminServiceDep,
) -> ApiResponse[AdminUserView]:
    """Change a user's role."""
    user = service.update_role(admin, user_id, data.role)
    return ApiResponse(message="User role updated", data=AdminUserView.model_validate(user))


@router.put("/users/{user_id}/status")
def update_user_status(
    user_id: int,
    data: StatusUpdate,
    admin: AdminUserDep,
    service: AdminServiceDep,
) -> ApiResponse[AdminUserView]:
    """Activate or deactivate a user."""
    user = service.set_status(admin, user_id, data.is_active)
    message = "User activated" if user.is_active else "User deactivated"
    return ApiResponse(message=message, data=AdminUserView.model_validate(user))


@router.delete("/users/{user_id}")
def delete_user(user_id: int, admin: AdminUserDep, service: AdminServiceDep) -> ApiResponse[None]:
    """Soft-delete and anonymize a user."""
    service.delete_user(admin, user_id)
    return ApiResponse(message="User deleted successfully")


@router.get("/moderation/queue")
def moderation_queue(
    _: ModeratorUserDep,
    service: AdminServiceDep,
    page: PageDep,
) -> ApiResponse[Page[IdeaRead]]:
    """Recent public ideas for review, most liked first."""
    ideas, info = service.moderation_queue(page)
    return ApiResponse(message="Moderation queue retrieved", data=idea_page(ideas, info))


@router.patch("/ideas/{idea_id}/visibility")
def set_idea_visibility(
    idea_id: int,
    data: IdeaVisibilityUpdate,
    moderator: ModeratorUserDep,
    db: SessionDep,
) -> ApiResponse[IdeaRead]:
    """Hide an idea from public listings or restore it."""
    idea = IdeaService(db).set_visibility(idea_id, data.is_public, moderator)
    return ApiResponse(message="Idea visibility updated", data=IdeaRead.model_validate(idea))
