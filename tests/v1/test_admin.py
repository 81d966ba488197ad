"""Tests for admin and moderation endpoints."""

from __future__ import annotations

from fastapi import status

PASSWORD = "Sup3r$ecret"


def test_admin_routes_require_admin(client, auth_headers, moderator_headers) -> None:
    assert client.get("/api/v1/admin/dashboard/stats").status_code == status.HTTP_401_UNAUTHORIZED
    assert client.get("/api/v1/admin/dashboard/stats", headers=auth_headers).status_code == 403
    assert client.get("/api/v1/admin/users", headers=moderator_headers).status_code == 403


def test_dashboard_stats(client, admin_headers, user, make_idea) -> None:
    idea = make_idea(author=user)
    make_idea(is_public=False)
    client.post(f"/api/v1/likes/ideas/{idea.id}/like", headers={"User-Agent": "visitor"})

    response = client.get("/api/v1/admin/dashboard/stats", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    stats = response.json()["data"]
    assert stats["totalUsers"] == 2
    assert stats["adminUsers"] == 1
    assert stats["totalIdeas"] == 2
    assert stats["publicIdeas"] == 1
    assert stats["totalLikes"] == 1
    assert stats["anonymousLikes"] == 1


def test_activity_analytics(client, admin_headers, make_idea) -> None:
    make_idea()
    response = client.get("/api/v1/admin/dashboard/analytics", params={"days": 7}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    days = response.json()["data"]
    assert len(days) == 7
    assert days[-1]["newIdeas"] == 1
    assert days[-1]["newUsers"] == 1

    too_many = client.get("/api/v1/admin/dashboard/analytics", params={"days": 400}, headers=admin_headers)
    assert too_many.status_code == status.HTTP_400_BAD_REQUEST


def test_system_health(client, admin_headers) -> None:
    data = client.get("/api/v1/admin/system/health", headers=admin_headers).json()["data"]
    assert data["database"] == "connected"
    assert data["cache"] == "disabled"
    assert data["status"] == "healthy"
    assert data["uptimeSeconds"] is not None


def test_list_users_with_filters(client, admin_headers, user, moderator) -> None:
    response = client.get("/api/v1/admin/users", params={"role": "moderator"}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    items = response.json()["data"]["items"]
    assert [item["id"] for item in items] == [moderator.id]

    everyone = client.get("/api/v1/admin/users", headers=admin_headers).json()["data"]
    assert everyone["pagination"]["total"] == 3


def test_update_role(client, admin, admin_headers, user, headers_for) -> None:
    response = client.put(f"/api/v1/admin/users/{user.id}/role", json={"role": "moderator"}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["role"] == "moderator"

    queue = client.get("/api/v1/admin/moderation/queue", headers=headers_for(user))
    assert queue.status_code == status.HTTP_200_OK

    own = client.put(f"/api/v1/admin/users/{admin.id}/role", json={"role": "user"}, headers=admin_headers)
    assert own.status_code == status.HTTP_403_FORBIDDEN


def test_bulk_update_roles(client, admin_headers, user, other_user) -> None:
    response = client.put(
        "/api/v1/admin/users/bulk/roles",
        json={"userIds": [user.id, other_user.id], "role": "moderator"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert {item["role"] for item in response.json()["data"]} == {"moderator"}

    missing = client.put(
        "/api/v1/admin/users/bulk/roles",
        json={"userIds": [user.id, 9999], "role": "user"},
        headers=admin_headers,
    )
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["error"] == {"missingIds": [9999]}


def test_deactivate_user_ends_sessions(client, admin_headers, user) -> None:
    client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    refresh_token = client.cookies.get("refreshToken")

    response = client.put(f"/api/v1/admin/users/{user.id}/status", json={"isActive": False}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "User deactivated"

    client.cookies.clear()
    assert client.post("/api/v1/auth/refresh", json={"refreshToken": refresh_token}).status_code == 401
    assert client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD}).status_code == 401


def test_delete_user(client, admin, admin_headers, user) -> None:
    response = client.delete(f"/api/v1/admin/users/{user.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK

    detail = client.get(f"/api/v1/admin/users/{user.id}", headers=admin_headers).json()["data"]
    assert detail["deletedAt"] is not None
    assert detail["name"] == "Deleted User"

    own = client.delete(f"/api/v1/admin/users/{admin.id}", headers=admin_headers)
    assert own.status_code == status.HTTP_403_FORBIDDEN


def test_moderator_hides_idea(client, moderator_headers, auth_headers, user, make_idea) -> None:
    idea = make_idea(author=user)

    denied = client.patch(f"/api/v1/admin/ideas/{idea.id}/visibility", json={"isPublic": False}, headers=auth_headers)
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    response = client.patch(
        f"/api/v1/admin/ideas/{idea.id}/visibility", json={"isPublic": False}, headers=moderator_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["isPublic"] is False
    assert client.get(f"/api/v1/ideas/{idea.id}").status_code == status.HTTP_404_NOT_FOUND
