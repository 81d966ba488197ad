# src/ideanest/api/v1/endpoints/likes.py
"""Like endpoints for the IdeaNest API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ideanest.api.v1.dependencies import (
    ActorIdentityDep,
    ClientInfoDep,
    CurrentUserDep,
    PageDep,
    SessionDep,
)
from ideanest.api.v1.responses import liked_idea, page_of
from ideanest.core.errors import ConflictError
from ideanest.schemas.common import ApiResponse, Page
from ideanest.schemas.idea import LikedIdeaRead
from ideanest.schemas.like import LikeCountRead, LikeStatusRead, LikeToggleResult
from ideanest.services.likes import LikeToggleEngine, ToggleStatus

router = APIRouter(prefix="/likes", tags=["likes"])


def get_like_engine(db: SessionDep) -> LikeToggleEngine:
    return LikeToggleEngine(db)


LikeEngineDep = Annotated[LikeToggleEngine, Depends(get_like_engine)]


@router.post("/ideas/{idea_id}/like")
def toggle_like(
    idea_id: int,
    engine: LikeEngineDep,
    identity: ActorIdentityDep,
    client: ClientInfoDep,
) -> ApiResponse[LikeToggleResult]:
    """Like an idea, or remove the caller's like if one exists."""
    result = engine.toggle(
        idea_id,
        identity,
        ip_address=client.ip,
        user_agent=client.user_agent,
    )
    if result.status is ToggleStatus.CONFLICT:
        raise ConflictError(
            "Like state changed by a concurrent request, please retry",
            details={"liked": result.liked, "likeCount": result.like_count},
        )
    return ApiResponse(
        message="Idea liked" if result.liked else "Idea unliked",
        data=LikeToggleResult(liked=result.liked, like_count=result.like_count),
    )


@router.get("/ideas/{idea_id}/like-status")
def like_status(
    idea_id: int,
    engine: LikeEngineDep,
    identity: ActorIdentityDep,
) -> ApiResponse[LikeStatusRead]:
    """Whether the caller (user or fingerprint) likes the idea."""
    status = engine.status(idea_id, identity)
    return ApiResponse(
        message="Like status retrieved",
        data=LikeStatusRead(liked=status.liked, like_count=status.like_count),
    )


@router.get("/ideas/{idea_id}/likes")
def like_count(idea_id: int, engine: LikeEngineDep) -> ApiResponse[LikeCountRead]:
    """Number of stored likes on an idea."""
    return ApiResponse(
        message="Like count retrieved",
        data=LikeCountRead(idea_id=idea_id, like_count=engine.count(idea_id)),
    )


@router.get("/users/liked-ideas")
def liked_ideas(
    current_user: CurrentUserDep,
    engine: LikeEngineDep,
    page: PageDep,
) -> ApiResponse[Page[LikedIdeaRead]]:
    """Public ideas the caller has liked, most recent like first."""
    items, info = engine.liked_ideas(current_user.id, page)
    return ApiResponse(
        message="Liked ideas retrieved",
        data=page_of([liked_idea(item) for item in items], info),
    )
