"""Idea endpoints for the IdeaNest API."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from pydantic import TypeAdapter

from ideanest.api.v1.dependencies import (
    ActorIdentityDep,
    CacheDep,
    ClientInfoDep,
    CurrentUserDep,
    OptionalUserDep,
    PageDep,
    SessionDep,
    SettingsDep,
)
from ideanest.api.v1.responses import idea_page, trending_idea
from ideanest.repositories.idea_repo import IdeaSort
from ideanest.schemas.common import ApiResponse, Page
from ideanest.schemas.idea import IdeaCreate, IdeaRead, IdeaUpdate, TrendingIdea, TrendingTag
from ideanest.services.cache import TRENDING_TTL_SECONDS
from ideanest.services.ideas import IdeaChanges, IdeaQuery, IdeaService, NewIdea
from ideanest.services.trending import TopTimeframe, TrendingOptions, TrendingService
from ideanest.utils.pagination import MAX_PAGE_SIZE

router = APIRouter(prefix="/ideas", tags=["ideas"])

_TRENDING_TAGS = TypeAdapter(list[TrendingTag])


def get_idea_service(db: SessionDep, settings: SettingsDep) -> IdeaService:
    return IdeaService(db, duplicate_window=timedelta(minutes=settings.duplicate_idea_window_minutes))


def get_trending_service(db: SessionDep, settings: SettingsDep) -> TrendingService:
    return TrendingService(db, TrendingOptions.from_settings(settings))


IdeaServiceDep = Annotated[IdeaService, Depends(get_idea_service)]
TrendingServiceDep = Annotated[TrendingService, Depends(get_trending_service)]


def _split_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag for tag in (part.strip() for part in raw.split(",")) if tag]


@router.get("/")
def list_ideas(
    service: IdeaServiceDep,
    page: PageDep,
    search: Annotated[str | None, Query(max_length=100)] = None,
    tags: Annotated[str | None, Query(description="Comma separated tag list")] = None,
    sort_by: Annotated[IdeaSort, Query(alias="sortBy")] = IdeaSort.CREATED_AT,
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
    author_type: Annotated[Literal["user", "anonymous"] | None, Query(alias="authorType")] = None,
) -> ApiResponse[Page[IdeaRead]]:
    """List public ideas with search, tag and author filters."""
    query = IdeaQuery(
        page=page,
        search=search,
        tags=_split_tags(tags),
        author_type=author_type,
        sort_by=sort_by,
        descending=sort_order == "desc",
    )
    ideas, info = service.list_ideas(query)
    return ApiResponse(message="Ideas retrieved", data=idea_page(ideas, info))


@router.get("/trending")
def trending_ideas(
    service: TrendingServiceDep,
    limit: Annotated[int | None, Query(ge=1, le=MAX_PAGE_SIZE)] = None,
) -> ApiResponse[list[TrendingIdea]]:
    """Public ideas ranked by time-decayed likes."""
    ideas = [trending_idea(scored) for scored in service.trending_ideas(limit=limit)]
    return ApiResponse(message="Trending ideas retrieved", data=ideas)


@router.get("/top")
def top_ideas(
    service: TrendingServiceDep,
    timeframe: TopTimeframe = TopTimeframe.WEEK,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
) -> ApiResponse[list[IdeaRead]]:
    """Most-liked public ideas of the last day, week, month or all time."""
    ideas = service.top_ideas(timeframe, limit=limit)
    return ApiResponse(
        message="Top ideas retrieved",
        data=[IdeaRead.model_validate(idea) for idea in ideas],
    )


@router.get("/tags/trending")
def trending_tags(
    service: TrendingServiceDep,
    cache: CacheDep,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
) -> ApiResponse[list[TrendingTag]]:
    """Tags of recently liked ideas, weighted by likes."""

    def load() -> list[TrendingTag]:
        return [
            TrendingTag(tag=trend.tag, idea_count=trend.idea_count, like_count=trend.like_count)
            for trend in service.trending_tags(limit=limit)
        ]

    tags = cache.get_or_load(cache.key("trending", "tags", limit), _TRENDING_TAGS, load, TRENDING_TTL_SECONDS)
    return ApiResponse(message="Trending tags retrieved", data=tags)


@router.get("/user/my-ideas")
def my_ideas(
    current_user: CurrentUserDep,
    service: IdeaServiceDep,
    page: PageDep,
) -> ApiResponse[Page[IdeaRead]]:
    """The caller's ideas, private ones included."""
    ideas, info = service.user_ideas(current_user.id, page, include_private=True)
    return ApiResponse(message="Your ideas retrieved", data=idea_page(ideas, info))


@router.get("/{idea_id}")
def get_idea(
    idea_id: int,
    service: IdeaServiceDep,
    viewer: OptionalUserDep,
) -> ApiResponse[IdeaRead]:
    """Fetch one idea and count the view."""
    idea = service.get_for_viewer(idea_id, viewer)
    return ApiResponse(message="Idea retrieved", data=IdeaRead.model_validate(idea))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_idea(
    data: IdeaCreate,
    service: IdeaServiceDep,
    identity: ActorIdentityDep,
    client: ClientInfoDep,
) -> ApiResponse[IdeaRead]:
    """Post an idea, signed in or anonymously."""
    idea = service.create(
        NewIdea(title=data.title, content=data.content, tags=data.tags, is_public=data.is_public),
        identity,
        client,
    )
    return ApiResponse(message="Idea created successfully", data=IdeaRead.model_validate(idea))


@router.put("/{idea_id}")
def update_idea(
    idea_id: int,
    data: IdeaUpdate,
    current_user: CurrentUserDep,
    service: IdeaServiceDep,
) -> ApiResponse[IdeaRead]:
    """Edit an idea; authors and admins only."""
    changes = IdeaChanges(
        title=data.title,
        content=data.content,
        tags=data.tags,
        is_public=data.is_public,
    )
    idea = service.update(idea_id, changes, current_user)
    return ApiResponse(message="Idea updated successfully", data=IdeaRead.model_validate(idea))


@router.delete("/{idea_id}")
def delete_idea(
    idea_id: int,
    current_user: CurrentUserDep,
    service: IdeaServiceDep,
) -> ApiResponse[None]:
    """Delete an idea together with its likes; authors and admins only."""
    service.delete(idea_id, current_user)
    return ApiResponse(message="Idea deleted successfully")
