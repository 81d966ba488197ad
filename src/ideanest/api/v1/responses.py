"""Helpers that shape endpoint results into response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import TypeVar

from fastapi import Response

from ideanest.core.settings import Settings
from ideanest.models import Idea
from ideanest.schemas.common import CamelModel, Page, PaginationMeta
from ideanest.schemas.idea import IdeaRead, LikedIdeaRead, TrendingIdea
from ideanest.services.likes import LikedIdea
from ideanest.services.trending import ScoredIdea
from ideanest.utils.pagination import PageInfo

M = TypeVar("M", bound=CamelModel)


def page_of(items: list[M], info: PageInfo) -> Page[M]:
    return Page(items=items, pagination=PaginationMeta.from_info(info))


def idea_page(ideas: list[Idea], info: PageInfo) -> Page[IdeaRead]:
    return page_of([IdeaRead.model_validate(idea) for idea in ideas], info)


def trending_idea(scored: ScoredIdea) -> TrendingIdea:
    data = IdeaRead.model_validate(scored.idea).model_dump()
    return TrendingIdea(**data, trending_score=round(scored.score, 4))


def liked_idea(item: LikedIdea) -> LikedIdeaRead:
    data = IdeaRead.model_validate(item.idea).model_dump()
    liked_at: datetime = item.liked_at
    return LikedIdeaRead(**data, liked_at=liked_at)


def set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        domain=settings.cookie_domain,
        path="/",
        max_age=settings.refresh_cookie_max_age,
    )


def clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path="/",
        domain=settings.cookie_domain,
    )
