# src/ideanest/schemas/like.py
"""Like-related Pydantic schemas."""

from pydantic import Field

from ideanest.schemas.common import CamelModel


class LikeToggleResult(CamelModel):
    liked: bool
    like_count: int = Field(..., ge=0)


class LikeStatusRead(CamelModel):
    liked: bool
    like_count: int = Field(..., ge=0)


class LikeCountRead(CamelModel):
    idea_id: int
    like_count: int = Field(..., ge=0)
