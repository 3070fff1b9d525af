"""Pydantic models for rock endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from rockspotter.achievements.schemas import AwardSummary

RockType = Literal["igneous", "sedimentary", "metamorphic", "mineral", "fossil", "other"]


class RockCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=1000)
    photo_url: str | None = Field(None, max_length=2048)
    rock_type: RockType = "other"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    tags: list[str] = Field(default_factory=list, max_length=20)
    is_public: bool = True


class RockUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    photo_url: str | None = Field(None, max_length=2048)
    rock_type: RockType | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    tags: list[str] | None = Field(None, max_length=20)
    is_public: bool | None = None


class CommentCreateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)


class CommentResponse(BaseModel):
    id: int
    user_id: int
    username: str
    text: str
    created_at: datetime


class RockResponse(BaseModel):
    id: int
    user_id: int
    username: str
    title: str
    description: str
    photo_url: str | None = None
    rock_type: str
    latitude: float
    longitude: float
    tags: list[str]
    is_public: bool
    like_count: int
    liked_by: list[int]
    comments: list[CommentResponse]
    created_at: datetime
    updated_at: datetime
    distance_km: float | None = None


class RockCreateResponse(BaseModel):
    rock: RockResponse
    new_awards: list[AwardSummary] = []


class RockListResponse(BaseModel):
    rocks: list[RockResponse]
    total: int
    page: int
    per_page: int


class NearbyRocksResponse(BaseModel):
    rocks: list[RockResponse]
    radius_km: float


class LikeResponse(BaseModel):
    rock_id: int
    liked: bool
    like_count: int


class CommentCreateResponse(BaseModel):
    comment: CommentResponse
    new_awards: list[AwardSummary] = []
