"""Pydantic models for hunt endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from rockspotter.achievements.schemas import AwardSummary

Difficulty = Literal["easy", "medium", "hard"]


class HuntRockEntry(BaseModel):
    rock_id: int
    hint: str = Field("", max_length=500)
    order: int | None = Field(None, ge=1)


class HuntCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=1000)
    difficulty: Difficulty = "medium"
    is_active: bool = True
    start_date: datetime
    end_date: datetime
    rocks: list[HuntRockEntry] = Field(default_factory=list, max_length=100)


class HuntUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    difficulty: Difficulty | None = None
    is_active: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class HuntRockResponse(BaseModel):
    rock_id: int
    hint: str
    order: int


class HuntResponse(BaseModel):
    id: int
    creator_id: int
    title: str
    description: str
    difficulty: str
    is_active: bool
    status: str
    start_date: datetime
    end_date: datetime
    rocks: list[HuntRockResponse]
    participant_count: int = 0
    created_at: datetime


class HuntListResponse(BaseModel):
    hunts: list[HuntResponse]
    total: int
    page: int
    per_page: int


class HuntJoinResponse(BaseModel):
    hunt_id: int
    joined: bool
    new_awards: list[AwardSummary] = []


class ParticipantStateResponse(BaseModel):
    hunt_id: int
    user_id: int
    found_rock_ids: list[int]
    found_count: int
    total_rocks: int
    completed: bool


class RockFoundResponse(BaseModel):
    participant: ParticipantStateResponse
    hunt_completed: bool
    new_awards: list[AwardSummary] = []


class HuntProgressEntry(BaseModel):
    hunt: HuntResponse
    found_rock_ids: list[int]
    found_count: int
    total_rocks: int
    completed: bool
    joined_at: datetime
    completed_at: datetime | None = None


class HuntProgressResponse(BaseModel):
    hunts: list[HuntProgressEntry]
