"""Pydantic models for achievement endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

AchievementType = Literal["rocks", "hunts", "social", "geology", "special"]
Rarity = Literal["common", "rare", "epic", "legendary"]


class CriteriaModel(BaseModel):
    kind: str
    target: int = Field(1, ge=1)
    details: dict[str, Any] = {}


class AchievementResponse(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    type: str
    rarity: str
    criteria: CriteriaModel
    created_at: datetime


class AchievementListResponse(BaseModel):
    achievements: list[AchievementResponse]
    total: int


class AchievementCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field(..., min_length=1, max_length=1000)
    icon: str | None = Field(None, max_length=16)
    type: AchievementType
    rarity: Rarity = "common"
    criteria: CriteriaModel


class AwardRequest(BaseModel):
    user_id: int
    achievement_id: int


class AwardResponse(BaseModel):
    user_id: int
    achievement_id: int
    awarded: bool


class AwardSummary(BaseModel):
    """A newly unlocked achievement, as returned alongside an action's result."""

    id: int
    name: str
    icon: str
    rarity: str


class EarnedAchievementResponse(BaseModel):
    achievement: AchievementResponse
    awarded_at: datetime


class UserAchievementsResponse(BaseModel):
    user_id: int
    earned: list[EarnedAchievementResponse]
    total_earned: int
    total_available: int
