"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    phone_number: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    role: str
    rock_count: int
    hunt_count: int
    current_streak: int
    longest_streak: int
    last_active_date: date | None = None
    created_at: datetime


class PublicUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    bio: str | None = None
    avatar_url: str | None = None
    rock_count: int
    hunt_count: int
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    bio: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, max_length=2048)
    phone_number: str | None = Field(None, pattern=r"^\+?[0-9 ()-]{6,20}$")
