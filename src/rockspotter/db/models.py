"""ORM models for users, rocks, hunts and achievements.

The award relationship (user_achievements) and every per-participant set
(hunt_participants, hunt_found_rocks, rock_likes) are join tables with a
UNIQUE constraint so that set-add writes can be expressed as
INSERT ... ON CONFLICT DO NOTHING.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rockspotter.db.base import Base, BigIntPK, JSONType

ROCK_TYPES = ("igneous", "sedimentary", "metamorphic", "mineral", "fossil", "other")
HUNT_DIFFICULTIES = ("easy", "medium", "hard")
USER_ROLES = ("user", "moderator", "admin")
ACHIEVEMENT_TYPES = ("rocks", "hunts", "social", "geology", "special")
ACHIEVEMENT_RARITIES = ("common", "rare", "epic", "legendary")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table. Counters are denormalized and only written by the award service."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user")

    rock_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hunt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_active_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Rocks
# ---------------------------------------------------------------------------


class Rock(Base):
    """A rock post. Location is a (longitude, latitude) point."""

    __tablename__ = "rocks"
    __table_args__ = (
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="rocks_longitude_range"),
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="rocks_latitude_range"),
        Index("ix_rocks_user_id", "user_id"),
        Index("ix_rocks_rock_type", "rock_type"),
        Index("ix_rocks_created_at", "created_at"),
        Index("ix_rocks_lat_lng", "latitude", "longitude"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    rock_type: Mapped[str] = mapped_column(String(16), nullable=False, default="other")
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    award_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    user: Mapped[User] = relationship("User", lazy="joined")
    likes: Mapped[list[RockLike]] = relationship(
        "RockLike", lazy="selectin", cascade="all, delete-orphan", passive_deletes=True
    )
    comments: Mapped[list[RockComment]] = relationship(
        "RockComment",
        lazy="selectin",
        order_by="RockComment.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class RockLike(Base):
    """A user likes a rock at most once."""

    __tablename__ = "rock_likes"
    __table_args__ = (UniqueConstraint("rock_id", "user_id", name="rock_likes_rock_id_user_id_key"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    rock_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("rocks.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class RockComment(Base):
    __tablename__ = "rock_comments"
    __table_args__ = (Index("ix_rock_comments_rock_id", "rock_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    rock_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("rocks.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    author: Mapped[User] = relationship("User", lazy="joined")


# ---------------------------------------------------------------------------
# Hunts
# ---------------------------------------------------------------------------


class Hunt(Base):
    """A time-bounded scavenger hunt over an ordered list of rocks."""

    __tablename__ = "hunts"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="hunts_date_order"),
        Index("ix_hunts_creator_id", "creator_id"),
        Index("ix_hunts_is_active", "is_active"),
        Index("ix_hunts_dates", "start_date", "end_date"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    creator_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    difficulty: Mapped[str] = mapped_column(String(8), nullable=False, default="medium")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    rocks: Mapped[list[HuntRock]] = relationship(
        "HuntRock",
        lazy="selectin",
        order_by="HuntRock.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def rock_ids(self) -> list[int]:
        return [entry.rock_id for entry in self.rocks]


class HuntRock(Base):
    """One entry of a hunt's rock list."""

    __tablename__ = "hunt_rocks"
    __table_args__ = (
        UniqueConstraint("hunt_id", "order", name="hunt_rocks_hunt_id_order_key"),
        UniqueConstraint("hunt_id", "rock_id", name="hunt_rocks_hunt_id_rock_id_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    hunt_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("hunts.id", ondelete="CASCADE"), nullable=False)
    rock_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("rocks.id", ondelete="RESTRICT"), nullable=False)
    hint: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    order: Mapped[int] = mapped_column(Integer, nullable=False)


class HuntParticipant(Base):
    """Hunt membership. completed_at is set once, by conditional update."""

    __tablename__ = "hunt_participants"
    __table_args__ = (UniqueConstraint("hunt_id", "user_id", name="hunt_participants_hunt_id_user_id_key"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    hunt_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("hunts.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class HuntFoundRock(Base):
    """Per-participant found rocks."""

    __tablename__ = "hunt_found_rocks"
    __table_args__ = (
        UniqueConstraint("hunt_id", "user_id", "rock_id", name="hunt_found_rocks_hunt_user_rock_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    hunt_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("hunts.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rock_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("rocks.id", ondelete="RESTRICT"), nullable=False)
    found_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class Achievement(Base):
    """Achievement definition. Immutable after creation."""

    __tablename__ = "achievements"
    __table_args__ = (
        CheckConstraint("criteria_target >= 1", name="achievements_target_positive"),
        Index("ix_achievements_type", "type"),
        Index("ix_achievements_rarity", "rarity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="\U0001f3c6")
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    criteria_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    criteria_target: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    criteria_details: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default="common")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class UserAchievement(Base):
    """Awards. The unique key keeps them idempotent."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="user_achievements_user_id_achievement_id_key"),
        Index("ix_user_achievements_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id: Mapped[int] = mapped_column(Integer, ForeignKey("achievements.id"), nullable=False)
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    achievement: Mapped[Achievement] = relationship("Achievement", lazy="joined")
