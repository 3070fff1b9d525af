"""Default achievement catalog, upserted by name on startup."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.achievements.criteria import validate_criteria
from rockspotter.db.models import Achievement

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Rock posting
    {
        "name": "First Rock",
        "description": "Post your very first rock",
        "icon": "\U0001faa8",
        "type": "rocks",
        "criteria_kind": "count",
        "criteria_target": 1,
        "criteria_details": {},
        "rarity": "common",
    },
    {
        "name": "Rock Collector",
        "description": "Post 10 rocks",
        "icon": "\U0001f9f1",
        "type": "rocks",
        "criteria_kind": "count",
        "criteria_target": 10,
        "criteria_details": {},
        "rarity": "rare",
    },
    {
        "name": "Boulder Hoarder",
        "description": "Post 100 rocks",
        "icon": "⛰️",
        "type": "rocks",
        "criteria_kind": "count",
        "criteria_target": 100,
        "criteria_details": {},
        "rarity": "epic",
    },
    # Geology
    {
        "name": "Rock Cycle",
        "description": "Post three different types of rock",
        "icon": "\U0001f504",
        "type": "geology",
        "criteria_kind": "variety",
        "criteria_target": 3,
        "criteria_details": {"category": "rock_type"},
        "rarity": "rare",
    },
    {
        "name": "Geologist",
        "description": "Post every kind of rock",
        "icon": "\U0001f52c",
        "type": "geology",
        "criteria_kind": "variety",
        "criteria_target": 6,
        "criteria_details": {"category": "rock_type"},
        "rarity": "epic",
    },
    {
        "name": "Fossil Finder",
        "description": "Post a fossil",
        "icon": "\U0001f9b4",
        "type": "geology",
        "criteria_kind": "specific",
        "criteria_target": 1,
        "criteria_details": {"event": "rock_posted", "rock_type": "fossil"},
        "rarity": "rare",
    },
    # Hunts
    {
        "name": "Hunter",
        "description": "Join your first hunt",
        "icon": "\U0001f9ed",
        "type": "hunts",
        "criteria_kind": "specific",
        "criteria_target": 1,
        "criteria_details": {"event": "hunt_joined"},
        "rarity": "common",
    },
    {
        "name": "Trailblazer",
        "description": "Complete a hunt",
        "icon": "\U0001f3c1",
        "type": "hunts",
        "criteria_kind": "count",
        "criteria_target": 1,
        "criteria_details": {},
        "rarity": "rare",
    },
    {
        "name": "Master Tracker",
        "description": "Complete 10 hunts",
        "icon": "\U0001f5fa️",
        "type": "hunts",
        "criteria_kind": "count",
        "criteria_target": 10,
        "criteria_details": {},
        "rarity": "legendary",
    },
    {
        "name": "Keen Eye",
        "description": "Find 25 hunt rocks",
        "icon": "\U0001f440",
        "type": "hunts",
        "criteria_kind": "count",
        "criteria_target": 25,
        "criteria_details": {"counter": "found_count"},
        "rarity": "epic",
    },
    # Social
    {
        "name": "Community Member",
        "description": "Leave your first comment",
        "icon": "\U0001f4ac",
        "type": "social",
        "criteria_kind": "count",
        "criteria_target": 1,
        "criteria_details": {},
        "rarity": "common",
    },
    {
        "name": "Crowd Favourite",
        "description": "Receive 50 likes on your rocks",
        "icon": "❤️",
        "type": "social",
        "criteria_kind": "count",
        "criteria_target": 50,
        "criteria_details": {"counter": "likes_received"},
        "rarity": "epic",
    },
    # Streaks
    {
        "name": "Weekly Regular",
        "description": "Be active 7 days in a row",
        "icon": "\U0001f525",
        "type": "special",
        "criteria_kind": "streak",
        "criteria_target": 7,
        "criteria_details": {"unit": "day"},
        "rarity": "rare",
    },
    {
        "name": "Bedrock",
        "description": "Be active 30 days in a row",
        "icon": "\U0001f48e",
        "type": "special",
        "criteria_kind": "streak",
        "criteria_target": 30,
        "criteria_details": {"unit": "day"},
        "rarity": "legendary",
    },
]


async def seed_achievements(db: AsyncSession) -> int:
    """Insert catalog entries that are missing by name. Returns number inserted.

    Existing achievements are left untouched since definitions are immutable.
    """
    existing = set((await db.execute(select(Achievement.name))).scalars())
    inserted = 0
    for data in ACHIEVEMENT_SEED_DATA:
        if data["name"] in existing:
            continue
        validate_criteria(data["criteria_kind"], data["criteria_target"], data["criteria_details"])
        db.add(Achievement(**data))
        inserted += 1

    await db.commit()
    logger.info("Seeded %d achievement definitions", inserted)
    return inserted
