"""Initial schema: users, rocks, hunts and achievements.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            username VARCHAR(30) UNIQUE NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            phone_number VARCHAR(32) UNIQUE,
            bio VARCHAR(500),
            avatar_url TEXT,
            role VARCHAR(16) NOT NULL DEFAULT 'user',
            rock_count INTEGER NOT NULL DEFAULT 0,
            hunt_count INTEGER NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_active_date DATE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Rocks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS rocks (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title VARCHAR(100) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            photo_url TEXT,
            rock_type VARCHAR(16) NOT NULL DEFAULT 'other',
            longitude DOUBLE PRECISION NOT NULL,
            latitude DOUBLE PRECISION NOT NULL,
            tags JSONB NOT NULL DEFAULT '[]',
            is_public BOOLEAN NOT NULL DEFAULT true,
            award_processed BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT rocks_longitude_range CHECK (longitude >= -180 AND longitude <= 180),
            CONSTRAINT rocks_latitude_range CHECK (latitude >= -90 AND latitude <= 90)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_rocks_user_id ON rocks(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_rocks_rock_type ON rocks(rock_type)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_rocks_created_at ON rocks(created_at)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_rocks_lat_lng ON rocks(latitude, longitude)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS rock_likes (
            id BIGSERIAL PRIMARY KEY,
            rock_id BIGINT NOT NULL REFERENCES rocks(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT rock_likes_rock_id_user_id_key UNIQUE (rock_id, user_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS rock_comments (
            id BIGSERIAL PRIMARY KEY,
            rock_id BIGINT NOT NULL REFERENCES rocks(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            text VARCHAR(500) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_rock_comments_rock_id ON rock_comments(rock_id)")

    # --- Hunts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS hunts (
            id BIGSERIAL PRIMARY KEY,
            creator_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title VARCHAR(100) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            difficulty VARCHAR(8) NOT NULL DEFAULT 'medium',
            is_active BOOLEAN NOT NULL DEFAULT true,
            start_date TIMESTAMPTZ NOT NULL,
            end_date TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT hunts_date_order CHECK (start_date <= end_date)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_hunts_creator_id ON hunts(creator_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_hunts_is_active ON hunts(is_active)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_hunts_dates ON hunts(start_date, end_date)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS hunt_rocks (
            id BIGSERIAL PRIMARY KEY,
            hunt_id BIGINT NOT NULL REFERENCES hunts(id) ON DELETE CASCADE,
            rock_id BIGINT NOT NULL REFERENCES rocks(id) ON DELETE CASCADE,
            hint VARCHAR(500) NOT NULL DEFAULT '',
            "order" INTEGER NOT NULL,
            CONSTRAINT hunt_rocks_hunt_id_order_key UNIQUE (hunt_id, "order"),
            CONSTRAINT hunt_rocks_hunt_id_rock_id_key UNIQUE (hunt_id, rock_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS hunt_participants (
            id BIGSERIAL PRIMARY KEY,
            hunt_id BIGINT NOT NULL REFERENCES hunts(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            completed_at TIMESTAMPTZ,
            CONSTRAINT hunt_participants_hunt_id_user_id_key UNIQUE (hunt_id, user_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS hunt_found_rocks (
            id BIGSERIAL PRIMARY KEY,
            hunt_id BIGINT NOT NULL REFERENCES hunts(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            rock_id BIGINT NOT NULL REFERENCES rocks(id) ON DELETE CASCADE,
            found_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT hunt_found_rocks_hunt_user_rock_key UNIQUE (hunt_id, user_id, rock_id)
        )
    """)

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL PRIMARY KEY,
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            icon VARCHAR(16) NOT NULL,
            type VARCHAR(16) NOT NULL,
            criteria_kind VARCHAR(16) NOT NULL,
            criteria_target INTEGER NOT NULL DEFAULT 1,
            criteria_details JSONB NOT NULL DEFAULT '{}',
            rarity VARCHAR(16) NOT NULL DEFAULT 'common',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT achievements_target_positive CHECK (criteria_target >= 1)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_achievements_type ON achievements(type)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_achievements_rarity ON achievements(rarity)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id INTEGER NOT NULL REFERENCES achievements(id),
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_id_achievement_id_key UNIQUE (user_id, achievement_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_user_achievements_user_id ON user_achievements(user_id)")


def downgrade() -> None:
    for table in (
        "user_achievements",
        "achievements",
        "hunt_found_rocks",
        "hunt_participants",
        "hunt_rocks",
        "hunts",
        "rock_comments",
        "rock_likes",
        "rocks",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
