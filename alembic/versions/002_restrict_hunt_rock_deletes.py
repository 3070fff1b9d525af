"""Rocks on a hunt's list can no longer be deleted out from under it.

Revision ID: 002_restrict_hunt_rock_deletes
Revises: 001_initial_schema
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_restrict_hunt_rock_deletes"
down_revision: str | None = "001_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Inline REFERENCES in 001 produced PostgreSQL's default <table>_<column>_fkey names
_TABLES = ("hunt_rocks", "hunt_found_rocks")


def _set_rock_fk(action: str) -> None:
    for table in _TABLES:
        op.execute(f"""
            ALTER TABLE {table}
                DROP CONSTRAINT IF EXISTS {table}_rock_id_fkey,
                ADD CONSTRAINT {table}_rock_id_fkey
                    FOREIGN KEY (rock_id) REFERENCES rocks(id) ON DELETE {action}
        """)


def upgrade() -> None:
    _set_rock_fk("RESTRICT")


def downgrade() -> None:
    _set_rock_fk("CASCADE")
