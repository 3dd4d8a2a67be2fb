"""Hold engine schema: rooms, reservation_holds, idempotency_keys (SQL-only).

Revision ID: 001_hold_engine_schema
Revises:
Create Date: 2026-02-01
"""

from __future__ import annotations

from pathlib import Path

from alembic import op


# revision identifiers, used by Alembic.
revision = "001_hold_engine_schema"
down_revision = None
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parents[1] / "sql" / "001_initial.sql"


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS idempotency_keys")
    op.execute("DROP TABLE IF EXISTS reservation_holds")
    op.execute("DROP TABLE IF EXISTS rooms")
