"""DB-level exclusion constraint against overlapping active holds.

Two holds on the same room may not overlap while both are HOLD_CREATED or
CONFIRMED. tstzrange '[)' gives the same half-open semantics as the
allocator's predicate: check_out A == check_in B is not a conflict.

This is the last layer of protection; the allocator's locked candidate
selection is the first.

Revision ID: 002_no_active_hold_overlap
Revises: 001_hold_engine_schema
Create Date: 2026-02-01
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_no_active_hold_overlap"
down_revision = "001_hold_engine_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_no_active_hold_overlap.sql"


def upgrade() -> None:
    op.execute(_SQL_FILE.read_text())


def downgrade() -> None:
    op.execute(
        "ALTER TABLE reservation_holds DROP CONSTRAINT IF EXISTS no_active_hold_overlap"
    )
    # btree_gist is kept: other indexes may depend on it.
