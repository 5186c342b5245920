"""Create players, player stats and match ledger tables

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01

This migration creates:
- players with soft delete (is_active) and anonymous accounts
- player_stats, one row per player, with a version column for
  optimistic locking and check constraints on the counters
- match_records / match_participant_records, the ledger that makes
  applying a match result idempotent
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables and indexes."""
    # === PLAYERS ===
    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(50), nullable=True, unique=True),
        sa.Column("email", sa.String(100), nullable=True, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint(
            "NOT is_anonymous OR (email IS NULL AND password_hash IS NULL)",
            name="ck_players_anonymous_no_credentials",
        ),
    )
    op.create_index("ix_players_is_anonymous", "players", ["is_anonymous"])
    op.create_index("ix_players_is_active", "players", ["is_active"])

    # === PLAYER STATS ===
    op.create_table(
        "player_stats",
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("players.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("rating", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("draws", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("favorite_class", sa.String(20), nullable=True),
        sa.Column("total_damage_dealt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_damage_taken", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_playtime_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("highest_rating", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("win_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("class_counts", sa.JSON(), nullable=False),
        sa.Column("last_match_mode", sa.String(16), nullable=True),
        sa.Column("last_match_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint(
            "rating >= 0 AND rating <= 5000", name="ck_player_stats_rating_range"
        ),
        sa.CheckConstraint(
            "matches_played = wins + losses + draws",
            name="ck_player_stats_match_totals",
        ),
        sa.CheckConstraint("highest_rating >= rating", name="ck_player_stats_highest"),
        sa.CheckConstraint("win_streak >= 0", name="ck_player_stats_win_streak"),
    )
    # Leaderboard ordering and class filter
    op.create_index("ix_player_stats_rating", "player_stats", ["rating"])
    op.create_index("ix_player_stats_favorite_class", "player_stats", ["favorite_class"])

    # === MATCH LEDGER ===
    op.create_table(
        "match_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.String(64), nullable=False, unique=True),
        sa.Column("mode", sa.String(16), nullable=False),
        sa.Column("applied_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "match_participant_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "match_record_id",
            sa.Integer(),
            sa.ForeignKey("match_records.id"),
            nullable=False,
        ),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("outcome", sa.String(8), nullable=False),
        sa.Column("class_played", sa.String(20), nullable=True),
        sa.Column("damage_dealt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("damage_taken", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating_before", sa.Integer(), nullable=False),
        sa.Column("rating_after", sa.Integer(), nullable=False),
        sa.UniqueConstraint("match_record_id", "player_id", name="_match_player_uc"),
    )
    op.create_index(
        "ix_match_participant_records_match_record_id",
        "match_participant_records",
        ["match_record_id"],
    )
    op.create_index(
        "ix_match_participant_records_player_id",
        "match_participant_records",
        ["player_id"],
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index(
        "ix_match_participant_records_player_id", table_name="match_participant_records"
    )
    op.drop_index(
        "ix_match_participant_records_match_record_id",
        table_name="match_participant_records",
    )
    op.drop_table("match_participant_records")
    op.drop_table("match_records")

    op.drop_index("ix_player_stats_favorite_class", table_name="player_stats")
    op.drop_index("ix_player_stats_rating", table_name="player_stats")
    op.drop_table("player_stats")

    op.drop_index("ix_players_is_active", table_name="players")
    op.drop_index("ix_players_is_anonymous", table_name="players")
    op.drop_table("players")
