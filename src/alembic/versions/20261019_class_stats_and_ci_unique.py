"""Per-class stat totals and case-insensitive player uniqueness

Revision ID: 20261019_class_stats
Revises: 20261001_initial
Create Date: 2026-10-19

This migration:
- replaces player_stats.class_counts (plays per class) with class_stats,
  which keeps wins, losses, draws, damage and playtime per class; existing
  play counts are carried over as matches_played
- adds unique indexes on lower(username) and lower(email) so "Alice" and
  "alice" cannot both register, even when the requests race
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_class_stats"
down_revision: Union[str, Sequence[str], None] = "20261001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_stats = sa.table(
    "player_stats",
    sa.column("player_id", sa.Integer()),
    sa.column("class_counts", sa.JSON()),
    sa.column("class_stats", sa.JSON()),
)


def upgrade() -> None:
    """Widen per-class stats and add the case-insensitive unique indexes."""
    # === PLAYER STATS ===
    op.add_column(
        "player_stats",
        sa.Column("class_stats", sa.JSON(), nullable=False, server_default="{}"),
    )

    bind = op.get_bind()
    for player_id, counts in bind.execute(
        sa.select(_stats.c.player_id, _stats.c.class_counts)
    ).all():
        if not counts:
            continue
        bind.execute(
            _stats.update()
            .where(_stats.c.player_id == player_id)
            .values(
                class_stats={name: {"matches_played": n} for name, n in counts.items()}
            )
        )

    with op.batch_alter_table("player_stats") as batch_op:
        batch_op.drop_column("class_counts")

    # === PLAYERS ===
    op.create_index(
        "uq_players_username_lower", "players", [sa.text("lower(username)")], unique=True
    )
    op.create_index(
        "uq_players_email_lower", "players", [sa.text("lower(email)")], unique=True
    )


def downgrade() -> None:
    """Drop the indexes and fold class_stats back into play counts."""
    op.drop_index("uq_players_email_lower", table_name="players")
    op.drop_index("uq_players_username_lower", table_name="players")

    op.add_column(
        "player_stats",
        sa.Column("class_counts", sa.JSON(), nullable=False, server_default="{}"),
    )

    bind = op.get_bind()
    for player_id, totals in bind.execute(
        sa.select(_stats.c.player_id, _stats.c.class_stats)
    ).all():
        if not totals:
            continue
        bind.execute(
            _stats.update()
            .where(_stats.c.player_id == player_id)
            .values(
                class_counts={
                    name: entry.get("matches_played", 0) for name, entry in totals.items()
                }
            )
        )

    with op.batch_alter_table("player_stats") as batch_op:
        batch_op.drop_column("class_stats")
