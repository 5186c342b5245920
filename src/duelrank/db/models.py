# src/duelrank/db/models.py

"""Database models for the DuelRank application."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, List

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
    select,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import (
    Mapped,
    declarative_base,
    mapped_column,
    relationship,
)

from duelrank.config import ValidationRules

Base = declarative_base()

_DEFAULT_RULES = ValidationRules()
DEFAULT_RATING = _DEFAULT_RULES.rating_default


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ===============================================
# Mixins for Common Columns
# ===============================================


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        default=None,
        onupdate=utcnow,
        nullable=True,
    )


# ===============================================
# Core Tables: Player and PlayerStats
# ===============================================


class Player(Base):
    """A registered or anonymous account.

    Attributes:
        is_anonymous: If True, the player has no email or password hash
            and is excluded from leaderboards by default.
        is_active: Soft-delete flag. Inactive players keep their records.
    """

    __tablename__ = "players"
    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    email: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(default=None, nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(default=False, index=True)
    is_active: Mapped[bool] = mapped_column(default=True, index=True)

    stats: Mapped["PlayerStats"] = relationship(
        back_populates="player", uselist=False, cascade="all, delete-orphan"
    )
    # With soft delete, match history is never cascaded away
    match_participations: Mapped[List["MatchParticipantRecord"]] = relationship(
        back_populates="player", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            "NOT is_anonymous OR (email IS NULL AND password_hash IS NULL)",
            name="ck_players_anonymous_no_credentials",
        ),
    )

    def __init__(self, **kw: Any):
        super().__init__(**kw)


# Usernames and emails are unique regardless of case
Index("uq_players_username_lower", func.lower(Player.username), unique=True)
Index("uq_players_email_lower", func.lower(Player.email), unique=True)


class PlayerStats(Base):
    """A player's competitive record, one row per player.

    ``version`` is the mapper's version counter: every UPDATE is issued
    with ``WHERE version = <loaded version>`` and raises ``StaleDataError``
    if another writer got there first.
    """

    __tablename__ = "player_stats"
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), primary_key=True
    )
    rating: Mapped[int] = mapped_column(default=DEFAULT_RATING, nullable=False, index=True)
    matches_played: Mapped[int] = mapped_column(default=0, nullable=False)
    wins: Mapped[int] = mapped_column(default=0, nullable=False)
    losses: Mapped[int] = mapped_column(default=0, nullable=False)
    draws: Mapped[int] = mapped_column(default=0, nullable=False)
    favorite_class: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    total_damage_dealt: Mapped[int] = mapped_column(default=0, nullable=False)
    total_damage_taken: Mapped[int] = mapped_column(default=0, nullable=False)
    total_playtime_seconds: Mapped[int] = mapped_column(default=0, nullable=False)
    highest_rating: Mapped[int] = mapped_column(default=DEFAULT_RATING, nullable=False)
    win_streak: Mapped[int] = mapped_column(default=0, nullable=False)
    current_streak: Mapped[int] = mapped_column(default=0, nullable=False)

    # Per-class totals, e.g. {'gunslinger': {'matches_played': 12, 'wins': 7, ...}}
    class_stats: Mapped[dict] = mapped_column(JSON, default=lambda: {}, nullable=False)
    last_match_mode: Mapped[str | None] = mapped_column(String(16), nullable=True)
    last_match_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    version: Mapped[int] = mapped_column(default=1, nullable=False)

    player: Mapped["Player"] = relationship(back_populates="stats")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            f"rating >= {_DEFAULT_RULES.rating_min} AND rating <= {_DEFAULT_RULES.rating_max}",
            name="ck_player_stats_rating_range",
        ),
        CheckConstraint(
            "matches_played = wins + losses + draws",
            name="ck_player_stats_match_totals",
        ),
        CheckConstraint("highest_rating >= rating", name="ck_player_stats_highest"),
        CheckConstraint("win_streak >= 0", name="ck_player_stats_win_streak"),
    )

    def __init__(self, **kw: Any):
        super().__init__(**kw)

    @classmethod
    async def find_for_update(
        cls, db: AsyncSession, player_ids: Iterable[int]
    ) -> list["PlayerStats"]:
        """Load stats rows with row locks, in ascending player ID order."""
        query = (
            select(cls)
            .where(cls.player_id.in_(sorted(player_ids)))
            .order_by(cls.player_id)
            .with_for_update()
        )
        result = await db.execute(query)
        return list(result.scalars().all())


# ===============================================
# Match Ledger Tables
# ===============================================


class MatchRecord(Base, TimestampMixin):
    """One row per applied match result; ``match_id`` is the idempotency key."""

    __tablename__ = "match_records"
    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    mode: Mapped[str] = mapped_column(String(16), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    participants: Mapped[List["MatchParticipantRecord"]] = relationship(
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="MatchParticipantRecord.id",
    )


class MatchParticipantRecord(Base):
    """A participant's line in an applied match, with rating history."""

    __tablename__ = "match_participant_records"
    id: Mapped[int] = mapped_column(primary_key=True)
    match_record_id: Mapped[int] = mapped_column(
        ForeignKey("match_records.id"), nullable=False, index=True
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id"), nullable=False, index=True
    )
    outcome: Mapped[str] = mapped_column(String(8), nullable=False)
    class_played: Mapped[str | None] = mapped_column(String(20), nullable=True)
    damage_dealt: Mapped[int] = mapped_column(default=0, nullable=False)
    damage_taken: Mapped[int] = mapped_column(default=0, nullable=False)
    duration_seconds: Mapped[int] = mapped_column(default=0, nullable=False)

    # For auditing and historical analysis
    rating_before: Mapped[int] = mapped_column(nullable=False)
    rating_after: Mapped[int] = mapped_column(nullable=False)

    match: Mapped["MatchRecord"] = relationship(back_populates="participants")
    player: Mapped["Player"] = relationship(back_populates="match_participations")

    __table_args__ = (
        UniqueConstraint("match_record_id", "player_id", name="_match_player_uc"),
    )
