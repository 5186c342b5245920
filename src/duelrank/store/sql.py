# src/duelrank/store/sql.py

"""SQLAlchemy-backed stats store."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from duelrank.config import Settings
from duelrank.db.models import MatchParticipantRecord, MatchRecord, Player, PlayerStats
from duelrank.exceptions import (
    ConflictError,
    DuplicateMatchError,
    DuplicatePlayerError,
    PlayerNotFoundError,
    StatsNotFoundError,
)
from duelrank.schemas import (
    CharacterClass,
    MatchResultRead,
    ParticipantResultRead,
    PlayerRead,
    PlayerStatsRead,
)

from .base import PlayerQuery, PlayerRow, StatsLease, StatsStore

logger = logging.getLogger(__name__)

# Fields copied from a computed record onto the locked row. player_id is the
# key and version is bumped by the mapper itself.
_STATS_FIELDS = (
    "rating",
    "matches_played",
    "wins",
    "losses",
    "draws",
    "favorite_class",
    "total_damage_dealt",
    "total_damage_taken",
    "total_playtime_seconds",
    "highest_rating",
    "win_streak",
    "current_streak",
    "class_stats",
    "last_match_mode",
    "last_match_at",
    "updated_at",
)


def _column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        # New dict so the JSON column is flagged dirty
        return {
            key: item.model_dump(mode="json") if isinstance(item, BaseModel) else item
            for key, item in value.items()
        }
    return value


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_row(player: Player, stats: PlayerStats | None) -> PlayerRow:
    if stats is None:
        raise StatsNotFoundError(player.id)
    return PlayerRead.model_validate(player), PlayerStatsRead.model_validate(stats)


def _ledger_entry(match: MatchResultRead) -> MatchRecord:
    return MatchRecord(
        match_id=match.match_id,
        mode=match.mode.value,
        applied_at=match.applied_at,
        participants=[
            MatchParticipantRecord(
                player_id=p.player_id,
                outcome=p.outcome.value,
                class_played=_column_value(p.class_played),
                damage_dealt=p.damage_dealt,
                damage_taken=p.damage_taken,
                duration_seconds=p.duration_seconds,
                rating_before=p.rating_before,
                rating_after=p.rating_after,
            )
            for p in match.participants
        ],
    )


def _from_ledger(record: MatchRecord) -> MatchResultRead:
    return MatchResultRead(
        match_id=record.match_id,
        mode=record.mode,
        applied_at=record.applied_at,
        participants=[
            ParticipantResultRead(
                player_id=p.player_id,
                outcome=p.outcome,
                class_played=p.class_played,
                damage_dealt=p.damage_dealt,
                damage_taken=p.damage_taken,
                duration_seconds=p.duration_seconds,
                rating_before=p.rating_before,
                rating_after=p.rating_after,
                rating_change=p.rating_after - p.rating_before,
            )
            for p in record.participants
        ],
    )


class _SqlLease(StatsLease):
    """A lease backed by one open transaction holding row locks."""

    def __init__(self, session: AsyncSession, rows: dict[int, PlayerStats]):
        self._session = session
        self._rows = rows
        self.snapshot = {
            player_id: PlayerStatsRead.model_validate(row) for player_id, row in rows.items()
        }

    async def commit(
        self,
        records: Sequence[PlayerStatsRead],
        match: MatchResultRead | None = None,
    ) -> None:
        player_ids = [record.player_id for record in records]

        if match is not None:
            existing = await self._session.execute(
                select(MatchRecord.id).where(MatchRecord.match_id == match.match_id)
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateMatchError(match.match_id)

        for record in records:
            row = self._rows.get(record.player_id)
            if row is None:
                raise PlayerNotFoundError(record.player_id)
            if row.version != record.version:
                raise ConflictError(player_ids)
            for field in _STATS_FIELDS:
                setattr(row, field, _column_value(getattr(record, field)))

        if match is not None:
            self._session.add(_ledger_entry(match))

        try:
            await self._session.commit()
        except StaleDataError as e:
            await self._session.rollback()
            raise ConflictError(player_ids, reason="row version changed") from e
        except IntegrityError as e:
            await self._session.rollback()
            if match is not None and "match_records" in str(e.orig):
                raise DuplicateMatchError(match.match_id) from e
            raise
        except OperationalError as e:
            await self._session.rollback()
            if "locked" in str(e.orig).lower():
                raise ConflictError(player_ids, reason="database is locked") from e
            raise


class SqlStatsStore(StatsStore):
    """Stats store over SQLAlchemy async sessions.

    A lease is one transaction that loads the participants' stats rows with
    ``SELECT ... FOR UPDATE`` in ascending ID order. On SQLite, which has no
    row locks, the in-process key locks and the version column carry the
    serialization on their own.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(settings)
        if session_factory is None:
            from duelrank.db.session import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Leases
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _open_lease(self, player_ids: list[int]) -> AsyncIterator[StatsLease]:
        async with self._session_factory() as session:
            try:
                rows = await PlayerStats.find_for_update(session, player_ids)
                by_id = {row.player_id: row for row in rows}
                for player_id in player_ids:
                    if player_id not in by_id:
                        raise PlayerNotFoundError(player_id)
                yield _SqlLease(session, by_id)
            except Exception as e:
                logger.debug(
                    f"Lease aborted, rolling back: {e}",
                    extra={"player_ids": player_ids},
                )
                await session.rollback()
                raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_stats(self, player_id: int) -> PlayerStatsRead:
        async with self._session_factory() as session:
            stats = await session.get(PlayerStats, player_id)
            if stats is not None:
                return PlayerStatsRead.model_validate(stats)
            if await session.get(Player, player_id) is None:
                raise PlayerNotFoundError(player_id)
            raise StatsNotFoundError(player_id)

    async def get_player(self, player_id: int) -> PlayerRow:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Player, PlayerStats)
                .outerjoin(PlayerStats, PlayerStats.player_id == Player.id)
                .where(Player.id == player_id)
            )
            row = result.first()
            if row is None:
                raise PlayerNotFoundError(player_id)
            return _to_row(row[0], row[1])

    async def has_match(self, match_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MatchRecord.id).where(MatchRecord.match_id == match_id)
            )
            return result.scalar_one_or_none() is not None

    def _filtered(self, query: PlayerQuery) -> Select:
        stmt = select(Player, PlayerStats).join(PlayerStats, PlayerStats.player_id == Player.id)

        if not query.include_inactive:
            stmt = stmt.where(Player.is_active.is_(True))
        if not query.include_anonymous:
            stmt = stmt.where(Player.is_anonymous.is_(False))
        if query.username:
            needle = _escape_like(query.username)
            pattern = f"{needle}%" if query.prefix_only else f"%{needle}%"
            stmt = stmt.where(Player.username.ilike(pattern, escape="\\"))
        if query.min_rating is not None:
            stmt = stmt.where(PlayerStats.rating >= query.min_rating)
        if query.max_rating is not None:
            stmt = stmt.where(PlayerStats.rating <= query.max_rating)
        if query.favorite_class is not None:
            stmt = stmt.where(PlayerStats.favorite_class == query.favorite_class.value)
        if query.min_matches:
            stmt = stmt.where(PlayerStats.matches_played >= query.min_matches)
        return stmt

    @staticmethod
    def _ranked(stmt: Select, query: PlayerQuery) -> Select:
        return (
            stmt.order_by(
                PlayerStats.rating.desc(),
                PlayerStats.highest_rating.desc(),
                PlayerStats.wins.desc(),
                PlayerStats.matches_played.asc(),
                PlayerStats.player_id.asc(),
            )
            .offset(query.offset)
            .limit(query.limit)
        )

    async def query_leaderboard(self, query: PlayerQuery) -> tuple[list[PlayerRow], int]:
        stmt = self._filtered(query)
        async with self._session_factory() as session:
            total = await session.scalar(select(func.count()).select_from(stmt.subquery()))
            result = await session.execute(self._ranked(stmt, query))
            rows = [_to_row(player, stats) for player, stats in result.all()]
        return rows, total or 0

    async def query_players(self, query: PlayerQuery) -> list[PlayerRow]:
        async with self._session_factory() as session:
            result = await session.execute(self._ranked(self._filtered(query), query))
            return [_to_row(player, stats) for player, stats in result.all()]

    async def query_match_history(
        self,
        player_id: int,
        limit: int,
        offset: int = 0,
        class_filter: CharacterClass | None = None,
    ) -> tuple[list[MatchResultRead], int]:
        async with self._session_factory() as session:
            if await session.get(Player, player_id) is None:
                raise PlayerNotFoundError(player_id)

            entries = select(MatchParticipantRecord.match_record_id).where(
                MatchParticipantRecord.player_id == player_id
            )
            if class_filter is not None:
                entries = entries.where(MatchParticipantRecord.class_played == class_filter.value)

            total = await session.scalar(select(func.count()).select_from(entries.subquery()))
            result = await session.execute(
                select(MatchRecord)
                .where(MatchRecord.id.in_(entries))
                .options(selectinload(MatchRecord.participants))
                .order_by(MatchRecord.id.desc())
                .offset(offset)
                .limit(limit)
            )
            matches = [_from_ledger(record) for record in result.scalars().all()]
        return matches, total or 0

    async def usernames_by_prefix(self, prefix: str, limit: int) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Player.username)
                .where(
                    Player.username.ilike(f"{_escape_like(prefix)}%", escape="\\"),
                    Player.is_active.is_(True),
                    Player.is_anonymous.is_(False),
                )
                .order_by(Player.username)
                .limit(limit)
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_player(
        self,
        *,
        username: str | None = None,
        email: str | None = None,
        password_hash: str | None = None,
        is_anonymous: bool = False,
    ) -> PlayerRow:
        rating = self.settings.validation.rating_default
        async with self._session_factory() as session:
            for field, value in (("username", username), ("email", email)):
                if value is None:
                    continue
                column = getattr(Player, field)
                taken = await session.scalar(
                    select(Player.id).where(func.lower(column) == value.lower())
                )
                if taken is not None:
                    raise DuplicatePlayerError(field, value)

            player = Player(
                username=username,
                email=email,
                password_hash=password_hash,
                is_anonymous=is_anonymous,
            )
            stats = PlayerStats(rating=rating, highest_rating=rating)
            player.stats = stats
            session.add(player)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                field = "email" if "email" in str(e.orig) else "username"
                raise DuplicatePlayerError(field, email if field == "email" else username) from e
            return _to_row(player, stats)

    async def deactivate_player(self, player_id: int) -> PlayerRead:
        async with self._session_factory() as session:
            player = await session.get(Player, player_id)
            if player is None:
                raise PlayerNotFoundError(player_id)
            player.is_active = False
            await session.commit()
            return PlayerRead.model_validate(player)
