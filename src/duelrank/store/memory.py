# src/duelrank/store/memory.py

"""In-memory runtime store."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from duelrank.config import Settings
from duelrank.exceptions import (
    ConflictError,
    DuplicateMatchError,
    DuplicatePlayerError,
    PlayerNotFoundError,
    StatsNotFoundError,
)
from duelrank.schemas import CharacterClass, MatchResultRead, PlayerRead, PlayerStatsRead

from .base import PlayerQuery, PlayerRow, StatsLease, StatsStore, matches_query, ranking_key

logger = logging.getLogger(__name__)


class _MemoryLease(StatsLease):
    def __init__(self, store: "InMemoryStatsStore", snapshot: dict[int, PlayerStatsRead]):
        self._store = store
        self.snapshot = snapshot

    async def commit(
        self,
        records: Sequence[PlayerStatsRead],
        match: MatchResultRead | None = None,
    ) -> None:
        self._store._apply(records, match)


class InMemoryStatsStore(StatsStore):
    """Dict-backed store for embedded use and tests.

    Records are held as pydantic models and handed out as deep copies, so
    callers can never mutate stored state except through a lease commit.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__(settings)
        self._players: dict[int, PlayerRead] = {}
        self._password_hashes: dict[int, str] = {}
        self._stats: dict[int, PlayerStatsRead] = {}
        self._matches: dict[str, MatchResultRead] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Leases
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _open_lease(self, player_ids: list[int]) -> AsyncIterator[StatsLease]:
        # Yield once so concurrent leases interleave like real I/O would
        await asyncio.sleep(0)
        snapshot: dict[int, PlayerStatsRead] = {}
        for player_id in player_ids:
            stats = self._stats.get(player_id)
            if stats is None:
                raise PlayerNotFoundError(player_id)
            snapshot[player_id] = stats.model_copy(deep=True)
        yield _MemoryLease(self, snapshot)

    def _apply(
        self, records: Sequence[PlayerStatsRead], match: MatchResultRead | None
    ) -> None:
        # Check everything first; there is no await below, so the write is atomic
        if match is not None and match.match_id in self._matches:
            raise DuplicateMatchError(match.match_id)

        player_ids = [record.player_id for record in records]
        for record in records:
            current = self._stats.get(record.player_id)
            if current is None:
                raise PlayerNotFoundError(record.player_id)
            if current.version != record.version:
                logger.info(
                    "Stale snapshot on commit",
                    extra={
                        "player_id": record.player_id,
                        "snapshot_version": record.version,
                        "current_version": current.version,
                    },
                )
                raise ConflictError(player_ids)

        for record in records:
            self._stats[record.player_id] = record.model_copy(
                update={"version": record.version + 1}, deep=True
            )
        if match is not None:
            self._matches[match.match_id] = match.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_stats(self, player_id: int) -> PlayerStatsRead:
        if player_id not in self._players:
            raise PlayerNotFoundError(player_id)
        stats = self._stats.get(player_id)
        if stats is None:
            raise StatsNotFoundError(player_id)
        return stats.model_copy(deep=True)

    async def get_player(self, player_id: int) -> PlayerRow:
        player = self._players.get(player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player.model_copy(), await self.get_stats(player_id)

    async def has_match(self, match_id: str) -> bool:
        return match_id in self._matches

    def _filtered(self, query: PlayerQuery) -> list[PlayerRow]:
        rows = [
            (player, self._stats[player_id])
            for player_id, player in self._players.items()
            if matches_query(player, self._stats[player_id], query)
        ]
        rows.sort(key=lambda row: ranking_key(row[1]))
        return rows

    async def query_leaderboard(self, query: PlayerQuery) -> tuple[list[PlayerRow], int]:
        rows = self._filtered(query)
        page = rows[query.offset : query.offset + query.limit]
        return [(p.model_copy(), s.model_copy(deep=True)) for p, s in page], len(rows)

    async def query_players(self, query: PlayerQuery) -> list[PlayerRow]:
        page, _ = await self.query_leaderboard(query)
        return page

    async def query_match_history(
        self,
        player_id: int,
        limit: int,
        offset: int = 0,
        class_filter: CharacterClass | None = None,
    ) -> tuple[list[MatchResultRead], int]:
        if player_id not in self._players:
            raise PlayerNotFoundError(player_id)
        # Ledger dict is in apply order; newest first
        played = [
            match
            for match in reversed(self._matches.values())
            if any(
                p.player_id == player_id
                and (class_filter is None or p.class_played == class_filter)
                for p in match.participants
            )
        ]
        page = played[offset : offset + limit]
        return [match.model_copy(deep=True) for match in page], len(played)

    async def usernames_by_prefix(self, prefix: str, limit: int) -> list[str]:
        needle = prefix.lower()
        names = sorted(
            player.username
            for player in self._players.values()
            if player.username
            and player.is_active
            and not player.is_anonymous
            and player.username.lower().startswith(needle)
        )
        return names[:limit]

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
        for existing in self._players.values():
            if username and (existing.username or "").lower() == username.lower():
                raise DuplicatePlayerError("username", username)
            if email and (existing.email or "").lower() == email.lower():
                raise DuplicatePlayerError("email", email)

        now = datetime.now(timezone.utc)
        player_id = next(self._ids)
        rating = self.settings.validation.rating_default
        player = PlayerRead(
            id=player_id,
            username=username,
            email=email,
            is_anonymous=is_anonymous,
            created_at=now,
        )
        stats = PlayerStatsRead(
            player_id=player_id,
            rating=rating,
            highest_rating=rating,
            updated_at=now,
        )
        self._players[player_id] = player
        self._stats[player_id] = stats
        if password_hash:
            self._password_hashes[player_id] = password_hash
        return player.model_copy(), stats.model_copy(deep=True)

    async def deactivate_player(self, player_id: int) -> PlayerRead:
        player = self._players.get(player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        player = player.model_copy(update={"is_active": False})
        self._players[player_id] = player
        return player.model_copy()
