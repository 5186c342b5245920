# src/duelrank/store/base.py

"""The storage contract shared by the SQL and in-memory stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass

from duelrank.config import Settings, get_settings
from duelrank.schemas import (
    CharacterClass,
    MatchResultRead,
    PlayerRead,
    PlayerStatsRead,
)

from .locks import KeyedLockManager

PlayerRow = tuple[PlayerRead, PlayerStatsRead]


@dataclass(frozen=True)
class PlayerQuery:
    """Normalized filter set understood by every store.

    Built by the leaderboard ranker and the search query builder after
    range checks and limit clamping.
    """

    username: str | None = None
    prefix_only: bool = False
    min_rating: int | None = None
    max_rating: int | None = None
    favorite_class: CharacterClass | None = None
    min_matches: int = 0
    include_inactive: bool = False
    include_anonymous: bool = False
    limit: int = 20
    offset: int = 0


def ranking_key(stats: PlayerStatsRead) -> tuple[int, int, int, int, int]:
    """Sort key for the leaderboard total order.

    Rating desc, highest rating desc, wins desc, matches played asc,
    player ID asc.
    """
    return (
        -stats.rating,
        -stats.highest_rating,
        -stats.wins,
        stats.matches_played,
        stats.player_id,
    )


def matches_query(player: PlayerRead, stats: PlayerStatsRead, query: PlayerQuery) -> bool:
    if not query.include_inactive and not player.is_active:
        return False
    if not query.include_anonymous and player.is_anonymous:
        return False
    if query.username:
        name = (player.username or "").lower()
        needle = query.username.lower()
        if query.prefix_only and not name.startswith(needle):
            return False
        if not query.prefix_only and needle not in name:
            return False
    if query.min_rating is not None and stats.rating < query.min_rating:
        return False
    if query.max_rating is not None and stats.rating > query.max_rating:
        return False
    if query.favorite_class is not None and stats.favorite_class != query.favorite_class:
        return False
    return stats.matches_played >= query.min_matches


class StatsLease(ABC):
    """Exclusive access to a set of stats records for one update.

    Attributes:
        snapshot: Stats read under the lease, keyed by player ID
    """

    snapshot: dict[int, PlayerStatsRead]

    @abstractmethod
    async def commit(
        self,
        records: Sequence[PlayerStatsRead],
        match: MatchResultRead | None = None,
    ) -> None:
        """Persist ``records`` and the optional ledger entry atomically.

        Each record carries the ``version`` it was derived from.

        Raises:
            ConflictError: If any record's version is no longer current
            DuplicateMatchError: If the ledger already holds ``match.match_id``
        """


class StatsStore(ABC):
    """Abstract stats store.

    Subclasses implement ``_open_lease`` and the query methods; the key
    locks and their ordering live here so both stores serialize updates
    the same way.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.locks = KeyedLockManager(timeout=self.settings.lock_timeout_seconds)

    @asynccontextmanager
    async def lease(self, player_ids: Iterable[int]) -> AsyncIterator[StatsLease]:
        """Lock the given players and yield their snapshot.

        Locks are released and uncommitted work is discarded on every exit
        path, including cancellation.
        """
        async with self.locks.acquire(player_ids) as ordered:
            async with self._open_lease(ordered) as lease:
                yield lease

    @abstractmethod
    def _open_lease(self, player_ids: list[int]) -> AbstractAsyncContextManager[StatsLease]:
        """Open the storage side of a lease; key locks are already held."""

    @abstractmethod
    async def get_stats(self, player_id: int) -> PlayerStatsRead: ...

    @abstractmethod
    async def get_player(self, player_id: int) -> PlayerRow: ...

    @abstractmethod
    async def has_match(self, match_id: str) -> bool: ...

    @abstractmethod
    async def query_leaderboard(self, query: PlayerQuery) -> tuple[list[PlayerRow], int]:
        """Return one page of rows in ranking order plus the filtered total."""

    @abstractmethod
    async def query_players(self, query: PlayerQuery) -> list[PlayerRow]: ...

    @abstractmethod
    async def query_match_history(
        self,
        player_id: int,
        limit: int,
        offset: int = 0,
        class_filter: CharacterClass | None = None,
    ) -> tuple[list[MatchResultRead], int]:
        """Return one page of the player's applied matches, newest first.

        With ``class_filter`` only matches the player played as that class
        are counted and returned.

        Raises:
            PlayerNotFoundError: If the player does not exist
        """

    @abstractmethod
    async def usernames_by_prefix(self, prefix: str, limit: int) -> list[str]:
        """Active, non-anonymous usernames starting with ``prefix``, A-Z."""

    @abstractmethod
    async def create_player(
        self,
        *,
        username: str | None = None,
        email: str | None = None,
        password_hash: str | None = None,
        is_anonymous: bool = False,
    ) -> PlayerRow:
        """Create a player and its default stats record together.

        Raises:
            DuplicatePlayerError: If the username or email is taken
        """

    @abstractmethod
    async def deactivate_player(self, player_id: int) -> PlayerRead: ...
