# src/duelrank/store/__init__.py

"""Stats record stores."""

from functools import lru_cache

from .base import PlayerQuery, PlayerRow, StatsLease, StatsStore, ranking_key
from .locks import KeyedLockManager
from .memory import InMemoryStatsStore
from .sql import SqlStatsStore


@lru_cache
def get_store() -> StatsStore:
    """FastAPI dependency returning the process-wide store.

    One instance per process so every request shares the same key locks.
    """
    return SqlStatsStore()


__all__ = [
    "InMemoryStatsStore",
    "KeyedLockManager",
    "PlayerQuery",
    "PlayerRow",
    "SqlStatsStore",
    "StatsLease",
    "StatsStore",
    "get_store",
    "ranking_key",
]
