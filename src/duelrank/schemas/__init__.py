# src/duelrank/schemas/__init__.py

"""Pydantic schemas for API validation and serialization."""

from .common import CharacterClass, MatchMode, Outcome
from .leaderboard import LeaderboardEntry, LeaderboardFilters
from .match import (
    MatchResultCreate,
    MatchResultRead,
    ParticipantResultCreate,
    ParticipantResultRead,
)
from .pagination import PaginatedResponse
from .player import AnonymousPlayerCreate, PlayerRead, RegisteredPlayerCreate
from .player_stats import (
    ClassStats,
    ClassStatsEntry,
    PlayerStatsRead,
    PlayerWithStats,
    StatsCorrection,
)
from .search import PlayerSearchFilters

__all__ = [
    # Common
    "CharacterClass",
    "MatchMode",
    "Outcome",
    # Leaderboard
    "LeaderboardEntry",
    "LeaderboardFilters",
    # Match
    "MatchResultCreate",
    "MatchResultRead",
    "ParticipantResultCreate",
    "ParticipantResultRead",
    # Pagination
    "PaginatedResponse",
    # Player
    "AnonymousPlayerCreate",
    "PlayerRead",
    "RegisteredPlayerCreate",
    # Stats
    "ClassStats",
    "ClassStatsEntry",
    "PlayerStatsRead",
    "PlayerWithStats",
    "StatsCorrection",
    # Search
    "PlayerSearchFilters",
]
