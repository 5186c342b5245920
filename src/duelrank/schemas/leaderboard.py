# src/duelrank/schemas/leaderboard.py

"""Leaderboard schemas."""

from pydantic import BaseModel, ConfigDict, Field

from .common import CharacterClass
from .player import PlayerRead
from .player_stats import PlayerStatsRead


class LeaderboardFilters(BaseModel):
    """Which players are eligible for the leaderboard."""

    include_inactive: bool = False
    include_anonymous: bool = False
    class_filter: CharacterClass | None = Field(
        default=None, description="Only players whose favorite class matches"
    )
    min_matches: int = Field(0, ge=0)


class LeaderboardEntry(BaseModel):
    """Single entry in the leaderboard.

    Attributes:
        rank: Position in the filtered total order (1-indexed)
        player: The player information
        stats: The player's full stats record
        win_rate: wins / matches_played, 0.0 with no matches
        damage_per_match: total_damage_dealt / matches_played, 0.0 with no matches
    """

    rank: int = Field(..., ge=1, description="Position in leaderboard (1-indexed)")
    player: PlayerRead
    stats: PlayerStatsRead
    win_rate: float = Field(0.0, ge=0.0, le=1.0)
    damage_per_match: float = Field(0.0, ge=0.0)

    model_config = ConfigDict(from_attributes=True)
