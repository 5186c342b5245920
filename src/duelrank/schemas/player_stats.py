# src/duelrank/schemas/player_stats.py

"""Player statistics schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import CharacterClass, MatchMode
from .player import PlayerRead


class ClassStats(BaseModel):
    """Lifetime totals for one character class.

    Stored inside the stats record so it is written under the same lease
    and version stamp.
    """

    matches_played: int = Field(0, ge=0)
    wins: int = Field(0, ge=0)
    losses: int = Field(0, ge=0)
    draws: int = Field(0, ge=0)
    total_damage_dealt: int = Field(0, ge=0)
    total_damage_taken: int = Field(0, ge=0)
    total_playtime_seconds: int = Field(0, ge=0)
    last_played_at: datetime | None = None


class ClassStatsEntry(ClassStats):
    """One row of a player's per-class breakdown."""

    class_type: CharacterClass
    win_rate: float = Field(0.0, ge=0.0, le=1.0)
    damage_per_match: float = 0.0


class PlayerStatsRead(BaseModel):
    """A player's competitive record.

    Also used as the immutable snapshot handed out by a store lease; the
    update engine produces new instances with ``model_copy`` rather than
    mutating a snapshot in place.

    Attributes:
        rating: Current Elo rating
        current_streak: Signed run of wins (positive) or losses (negative)
        win_streak: Best positive run ever reached
        class_stats: Per-class totals keyed by class name
        version: Optimistic concurrency stamp, bumped on every write
    """

    player_id: int
    rating: int
    matches_played: int = Field(0, ge=0)
    wins: int = Field(0, ge=0)
    losses: int = Field(0, ge=0)
    draws: int = Field(0, ge=0)
    favorite_class: CharacterClass | None = None
    total_damage_dealt: int = Field(0, ge=0)
    total_damage_taken: int = Field(0, ge=0)
    total_playtime_seconds: int = Field(0, ge=0)
    highest_rating: int
    win_streak: int = Field(0, ge=0)
    current_streak: int = 0
    class_stats: dict[str, ClassStats] = Field(default_factory=dict)
    last_match_mode: MatchMode | None = None
    last_match_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 1

    model_config = ConfigDict(from_attributes=True)

    @property
    def win_rate(self) -> float:
        if self.matches_played == 0:
            return 0.0
        return self.wins / self.matches_played

    @property
    def damage_per_match(self) -> float:
        if self.matches_played == 0:
            return 0.0
        return self.total_damage_dealt / self.matches_played


class PlayerWithStats(BaseModel):
    """A player joined with their stats, as returned by search."""

    player: PlayerRead
    stats: PlayerStatsRead
    win_rate: float = Field(0.0, ge=0.0, le=1.0)


class StatsCorrection(BaseModel):
    """Administrative rating override.

    Attributes:
        rating: New rating; clamped into the configured range
        reason: Free-text justification recorded in the audit log
    """

    rating: int
    reason: str = Field(..., min_length=1, max_length=500)
