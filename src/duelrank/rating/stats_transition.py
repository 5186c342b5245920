# src/duelrank/rating/stats_transition.py

"""Pure per-participant stat transitions.

Every function here takes the pre-match snapshot and returns new values;
snapshots are never mutated.
"""

from datetime import datetime

from duelrank.config import ValidationRules
from duelrank.schemas import (
    CharacterClass,
    ClassStats,
    MatchMode,
    Outcome,
    ParticipantResultCreate,
    PlayerStatsRead,
)
from duelrank.validation import clamp_rating


def next_streak(
    current: int,
    outcome: Outcome,
    mode: MatchMode,
    last_mode: MatchMode | None,
) -> int:
    """Signed streak after one more result.

    Switching between ranked and casual starts a fresh streak.
    """
    if last_mode is not None and last_mode != mode:
        current = 0

    if outcome == Outcome.WIN:
        return current + 1 if current >= 0 else 1
    if outcome == Outcome.LOSS:
        return current - 1 if current <= 0 else -1
    return 0


def pick_favorite_class(
    plays: dict[str, int], current: CharacterClass | None
) -> CharacterClass | None:
    """Class with the most plays.

    On a tie the current favorite is kept if it is among the leaders,
    otherwise the alphabetically first leader wins.
    """
    if not plays:
        return current
    top = max(plays.values())
    leaders = sorted(name for name, count in plays.items() if count == top)
    if current is not None and current.value in leaders:
        return current
    return CharacterClass(leaders[0])


def next_class_stats(
    current: ClassStats | None, participant: ParticipantResultCreate, now: datetime
) -> ClassStats:
    """Per-class totals after one more match played as that class."""
    current = current or ClassStats()
    outcome = participant.outcome
    return current.model_copy(
        update={
            "matches_played": current.matches_played + 1,
            "wins": current.wins + (outcome == Outcome.WIN),
            "losses": current.losses + (outcome == Outcome.LOSS),
            "draws": current.draws + (outcome == Outcome.DRAW),
            "total_damage_dealt": current.total_damage_dealt + participant.damage_dealt,
            "total_damage_taken": current.total_damage_taken + participant.damage_taken,
            "total_playtime_seconds": current.total_playtime_seconds
            + participant.duration_seconds,
            "last_played_at": now,
        }
    )


def apply_participant_result(
    stats: PlayerStatsRead,
    participant: ParticipantResultCreate,
    delta: int,
    mode: MatchMode,
    rules: ValidationRules,
    now: datetime,
) -> PlayerStatsRead:
    """Return the stats record after one match.

    The returned record keeps the snapshot's ``version`` so the store can
    detect a concurrent write on commit.
    """
    rating = clamp_rating(stats.rating + delta, rules)
    outcome = participant.outcome
    current_streak = next_streak(stats.current_streak, outcome, mode, stats.last_match_mode)

    class_stats = dict(stats.class_stats)
    favorite = stats.favorite_class
    if participant.class_played is not None:
        key = participant.class_played.value
        class_stats[key] = next_class_stats(class_stats.get(key), participant, now)
        favorite = pick_favorite_class(
            {name: entry.matches_played for name, entry in class_stats.items()}, favorite
        )

    return stats.model_copy(
        update={
            "rating": rating,
            "highest_rating": max(stats.highest_rating, rating),
            "matches_played": stats.matches_played + 1,
            "wins": stats.wins + (outcome == Outcome.WIN),
            "losses": stats.losses + (outcome == Outcome.LOSS),
            "draws": stats.draws + (outcome == Outcome.DRAW),
            "current_streak": current_streak,
            "win_streak": max(stats.win_streak, current_streak),
            "total_damage_dealt": stats.total_damage_dealt + participant.damage_dealt,
            "total_damage_taken": stats.total_damage_taken + participant.damage_taken,
            "total_playtime_seconds": stats.total_playtime_seconds
            + participant.duration_seconds,
            "class_stats": class_stats,
            "favorite_class": favorite,
            "last_match_mode": mode,
            "last_match_at": now,
            "updated_at": now,
        }
    )
