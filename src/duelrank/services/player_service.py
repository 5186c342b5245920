# src/duelrank/services/player_service.py

"""Player lifecycle, per-player history and administrative stat corrections."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from duelrank.config import Settings, get_settings
from duelrank.exceptions import InvalidRangeError
from duelrank.schemas import (
    CharacterClass,
    ClassStatsEntry,
    MatchResultRead,
    PaginatedResponse,
    PlayerRead,
    PlayerStatsRead,
    PlayerWithStats,
    RegisteredPlayerCreate,
    StatsCorrection,
)
from duelrank.services.leaderboard_service import clamp_limit
from duelrank.store import StatsStore
from duelrank.validation import clamp_rating, validate_email, validate_username

logger = logging.getLogger(__name__)


async def register_player(
    store: StatsStore,
    data: RegisteredPlayerCreate,
    settings: Settings | None = None,
) -> PlayerWithStats:
    """
    Registers a player and creates their default stats record.

    Raises:
        FormatError: If the username or email is malformed
        ReservedNameError: If the username is reserved
        DuplicatePlayerError: If the username or email is taken
    """
    rules = (settings or get_settings()).validation
    validate_username(data.username, rules)
    if data.email is not None:
        validate_email(data.email, rules)

    player, stats = await store.create_player(
        username=data.username,
        email=data.email,
        password_hash=data.password_hash,
    )
    logger.info("Player registered", extra={"player_id": player.id})
    return PlayerWithStats(player=player, stats=stats, win_rate=stats.win_rate)


async def create_anonymous_player(store: StatsStore) -> PlayerWithStats:
    player, stats = await store.create_player(is_anonymous=True)
    logger.info("Anonymous player created", extra={"player_id": player.id})
    return PlayerWithStats(player=player, stats=stats, win_rate=stats.win_rate)


async def get_player_with_stats(store: StatsStore, player_id: int) -> PlayerWithStats:
    player, stats = await store.get_player(player_id)
    return PlayerWithStats(player=player, stats=stats, win_rate=stats.win_rate)


async def deactivate_player(store: StatsStore, player_id: int) -> PlayerRead:
    """Soft-delete a player. Their stats and match history are kept."""
    player = await store.deactivate_player(player_id)
    logger.info("Player deactivated", extra={"player_id": player_id})
    return player


async def apply_admin_correction(
    store: StatsStore,
    player_id: int,
    correction: StatsCorrection,
    settings: Settings | None = None,
) -> PlayerStatsRead:
    """
    Overrides a player's rating outside of match play.

    Runs under the same lease as match updates and bumps the record's
    version, so a match update still holding the old snapshot fails its
    commit and retries against the corrected rating.

    Raises:
        PlayerNotFoundError: If the player does not exist
        LockTimeoutError: If the lease cannot be acquired
    """
    rules = (settings or get_settings()).validation
    rating = clamp_rating(correction.rating, rules)

    async with store.lease([player_id]) as lease:
        current = lease.snapshot[player_id]
        updated = current.model_copy(
            update={
                "rating": rating,
                "highest_rating": max(current.highest_rating, rating),
                "updated_at": datetime.now(timezone.utc),
            }
        )
        await lease.commit([updated])

    logger.warning(
        "Administrative stats correction applied",
        extra={
            "player_id": player_id,
            "rating_before": current.rating,
            "rating_after": rating,
            "requested_rating": correction.rating,
            "reason": correction.reason,
        },
    )
    return await store.get_stats(player_id)


async def get_class_stats(
    store: StatsStore,
    player_id: int,
    class_filter: CharacterClass | None = None,
) -> list[ClassStatsEntry]:
    """
    Returns a player's per-class breakdown, most played class first.

    Classes the player has never played are omitted. Ties on matches
    played are broken by class name.

    Raises:
        PlayerNotFoundError: If the player does not exist
    """
    stats = await store.get_stats(player_id)
    entries = [
        ClassStatsEntry(
            **totals.model_dump(),
            class_type=CharacterClass(name),
            win_rate=totals.wins / totals.matches_played if totals.matches_played else 0.0,
            damage_per_match=(
                totals.total_damage_dealt / totals.matches_played
                if totals.matches_played
                else 0.0
            ),
        )
        for name, totals in stats.class_stats.items()
        if class_filter is None or name == class_filter.value
    ]
    entries.sort(key=lambda entry: (-entry.matches_played, entry.class_type.value))
    return entries


async def get_match_history(
    store: StatsStore,
    player_id: int,
    limit: int | None = None,
    offset: int = 0,
    class_filter: CharacterClass | None = None,
    settings: Settings | None = None,
) -> PaginatedResponse[MatchResultRead]:
    """
    Returns one page of a player's applied matches, newest first.

    Raises:
        PlayerNotFoundError: If the player does not exist
        InvalidRangeError: If ``offset`` is negative
    """
    settings = settings or get_settings()
    if offset < 0:
        raise InvalidRangeError("offset", "must be >= 0")
    limit = clamp_limit(limit, settings.match_history_default_limit, settings.max_page_size)

    matches, total = await store.query_match_history(
        player_id, limit=limit, offset=offset, class_filter=class_filter
    )
    return PaginatedResponse[MatchResultRead](
        items=matches,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(matches) < total,
    )
