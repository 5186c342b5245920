# src/duelrank/services/leaderboard_service.py

"""Leaderboard ranking."""

from __future__ import annotations

import logging

from duelrank.config import Settings, get_settings
from duelrank.exceptions import InvalidRangeError
from duelrank.schemas import LeaderboardEntry, LeaderboardFilters, PaginatedResponse
from duelrank.store import PlayerQuery, StatsStore

logger = logging.getLogger(__name__)


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    if limit is None:
        return default
    return max(1, min(maximum, limit))


async def get_leaderboard(
    store: StatsStore,
    filters: LeaderboardFilters | None = None,
    limit: int | None = None,
    offset: int = 0,
    settings: Settings | None = None,
) -> PaginatedResponse[LeaderboardEntry]:
    """
    Returns one page of the leaderboard.

    Players are ordered by rating desc, then highest rating desc, wins desc,
    matches played asc and player ID asc. Ranks are positions in that order
    over every eligible player, so a player's rank does not depend on the
    page size.

    Raises:
        InvalidRangeError: If ``offset`` is negative
    """
    settings = settings or get_settings()
    filters = filters or LeaderboardFilters()

    if offset < 0:
        raise InvalidRangeError("offset", "must be >= 0")
    limit = clamp_limit(limit, settings.leaderboard_default_limit, settings.max_page_size)

    query = PlayerQuery(
        favorite_class=filters.class_filter,
        min_matches=filters.min_matches,
        include_inactive=filters.include_inactive,
        include_anonymous=filters.include_anonymous,
        limit=limit,
        offset=offset,
    )
    rows, total = await store.query_leaderboard(query)

    items = [
        LeaderboardEntry(
            rank=offset + index + 1,
            player=player,
            stats=stats,
            win_rate=stats.win_rate,
            damage_per_match=stats.damage_per_match,
        )
        for index, (player, stats) in enumerate(rows)
    ]

    logger.debug(
        "Leaderboard page built",
        extra={"offset": offset, "limit": limit, "returned": len(items), "total": total},
    )

    return PaginatedResponse[LeaderboardEntry](
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )
