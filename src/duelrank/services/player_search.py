# src/duelrank/services/player_search.py

"""Player search and username suggestions."""

from __future__ import annotations

from duelrank.config import Settings, get_settings
from duelrank.exceptions import InvalidRangeError
from duelrank.schemas import PlayerSearchFilters, PlayerWithStats
from duelrank.store import PlayerQuery, StatsStore

from .leaderboard_service import clamp_limit

DEFAULT_SUGGESTION_LIMIT = 5


def build_player_query(
    filters: PlayerSearchFilters, settings: Settings | None = None
) -> PlayerQuery:
    """
    Normalizes search filters into a store query.

    Raises:
        InvalidRangeError: If ``min_rating > max_rating`` or ``offset < 0``
    """
    settings = settings or get_settings()

    if (
        filters.min_rating is not None
        and filters.max_rating is not None
        and filters.min_rating > filters.max_rating
    ):
        raise InvalidRangeError(
            "rating",
            f"min_rating ({filters.min_rating}) is greater than max_rating ({filters.max_rating})",
        )
    if filters.offset < 0:
        raise InvalidRangeError("offset", "must be >= 0")
    if filters.min_matches < 0:
        raise InvalidRangeError("min_matches", "must be >= 0")

    username = filters.username.strip() if filters.username else None

    return PlayerQuery(
        username=username or None,
        prefix_only=filters.prefix_only,
        min_rating=filters.min_rating,
        max_rating=filters.max_rating,
        favorite_class=filters.class_filter,
        min_matches=filters.min_matches,
        include_inactive=filters.include_inactive,
        include_anonymous=filters.include_anonymous,
        limit=clamp_limit(filters.limit, settings.search_default_limit, settings.max_page_size),
        offset=filters.offset,
    )


async def search_players(
    store: StatsStore,
    filters: PlayerSearchFilters,
    settings: Settings | None = None,
) -> list[PlayerWithStats]:
    """Players matching ``filters``, in leaderboard order."""
    query = build_player_query(filters, settings)
    rows = await store.query_players(query)
    return [
        PlayerWithStats(player=player, stats=stats, win_rate=stats.win_rate)
        for player, stats in rows
    ]


async def suggest_usernames(
    store: StatsStore,
    prefix: str,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
    settings: Settings | None = None,
) -> list[str]:
    """Usernames of active registered players starting with ``prefix``."""
    settings = settings or get_settings()
    prefix = prefix.strip()
    if not prefix:
        return []
    return await store.usernames_by_prefix(prefix, clamp_limit(limit, limit, settings.max_page_size))
