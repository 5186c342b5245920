# src/duelrank/api/player.py

"""API endpoints for managing and searching players."""

from fastapi import APIRouter, Body, Depends, Query, status

from duelrank.config import Settings, get_settings
from duelrank.schemas import (
    AnonymousPlayerCreate,
    CharacterClass,
    ClassStatsEntry,
    MatchResultRead,
    PaginatedResponse,
    PlayerRead,
    PlayerSearchFilters,
    PlayerStatsRead,
    PlayerWithStats,
    RegisteredPlayerCreate,
    StatsCorrection,
)
from duelrank.services import player_search, player_service
from duelrank.store import StatsStore, get_store

# - prefix="/players": All routes here will be prefixed with /players
# - tags=["Players"]: Groups these endpoints under "Players" in the API docs
router = APIRouter(prefix="/players", tags=["Players"])


@router.post(
    "/",
    response_model=PlayerWithStats,
    status_code=status.HTTP_201_CREATED,
)
async def create_player(
    player_in: RegisteredPlayerCreate,
    store: StatsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> PlayerWithStats:
    """
    Register a new player with default stats.

    - **username**: 3-50 letters, digits, underscores or hyphens; not reserved.
    - **email**: Optional, unique.

    Raises:
        409 Conflict: If the username or email is already registered.
        422 Unprocessable Entity: If a field is malformed or reserved.
    """
    return await player_service.register_player(store, player_in, settings)


@router.post(
    "/anonymous",
    response_model=PlayerWithStats,
    status_code=status.HTTP_201_CREATED,
)
async def create_anonymous_player(
    player_in: AnonymousPlayerCreate | None = Body(None),
    store: StatsStore = Depends(get_store),
) -> PlayerWithStats:
    """
    Create an anonymous player.

    The body is optional; if sent it must be empty, since anonymous players
    carry no username, email or password.

    Raises:
        422 Unprocessable Entity: If the body names any identity field.
    """
    return await player_service.create_anonymous_player(store)


@router.get("/search", response_model=list[PlayerWithStats])
async def search_players(
    username: str | None = Query(None, description="Case-insensitive username match"),
    prefix_only: bool = Query(False, description="Match the username as a prefix"),
    min_rating: int | None = Query(None),
    max_rating: int | None = Query(None),
    class_filter: CharacterClass | None = Query(None, description="Favorite class"),
    min_matches: int = Query(0),
    include_inactive: bool = Query(False),
    include_anonymous: bool = Query(False),
    limit: int | None = Query(None, description="Max results, clamped to 1-100"),
    offset: int = Query(0, description="Results to skip"),
    store: StatsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> list[PlayerWithStats]:
    """
    Search players by username, rating range and class.

    Results are returned in leaderboard order.

    Raises:
        422 Unprocessable Entity: If min_rating > max_rating or offset < 0.
    """
    filters = PlayerSearchFilters(
        username=username,
        prefix_only=prefix_only,
        min_rating=min_rating,
        max_rating=max_rating,
        class_filter=class_filter,
        min_matches=min_matches,
        include_inactive=include_inactive,
        include_anonymous=include_anonymous,
        limit=limit,
        offset=offset,
    )
    return await player_search.search_players(store, filters, settings)


@router.get("/suggestions", response_model=list[str])
async def suggest_usernames(
    prefix: str = Query(..., min_length=1, description="Username prefix"),
    limit: int = Query(player_search.DEFAULT_SUGGESTION_LIMIT, ge=1, le=50),
    store: StatsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> list[str]:
    """Suggest registered usernames starting with the given prefix."""
    return await player_search.suggest_usernames(store, prefix, limit, settings)


@router.get("/{player_id}", response_model=PlayerWithStats)
async def read_player(
    player_id: int, store: StatsStore = Depends(get_store)
) -> PlayerWithStats:
    """
    Retrieve a single player and their stats.

    Raises:
        404 Not Found: If the player does not exist.
    """
    return await player_service.get_player_with_stats(store, player_id)


@router.delete("/{player_id}", response_model=PlayerRead)
async def delete_player(
    player_id: int, store: StatsStore = Depends(get_store)
) -> PlayerRead:
    """
    Soft-delete a player.

    The player is hidden from the leaderboard and search; their stats and
    match history are kept.
    """
    return await player_service.deactivate_player(store, player_id)


@router.post("/{player_id}/corrections", response_model=PlayerStatsRead)
async def correct_player_stats(
    player_id: int,
    correction: StatsCorrection,
    store: StatsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> PlayerStatsRead:
    """
    Apply an administrative rating correction.

    - **rating**: New rating, clamped to the configured range.
    - **reason**: Recorded in the audit log.
    """
    return await player_service.apply_admin_correction(store, player_id, correction, settings)


@router.get("/{player_id}/matches", response_model=PaginatedResponse[MatchResultRead])
async def read_match_history(
    player_id: int,
    class_filter: CharacterClass | None = Query(None, description="Class the player played"),
    limit: int | None = Query(None, description="Max results, clamped to 1-100"),
    offset: int = Query(0, description="Results to skip"),
    store: StatsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> PaginatedResponse[MatchResultRead]:
    """
    Page through the matches a player took part in, newest first.

    Raises:
        404 Not Found: If the player does not exist.
        422 Unprocessable Entity: If offset < 0.
    """
    return await player_service.get_match_history(
        store, player_id, limit=limit, offset=offset, class_filter=class_filter, settings=settings
    )


@router.get("/{player_id}/classes", response_model=list[ClassStatsEntry])
async def read_class_stats(
    player_id: int,
    class_filter: CharacterClass | None = Query(None),
    store: StatsStore = Depends(get_store),
) -> list[ClassStatsEntry]:
    """Per-class totals for a player, most played class first."""
    return await player_service.get_class_stats(store, player_id, class_filter)
