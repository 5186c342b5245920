# src/duelrank/api/leaderboard.py

"""API endpoint for the leaderboard."""

from fastapi import APIRouter, Depends, Query

from duelrank.config import Settings, get_settings
from duelrank.schemas import (
    CharacterClass,
    LeaderboardEntry,
    LeaderboardFilters,
    PaginatedResponse,
)
from duelrank.services import leaderboard_service
from duelrank.store import StatsStore, get_store

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=PaginatedResponse[LeaderboardEntry])
async def read_leaderboard(
    limit: int | None = Query(None, description="Max entries, clamped to 1-100"),
    offset: int = Query(0, description="Entries to skip"),
    class_filter: CharacterClass | None = Query(None, description="Favorite class"),
    min_matches: int = Query(0, ge=0, description="Minimum matches played"),
    include_inactive: bool = Query(False),
    include_anonymous: bool = Query(False),
    store: StatsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> PaginatedResponse[LeaderboardEntry]:
    """
    Retrieve one page of the leaderboard.

    - **limit**: Page size (default 50, clamped to 1-100)
    - **offset**: Entries to skip; ranks continue from the offset
    - **class_filter**: Only players whose favorite class matches
    - **min_matches**: Only players with at least this many matches
    """
    filters = LeaderboardFilters(
        class_filter=class_filter,
        min_matches=min_matches,
        include_inactive=include_inactive,
        include_anonymous=include_anonymous,
    )
    return await leaderboard_service.get_leaderboard(
        store, filters, limit=limit, offset=offset, settings=settings
    )
