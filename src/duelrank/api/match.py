# src/duelrank/api/match.py

"""API endpoints for submitting match results."""

from fastapi import APIRouter, Depends, status

from duelrank.config import Settings, get_settings
from duelrank.schemas import MatchResultCreate, MatchResultRead
from duelrank.services import match_service
from duelrank.store import StatsStore, get_store

router = APIRouter(prefix="/matches", tags=["Matches"])


@router.post(
    "/results",
    response_model=MatchResultRead,
    status_code=status.HTTP_201_CREATED,
)
async def submit_match_result(
    match_in: MatchResultCreate,
    store: StatsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> MatchResultRead:
    """
    Apply a completed match to every participant's rating and stats.

    - **match_id**: Caller-supplied idempotency key; a replay is rejected.
    - **mode**: `ranked` (default) or `casual`. Casual matches never move rating.
    - **participants**: At least two, each with an outcome of win, loss or draw.

    Raises:
        404 Not Found: If a participant does not exist.
        409 Conflict: If the match was already applied, or updates kept conflicting.
        422 Unprocessable Entity: If the result is inconsistent.
        503 Service Unavailable: If the players stayed locked; see Retry-After.
    """
    return await match_service.apply_match_result(store, match_in, settings)
