# src/duelrank/services/match_service.py

"""Applying completed match results to player stats."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone

from duelrank.config import Settings, get_settings
from duelrank.exceptions import (
    ConflictError,
    DuplicateMatchError,
    InvalidMatchResultError,
    LockTimeoutError,
    UpdateConflictError,
)
from duelrank.rating.elo_engine import EloEngine
from duelrank.rating.stats_transition import apply_participant_result
from duelrank.schemas import (
    MatchMode,
    MatchResultCreate,
    MatchResultRead,
    Outcome,
    ParticipantResultRead,
)
from duelrank.store import StatsStore

logger = logging.getLogger(__name__)


def _validate_participants(match_in: MatchResultCreate) -> None:
    """
    Validates participant data before any storage access.

    Raises:
        InvalidMatchResultError: If fewer than 2 participants, a player
            appears twice, or the outcomes are inconsistent
    """
    match_id = match_in.match_id
    participants = match_in.participants

    if len(participants) < 2:
        raise InvalidMatchResultError(
            match_id, f"at least 2 participants required, got {len(participants)}"
        )

    counts = Counter(p.player_id for p in participants)
    duplicates = sorted(pid for pid, n in counts.items() if n > 1)
    if duplicates:
        raise InvalidMatchResultError(match_id, f"duplicate player ids {duplicates}")

    outcomes = Counter(p.outcome for p in participants)
    if len(participants) == 2:
        if outcomes not in (
            Counter({Outcome.WIN: 1, Outcome.LOSS: 1}),
            Counter({Outcome.DRAW: 2}),
        ):
            raise InvalidMatchResultError(
                match_id, "a 1v1 result must be one win and one loss, or two draws"
            )
        return

    all_draws = outcomes[Outcome.DRAW] == len(participants)
    if not all_draws and not (outcomes[Outcome.WIN] and outcomes[Outcome.LOSS]):
        raise InvalidMatchResultError(
            match_id,
            "a free-for-all result must be all draws or have at least one win and one loss",
        )


async def _apply_once(
    store: StatsStore,
    match_in: MatchResultCreate,
    settings: Settings,
    engine: EloEngine,
) -> MatchResultRead:
    """One lease-compute-commit attempt."""
    player_ids = [p.player_id for p in match_in.participants]

    async with store.lease(player_ids) as lease:
        snapshot = lease.snapshot
        before = [snapshot[p.player_id].rating for p in match_in.participants]

        if match_in.mode == MatchMode.CASUAL:
            deltas = [0] * len(before)
        else:
            deltas = engine.rate(before, [p.outcome for p in match_in.participants])

        now = datetime.now(timezone.utc)
        records = [
            apply_participant_result(
                snapshot[p.player_id], p, delta, match_in.mode, settings.validation, now
            )
            for p, delta in zip(match_in.participants, deltas)
        ]

        result = MatchResultRead(
            match_id=match_in.match_id,
            mode=match_in.mode,
            applied_at=now,
            participants=[
                ParticipantResultRead(
                    **p.model_dump(),
                    rating_before=rating_before,
                    rating_after=record.rating,
                    rating_change=record.rating - rating_before,
                )
                for p, rating_before, record in zip(match_in.participants, before, records)
            ],
        )

        await lease.commit(records, result)

    return result


async def apply_match_result(
    store: StatsStore,
    match_in: MatchResultCreate,
    settings: Settings | None = None,
) -> MatchResultRead:
    """
    Applies a completed match to every participant's stats.

    This service is responsible for:
    1. Validating the result (no storage access)
    2. Rejecting a match ID that was already applied
    3. Leasing all participants in ascending ID order
    4. Computing rating deltas and new stats from the pre-match snapshot
    5. Committing every record and the ledger entry together

    Steps 3-5 are retried with linear backoff on a version conflict or a
    lease timeout. No partial update is ever visible.

    Raises:
        InvalidMatchResultError: If the result fails validation
        DuplicateMatchError: If the match ID was already applied
        PlayerNotFoundError: If any participant does not exist
        UpdateConflictError: If conflicts persist after all retries
        LockTimeoutError: If the lease cannot be acquired after all retries
    """
    settings = settings or get_settings()

    logger.info(
        "Applying match result",
        extra={
            "match_id": match_in.match_id,
            "mode": match_in.mode.value,
            "participant_count": len(match_in.participants),
        },
    )

    _validate_participants(match_in)

    if await store.has_match(match_in.match_id):
        raise DuplicateMatchError(match_in.match_id)

    engine = EloEngine(k_factor=settings.elo_k_factor)
    attempts = max(1, settings.update_max_retries)
    last_error: ConflictError | LockTimeoutError | None = None

    for attempt in range(1, attempts + 1):
        try:
            result = await _apply_once(store, match_in, settings, engine)
        except (ConflictError, LockTimeoutError) as e:
            last_error = e
            logger.warning(
                "Match update attempt failed",
                extra={
                    "match_id": match_in.match_id,
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "error": e.message,
                },
            )
            if attempt < attempts:
                await asyncio.sleep(settings.update_retry_backoff_seconds * attempt)
            continue

        logger.info(
            "Match result applied",
            extra={
                "match_id": match_in.match_id,
                "rating_changes": {p.player_id: p.rating_change for p in result.participants},
            },
        )
        return result

    logger.error(
        "Match update retries exhausted",
        extra={"match_id": match_in.match_id, "attempts": attempts},
    )
    if isinstance(last_error, LockTimeoutError):
        raise last_error
    raise UpdateConflictError(match_in.match_id, attempts) from last_error
