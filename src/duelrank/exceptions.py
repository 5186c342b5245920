# src/duelrank/exceptions.py

"""Custom exception hierarchy for DuelRank.

This module provides a structured exception hierarchy that enables:
1. Proper HTTP status code mapping in API endpoints
2. Detailed error context for logging and debugging
3. A clear split between caller errors (never retried) and transient
   storage contention (retried inside the update engine)
"""

from __future__ import annotations

from collections.abc import Iterable


class DuelRankError(Exception):
    """Base exception for all DuelRank errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional context for logging/debugging
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# =============================================================================
# Validation Errors (HTTP 422)
# =============================================================================


class ValidationError(DuelRankError):
    """Base class for validation errors."""

    pass


class FormatError(ValidationError):
    """Raised when a value has the wrong shape, length or range."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid {field}: {reason}",
            details={"field": field, "reason": reason},
        )
        self.field = field


class ReservedNameError(ValidationError):
    """Raised when a username is on the reserved list."""

    def __init__(self, username: str) -> None:
        super().__init__(
            message=f"Username '{username}' is reserved",
            details={"field": "username", "username": username},
        )
        self.field = "username"


class WeakPasswordError(ValidationError):
    """Raised when a password lacks a required character class."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            message=f"Password must contain at least one {', '.join(missing)} character",
            details={"field": "password", "missing": missing},
        )
        self.field = "password"
        self.missing = missing


class InvalidRangeError(ValidationError):
    """Raised when a query filter or pagination bound is inconsistent."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid range for {field}: {reason}",
            details={"field": field, "reason": reason},
        )
        self.field = field


class InvalidMatchResultError(ValidationError):
    """Raised when a match result violates its preconditions.

    Always raised before any lease is acquired.
    """

    def __init__(self, match_id: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid result for match {match_id}: {reason}",
            details={"match_id": match_id, "reason": reason},
        )


# =============================================================================
# Resource Not Found Errors (HTTP 404)
# =============================================================================


class ResourceNotFoundError(DuelRankError):
    """Base class for resource not found errors."""

    pass


class PlayerNotFoundError(ResourceNotFoundError):
    """Raised when a player ID does not exist."""

    def __init__(self, player_id: int) -> None:
        super().__init__(
            message=f"Player with ID {player_id} not found",
            details={"player_id": player_id},
        )
        self.player_id = player_id


class StatsNotFoundError(ResourceNotFoundError):
    """Raised when a player exists but has no stats record.

    This indicates an internal consistency error since stats are created
    together with the player.
    """

    def __init__(self, player_id: int) -> None:
        super().__init__(
            message=f"Stats for player {player_id} not found",
            details={"player_id": player_id},
        )


# =============================================================================
# Duplicate Resource Errors (HTTP 409, never retried)
# =============================================================================


class DuplicateResourceError(DuelRankError):
    """Base class for unique-key violations."""

    pass


class DuplicateMatchError(DuplicateResourceError):
    """Raised when a match result with the same match ID was already applied."""

    def __init__(self, match_id: str) -> None:
        super().__init__(
            message=f"Match {match_id} has already been applied",
            details={"match_id": match_id},
        )
        self.match_id = match_id


class DuplicatePlayerError(DuplicateResourceError):
    """Raised when a username or email is already registered."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(
            message=f"A player with {field} '{value}' already exists",
            details={"field": field},
        )


# =============================================================================
# Concurrency Errors (HTTP 409 / 503, retried by the update engine)
# =============================================================================


class ConflictError(DuelRankError):
    """Raised when a commit finds that its snapshot is no longer current."""

    def __init__(self, player_ids: Iterable[int], reason: str = "stale snapshot") -> None:
        ids = sorted(player_ids)
        super().__init__(
            message=f"Concurrent update conflict on players {ids}: {reason}",
            details={"player_ids": ids, "reason": reason},
        )


class UpdateConflictError(ConflictError):
    """Raised when a match update keeps conflicting after all retries."""

    def __init__(self, match_id: str, attempts: int) -> None:
        DuelRankError.__init__(
            self,
            message=f"Match {match_id} could not be applied after {attempts} attempts",
            details={"match_id": match_id, "attempts": attempts},
        )


class LockTimeoutError(DuelRankError):
    """Raised when a lease on player records cannot be acquired in time.

    Attributes:
        retry_after: Suggested delay in seconds before the caller re-drives
    """

    def __init__(self, player_ids: Iterable[int], timeout: float) -> None:
        ids = sorted(player_ids)
        super().__init__(
            message=f"Timed out after {timeout}s waiting for lease on players {ids}",
            details={"player_ids": ids, "timeout": timeout},
        )
        self.retry_after = max(1, round(timeout))
