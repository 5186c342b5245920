# src/duelrank/schemas/match.py

"""Pydantic schemas for match results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import CharacterClass, MatchMode, Outcome

# ===============================================
# == Participant Schemas
# ===============================================


class ParticipantResultCreate(BaseModel):
    """One participant's line in a completed match."""

    player_id: int
    outcome: Outcome
    damage_dealt: int = Field(0, ge=0)
    damage_taken: int = Field(0, ge=0)
    duration_seconds: int = Field(0, ge=0, description="Time spent in the match")
    class_played: CharacterClass | None = None


class ParticipantResultRead(BaseModel):
    """Properties to return for a participant after the match is applied."""

    player_id: int
    outcome: Outcome
    class_played: CharacterClass | None = None
    damage_dealt: int
    damage_taken: int
    duration_seconds: int

    # Rating history for auditing
    rating_before: int
    rating_after: int
    rating_change: int

    model_config = ConfigDict(from_attributes=True)


# ===============================================
# == Match Schemas
# ===============================================


class MatchResultCreate(BaseModel):
    """
    Properties to receive when a match completes.
    This is the main payload for the update engine.

    Participant count and outcome consistency are checked by the service
    so they surface as ``InvalidMatchResultError``.
    """

    match_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Caller-supplied idempotency key",
    )
    mode: MatchMode = MatchMode.RANKED
    participants: list[ParticipantResultCreate]


class MatchResultRead(BaseModel):
    """Properties to return once a match result is committed."""

    match_id: str
    mode: MatchMode
    applied_at: datetime
    participants: list[ParticipantResultRead]

    model_config = ConfigDict(from_attributes=True)
