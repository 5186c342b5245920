# src/duelrank/schemas/common.py

"""Enumerations shared across schemas and the ORM layer."""

from enum import Enum


class CharacterClass(str, Enum):
    """Playable character classes."""

    GUNSLINGER = "gunslinger"
    DEMOLITIONIST = "demolitionist"
    BUCKSHOT = "buckshot"


class Outcome(str, Enum):
    """A single participant's result in a match."""

    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


class MatchMode(str, Enum):
    """Whether a match affects rating."""

    RANKED = "ranked"
    CASUAL = "casual"
