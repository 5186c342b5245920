# src/duelrank/rating/elo_engine.py

"""
Elo rating deltas for 1v1 and free-for-all matches.

Expected score: E = 1 / (1 + 10^((R_opp - R_self) / 400)).
"""

import math
from collections.abc import Sequence

from duelrank.schemas import Outcome

# Outcomes ordered so that a higher value beats a lower one
_OUTCOME_ORDER = {Outcome.LOSS: 0, Outcome.DRAW: 1, Outcome.WIN: 2}


def actual_score(outcome: Outcome, opponent_outcome: Outcome) -> float:
    """Score of one participant against another: 1, 0.5 or 0."""
    mine = _OUTCOME_ORDER[outcome]
    theirs = _OUTCOME_ORDER[opponent_outcome]
    if mine > theirs:
        return 1.0
    if mine == theirs:
        return 0.5
    return 0.0


class EloEngine:
    """Encapsulates the Elo calculation logic."""

    def __init__(self, k_factor: int = 32):
        self.k_factor = k_factor

    @staticmethod
    def expected_score(rating: int, opponent_rating: int) -> float:
        return 1.0 / (1.0 + math.pow(10.0, (opponent_rating - rating) / 400.0))

    def rate(self, ratings: Sequence[int], outcomes: Sequence[Outcome]) -> list[int]:
        """
        Calculates integer rating deltas, one per participant, in input order.

        With two participants the second delta is the exact negation of the
        first. With more, each participant gets K times their mean
        (actual - expected) over every pairing; the sum is zero before
        rounding and may drift by a point or two after.
        """
        if len(ratings) != len(outcomes):
            raise ValueError("ratings and outcomes must have the same length")
        if len(ratings) < 2:
            raise ValueError("at least two participants are required")

        if len(ratings) == 2:
            d = self._pair_delta(ratings[0], outcomes[0], ratings[1], outcomes[1])
            return [d, -d]

        deltas: list[int] = []
        for i, (rating, outcome) in enumerate(zip(ratings, outcomes)):
            diffs = [
                actual_score(outcome, outcomes[j])
                - self.expected_score(rating, ratings[j])
                for j in range(len(ratings))
                if j != i
            ]
            deltas.append(round(self.k_factor * sum(diffs) / len(diffs)))
        return deltas

    def _pair_delta(
        self,
        rating: int,
        outcome: Outcome,
        opponent_rating: int,
        opponent_outcome: Outcome,
    ) -> int:
        score = actual_score(outcome, opponent_outcome)
        return round(self.k_factor * (score - self.expected_score(rating, opponent_rating)))
