# tests/test_elo_engine.py

"""Unit tests for the Elo rating engine."""

import pytest
from duelrank.rating.elo_engine import EloEngine, actual_score
from duelrank.schemas import Outcome

WIN, LOSS, DRAW = Outcome.WIN, Outcome.LOSS, Outcome.DRAW


@pytest.fixture
def engine() -> EloEngine:
    return EloEngine(k_factor=32)


def test_expected_score_equal_ratings(engine: EloEngine):
    assert engine.expected_score(1000, 1000) == pytest.approx(0.5)


def test_expected_score_is_complementary(engine: EloEngine):
    """Test that E(a, b) + E(b, a) == 1."""
    e_ab = engine.expected_score(1200, 1000)
    e_ba = engine.expected_score(1000, 1200)
    assert e_ab == pytest.approx(0.7597, abs=1e-4)
    assert e_ab + e_ba == pytest.approx(1.0)


def test_actual_score_table():
    assert actual_score(WIN, LOSS) == 1.0
    assert actual_score(LOSS, WIN) == 0.0
    assert actual_score(DRAW, DRAW) == 0.5
    assert actual_score(WIN, DRAW) == 1.0
    assert actual_score(DRAW, WIN) == 0.0


# =============================================================================
# 1v1
# =============================================================================


def test_equal_ratings_win(engine: EloEngine):
    """Test that a win between equals moves both players by K/2."""
    assert engine.rate([1000, 1000], [WIN, LOSS]) == [16, -16]
    assert engine.rate([1000, 1000], [LOSS, WIN]) == [-16, 16]


def test_equal_ratings_draw_changes_nothing(engine: EloEngine):
    assert engine.rate([1000, 1000], [DRAW, DRAW]) == [0, 0]


def test_underdog_win_gains_more(engine: EloEngine):
    """Test that beating a stronger opponent is worth more than beating a weaker one."""
    assert engine.rate([1000, 1200], [WIN, LOSS]) == [24, -24]
    assert engine.rate([1200, 1000], [WIN, LOSS]) == [8, -8]


def test_draw_between_unequal_ratings_favors_underdog(engine: EloEngine):
    assert engine.rate([1000, 1200], [DRAW, DRAW]) == [8, -8]
    assert engine.rate([1200, 1000], [DRAW, DRAW]) == [-8, 8]


@pytest.mark.parametrize(
    "ratings", [(1000, 1000), (1000, 1337), (2400, 800), (0, 5000), (1499, 1501)]
)
@pytest.mark.parametrize("outcomes", [(WIN, LOSS), (LOSS, WIN), (DRAW, DRAW)])
def test_one_vs_one_is_exactly_zero_sum(engine: EloEngine, ratings, outcomes):
    deltas = engine.rate(list(ratings), list(outcomes))
    assert sum(deltas) == 0


def test_k_factor_scales_deltas():
    assert EloEngine(k_factor=16).rate([1000, 1000], [WIN, LOSS]) == [8, -8]


# =============================================================================
# Free-for-all
# =============================================================================


def test_ffa_single_winner_equal_ratings(engine: EloEngine):
    """Test the pairwise-mean rule with one winner and two losers.

    Winner: mean(1 - 0.5, 1 - 0.5) = 0.5 -> +16.
    Losers: mean(0 - 0.5, 0.5 - 0.5) = -0.25 -> -8 each.
    """
    assert engine.rate([1000, 1000, 1000], [WIN, LOSS, LOSS]) == [16, -8, -8]


def test_ffa_all_draws_equal_ratings(engine: EloEngine):
    assert engine.rate([1000] * 4, [DRAW] * 4) == [0, 0, 0, 0]


def test_ffa_is_near_zero_sum(engine: EloEngine):
    """Test that rounding drift stays within one point per participant."""
    ratings = [1000, 1130, 1275, 870, 1420]
    outcomes = [WIN, LOSS, DRAW, LOSS, WIN]
    deltas = engine.rate(ratings, outcomes)
    assert abs(sum(deltas)) <= len(ratings) // 2


def test_ffa_winners_gain_and_losers_lose(engine: EloEngine):
    deltas = engine.rate([1000, 1000, 1000, 1000], [WIN, DRAW, LOSS, LOSS])
    assert deltas[0] > deltas[1] > deltas[2]
    assert deltas[2] == deltas[3]


# =============================================================================
# Argument errors
# =============================================================================


def test_rate_requires_matching_lengths(engine: EloEngine):
    with pytest.raises(ValueError):
        engine.rate([1000, 1000], [WIN])


def test_rate_requires_two_participants(engine: EloEngine):
    with pytest.raises(ValueError):
        engine.rate([1000], [WIN])
