from __future__ import annotations

import pytest

from cognitive_flux.rating import DEFAULT_RATING, apply_rating, rating_delta, tier_for_rating


@pytest.mark.parametrize(
    ("rating", "tier"),
    [(0, 1), (1000, 1), (1199, 1), (1200, 2), (1499, 2), (1500, 3), (2400, 3)],
)
def test_tier_boundaries(rating: int, tier: int) -> None:
    assert tier_for_rating(rating) == tier


def test_rating_moves_five_points_per_turn() -> None:
    assert rating_delta(True) == 5
    assert rating_delta(False) == -5
    assert apply_rating(DEFAULT_RATING, True) == 1005
    assert apply_rating(DEFAULT_RATING, False) == 995


def test_rating_never_goes_below_zero() -> None:
    assert apply_rating(3, False) == 0
    assert apply_rating(0, False) == 0
    assert apply_rating(0, True) == 5
