from __future__ import annotations

DEFAULT_RATING = 1000
RATING_K = 10

TIER_2_FLOOR = 1200
TIER_3_FLOOR = 1500


def tier_for_rating(rating: int) -> int:
    """Map a rating to the difficulty tier used by the generators."""

    if rating < TIER_2_FLOOR:
        return 1
    if rating < TIER_3_FLOOR:
        return 2
    return 3


def rating_delta(correct: bool) -> int:
    return int(round(RATING_K * ((1 if correct else 0) - 0.5)))


def apply_rating(rating: int, correct: bool) -> int:
    return max(0, int(rating) + rating_delta(correct))
