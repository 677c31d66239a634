from __future__ import annotations

from .stimulus import DeicticVisuals, Family, StimulusData

MIN_TURN_S = 3.0
SECONDS_PER_COST = 1.5
NEGATED_COST = 4

_BASE_COST = {
    Family.FEATURE: 1,
    Family.COMPARISON: 2,
    Family.OPPOSITION: 2,
    Family.HIERARCHY: 3,
    Family.CAUSAL: 3,
    Family.SPATIAL: 3,
    Family.DEICTIC: 4,
    Family.CONDITIONAL: 5,
    Family.ANALOGY: 5,
}


def complexity_cost(stimulus: StimulusData) -> int:
    if stimulus.is_negated:
        return NEGATED_COST
    if stimulus.family is Family.CAUSAL and stimulus.tier >= 3:
        return 4
    if stimulus.family is Family.DEICTIC:
        visuals = stimulus.visuals
        assert isinstance(visuals, DeicticVisuals)
        return 6 if visuals.time_frame == "THEN" else 4
    return _BASE_COST[stimulus.family]


def rating_bonus_s(rating: int) -> float:
    return max(0.0, (rating - 1000) / 1000.0) * 2.0


def turn_time_budget_s(stimulus: StimulusData, *, base_timer_s: int | None, rating: int) -> float | None:
    """Seconds allowed for a turn, or None for an untimed configuration."""

    if base_timer_s is None:
        return None
    cost = complexity_cost(stimulus)
    return max(MIN_TURN_S, base_timer_s + (cost - 1) * SECONDS_PER_COST - rating_bonus_s(rating))
