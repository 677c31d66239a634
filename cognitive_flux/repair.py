from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from .cognitive_core import SeededRng
from .puzzles import vocabulary_for
from .stimulus import Family

logger = logging.getLogger(__name__)

FAILURES_TO_ENTER = 3
SUCCESSES_TO_EXIT = 3


@dataclass(frozen=True, slots=True)
class RepairState:
    active: bool = False
    locked_family: Family | None = None
    consecutive_successes: int = 0
    target_result: str = ""


def should_enter_repair(consecutive_failures: int) -> bool:
    return consecutive_failures >= FAILURES_TO_ENTER


def enter_repair(family: Family) -> RepairState:
    logger.info("entering repair mode for %s", family.value)
    return RepairState(active=True, locked_family=family)


def draw_repair_claim(family: Family, tier: int, true_result: str, rng: SeededRng) -> str:
    """Claim shown to the player: the true result or a same-family distractor."""

    if rng.coin():
        return true_result
    distractors = [r for r in vocabulary_for(family, tier) if r != true_result]
    if not distractors:
        return true_result
    return rng.choice(distractors)


def judge_repair(*, claim: str, true_result: str, claim_true: bool, timed_out: bool) -> tuple[bool, bool]:
    """Return (claim_is_true, is_correct) for a single-step verification."""

    claim_is_true = claim == true_result
    return claim_is_true, (not timed_out) and claim_true == claim_is_true


def record_repair_answer(state: RepairState, correct: bool) -> RepairState:
    if not state.active:
        return state
    if not correct:
        return replace(state, consecutive_successes=0)
    streak = state.consecutive_successes + 1
    if streak >= SUCCESSES_TO_EXIT:
        logger.info("repair mode cleared after %d verified turns", streak)
        return RepairState()
    return replace(state, consecutive_successes=streak)
