from __future__ import annotations

from cognitive_flux.cognitive_core import SeededRng
from cognitive_flux.puzzles import vocabulary_for
from cognitive_flux.repair import (
    FAILURES_TO_ENTER,
    RepairState,
    draw_repair_claim,
    enter_repair,
    judge_repair,
    record_repair_answer,
    should_enter_repair,
)
from cognitive_flux.stimulus import Family


def test_entry_threshold() -> None:
    assert not should_enter_repair(FAILURES_TO_ENTER - 1)
    assert should_enter_repair(FAILURES_TO_ENTER)


def test_three_successes_exit_and_failures_reset_streak() -> None:
    state = enter_repair(Family.SPATIAL)
    assert state.active and state.locked_family is Family.SPATIAL

    state = record_repair_answer(state, True)
    state = record_repair_answer(state, True)
    assert state.consecutive_successes == 2
    state = record_repair_answer(state, False)
    assert state.active and state.consecutive_successes == 0

    for _ in range(3):
        state = record_repair_answer(state, True)
    assert state == RepairState()


def test_inactive_state_ignores_answers() -> None:
    assert record_repair_answer(RepairState(), True) == RepairState()


def test_claims_are_true_result_or_same_family_distractor() -> None:
    rng = SeededRng(12)
    vocab = vocabulary_for(Family.DEICTIC, 2)
    claims = [draw_repair_claim(Family.DEICTIC, 2, "LEFT", rng) for _ in range(200)]
    assert set(claims) <= set(vocab)
    assert "LEFT" in claims
    assert len(set(claims)) > 1


def test_judge_repair() -> None:
    assert judge_repair(claim="RED", true_result="RED", claim_true=True, timed_out=False) == (True, True)
    assert judge_repair(claim="RED", true_result="BLUE", claim_true=True, timed_out=False) == (False, False)
    assert judge_repair(claim="RED", true_result="BLUE", claim_true=False, timed_out=False) == (False, True)
    assert judge_repair(claim="RED", true_result="RED", claim_true=True, timed_out=True) == (True, False)
