from __future__ import annotations

from dataclasses import dataclass

import pytest

from cognitive_flux.cognitive_core import Phase, SeededRng
from cognitive_flux.puzzles import generate_puzzle
from cognitive_flux.rating import DEFAULT_RATING
from cognitive_flux.session import FluxSession, judge_nback, phase_for_turn
from cognitive_flux.settings import GameConfig
from cognitive_flux.stimulus import Family, HistoryItem


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _correct_claim(session: FluxSession) -> bool:
    if session.repair_state.active:
        return session.repair_state.target_result == session.current_result
    h = session.history
    n = session.config.n_back_level
    return h[-1].result == h[-1 - n].result


def _skip_warmup(session: FluxSession) -> None:
    while session.phase is Phase.WARMUP:
        assert session.submit_answer(True) is True
    assert session.phase is Phase.PLAYING


def _item(result: str) -> HistoryItem:
    stim = generate_puzzle(Family.FEATURE, None, False, 1, SeededRng(1)).stimulus
    return HistoryItem(result=result, stimulus=stim)


def test_phase_for_turn() -> None:
    assert phase_for_turn(0, 1, False) is Phase.WARMUP
    assert phase_for_turn(1, 1, False) is Phase.PLAYING
    assert phase_for_turn(1, 2, False) is Phase.WARMUP
    assert phase_for_turn(0, 3, True) is Phase.PLAYING


def test_judge_nback_two_back() -> None:
    history = [_item("EXACT"), _item("NONE"), _item("EXACT")]
    verdict = judge_nback(history, 2, True)
    assert verdict.is_match and verdict.is_correct
    assert verdict.target is history[0]
    assert verdict.current is history[2]

    assert judge_nback(history, 2, False).is_correct is False
    assert judge_nback(history, 1, False).is_correct is True
    assert judge_nback(history, 2, True, timed_out=True).is_correct is False

    with pytest.raises(ValueError):
        judge_nback(history, 3, True)


def test_idle_until_started() -> None:
    s = FluxSession(clock=FakeClock(), seed=1)
    assert s.phase is Phase.IDLE
    assert s.submit_answer(True) is False
    assert s.advance() is False
    s.start()
    assert s.phase is Phase.WARMUP
    assert len(s.history) == 1


def test_warmup_answers_are_not_logged() -> None:
    s = FluxSession(clock=FakeClock(), seed=2, config=GameConfig(n_back_level=3))
    s.start()
    for expected_len in (2, 3, 4):
        assert s.phase is Phase.WARMUP
        assert s.submit_answer(False) is True
        assert len(s.history) == expected_len
    assert s.phase is Phase.PLAYING
    assert s.log == ()


def test_correct_answer_scores_and_persists() -> None:
    clock = FakeClock()
    saved: list[int] = []
    s = FluxSession(clock=clock, seed=3, on_rating_change=saved.append)
    s.start()
    _skip_warmup(s)

    clock.advance(1.25)
    assert s.submit_answer(_correct_claim(s)) is True
    assert s.phase is Phase.FEEDBACK
    assert s.submit_answer(True) is False

    entry = s.log[0]
    assert entry.is_correct and not entry.timed_out and not entry.is_repair
    assert entry.id == 1
    assert entry.reaction_time_s == pytest.approx(1.25)
    assert entry.rating == DEFAULT_RATING
    assert entry.n_back_item is s.history[-2]
    assert s.active_rating == s.persisted_rating == DEFAULT_RATING + 5
    assert saved == [DEFAULT_RATING + 5]
    assert s.time_remaining_s() is None

    snap = s.snapshot()
    assert snap.last_entry == entry
    assert s.advance() is True
    assert s.phase is Phase.PLAYING
    assert s.snapshot().last_entry is None


def test_timeout_scores_as_incorrect() -> None:
    clock = FakeClock()
    s = FluxSession(clock=clock, seed=4, config=GameConfig(base_timer_s=5))
    s.start()
    _skip_warmup(s)

    budget = s.snapshot().time_budget_s
    assert budget is not None and budget >= 5
    clock.advance(budget - 0.01)
    s.update()
    assert s.phase is Phase.PLAYING
    clock.advance(0.02)
    s.update()

    assert s.phase is Phase.FEEDBACK
    entry = s.log[0]
    assert entry.timed_out and entry.user_answer is None and not entry.is_correct
    assert s.active_rating == DEFAULT_RATING - 5


def test_warmup_timeout_deals_next_turn() -> None:
    clock = FakeClock()
    s = FluxSession(clock=clock, seed=5, config=GameConfig(n_back_level=2, base_timer_s=3))
    s.start()
    assert s.phase is Phase.WARMUP
    clock.advance(60.0)
    s.update()
    assert len(s.history) == 2
    assert s.log == ()


def test_infinite_timer_never_expires() -> None:
    clock = FakeClock()
    s = FluxSession(clock=clock, seed=6, config=GameConfig(base_timer_s=None))
    s.start()
    _skip_warmup(s)
    assert s.time_remaining_s() is None
    clock.advance(10_000.0)
    s.update()
    assert s.phase is Phase.PLAYING


def test_three_failures_enter_repair_and_three_successes_exit() -> None:
    s = FluxSession(clock=FakeClock(), seed=7, config=GameConfig(base_timer_s=None))
    s.start()
    for i in range(3):
        _skip_warmup(s)
        s.submit_answer(not _correct_claim(s))
        assert s.consecutive_failures == i + 1
        s.advance()

    repair = s.repair_state
    assert repair.active
    failed_family = s.log[0].current_item.stimulus.family
    assert repair.locked_family is failed_family
    history_before = s.history

    for _ in range(3):
        assert s.phase is Phase.PLAYING
        assert s.snapshot().repair is not None
        assert s.snapshot().stimulus.family is failed_family
        rating = s.active_rating
        s.submit_answer(_correct_claim(s))
        entry = s.log[0]
        assert entry.is_repair and entry.is_correct
        assert entry.repair_claim is not None
        assert entry.n_back_item is None
        assert s.active_rating == rating
        if s.repair_state.active:
            assert s.history == history_before
        s.advance()

    assert not s.repair_state.active
    assert s.consecutive_failures == 0
    assert len(s.history) == 1
    assert s.phase is Phase.WARMUP


def test_wrong_repair_answer_resets_streak() -> None:
    s = FluxSession(clock=FakeClock(), seed=8, config=GameConfig(base_timer_s=None))
    s.start()
    for _ in range(3):
        _skip_warmup(s)
        s.submit_answer(not _correct_claim(s))
        s.advance()

    s.submit_answer(_correct_claim(s))
    s.advance()
    assert s.repair_state.consecutive_successes == 1
    s.submit_answer(not _correct_claim(s))
    assert s.repair_state.consecutive_successes == 0
    assert s.repair_state.active


def test_practice_mode_locks_family_and_freezes_persisted_rating() -> None:
    saved: list[int] = []
    config = GameConfig(is_practice_mode=True, practice_family=Family.HIERARCHY, base_timer_s=None)
    s = FluxSession(clock=FakeClock(), seed=9, config=config, rating=1300, on_rating_change=saved.append)
    assert s.active_rating == 1300
    s.start()
    for _ in range(20):
        _skip_warmup(s)
        assert s.snapshot().stimulus.family is Family.HIERARCHY
        s.submit_answer(_correct_claim(s))
        s.advance()

    assert s.active_rating == 1400
    assert s.persisted_rating == 1300
    assert saved == []
    assert len(s.history) == 2


def test_block_switch_truncates_history_and_forces_warmup() -> None:
    s = FluxSession(clock=FakeClock(), seed=10, config=GameConfig(n_back_level=2, base_timer_s=None))
    s.start()
    family = s.scheduler_state.active_family
    switches = 0
    for _ in range(120):
        if s.phase is Phase.FEEDBACK:
            s.advance()
        elif s.phase is Phase.WARMUP:
            s.submit_answer(True)
        else:
            s.submit_answer(_correct_claim(s))
            continue
        if s.scheduler_state.active_family is not family:
            family = s.scheduler_state.active_family
            switches += 1
            assert s.phase is Phase.WARMUP
            assert len(s.history) == 1
    assert switches >= 2


def test_apply_config_resets_to_idle() -> None:
    s = FluxSession(clock=FakeClock(), seed=11)
    s.start()
    s.apply_config(GameConfig(n_back_level=4))
    assert s.phase is Phase.IDLE
    assert s.history == () and s.log == ()
    assert s.config.n_back_level == 4

    with pytest.raises(ValueError):
        s.apply_config(GameConfig(n_back_level=12))
    with pytest.raises(ValueError):
        FluxSession(clock=FakeClock(), seed=1, config=GameConfig(base_timer_s=2))


def test_reset_rating_restores_default() -> None:
    saved: list[int] = []
    s = FluxSession(clock=FakeClock(), seed=12, rating=1700, on_rating_change=saved.append)
    s.start()
    s.reset_rating()
    assert s.phase is Phase.IDLE
    assert s.active_rating == s.persisted_rating == DEFAULT_RATING
    assert saved == [DEFAULT_RATING]


def test_snapshot_hides_result_until_feedback() -> None:
    s = FluxSession(clock=FakeClock(), seed=13, config=GameConfig(base_timer_s=None))
    s.start()
    _skip_warmup(s)
    snap = s.snapshot()
    assert snap.last_entry is None
    assert snap.stimulus is not None
    assert snap.query_text == snap.stimulus.query_text
    assert snap.buttons_flipped in (True, False)


def test_logged_rating_is_the_rating_the_turn_was_played_at() -> None:
    s = FluxSession(clock=FakeClock(), seed=14, config=GameConfig(base_timer_s=None), rating=1200)
    s.start()
    for _ in range(4):
        _skip_warmup(s)
        before = s.active_rating
        s.submit_answer(_correct_claim(s))
        assert s.log[0].rating == before
        assert s.active_rating == before + 5
        s.advance()


@pytest.mark.parametrize("n_back", [1, 3])
def test_history_keeps_only_the_comparison_window(n_back: int) -> None:
    config = GameConfig(n_back_level=n_back, base_timer_s=None, is_practice_mode=True, practice_family=Family.FEATURE)
    s = FluxSession(clock=FakeClock(), seed=15, config=config)
    s.start()
    for _ in range(30):
        if s.phase is Phase.FEEDBACK:
            s.advance()
        elif s.phase is Phase.WARMUP:
            s.submit_answer(True)
        else:
            s.submit_answer(_correct_claim(s))
        assert len(s.history) <= n_back + 1
    assert len(s.history) == n_back + 1


def test_pause_freezes_the_countdown() -> None:
    clock = FakeClock()
    s = FluxSession(clock=clock, seed=16, config=GameConfig(base_timer_s=5))
    s.start()
    _skip_warmup(s)

    clock.advance(1.0)
    remaining = s.time_remaining_s()
    assert remaining is not None
    s.pause()
    assert s.is_paused

    clock.advance(1000.0)
    s.update()
    assert s.phase is Phase.PLAYING
    assert s.time_remaining_s() == pytest.approx(remaining)

    s.resume()
    assert not s.is_paused
    assert s.time_remaining_s() == pytest.approx(remaining)
    clock.advance(0.5)
    s.submit_answer(_correct_claim(s))
    assert s.log[0].reaction_time_s == pytest.approx(1.5)
    assert not s.log[0].timed_out


def test_pause_is_ignored_without_a_pending_turn() -> None:
    s = FluxSession(clock=FakeClock(), seed=17, config=GameConfig(base_timer_s=None))
    s.pause()
    assert not s.is_paused
    s.start()
    _skip_warmup(s)
    s.pause()
    assert not s.is_paused
    assert s.time_remaining_s() is None
