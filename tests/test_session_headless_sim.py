from __future__ import annotations

from dataclasses import dataclass

from cognitive_flux.cognitive_core import Phase
from cognitive_flux.rating import DEFAULT_RATING
from cognitive_flux.results import summarize_log
from cognitive_flux.session import FluxSession, build_flux_session
from cognitive_flux.settings import GameConfig, SettingsStore


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _truth(session: FluxSession) -> bool:
    if session.repair_state.active:
        return session.repair_state.target_result == session.current_result
    h = session.history
    n = session.config.n_back_level
    return h[-1].result == h[-1 - n].result


def _play(session: FluxSession, clock: FakeClock, turns: int, answer) -> None:
    """Drive the session for ``turns`` scored turns using ``answer(i, truth)``."""

    session.start()
    scored = 0
    while scored < turns:
        if session.phase is Phase.FEEDBACK:
            session.advance()
        elif session.phase is Phase.WARMUP:
            clock.advance(0.2)
            session.submit_answer(False)
        else:
            clock.advance(0.5)
            session.submit_answer(answer(scored, _truth(session)))
            scored += 1


def test_headless_sim_perfect_play_climbs_tiers() -> None:
    clock = FakeClock()
    session = FluxSession(clock=clock, seed=2024, config=GameConfig(n_back_level=2, base_timer_s=10))

    _play(session, clock, 120, lambda i, truth: truth)

    log = session.log
    assert len(log) == 120
    assert [e.id for e in log] == list(range(120, 0, -1))
    assert all(e.is_correct for e in log)
    assert session.active_rating == DEFAULT_RATING + 5 * 120
    assert session.persisted_rating == session.active_rating

    tiers = {e.current_item.stimulus.tier for e in log}
    assert tiers == {1, 2, 3}
    families = {e.current_item.stimulus.family for e in log}
    assert len(families) >= 5

    summary = summarize_log(log)
    assert summary.attempted == 120
    assert summary.accuracy == 1.0
    assert summary.mean_rt_ms == 500.0
    assert summary.final_rating == session.active_rating


def test_headless_sim_match_rate_is_balanced() -> None:
    clock = FakeClock()
    session = FluxSession(clock=clock, seed=77, config=GameConfig(n_back_level=1, base_timer_s=None))
    _play(session, clock, 200, lambda i, truth: truth)

    matches = sum(1 for e in session.log if e.is_match)
    assert 60 < matches < 140


def test_headless_sim_always_wrong_cycles_through_repair() -> None:
    clock = FakeClock()
    session = FluxSession(clock=clock, seed=5, config=GameConfig(base_timer_s=None))

    _play(session, clock, 30, lambda i, truth: not truth)

    log = session.log
    assert all(not e.is_correct for e in log)
    assert any(e.is_repair for e in log)
    assert session.repair_state.active
    # Rating only moves on N-back turns.
    nback_turns = sum(1 for e in log if not e.is_repair)
    assert nback_turns == 3
    assert session.active_rating == DEFAULT_RATING - 5 * nback_turns


def test_headless_sim_persists_rating_through_store(tmp_path) -> None:
    store = SettingsStore(tmp_path / "flux.json")
    store.save_config(GameConfig(n_back_level=1, base_timer_s=None))

    clock = FakeClock()
    session = build_flux_session(clock=clock, seed=3, store=store)
    assert session.config.base_timer_s is None
    _play(session, clock, 10, lambda i, truth: truth if i < 9 else not truth)

    assert store.load_rating() == DEFAULT_RATING + 5 * 9 - 5
    resumed = build_flux_session(clock=FakeClock(), seed=4, store=store)
    assert resumed.persisted_rating == store.load_rating()
    assert resumed.active_rating == resumed.persisted_rating
