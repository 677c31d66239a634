from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from .clock import Clock
from .cognitive_core import LogEntry, Phase, RepairBanner, SeededRng, SessionSnapshot
from .complexity import turn_time_budget_s
from .puzzles import generate_stimulus
from .rating import DEFAULT_RATING, apply_rating, tier_for_rating
from .repair import (
    SUCCESSES_TO_EXIT,
    RepairState,
    draw_repair_claim,
    enter_repair,
    judge_repair,
    record_repair_answer,
    should_enter_repair,
)
from .scheduler import BlockSchedulerState, advance_block
from .settings import GameConfig, SettingsStore
from .stimulus import Family, GeneratedPuzzle, HistoryItem

logger = logging.getLogger(__name__)


def phase_for_turn(effective_len: int, n_back_level: int, repair_active: bool) -> Phase:
    """Phase of a freshly dealt turn."""

    if repair_active:
        return Phase.PLAYING
    if effective_len >= n_back_level:
        return Phase.PLAYING
    return Phase.WARMUP


@dataclass(frozen=True, slots=True)
class NBackVerdict:
    target: HistoryItem
    current: HistoryItem
    is_match: bool
    is_correct: bool


def judge_nback(
    history: Sequence[HistoryItem],
    n_back_level: int,
    claim_true: bool,
    *,
    timed_out: bool = False,
) -> NBackVerdict:
    """Compare the newest item with the one ``n_back_level`` turns earlier."""

    if n_back_level < 1:
        raise ValueError("n_back_level must be >= 1")
    if len(history) <= n_back_level:
        raise ValueError("history is too short to judge")
    current = history[-1]
    target = history[-1 - n_back_level]
    is_match = current.result == target.result
    is_correct = (not timed_out) and bool(claim_true) == is_match
    return NBackVerdict(target=target, current=current, is_match=is_match, is_correct=is_correct)


class FluxSession:
    """Adaptive relational N-back session.

    Deals one puzzle per turn, judges answers against the item N turns back,
    moves the rating and drops into repair mode after repeated failures.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        seed: int,
        config: GameConfig | None = None,
        rating: int = DEFAULT_RATING,
        on_rating_change: Callable[[int], None] | None = None,
    ) -> None:
        if rating < 0:
            raise ValueError("rating must be >= 0")
        self._clock = clock
        self._seed = int(seed)
        self._rng = SeededRng(self._seed)
        self._config = (config or GameConfig()).validate()
        self._persisted_rating = int(rating)
        self._on_rating_change = on_rating_change

        self._phase = Phase.IDLE
        self._active_rating = self._persisted_rating
        self._history: list[HistoryItem] = []
        self._log: list[LogEntry] = []
        self._scheduler = BlockSchedulerState()
        self._repair = RepairState()
        self._consecutive_failures = 0
        self._turn_count = 0

        self._current: GeneratedPuzzle | None = None
        self._turn_family: Family | None = None
        self._turn_started_at_s = 0.0
        self._deadline_s: float | None = None
        self._paused_at_s: float | None = None
        self._paused_remaining_s: float | None = None
        self._budget_s: float | None = None
        self._buttons_flipped = False

    # ---- state ----

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def active_rating(self) -> int:
        return self._active_rating

    @property
    def persisted_rating(self) -> int:
        return self._persisted_rating

    @property
    def log(self) -> tuple[LogEntry, ...]:
        return tuple(self._log)

    @property
    def history(self) -> tuple[HistoryItem, ...]:
        return tuple(self._history)

    @property
    def repair_state(self) -> RepairState:
        return self._repair

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def scheduler_state(self) -> BlockSchedulerState:
        return self._scheduler

    @property
    def current_result(self) -> str | None:
        """Ground truth of the pending turn (for tests and debugging views)."""

        return None if self._current is None else self._current.result

    # ---- lifecycle ----

    def start(self) -> None:
        if self._phase is not Phase.IDLE:
            return
        self._deal_turn()

    def reset(self) -> None:
        """Return to IDLE, clearing history, log, blocks and repair state."""

        self._phase = Phase.IDLE
        self._active_rating = self._persisted_rating
        self._history.clear()
        self._log.clear()
        self._scheduler = BlockSchedulerState()
        self._repair = RepairState()
        self._consecutive_failures = 0
        self._turn_count = 0
        self._current = None
        self._turn_family = None
        self._clear_deadline()

    def apply_config(self, config: GameConfig) -> None:
        self._config = config.validate()
        logger.info(
            "config applied: n=%d timer=%s practice=%s family=%s",
            self._config.n_back_level,
            self._config.base_timer_s,
            self._config.is_practice_mode,
            self._config.practice_family,
        )
        self.reset()

    def reset_rating(self) -> None:
        self._persisted_rating = DEFAULT_RATING
        self._notify_rating()
        self.reset()

    # ---- turn flow ----

    def submit_answer(self, claim_true: bool, *, timed_out: bool = False) -> bool:
        """Answer the pending turn. Returns False when no turn accepts input."""

        if self._phase is Phase.WARMUP:
            self._deal_turn()
            return True
        if self._phase is not Phase.PLAYING or self._current is None:
            return False

        reaction_s = max(0.0, self._clock.now() - self._turn_started_at_s)
        self._clear_deadline()
        self._turn_count += 1
        user_answer = None if timed_out else bool(claim_true)

        if self._repair.active:
            entry = self._score_repair_turn(user_answer, timed_out, reaction_s)
        else:
            entry = self._score_nback_turn(user_answer, timed_out, reaction_s)

        self._log.insert(0, entry)
        self._phase = Phase.FEEDBACK
        return True

    def advance(self) -> bool:
        """Leave FEEDBACK and deal the next turn."""

        if self._phase is not Phase.FEEDBACK:
            return False
        self._deal_turn()
        return True

    def update(self) -> None:
        """Timer tick: expire the pending turn once its budget runs out."""

        if self._deadline_s is None or self._phase not in (Phase.WARMUP, Phase.PLAYING):
            return
        if self._clock.now() < self._deadline_s:
            return
        if self._phase is Phase.WARMUP:
            self._deal_turn()
        else:
            self.submit_answer(False, timed_out=True)

    def pause(self) -> None:
        """Freeze the countdown of the pending turn."""

        if self._deadline_s is None or self._phase not in (Phase.WARMUP, Phase.PLAYING):
            return
        now = self._clock.now()
        self._paused_at_s = now
        self._paused_remaining_s = max(0.0, self._deadline_s - now)
        self._deadline_s = None

    def resume(self) -> None:
        if self._paused_at_s is None or self._paused_remaining_s is None:
            return
        now = self._clock.now()
        self._turn_started_at_s += now - self._paused_at_s
        self._deadline_s = now + self._paused_remaining_s
        self._paused_at_s = None
        self._paused_remaining_s = None

    @property
    def is_paused(self) -> bool:
        return self._paused_at_s is not None

    def time_remaining_s(self) -> float | None:
        if self._paused_remaining_s is not None:
            return self._paused_remaining_s
        if self._deadline_s is None:
            return None
        return max(0.0, self._deadline_s - self._clock.now())

    def snapshot(self) -> SessionSnapshot:
        stim = None if self._current is None else self._current.stimulus
        banner = None
        if self._repair.active and self._repair.locked_family is not None:
            banner = RepairBanner(
                family=self._repair.locked_family.label,
                successes=self._repair.consecutive_successes,
                required=SUCCESSES_TO_EXIT,
                claim=self._repair.target_result,
            )
        query = "" if stim is None else stim.query_text
        if banner is not None and self._phase is Phase.PLAYING:
            query = f"{query}  =  {banner.claim} ?"

        return SessionSnapshot(
            phase=self._phase,
            stimulus=stim,
            query_text=query,
            time_remaining_s=self.time_remaining_s(),
            time_budget_s=self._budget_s,
            active_rating=self._active_rating,
            persisted_rating=self._persisted_rating,
            n_back_level=self._config.n_back_level,
            is_practice_mode=self._config.is_practice_mode,
            buttons_flipped=self._buttons_flipped,
            turn_count=self._turn_count,
            repair=banner,
            last_entry=self._log[0] if (self._phase is Phase.FEEDBACK and self._log) else None,
        )

    # ---- internals ----

    def _pick_family(self) -> tuple[Family, bool]:
        if self._repair.active and self._repair.locked_family is not None:
            return self._repair.locked_family, False
        locked = self._config.locked_family
        if locked is not None:
            return locked, False
        step = advance_block(self._scheduler, n_back_level=self._config.n_back_level, rng=self._rng)
        self._scheduler = step.state
        if step.switched:
            logger.debug(
                "block switch to %s for %d turns",
                step.family.value,
                step.state.remaining_turns + 1,
            )
        return step.family, step.switched

    def _deal_turn(self) -> None:
        n = self._config.n_back_level
        tier = tier_for_rating(self._active_rating)
        family, switched = self._pick_family()
        repair_active = self._repair.active

        if switched:
            self._history.clear()
        effective_len = len(self._history)

        force_match = self._rng.coin()
        prev_result = None
        if not repair_active and effective_len >= n:
            prev_result = self._history[effective_len - n].result

        puzzle = generate_stimulus(family, prev_result, force_match, tier, self._rng)
        self._current = puzzle
        self._turn_family = family

        if repair_active:
            claim = draw_repair_claim(family, tier, puzzle.result, self._rng)
            self._repair = replace(self._repair, target_result=claim)
        else:
            self._history.append(HistoryItem(result=puzzle.result, stimulus=puzzle.stimulus))
            # Only the newest item and the one N back are ever read.
            del self._history[: -(n + 1)]

        self._phase = phase_for_turn(effective_len, n, repair_active)
        self._buttons_flipped = self._rng.coin()

        self._clear_deadline()
        now = self._clock.now()
        self._turn_started_at_s = now
        self._budget_s = turn_time_budget_s(
            puzzle.stimulus,
            base_timer_s=self._config.base_timer_s,
            rating=self._active_rating,
        )
        self._deadline_s = None if self._budget_s is None else now + self._budget_s

    def _score_nback_turn(self, user_answer: bool | None, timed_out: bool, reaction_s: float) -> LogEntry:
        assert self._turn_family is not None
        verdict = judge_nback(
            self._history,
            self._config.n_back_level,
            bool(user_answer),
            timed_out=timed_out,
        )
        rating_played = self._active_rating
        self._apply_rating(verdict.is_correct)

        if verdict.is_correct:
            self._consecutive_failures = 0
        else:
            self._consecutive_failures += 1
            if should_enter_repair(self._consecutive_failures):
                self._repair = enter_repair(self._turn_family)

        return LogEntry(
            id=self._turn_count,
            timestamp=_utc_timestamp(),
            rating=rating_played,
            n_back_item=verdict.target,
            current_item=verdict.current,
            user_answer=user_answer,
            is_match=verdict.is_match,
            is_correct=verdict.is_correct,
            reaction_time_s=reaction_s,
            timed_out=timed_out,
        )

    def _score_repair_turn(self, user_answer: bool | None, timed_out: bool, reaction_s: float) -> LogEntry:
        assert self._current is not None
        claim = self._repair.target_result
        claim_is_true, correct = judge_repair(
            claim=claim,
            true_result=self._current.result,
            claim_true=bool(user_answer),
            timed_out=timed_out,
        )
        self._repair = record_repair_answer(self._repair, correct)
        if not self._repair.active:
            self._consecutive_failures = 0
            self._history.clear()

        return LogEntry(
            id=self._turn_count,
            timestamp=_utc_timestamp(),
            rating=self._active_rating,
            n_back_item=None,
            current_item=HistoryItem(result=self._current.result, stimulus=self._current.stimulus),
            user_answer=user_answer,
            is_match=claim_is_true,
            is_correct=correct,
            reaction_time_s=reaction_s,
            is_repair=True,
            timed_out=timed_out,
            repair_claim=claim,
        )

    def _apply_rating(self, correct: bool) -> None:
        self._active_rating = apply_rating(self._active_rating, correct)
        if self._config.is_practice_mode:
            return
        self._persisted_rating = self._active_rating
        self._notify_rating()

    def _notify_rating(self) -> None:
        if self._on_rating_change is not None:
            self._on_rating_change(self._persisted_rating)

    def _clear_deadline(self) -> None:
        self._deadline_s = None
        self._budget_s = None
        self._paused_at_s = None
        self._paused_remaining_s = None


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_flux_session(
    *,
    clock: Clock,
    seed: int,
    store: SettingsStore | None = None,
    config: GameConfig | None = None,
) -> FluxSession:
    """Create a session, restoring rating and config from ``store`` when given."""

    if store is None:
        return FluxSession(clock=clock, seed=seed, config=config)
    return FluxSession(
        clock=clock,
        seed=seed,
        config=config if config is not None else store.load_config(),
        rating=store.load_rating(),
        on_rating_change=store.save_rating,
    )
