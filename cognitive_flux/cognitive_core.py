from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from .stimulus import HistoryItem, StimulusData

T = TypeVar("T")


class Phase(str, Enum):
    IDLE = "idle"
    WARMUP = "warmup"
    PLAYING = "playing"
    FEEDBACK = "feedback"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Audit record of one scored turn. Never mutated after creation."""

    id: int
    timestamp: str
    rating: int
    n_back_item: HistoryItem | None
    current_item: HistoryItem
    user_answer: bool | None  # None when the turn timed out
    is_match: bool
    is_correct: bool
    reaction_time_s: float
    is_repair: bool = False
    timed_out: bool = False
    repair_claim: str | None = None


@dataclass(frozen=True, slots=True)
class RepairBanner:
    family: str
    successes: int
    required: int
    claim: str


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """View model for the UI (pure data).

    The stimulus is exposed without its result; the result only reaches the
    renderer through ``last_entry`` once the turn is in FEEDBACK.
    """

    phase: Phase
    stimulus: StimulusData | None
    query_text: str
    time_remaining_s: float | None
    time_budget_s: float | None
    active_rating: int
    persisted_rating: int
    n_back_level: int
    is_practice_mode: bool
    buttons_flipped: bool
    turn_count: int
    repair: RepairBanner | None = None
    last_entry: LogEntry | None = None


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def random(self) -> float:
        return self._rng.random()

    def coin(self) -> bool:
        return self._rng.random() > 0.5

    def shuffled(self, seq: Sequence[T]) -> list[T]:
        # Deterministic Fisher-Yates on a copy.
        values = list(seq)
        for i in range(len(values) - 1, 0, -1):
            j = int(self._rng.randint(0, i))
            values[i], values[j] = values[j], values[i]
        return values


def clamp_int(x: int, lo: int, hi: int) -> int:
    return lo if x <= lo else hi if x >= hi else int(x)
