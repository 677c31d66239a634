from __future__ import annotations

from dataclasses import dataclass

from .cognitive_core import SeededRng
from .stimulus import ALL_FAMILIES, Family

RUN_EXTRA_MIN = 3
RUN_EXTRA_MAX = 8


@dataclass(frozen=True, slots=True)
class BlockSchedulerState:
    active_family: Family | None = None
    remaining_turns: int = 0
    bag: tuple[Family, ...] = ()


@dataclass(frozen=True, slots=True)
class BlockStep:
    state: BlockSchedulerState
    switched: bool

    @property
    def family(self) -> Family:
        assert self.state.active_family is not None
        return self.state.active_family


def refill_bag(previous: Family | None, rng: SeededRng) -> tuple[Family, ...]:
    """Fresh permutation of every family, never opening with ``previous``."""

    bag = rng.shuffled(ALL_FAMILIES)
    if previous is not None and bag[0] == previous:
        bag.append(bag.pop(0))
    return tuple(bag)


def block_length(n_back_level: int, rng: SeededRng) -> int:
    return n_back_level * 3 + rng.randint(RUN_EXTRA_MIN, RUN_EXTRA_MAX)


def advance_block(state: BlockSchedulerState, *, n_back_level: int, rng: SeededRng) -> BlockStep:
    """Pick the family for the next turn and consume one turn of its block."""

    switched = False
    if state.remaining_turns <= 0 or state.active_family is None:
        bag = state.bag or refill_bag(state.active_family, rng)
        state = BlockSchedulerState(
            active_family=bag[0],
            remaining_turns=block_length(n_back_level, rng),
            bag=bag[1:],
        )
        switched = True

    state = BlockSchedulerState(
        active_family=state.active_family,
        remaining_turns=state.remaining_turns - 1,
        bag=state.bag,
    )
    return BlockStep(state=state, switched=switched)
