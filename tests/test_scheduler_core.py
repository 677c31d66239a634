from __future__ import annotations

from cognitive_flux.cognitive_core import SeededRng
from cognitive_flux.scheduler import (
    RUN_EXTRA_MAX,
    RUN_EXTRA_MIN,
    BlockSchedulerState,
    advance_block,
    refill_bag,
)
from cognitive_flux.stimulus import ALL_FAMILIES


def _blocks(n_back: int, seed: int, turns: int) -> list[tuple[str, int]]:
    """Run the scheduler and return (family, run length) per block."""

    rng = SeededRng(seed)
    state = BlockSchedulerState()
    runs: list[tuple[str, int]] = []
    for _ in range(turns):
        step = advance_block(state, n_back_level=n_back, rng=rng)
        state = step.state
        if step.switched:
            runs.append((step.family.value, 1))
        else:
            fam, length = runs[-1]
            runs[-1] = (fam, length + 1)
    return runs


def test_first_call_switches_into_a_block() -> None:
    step = advance_block(BlockSchedulerState(), n_back_level=1, rng=SeededRng(1))
    assert step.switched
    assert step.state.active_family is not None
    assert len(step.state.bag) == len(ALL_FAMILIES) - 1


def test_every_family_appears_once_per_bag() -> None:
    runs = _blocks(n_back=1, seed=3, turns=400)
    assert len(runs) >= 18
    first_bag = [fam for fam, _ in runs[: len(ALL_FAMILIES)]]
    second_bag = [fam for fam, _ in runs[len(ALL_FAMILIES) : 2 * len(ALL_FAMILIES)]]
    assert sorted(first_bag) == sorted(f.value for f in ALL_FAMILIES)
    assert sorted(second_bag) == sorted(f.value for f in ALL_FAMILIES)


def test_consecutive_blocks_never_repeat_a_family() -> None:
    for seed in range(20):
        runs = _blocks(n_back=2, seed=seed, turns=300)
        for (a, _), (b, _) in zip(runs, runs[1:]):
            assert a != b


def test_run_lengths_follow_n_back_level() -> None:
    for n in (1, 3, 9):
        runs = _blocks(n_back=n, seed=n, turns=600)
        for _, length in runs[:-1]:
            assert n * 3 + RUN_EXTRA_MIN <= length <= n * 3 + RUN_EXTRA_MAX


def test_refill_bag_rotates_previous_family_out_of_head() -> None:
    for seed in range(50):
        rng = SeededRng(seed)
        prev = ALL_FAMILIES[seed % len(ALL_FAMILIES)]
        bag = refill_bag(prev, rng)
        assert bag[0] != prev
        assert sorted(bag) == sorted(ALL_FAMILIES)
