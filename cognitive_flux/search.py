from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from .cognitive_core import SeededRng

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 200


def search_sequence(
    *,
    alphabet: Sequence[str],
    length: int,
    target: str,
    simulate: Callable[[Sequence[str]], str],
    fallback: Callable[[str], list[str]],
    rng: SeededRng,
    limit: int = SEARCH_LIMIT,
) -> tuple[list[str], bool]:
    """Find an operation sequence whose simulation yields ``target``.

    Tries at most ``limit`` random sequences, then substitutes the
    hand-authored fallback for that exact target. Returns the sequence and
    whether the fallback was used.
    """

    for _ in range(max(0, int(limit))):
        trial = [rng.choice(alphabet) for _ in range(length)]
        if simulate(trial) == target:
            return trial, False

    logger.debug("search exhausted after %d trials for %s; using fallback", limit, target)
    sequence = fallback(target)
    outcome = simulate(sequence)
    if outcome != target:
        raise RuntimeError(f"fallback for {target} simulates to {outcome}")
    return sequence, True
