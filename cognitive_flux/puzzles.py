from __future__ import annotations

from collections.abc import Callable

from . import (
    puzzle_analogy,
    puzzle_causal,
    puzzle_comparison,
    puzzle_conditional,
    puzzle_deictic,
    puzzle_feature,
    puzzle_hierarchy,
    puzzle_opposition,
    puzzle_spatial,
)
from .cognitive_core import SeededRng
from .negation import apply_negation, opposite_of, should_negate
from .stimulus import Family, GeneratedPuzzle

Generator = Callable[[str | None, bool, int, SeededRng], GeneratedPuzzle]

GENERATORS: dict[Family, Generator] = {
    Family.FEATURE: puzzle_feature.generate_feature,
    Family.COMPARISON: puzzle_comparison.generate_comparison,
    Family.OPPOSITION: puzzle_opposition.generate_opposition,
    Family.HIERARCHY: puzzle_hierarchy.generate_hierarchy,
    Family.CAUSAL: puzzle_causal.generate_causal,
    Family.SPATIAL: puzzle_spatial.generate_spatial,
    Family.DEICTIC: puzzle_deictic.generate_deictic,
    Family.CONDITIONAL: puzzle_conditional.generate_conditional,
    Family.ANALOGY: puzzle_analogy.generate_analogy,
}

_VOCABULARIES: dict[Family, Callable[[int], tuple[str, ...]]] = {
    Family.FEATURE: puzzle_feature.vocabulary,
    Family.COMPARISON: puzzle_comparison.vocabulary,
    Family.OPPOSITION: puzzle_opposition.vocabulary,
    Family.HIERARCHY: puzzle_hierarchy.vocabulary,
    Family.CAUSAL: puzzle_causal.vocabulary,
    Family.SPATIAL: puzzle_spatial.vocabulary,
    Family.DEICTIC: puzzle_deictic.vocabulary,
    Family.CONDITIONAL: puzzle_conditional.vocabulary,
    Family.ANALOGY: puzzle_analogy.vocabulary,
}


def vocabulary_for(family: Family, tier: int) -> tuple[str, ...]:
    return _VOCABULARIES[family](tier)


def generate_puzzle(
    family: Family,
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    """Run the family generator alone, without the negation layer."""

    if tier not in (1, 2, 3):
        raise ValueError("tier must be 1, 2 or 3")
    return GENERATORS[family](prev_result, force_match, tier, rng)


def generate_stimulus(
    family: Family,
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    """Generate a turn's puzzle, passing top-tier output through negation.

    When negating, the generator is asked for the opposite of ``prev_result``
    so the inverted result still honours ``force_match``.
    """

    if not should_negate(tier, rng):
        return generate_puzzle(family, prev_result, force_match, tier, rng)

    request = opposite_of(prev_result) or prev_result
    puzzle = generate_puzzle(family, request, force_match, tier, rng)
    return apply_negation(puzzle, rng)
