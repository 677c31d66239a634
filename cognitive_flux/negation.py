from __future__ import annotations

import dataclasses

from .cognitive_core import SeededRng
from .stimulus import CipherEntry, GeneratedPuzzle

NEGATION_PROBABILITY = 0.30
NEGATION_MIN_TIER = 3
NEGATION_LABEL = "NOT"
NEGATION_CODES: tuple[str, ...] = ("NOX", "UNA", "ZEF", "RIX", "OMU")

_PAIRS: tuple[tuple[str, str], ...] = (
    ("MATCH_COLOR", "MATCH_SHAPE"),
    ("EXACT", "NONE"),
    ("GREATER", "LESSER"),
    ("HIGHER", "LOWER"),
    ("TRIGGER", "BLOCK"),
    ("RED", "BLUE"),
    ("NORTH_EAST", "SOUTH_WEST"),
    ("NORTH_WEST", "SOUTH_EAST"),
    ("ROTATE_0", "ROTATE_180"),
    ("ROTATE_90", "ROTATE_270"),
    ("LEFT", "RIGHT"),
    ("FRONT", "BACK"),
    ("ANALOGOUS", "NON_ANALOGOUS"),
)

# Flat result -> inverted result table shared by every family. SAME, OPPOSITE
# and DIFFERENT have no entry: SAME belongs to two families with different
# opposites.
OPPOSITES: dict[str, str] = {a: b for a, b in _PAIRS} | {b: a for a, b in _PAIRS}


def opposite_of(result: str | None) -> str | None:
    if result is None:
        return None
    return OPPOSITES.get(result)


def should_negate(tier: int, rng: SeededRng) -> bool:
    return tier >= NEGATION_MIN_TIER and rng.random() < NEGATION_PROBABILITY


def apply_negation(puzzle: GeneratedPuzzle, rng: SeededRng) -> GeneratedPuzzle:
    """Wrap a puzzle in a NOT symbol and invert its result.

    Puzzles whose result has no registered opposite are returned unchanged.
    """

    inverted = opposite_of(puzzle.result)
    if inverted is None:
        return puzzle

    stim = puzzle.stimulus
    taken = {entry.code for entry in stim.cipher}
    code = rng.choice([c for c in NEGATION_CODES if c not in taken])
    cipher = tuple(rng.shuffled([*stim.cipher, CipherEntry(code=code, label=NEGATION_LABEL)]))

    negated = dataclasses.replace(
        stim,
        cipher=cipher,
        query_text=f"{code}( {stim.query_text} )",
        proof_text=f"NOT({stim.proof_text}) = {inverted}",
        is_negated=True,
        negation_code=code,
    )
    return GeneratedPuzzle(stimulus=negated, result=inverted)
