from __future__ import annotations

from collections.abc import Sequence

from .cognitive_core import SeededRng
from .stimulus import CipherEntry, DictionaryPlacement

NONSENSE_SYLLABLES: tuple[str, ...] = (
    "ZID", "LUM", "VEX", "KOR", "JAX", "QIN", "YOM", "TEP", "WEX", "BUP", "SAF", "GEX",
)
ICONS: tuple[str, ...] = ("♦", "★", "▲", "▼", "●", "■", "⚡", "❄", "∞", "§")
SHAPES: tuple[str, ...] = ("SQUARE", "CIRCLE", "TRIANGLE", "DIAMOND")
COLORS: tuple[str, ...] = ("RED", "BLUE", "GREEN", "YELLOW")
DIRECTIONS: tuple[str, ...] = ("NORTH", "EAST", "SOUTH", "WEST")
NODE_LABELS: tuple[str, ...] = ("A", "B", "C", "X", "Y", "Z", "J", "K", "L", "P", "Q", "R")


class CodeAllocator:
    """Hands out unique opaque codes from one alphabet for a single stimulus."""

    def __init__(self, rng: SeededRng, alphabet: Sequence[str] = NONSENSE_SYLLABLES) -> None:
        self._rng = rng
        self._alphabet = tuple(alphabet)
        self._used: list[str] = []

    @property
    def used(self) -> tuple[str, ...]:
        return tuple(self._used)

    def take(self) -> str:
        free = [c for c in self._alphabet if c not in self._used]
        if not free:
            raise ValueError(f"alphabet exhausted after {len(self._used)} codes")
        code = self._rng.choice(free)
        self._used.append(code)
        return code

    def take_many(self, count: int) -> list[str]:
        return [self.take() for _ in range(count)]


def build_cipher(
    meanings: Sequence[str],
    *,
    per_meaning: int,
    allocator: CodeAllocator,
    rng: SeededRng,
) -> tuple[tuple[CipherEntry, ...], dict[str, tuple[str, ...]]]:
    """Allocate ``per_meaning`` codes for every label and shuffle the key.

    Returns the cipher entries in display order and a meaning -> code pool map.
    ``per_meaning=2`` is the polysemy mapping used at the top tier.
    """

    if per_meaning < 1:
        raise ValueError("per_meaning must be >= 1")
    pools: dict[str, tuple[str, ...]] = {}
    entries: list[CipherEntry] = []
    for meaning in meanings:
        codes = tuple(allocator.take_many(per_meaning))
        pools[meaning] = codes
        entries.extend(CipherEntry(code=c, label=meaning) for c in codes)
    return tuple(rng.shuffled(entries)), pools


def draw_code(pool: Sequence[str], rng: SeededRng, *, avoid: Sequence[str] = ()) -> str:
    """Draw a synonym, skipping codes already used by another role.

    Falls back to the whole pool when filtering would leave nothing, which is
    the single-symbol case of the lower tiers.
    """

    candidates = [c for c in pool if c not in avoid]
    if not candidates:
        candidates = list(pool)
    return rng.choice(candidates)


def pick_result(
    vocabulary: Sequence[str],
    prev_result: str | None,
    force_match: bool,
    rng: SeededRng,
) -> str:
    """Shared match-forcing rule for every generator."""

    legal_prev = prev_result is not None and prev_result in vocabulary
    if legal_prev and force_match:
        return str(prev_result)
    if legal_prev:
        return rng.choice([r for r in vocabulary if r != prev_result])
    return rng.choice(list(vocabulary))


def pick_placement(rng: SeededRng) -> DictionaryPlacement:
    return DictionaryPlacement.LEFT if rng.coin() else DictionaryPlacement.RIGHT


def pick_nodes(rng: SeededRng, count: int) -> list[str]:
    return rng.shuffled(NODE_LABELS)[:count]


def polysemy_for_tier(tier: int) -> int:
    return 2 if tier >= 3 else 1
