from __future__ import annotations

from collections.abc import Sequence

from .ciphers import (
    DIRECTIONS,
    CodeAllocator,
    build_cipher,
    draw_code,
    pick_placement,
    pick_result,
    polysemy_for_tier,
)
from .cognitive_core import SeededRng
from .search import search_sequence
from .stimulus import Family, GeneratedPuzzle, SpatialVisuals, StimulusData

VOCABULARY: tuple[str, ...] = ("NORTH_EAST", "NORTH_WEST", "SOUTH_EAST", "SOUTH_WEST")
ROTATION_VOCABULARY: tuple[str, ...] = ("ROTATE_0", "ROTATE_90", "ROTATE_180", "ROTATE_270")

FORWARD = "FORWARD"
TURN_LEFT = "TURN_LEFT"
TURN_RIGHT = "TURN_RIGHT"
U_TURN = "U_TURN"

TURTLE_OPS: tuple[str, ...] = (FORWARD, TURN_LEFT, TURN_RIGHT)
ROTATION_OPS: tuple[str, ...] = (FORWARD, TURN_LEFT, TURN_RIGHT, U_TURN)
SEQUENCE_LENGTH = 5

_VECTORS = {0: (0, 1), 1: (1, 0), 2: (0, -1), 3: (-1, 0)}
_TURNS = {TURN_RIGHT: 1, TURN_LEFT: 3, U_TURN: 2}


def vocabulary(tier: int) -> tuple[str, ...]:
    return ROTATION_VOCABULARY if tier >= 3 else VOCABULARY


def run_turtle(ops: Sequence[str], start_heading: str) -> tuple[int, int, int]:
    """Return final (x, y) and the net clockwise quarter turns."""

    heading = DIRECTIONS.index(start_heading)
    x = y = 0
    turned = 0
    for op in ops:
        if op == FORWARD:
            dx, dy = _VECTORS[heading]
            x += dx
            y += dy
        elif op in _TURNS:
            heading = (heading + _TURNS[op]) % 4
            turned += _TURNS[op]
        else:
            raise ValueError(f"unknown spatial op {op!r}")
    return x, y, turned % 4


def quadrant_of(x: int, y: int) -> str:
    if x == 0 or y == 0:
        return "AXIS"
    return f"{'NORTH' if y > 0 else 'SOUTH'}_{'EAST' if x > 0 else 'WEST'}"


def simulate_quadrant(ops: Sequence[str], start_heading: str) -> str:
    x, y, _ = run_turtle(ops, start_heading)
    return quadrant_of(x, y)


def simulate_rotation(ops: Sequence[str]) -> str:
    _, _, turned = run_turtle(ops, "NORTH")
    return f"ROTATE_{turned * 90}"


def _turns_between(src: int, dst: int) -> list[str]:
    diff = (dst - src) % 4
    if diff == 1:
        return [TURN_RIGHT]
    if diff == 2:
        return [TURN_RIGHT, TURN_RIGHT]
    if diff == 3:
        return [TURN_LEFT]
    return []


def fallback_quadrant(target: str, start_heading: str) -> list[str]:
    if target not in VOCABULARY:
        raise ValueError(f"no quadrant fallback for {target!r}")
    vertical, horizontal = target.split("_")
    start = DIRECTIONS.index(start_heading)
    v = DIRECTIONS.index(vertical)
    h = DIRECTIONS.index(horizontal)
    return [*_turns_between(start, v), FORWARD, *_turns_between(v, h), FORWARD]


def fallback_rotation(target: str) -> list[str]:
    turn = {
        "ROTATE_0": FORWARD,
        "ROTATE_90": TURN_RIGHT,
        "ROTATE_180": U_TURN,
        "ROTATE_270": TURN_LEFT,
    }.get(target)
    if turn is None:
        raise ValueError(f"no rotation fallback for {target!r}")
    return [turn] + [FORWARD] * (SEQUENCE_LENGTH - 1)


def generate_spatial(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
    *,
    search_limit: int | None = None,
) -> GeneratedPuzzle:
    result = pick_result(vocabulary(tier), prev_result, force_match, rng)
    extra = {} if search_limit is None else {"limit": search_limit}

    if tier == 1:
        start_heading = "NORTH"
        vertical, horizontal = result.split("_")
        ops = rng.shuffled([vertical, horizontal])
        meanings: tuple[str, ...] = DIRECTIONS
        query = "NET VECTOR FROM START"
        proof = f"Sum({', '.join(ops)}) = {result}"
    elif tier == 2:
        start_heading = rng.choice(DIRECTIONS)
        heading = start_heading
        ops, _ = search_sequence(
            alphabet=TURTLE_OPS,
            length=SEQUENCE_LENGTH,
            target=result,
            simulate=lambda seq: simulate_quadrant(seq, heading),
            fallback=lambda target: fallback_quadrant(target, heading),
            rng=rng,
            **extra,
        )
        meanings = TURTLE_OPS
        query = f"FINAL QUADRANT (FACING {start_heading})"
        proof = f"{start_heading}: {' -> '.join(ops)} = {result}"
    else:
        start_heading = rng.choice(DIRECTIONS)
        ops, _ = search_sequence(
            alphabet=ROTATION_OPS,
            length=SEQUENCE_LENGTH,
            target=result,
            simulate=simulate_rotation,
            fallback=fallback_rotation,
            rng=rng,
            **extra,
        )
        meanings = ROTATION_OPS
        query = f"NET TURN FROM {start_heading}"
        proof = f"Turns({' -> '.join(ops)}) = {result}"

    cipher, pools = build_cipher(
        meanings,
        per_meaning=polysemy_for_tier(tier),
        allocator=CodeAllocator(rng),
        rng=rng,
    )
    codes: list[str] = []
    for op in ops:
        codes.append(draw_code(pools[op], rng, avoid=codes[-1:]))

    stimulus = StimulusData(
        family=Family.SPATIAL,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=SpatialVisuals(
            start_heading=start_heading,
            sequence=tuple(codes),
            is_reverse=tier >= 2 and rng.coin(),
        ),
        query_text=query,
        proof_text=proof,
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
