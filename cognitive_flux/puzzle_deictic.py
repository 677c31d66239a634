from __future__ import annotations

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
from .stimulus import DeicticVisuals, Family, GeneratedPuzzle, StimulusData

VOCABULARY: tuple[str, ...] = ("LEFT", "RIGHT", "FRONT", "BACK")

ME = "ME (SAME)"
YOU = "YOU (OPPOSITE)"

# 3x3 grid, actor in the centre cell.
ACTOR_POS = 4
GRID_POS = {"NORTH": 1, "EAST": 5, "SOUTH": 7, "WEST": 3}
_OFFSETS = {"FRONT": 0, "RIGHT": 1, "BACK": 2, "LEFT": 3}


def vocabulary(tier: int) -> tuple[str, ...]:
    return VOCABULARY


def effective_facing(face: str, identity: str, time_frame: str) -> int:
    id_shift = 0 if identity == ME else 2
    time_shift = 1 if time_frame == "THEN" else 0
    return (DIRECTIONS.index(face) + id_shift + time_shift) % 4


def generate_deictic(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    result = pick_result(VOCABULARY, prev_result, force_match, rng)

    cipher, pools = build_cipher(
        [ME, YOU],
        per_meaning=polysemy_for_tier(tier),
        allocator=CodeAllocator(rng),
        rng=rng,
    )
    time_frame = "THEN" if tier >= 2 and rng.coin() else "NOW"
    identity = ME if rng.coin() else YOU
    active_code = draw_code(pools[identity], rng)
    active_face = rng.choice(DIRECTIONS)

    facing = effective_facing(active_face, identity, time_frame)
    target_dir = DIRECTIONS[(facing + _OFFSETS[result]) % 4]

    stimulus = StimulusData(
        family=Family.DEICTIC,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=DeicticVisuals(
            active_code=active_code,
            active_face=active_face,
            active_pos=ACTOR_POS,
            target_pos=GRID_POS[target_dir],
            time_frame=time_frame,
            effective_face_index=facing,
        ),
        query_text=f"PERSPECTIVE: {active_code} ({time_frame})",
        proof_text=f"{active_code} at {active_face} + {time_frame} faces {DIRECTIONS[facing]} = {result}",
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
