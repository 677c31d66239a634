from __future__ import annotations

from .ciphers import CodeAllocator, build_cipher, draw_code, pick_placement, pick_result, polysemy_for_tier
from .cognitive_core import SeededRng
from .stimulus import ConditionalVisuals, Family, GeneratedPuzzle, StimulusData

VOCABULARY: tuple[str, ...] = ("RED", "BLUE")

KEEP = "KEEP_COLOR"
INVERT = "INVERT_COLOR"


def vocabulary(tier: int) -> tuple[str, ...]:
    return VOCABULARY


def apply_modifiers(start_color: str, rules: list[str]) -> str:
    color = start_color
    for rule in rules:
        if rule == INVERT:
            color = "BLUE" if color == "RED" else "RED"
    return color


def generate_conditional(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    result = pick_result(VOCABULARY, prev_result, force_match, rng)
    start_color = "RED" if rng.coin() else "BLUE"

    # Free choices first; the last rule fixes the parity.
    rules = [KEEP if rng.coin() else INVERT for _ in range(tier - 1)]
    needs_invert = apply_modifiers(start_color, rules) != result
    rules.append(INVERT if needs_invert else KEEP)

    cipher, pools = build_cipher(
        [KEEP, INVERT],
        per_meaning=polysemy_for_tier(tier),
        allocator=CodeAllocator(rng),
        rng=rng,
    )
    codes: list[str] = []
    for rule in rules:
        codes.append(draw_code(pools[rule], rng, avoid=codes[-1:]))

    stimulus = StimulusData(
        family=Family.CONDITIONAL,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=ConditionalVisuals(start_color=start_color, modifiers=tuple(codes)),
        query_text="DETERMINE FINAL COLOR",
        proof_text=f"{start_color} + {' + '.join(codes)} = {result}",
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
