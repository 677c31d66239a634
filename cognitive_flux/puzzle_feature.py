from __future__ import annotations

from .ciphers import (
    COLORS,
    SHAPES,
    CodeAllocator,
    build_cipher,
    draw_code,
    pick_placement,
    pick_result,
    polysemy_for_tier,
)
from .cognitive_core import SeededRng
from .stimulus import Family, FeatureVisuals, GeneratedPuzzle, ShapeToken, StimulusData

VOCABULARY: tuple[str, ...] = ("MATCH_COLOR", "MATCH_SHAPE", "EXACT", "NONE")

# result -> cipher label
_LABELS = {
    "MATCH_COLOR": "MATCH_COLOR",
    "MATCH_SHAPE": "MATCH_SHAPE",
    "EXACT": "EXACT_MATCH",
    "NONE": "NO_MATCH",
}


def vocabulary(tier: int) -> tuple[str, ...]:
    return VOCABULARY


def _build_end(result: str, start: ShapeToken, rng: SeededRng) -> ShapeToken:
    other_shape = rng.choice([s for s in SHAPES if s != start.shape])
    other_color = rng.choice([c for c in COLORS if c != start.color])
    if result == "MATCH_COLOR":
        return ShapeToken(shape=other_shape, color=start.color)
    if result == "MATCH_SHAPE":
        return ShapeToken(shape=start.shape, color=other_color)
    if result == "NONE":
        return ShapeToken(shape=other_shape, color=other_color)
    return ShapeToken(shape=start.shape, color=start.color)


def generate_feature(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    result = pick_result(VOCABULARY, prev_result, force_match, rng)

    meanings = ["MATCH_COLOR", "MATCH_SHAPE", "EXACT_MATCH"]
    if tier >= 2:
        meanings.append("NO_MATCH")
    cipher, pools = build_cipher(
        meanings,
        per_meaning=polysemy_for_tier(tier),
        allocator=CodeAllocator(rng),
        rng=rng,
    )

    start = ShapeToken(shape=rng.choice(SHAPES), color=rng.choice(COLORS))
    end = _build_end(result, start, rng)
    is_swapped = tier >= 2 and rng.coin()

    label = _LABELS[result]
    if label in pools:
        active_code = draw_code(pools[label], rng)
    else:
        # Tier 1 has no NO_MATCH symbol: any shown code is a false claim.
        active_code = rng.choice([c for pool in pools.values() for c in pool])

    color_rel = "=" if start.color == end.color else "!="
    shape_rel = "=" if start.shape == end.shape else "!="
    left, right = (end, start) if is_swapped else (start, end)
    stimulus = StimulusData(
        family=Family.FEATURE,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=FeatureVisuals(start=left, end=right, is_swapped=is_swapped),
        query_text=f"VERIFY: {active_code}",
        proof_text=f"(Color: {color_rel}) & (Shape: {shape_rel}) = {result}",
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
