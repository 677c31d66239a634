from __future__ import annotations

from .ciphers import ICONS, CodeAllocator, build_cipher, draw_code, pick_nodes, pick_placement, pick_result
from .cognitive_core import SeededRng
from .stimulus import ComparisonVisuals, Family, GeneratedPuzzle, StimulusData

VOCABULARY: tuple[str, ...] = ("GREATER", "LESSER")
CONTEXT_COLORS: tuple[str, ...] = ("RED", "BLUE", "GREEN", "PURPLE")

_FLIPPED = {"GREATER": "LESSER", "LESSER": "GREATER"}


def vocabulary(tier: int) -> tuple[str, ...]:
    return VOCABULARY


def generate_comparison(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    result = pick_result(VOCABULARY, prev_result, force_match, rng)
    hub, first, second = pick_nodes(rng, 3)

    # A reversed query (second vs first) needs the opposite visual relation.
    is_reverse_query = tier >= 2 and rng.coin()
    required_visual = _FLIPPED[result] if is_reverse_query else result

    # Each link reads "leaf <rel> hub".
    first_rel = ">" if required_visual == "GREATER" else "<"
    second_rel = "<" if required_visual == "GREATER" else ">"

    context_colors: tuple[str, ...] | None = None
    if tier >= 3:
        # One glyph everywhere; the side colour carries the meaning.
        glyph = rng.choice(ICONS)
        allocator = CodeAllocator(rng, alphabet=tuple(f"{glyph} ({c})" for c in CONTEXT_COLORS))
        cipher, pools = build_cipher([">", "<"], per_meaning=2, allocator=allocator, rng=rng)
    else:
        cipher, pools = build_cipher([">", "<"], per_meaning=1, allocator=CodeAllocator(rng, ICONS), rng=rng)

    first_code = draw_code(pools[first_rel], rng)
    second_code = draw_code(pools[second_rel], rng, avoid=(first_code,))

    is_swapped = tier >= 2 and rng.coin()
    if is_swapped:
        left_leaf, right_leaf, left_code, right_code = second, first, second_code, first_code
    else:
        left_leaf, right_leaf, left_code, right_code = first, second, first_code, second_code

    if tier >= 3:
        context_colors = (_color_of(left_code), _color_of(right_code))

    chain = f"({first} {first_rel} {hub} {first_rel} {second})"
    if is_reverse_query:
        query = f"DERIVE: {second} vs {first}"
        proof = f"{chain} * Flip = {result}"
    else:
        query = f"DERIVE: {first} vs {second}"
        proof = f"{chain} = {result}"

    stimulus = StimulusData(
        family=Family.COMPARISON,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=ComparisonVisuals(
            hub=hub,
            left_leaf=left_leaf,
            right_leaf=right_leaf,
            left_link=left_code,
            right_link=right_code,
            is_swapped=is_swapped,
            is_reverse_query=is_reverse_query,
        ),
        query_text=query,
        proof_text=proof,
        context_colors=context_colors,
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)


def _color_of(code: str) -> str:
    return code[code.index("(") + 1 : code.index(")")]
