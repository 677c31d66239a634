from __future__ import annotations

from .ciphers import (
    ICONS,
    CodeAllocator,
    build_cipher,
    draw_code,
    pick_nodes,
    pick_placement,
    pick_result,
    polysemy_for_tier,
)
from .cognitive_core import SeededRng
from .stimulus import Family, GeneratedPuzzle, HierarchyVisuals, StimulusData

VOCABULARY: tuple[str, ...] = ("HIGHER", "LOWER", "SAME")

_FLIPPED = {"HIGHER": "LOWER", "LOWER": "HIGHER", "SAME": "SAME"}


def vocabulary(tier: int) -> tuple[str, ...]:
    return VOCABULARY


def generate_hierarchy(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    """Two generation links between three nodes; the player nets them.

    PARENT_OF on a link means the left node sits one generation above the
    right node (+1), CHILD_OF one below (-1).
    """

    result = pick_result(VOCABULARY, prev_result, force_match, rng)

    cipher, pools = build_cipher(
        ["PARENT_OF", "CHILD_OF"],
        per_meaning=polysemy_for_tier(tier),
        allocator=CodeAllocator(rng, ICONS),
        rng=rng,
    )
    nodes = pick_nodes(rng, 3)

    # A reversed query (right vs left) needs the opposite visual relation.
    is_reverse_query = tier >= 2 and rng.coin()
    required_visual = _FLIPPED[result] if is_reverse_query else result

    if required_visual == "HIGHER":
        link1, link2 = 1, 1
    elif required_visual == "LOWER":
        link1, link2 = -1, -1
    else:
        link1, link2 = (-1, 1) if rng.coin() else (1, -1)

    code_ab = draw_code(pools["PARENT_OF" if link1 == 1 else "CHILD_OF"], rng)
    code_bc = draw_code(pools["PARENT_OF" if link2 == 1 else "CHILD_OF"], rng, avoid=(code_ab,))

    if is_reverse_query:
        query = f"GENERATION: {nodes[2]} vs {nodes[0]}"
    else:
        query = f"GENERATION: {nodes[0]} vs {nodes[2]}"

    net = link1 + link2
    net_text = "+2" if net > 0 else "-2" if net < 0 else "0"
    proof = f"Visual({net_text}) * Flip = {result}" if is_reverse_query else f"Net: {net_text} = {result}"

    stimulus = StimulusData(
        family=Family.HIERARCHY,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=HierarchyVisuals(
            nodes=(nodes[0], nodes[1], nodes[2]),
            link_ab=code_ab,
            link_bc=code_bc,
            is_reverse_query=is_reverse_query,
        ),
        query_text=query,
        proof_text=proof,
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
