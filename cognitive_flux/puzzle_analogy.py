from __future__ import annotations

from .ciphers import (
    CodeAllocator,
    build_cipher,
    draw_code,
    pick_nodes,
    pick_placement,
    pick_result,
    polysemy_for_tier,
)
from .cognitive_core import SeededRng
from .stimulus import AnalogyVisuals, Family, GeneratedPuzzle, RelationNet, StimulusData

VOCABULARY: tuple[str, ...] = ("ANALOGOUS", "NON_ANALOGOUS")

CAUSES = "CAUSES"
PREVENTS = "PREVENTS"


def vocabulary(tier: int) -> tuple[str, ...]:
    return VOCABULARY


def generate_analogy(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    result = pick_result(VOCABULARY, prev_result, force_match, rng)

    cipher, pools = build_cipher(
        [CAUSES, PREVENTS],
        per_meaning=polysemy_for_tier(tier),
        allocator=CodeAllocator(rng),
        rng=rng,
    )
    rel1 = CAUSES if rng.coin() else PREVENTS
    if result == "ANALOGOUS":
        rel2 = rel1
    else:
        rel2 = PREVENTS if rel1 == CAUSES else CAUSES

    sym1 = draw_code(pools[rel1], rng)
    sym2 = draw_code(pools[rel2], rng, avoid=(sym1,))

    if tier == 1:
        net1 = RelationNet(left="A", op=sym1, right="B")
        net2 = RelationNet(left="X", op=sym2, right="Y")
    else:
        a, b, x, y = pick_nodes(rng, 4)
        net1 = RelationNet(left=a, op=sym1, right=b)
        net2 = RelationNet(left=x, op=sym2, right=y)

    is_swapped = tier >= 2 and rng.coin()
    if is_swapped:
        net1, net2 = net2, net1

    stimulus = StimulusData(
        family=Family.ANALOGY,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=AnalogyVisuals(net1=net1, net2=net2, is_swapped=is_swapped),
        query_text="RELATION MATCH?",
        proof_text=f"{rel1} vs {rel2} = {result}",
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
