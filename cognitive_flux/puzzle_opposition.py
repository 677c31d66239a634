from __future__ import annotations

from .ciphers import ICONS, CodeAllocator, build_cipher, draw_code, pick_nodes, pick_placement, pick_result
from .cognitive_core import SeededRng
from .stimulus import ChainLink, CipherEntry, Family, GeneratedPuzzle, OppositionVisuals, StimulusData

VOCABULARY: tuple[str, ...] = ("SAME", "OPPOSITE", "DIFFERENT")


def vocabulary(tier: int) -> tuple[str, ...]:
    return VOCABULARY


def _link_types(result: str, rng: SeededRng) -> tuple[str, str]:
    if result == "DIFFERENT":
        other = "IDENTICAL" if rng.coin() else "INVERT"
        return ("NEUTRAL", other) if rng.coin() else (other, "NEUTRAL")
    first = "IDENTICAL" if rng.coin() else "INVERT"
    if result == "SAME":
        return first, first
    return first, ("INVERT" if first == "IDENTICAL" else "IDENTICAL")


def generate_opposition(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
) -> GeneratedPuzzle:
    result = pick_result(VOCABULARY, prev_result, force_match, rng)
    n1, n2, n3 = pick_nodes(rng, 3)

    allocator = CodeAllocator(rng, ICONS)
    per_meaning = 2 if tier >= 3 else 1
    _, pools = build_cipher(["IDENTICAL", "INVERT"], per_meaning=per_meaning, allocator=allocator, rng=rng)
    neutral = allocator.take()
    pools["NEUTRAL"] = (neutral,)
    entries = [CipherEntry(code=c, label=m) for m, pool in pools.items() for c in pool]
    cipher = tuple(rng.shuffled(entries))

    type1, type2 = _link_types(result, rng)
    code1 = draw_code(pools[type1], rng)
    code2 = draw_code(pools[type2], rng, avoid=(code1,))

    is_swapped = tier >= 2 and rng.coin()
    if is_swapped:
        chain = (ChainLink(left=n3, code=code2, right=n2), ChainLink(left=n2, code=code1, right=n1))
    else:
        chain = (ChainLink(left=n1, code=code1, right=n2), ChainLink(left=n2, code=code2, right=n3))

    # Relations are symmetric, so reversing the query keeps the result.
    reverse_query = tier >= 2 and rng.coin()
    query = f"DERIVE: {n3} vs {n1}" if reverse_query else f"DERIVE: {n1} vs {n3}"

    stimulus = StimulusData(
        family=Family.OPPOSITION,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=OppositionVisuals(chain=chain, is_swapped=is_swapped),
        query_text=query,
        proof_text=f"{type1} + {type2} = {result}",
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
