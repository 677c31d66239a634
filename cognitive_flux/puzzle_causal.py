from __future__ import annotations

from collections.abc import Sequence

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
from .search import search_sequence
from .stimulus import CausalVisuals, Family, GeneratedPuzzle, StimulusData

VOCABULARY: tuple[str, ...] = ("TRIGGER", "BLOCK")
VIRAL_VOCABULARY: tuple[str, ...] = ("RED", "BLUE")

ACTIVATE = "ACTIVATE"
INHIBIT = "INHIBIT"
CLAMP = "CLAMP"

GATE_OPS: tuple[str, ...] = (ACTIVATE, INHIBIT, CLAMP)
VIRAL_OPS: tuple[str, ...] = (ACTIVATE, INHIBIT)

_OP_COUNT = {1: 2, 2: 3, 3: 4}


def vocabulary(tier: int) -> tuple[str, ...]:
    return VIRAL_VOCABULARY if tier >= 3 else VOCABULARY


def simulate_gate(ops: Sequence[str]) -> str:
    """Gate/pass automaton: the signal starts ON at the source node.

    ACTIVATE passes the signal, INHIBIT inverts it, CLAMP forces it OFF.
    """

    on = True
    for op in ops:
        if op == INHIBIT:
            on = not on
        elif op == CLAMP:
            on = False
        elif op != ACTIVATE:
            raise ValueError(f"unknown causal op {op!r}")
    return "TRIGGER" if on else "BLOCK"


def simulate_viral(ops: Sequence[str], start_color: str) -> str:
    """Viral mutation automaton over a (colour, live) state.

    ACTIVATE on a live signal mutates (flips) its colour; on a dead signal it
    revives it unchanged. INHIBIT kills the signal.
    """

    color = start_color
    live = True
    for op in ops:
        if op == ACTIVATE:
            if live:
                color = "BLUE" if color == "RED" else "RED"
            else:
                live = True
        elif op == INHIBIT:
            live = False
        else:
            raise ValueError(f"unknown causal op {op!r}")
    return color


def fallback_gate(target: str) -> list[str]:
    if target == "TRIGGER":
        return [ACTIVATE, ACTIVATE, ACTIVATE]
    if target == "BLOCK":
        return [ACTIVATE, ACTIVATE, INHIBIT]
    raise ValueError(f"no gate fallback for {target!r}")


def fallback_viral(target: str, start_color: str) -> list[str]:
    if target not in VIRAL_VOCABULARY:
        raise ValueError(f"no viral fallback for {target!r}")
    if target == start_color:
        return [INHIBIT, INHIBIT, INHIBIT, INHIBIT]
    return [ACTIVATE, INHIBIT, INHIBIT, INHIBIT]


def _sign(op: str) -> str:
    return "+" if op == ACTIVATE else "-"


def generate_causal(
    prev_result: str | None,
    force_match: bool,
    tier: int,
    rng: SeededRng,
    *,
    search_limit: int | None = None,
) -> GeneratedPuzzle:
    result = pick_result(vocabulary(tier), prev_result, force_match, rng)
    op_count = _OP_COUNT[tier]
    extra = {} if search_limit is None else {"limit": search_limit}

    start_color: str | None = None
    if tier == 1:
        first = ACTIVATE if rng.coin() else INHIBIT
        second = first if result == "TRIGGER" else (INHIBIT if first == ACTIVATE else ACTIVATE)
        ops = [first, second]
        meanings: tuple[str, ...] = (ACTIVATE, INHIBIT)
        proof = f"{_sign(first)} * {_sign(second)} = {'+' if result == 'TRIGGER' else '-'}"
    elif tier == 2:
        ops, _ = search_sequence(
            alphabet=GATE_OPS,
            length=op_count,
            target=result,
            simulate=simulate_gate,
            fallback=fallback_gate,
            rng=rng,
            **extra,
        )
        meanings = GATE_OPS
        proof = f"ON -> {' -> '.join(ops)} = {result}"
    else:
        start_color = "RED" if rng.coin() else "BLUE"
        color = start_color
        ops, _ = search_sequence(
            alphabet=VIRAL_OPS,
            length=op_count,
            target=result,
            simulate=lambda seq: simulate_viral(seq, color),
            fallback=lambda target: fallback_viral(target, color),
            rng=rng,
            **extra,
        )
        meanings = VIRAL_OPS
        proof = f"{start_color} -> {' -> '.join(ops)} = {result}"

    cipher, pools = build_cipher(
        meanings,
        per_meaning=polysemy_for_tier(tier),
        allocator=CodeAllocator(rng),
        rng=rng,
    )
    codes: list[str] = []
    for op in ops:
        avoid = codes[-1:]
        codes.append(draw_code(pools[op], rng, avoid=avoid))

    nodes = pick_nodes(rng, op_count + 1)
    is_reverse = tier >= 2 and rng.coin()
    if tier >= 3:
        query = f"FINAL STRAIN AT {nodes[-1]}"
    else:
        query = f"NET EFFECT: {nodes[0]} on {nodes[-1]}"

    stimulus = StimulusData(
        family=Family.CAUSAL,
        tier=tier,
        cipher=cipher,
        dictionary_placement=pick_placement(rng),
        visuals=CausalVisuals(
            nodes=tuple(nodes),
            ops=tuple(codes),
            is_reverse=is_reverse,
            start_color=start_color,
        ),
        query_text=query,
        proof_text=proof,
    )
    return GeneratedPuzzle(stimulus=stimulus, result=result)
