from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Family(StrEnum):
    FEATURE = "FLUX_FEATURE"
    COMPARISON = "FLUX_COMPARISON"
    OPPOSITION = "FLUX_OPPOSITION"
    HIERARCHY = "FLUX_HIERARCHY"
    CAUSAL = "FLUX_CAUSAL"
    SPATIAL = "FLUX_SPATIAL"
    DEICTIC = "FLUX_DEICTIC"
    CONDITIONAL = "FLUX_CONDITIONAL"
    ANALOGY = "FLUX_ANALOGY"

    @property
    def label(self) -> str:
        return self.value.removeprefix("FLUX_").title()


ALL_FAMILIES: tuple[Family, ...] = tuple(Family)


class DictionaryPlacement(StrEnum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"


@dataclass(frozen=True, slots=True)
class CipherEntry:
    code: str
    label: str


# --- Visual payloads (one shape per family) ---


@dataclass(frozen=True, slots=True)
class ShapeToken:
    shape: str
    color: str


@dataclass(frozen=True, slots=True)
class FeatureVisuals:
    start: ShapeToken
    end: ShapeToken
    is_swapped: bool = False


@dataclass(frozen=True, slots=True)
class ComparisonVisuals:
    hub: str
    left_leaf: str
    right_leaf: str
    left_link: str
    right_link: str
    is_swapped: bool = False
    is_reverse_query: bool = False


@dataclass(frozen=True, slots=True)
class ChainLink:
    left: str
    code: str
    right: str


@dataclass(frozen=True, slots=True)
class OppositionVisuals:
    chain: tuple[ChainLink, ChainLink]
    is_swapped: bool = False


@dataclass(frozen=True, slots=True)
class HierarchyVisuals:
    nodes: tuple[str, str, str]  # left, pivot, right
    link_ab: str
    link_bc: str
    is_reverse_query: bool = False


@dataclass(frozen=True, slots=True)
class CausalVisuals:
    nodes: tuple[str, ...]
    ops: tuple[str, ...]
    is_reverse: bool = False
    start_color: str | None = None  # only for the tier-3 colour automaton


@dataclass(frozen=True, slots=True)
class SpatialVisuals:
    start_heading: str
    sequence: tuple[str, ...]
    is_reverse: bool = False


@dataclass(frozen=True, slots=True)
class DeicticVisuals:
    active_code: str
    active_face: str
    active_pos: int
    target_pos: int
    time_frame: str
    effective_face_index: int


@dataclass(frozen=True, slots=True)
class ConditionalVisuals:
    start_color: str
    modifiers: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RelationNet:
    left: str
    op: str
    right: str


@dataclass(frozen=True, slots=True)
class AnalogyVisuals:
    net1: RelationNet
    net2: RelationNet
    is_swapped: bool = False


Visuals = (
    FeatureVisuals
    | ComparisonVisuals
    | OppositionVisuals
    | HierarchyVisuals
    | CausalVisuals
    | SpatialVisuals
    | DeicticVisuals
    | ConditionalVisuals
    | AnalogyVisuals
)

VISUALS_BY_FAMILY: dict[Family, type] = {
    Family.FEATURE: FeatureVisuals,
    Family.COMPARISON: ComparisonVisuals,
    Family.OPPOSITION: OppositionVisuals,
    Family.HIERARCHY: HierarchyVisuals,
    Family.CAUSAL: CausalVisuals,
    Family.SPATIAL: SpatialVisuals,
    Family.DEICTIC: DeicticVisuals,
    Family.CONDITIONAL: ConditionalVisuals,
    Family.ANALOGY: AnalogyVisuals,
}


@dataclass(frozen=True, slots=True)
class StimulusData:
    """One generated puzzle instance, as handed to the renderer."""

    family: Family
    tier: int
    cipher: tuple[CipherEntry, ...]
    dictionary_placement: DictionaryPlacement
    visuals: Visuals
    query_text: str
    proof_text: str
    context_colors: tuple[str, ...] | None = None
    is_negated: bool = False
    negation_code: str | None = None

    def __post_init__(self) -> None:
        if self.tier not in (1, 2, 3):
            raise ValueError("tier must be 1, 2 or 3")
        expected = VISUALS_BY_FAMILY[self.family]
        if not isinstance(self.visuals, expected):
            raise ValueError(
                f"{self.family.value} expects {expected.__name__}, got {type(self.visuals).__name__}"
            )
        codes = [entry.code for entry in self.cipher]
        if len(set(codes)) != len(codes):
            raise ValueError("cipher codes must be unique within a stimulus")

    def cipher_dictionary(self) -> dict[str, str]:
        return {entry.code: entry.label for entry in self.cipher}


@dataclass(frozen=True, slots=True)
class HistoryItem:
    result: str
    stimulus: StimulusData


@dataclass(frozen=True, slots=True)
class GeneratedPuzzle:
    stimulus: StimulusData
    result: str
