"""Proximity filtering of the residue candidate list.

Given the current selection and the contact map, work out which residues are
near the selection, which of those actually interact with it, and in what
order the candidate list should be shown.
"""

from dataclasses import dataclass
from typing import Callable, Iterable

from residuescope.config.settings import (
    MAX_PROXIMITY_THRESHOLD,
    MIN_PROXIMITY_THRESHOLD,
)
from residuescope.models.contacts import ContactMap
from residuescope.models.residues import ResidueDataset, ResidueKey


def clamp_threshold(value: float) -> float:
    """Clamp a proximity threshold to the supported range (Å)."""
    return max(MIN_PROXIMITY_THRESHOLD, min(MAX_PROXIMITY_THRESHOLD, float(value)))


def format_threshold(value: float) -> str:
    """Format a threshold with one decimal, dropping a trailing ``.0``."""
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


@dataclass(frozen=True)
class ProximityProjection:
    """Residue subsets derived from the selection.

    Attributes:
        in_proximity: Neighbors of any selected residue within the threshold.
        has_interaction: Subset of ``in_proximity`` interacting with a
            selected residue.
        disabled: Residues that may not be newly selected.
    """

    in_proximity: frozenset[ResidueKey] = frozenset()
    has_interaction: frozenset[ResidueKey] = frozenset()
    disabled: frozenset[ResidueKey] = frozenset()


EMPTY_PROJECTION = ProximityProjection()


def project(
    selection: Iterable[ResidueKey],
    contact_map: ContactMap,
    threshold: float,
    has_interaction: Callable[[ResidueKey, ResidueKey], bool],
    filter_enabled: bool = True,
    all_keys: Iterable[ResidueKey] = (),
) -> ProximityProjection:
    """Compute the in-proximity and has-interaction subsets.

    With an empty selection everything is visible and all subsets are empty.
    With filtering disabled the subsets are still computed for highlighting,
    but nothing is disabled.

    Args:
        selection: Currently selected residue keys.
        contact_map: Contact map of the loaded structure.
        threshold: Proximity threshold (Å); clamped to the supported range.
        has_interaction: Existence test for a (selected, neighbor) pair.
        filter_enabled: Whether residues out of proximity get disabled.
        all_keys: Every residue key, used to derive the disabled set.

    Returns:
        ProximityProjection for the selection.
    """
    selected = frozenset(selection)
    if not selected:
        return EMPTY_PROJECTION

    threshold = clamp_threshold(threshold)
    in_proximity: set[ResidueKey] = set()
    interacting: set[ResidueKey] = set()
    for key in sorted(selected):
        for neighbor, dist in contact_map.neighbors(key).items():
            if dist > threshold:
                continue
            in_proximity.add(neighbor)
            if neighbor not in interacting and has_interaction(key, neighbor):
                interacting.add(neighbor)

    disabled: frozenset[ResidueKey] = frozenset()
    if filter_enabled:
        disabled = frozenset(
            key for key in all_keys
            if key not in in_proximity and key not in selected
        )

    return ProximityProjection(
        in_proximity=frozenset(in_proximity),
        has_interaction=frozenset(interacting),
        disabled=disabled,
    )


@dataclass(frozen=True)
class CandidateItem:
    """One row of the residue candidate list."""

    key: ResidueKey
    label: str
    selected: bool
    disabled: bool
    in_proximity: bool
    has_interaction: bool

    @property
    def in_scope(self) -> bool:
        """Selected, interacting or in proximity (shown above the divider)."""
        return self.selected or self.has_interaction or self.in_proximity


@dataclass(frozen=True)
class CandidateList:
    """Ordered candidate residues plus the position of the divider.

    Attributes:
        items: Rows ordered selected, interacting, in proximity, rest.
        divider_index: Index of the first out-of-scope row when a divider is
            shown, otherwise None.
        threshold: Proximity threshold the list was built with.
    """

    items: tuple[CandidateItem, ...] = ()
    divider_index: int | None = None
    threshold: float = MAX_PROXIMITY_THRESHOLD

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def divider_label(self) -> str:
        return f"---- Proximity limit {format_threshold(self.threshold)} Å ----"

    def keys(self) -> list[ResidueKey]:
        return [item.key for item in self.items]

    def get(self, key: ResidueKey) -> CandidateItem | None:
        for item in self.items:
            if item.key == key:
                return item
        return None


EMPTY_CANDIDATES = CandidateList()


def build_candidate_list(
    dataset: ResidueDataset,
    selection: Iterable[ResidueKey],
    projection: ProximityProjection,
    threshold: float = MAX_PROXIMITY_THRESHOLD,
) -> CandidateList:
    """Order the residues of a dataset for display.

    Selected residues come first, then residues with an interaction, then
    residues merely in proximity, then the rest; each group keeps the
    canonical residue order.
    """
    selected = frozenset(selection)
    groups: tuple[list[CandidateItem], ...] = ([], [], [], [])

    for record in dataset:
        key = record.key
        item = CandidateItem(
            key=key,
            label=record.label,
            selected=key in selected,
            disabled=key in projection.disabled and key not in selected,
            in_proximity=key in projection.in_proximity,
            has_interaction=key in projection.has_interaction,
        )
        if item.selected:
            groups[0].append(item)
        elif item.has_interaction:
            groups[1].append(item)
        elif item.in_proximity:
            groups[2].append(item)
        else:
            groups[3].append(item)

    items = tuple(item for group in groups for item in group)
    in_scope_count = len(groups[0]) + len(groups[1]) + len(groups[2])
    divider_index = None
    if in_scope_count and groups[3]:
        divider_index = in_scope_count

    return CandidateList(
        items=items,
        divider_index=divider_index,
        threshold=clamp_threshold(threshold),
    )
