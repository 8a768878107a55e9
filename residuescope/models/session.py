"""Analysis session owning all state for one loaded structure.

The session ties together the residue dataset, contact map, interaction
classifier, selection state machine and proximity filter. Each structure
load rebuilds every piece from scratch; nothing is carried over between
structures.
"""

import logging
from dataclasses import dataclass

from biotite.structure import AtomArray

from residuescope.config.settings import (
    CONTACT_CUTOFF,
    DEFAULT_PROXIMITY_THRESHOLD,
    MAX_SELECTION,
    MIN_ANALYSIS_SELECTION,
    THRESHOLD_DEBOUNCE_MS,
)
from residuescope.models.announcements import (
    describe_analysis,
    describe_selection_event,
)
from residuescope.models.contacts import EMPTY_CONTACT_MAP, ContactMap, build_contact_map
from residuescope.models.interactions import (
    AnalysisResult,
    InteractionClassifier,
    analyze_selection,
)
from residuescope.models.proximity import (
    EMPTY_PROJECTION,
    CandidateList,
    ProximityProjection,
    build_candidate_list,
    clamp_threshold,
    project,
)
from residuescope.models.residues import (
    EMPTY_DATASET,
    ResidueDataset,
    ResidueKey,
    build_residue_dataset,
)
from residuescope.models.scheduler import Debouncer, ImmediateScheduler, Scheduler
from residuescope.models.search import find_residue_by_query
from residuescope.models.selection import (
    ResidueSelection,
    SelectionAction,
    SelectionEvent,
)

logger = logging.getLogger(__name__)


class ViewerHooks:
    """Renderer-facing callbacks; every method defaults to a no-op.

    Subclass and override the callbacks a renderer supports.
    """

    def structure_changed(self, dataset: ResidueDataset) -> None:
        pass

    def candidates_changed(self, candidates: CandidateList) -> None:
        pass

    def selection_changed(self, event: SelectionEvent) -> None:
        pass

    def show_interactions(self, result: AnalysisResult) -> None:
        pass

    def clear_interactions(self) -> None:
        pass

    def announce(self, message: str) -> None:
        pass


@dataclass(frozen=True)
class FilterState:
    """Current proximity filter settings and their projection."""

    threshold: float = DEFAULT_PROXIMITY_THRESHOLD
    filter_enabled: bool = True
    projection: ProximityProjection = EMPTY_PROJECTION


class AnalysisSession:
    """Single owner of the analysis state for the loaded structure.

    Args:
        scheduler: Runs debounced threshold recomputation. Defaults to an
            ImmediateScheduler.
        hooks: Renderer callbacks. Defaults to no-op ViewerHooks.
        threshold: Initial proximity threshold in Å (clamped).
        filter_enabled: Whether out-of-proximity residues are disabled.
        debounce_ms: Delay applied to threshold changes.
        max_selection: Selection capacity.
        contact_cutoff: Contact map cutoff in Å.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        hooks: ViewerHooks | None = None,
        threshold: float = DEFAULT_PROXIMITY_THRESHOLD,
        filter_enabled: bool = True,
        debounce_ms: float = THRESHOLD_DEBOUNCE_MS,
        max_selection: int = MAX_SELECTION,
        contact_cutoff: float = CONTACT_CUTOFF,
    ):
        self._hooks = hooks or ViewerHooks()
        self._debouncer = Debouncer(scheduler or ImmediateScheduler(), debounce_ms)
        self._max_selection = max_selection
        self._contact_cutoff = contact_cutoff
        self._request_token = 0

        self._filter = FilterState(
            threshold=clamp_threshold(threshold),
            filter_enabled=bool(filter_enabled),
        )
        self._pending_threshold = self._filter.threshold
        self._candidates = CandidateList(threshold=self._filter.threshold)
        self._last_result: AnalysisResult | None = None

        self._dataset = EMPTY_DATASET
        self._contact_map = EMPTY_CONTACT_MAP
        self._classifier = InteractionClassifier(EMPTY_DATASET)
        self._selection = self._new_selection(EMPTY_DATASET)

    # State

    @property
    def hooks(self) -> ViewerHooks:
        return self._hooks

    @hooks.setter
    def hooks(self, hooks: ViewerHooks | None) -> None:
        self._hooks = hooks or ViewerHooks()

    @property
    def dataset(self) -> ResidueDataset:
        return self._dataset

    @property
    def contact_map(self) -> ContactMap:
        return self._contact_map

    @property
    def classifier(self) -> InteractionClassifier:
        return self._classifier

    @property
    def selection(self) -> ResidueSelection:
        return self._selection

    @property
    def selected(self) -> list[ResidueKey]:
        """Selected keys in canonical order."""
        return self._dataset.sort_keys(self._selection.selected)

    @property
    def filter_state(self) -> FilterState:
        return self._filter

    @property
    def threshold(self) -> float:
        """Threshold the current projection was computed with."""
        return self._filter.threshold

    @property
    def pending_threshold(self) -> float:
        """Most recently requested threshold (may not be applied yet)."""
        return self._pending_threshold

    @property
    def filter_enabled(self) -> bool:
        return self._filter.filter_enabled

    @property
    def projection(self) -> ProximityProjection:
        return self._filter.projection

    @property
    def request_token(self) -> int:
        return self._request_token

    @property
    def last_result(self) -> AnalysisResult | None:
        return self._last_result

    def candidates(self) -> CandidateList:
        """Candidate list for the current selection and filter."""
        return self._candidates

    @property
    def can_analyze(self) -> bool:
        return MIN_ANALYSIS_SELECTION <= len(self._selection) <= self._max_selection

    # Structure loading

    def begin_load(self) -> int:
        """Start a structure load and return its request token."""
        self._request_token += 1
        logger.debug(f"Structure load started with token {self._request_token}")
        return self._request_token

    def is_current(self, token: int) -> bool:
        return token == self._request_token

    def complete_load(self, token: int, structure: AtomArray | None) -> bool:
        """Install a loaded structure if its request is still current.

        Args:
            token: Token returned by ``begin_load``.
            structure: Parsed structure; None is treated as empty.

        Returns:
            True if the structure was installed, False if the result was stale.
        """
        if not self.is_current(token):
            logger.debug(
                f"Dropping stale structure load (token {token}, current {self._request_token})"
            )
            return False
        dataset = build_residue_dataset(structure) if structure is not None else EMPTY_DATASET
        self._install(dataset)
        return True

    def fail_load(self, token: int) -> bool:
        """Discard the current dataset after a failed load."""
        if not self.is_current(token):
            logger.debug(f"Ignoring failure of stale structure load (token {token})")
            return False
        logger.warning(f"Structure load {token} failed; clearing analysis state")
        self._install(EMPTY_DATASET)
        return True

    def load(self, structure: AtomArray | None) -> ResidueDataset:
        """Load a structure synchronously."""
        self.complete_load(self.begin_load(), structure)
        return self._dataset

    def unload(self) -> None:
        """Drop the loaded structure and invalidate in-flight loads."""
        self._request_token += 1
        self._install(EMPTY_DATASET)

    def _new_selection(self, dataset: ResidueDataset) -> ResidueSelection:
        selection = ResidueSelection(dataset.keys(), max_selection=self._max_selection)
        selection.set_filter_enabled(self._filter.filter_enabled)
        selection.add_listener(self._on_selection_event)
        return selection

    def _install(self, dataset: ResidueDataset) -> None:
        self._debouncer.cancel()
        self._selection.remove_listener(self._on_selection_event)

        self._dataset = dataset
        self._contact_map = build_contact_map(dataset, cutoff=self._contact_cutoff)
        self._classifier = InteractionClassifier(dataset)
        self._selection = self._new_selection(dataset)
        self._filter = FilterState(
            threshold=self._pending_threshold,
            filter_enabled=self._filter.filter_enabled,
        )
        self._last_result = None

        logger.info(
            f"Loaded {len(dataset)} residues with {self._contact_map.num_contacts} contacts"
        )
        self._hooks.structure_changed(dataset)
        self._hooks.clear_interactions()
        self._refresh()

    # Filtering

    def _refresh(self) -> None:
        """Re-project the filter and push the result to the selection and hooks."""
        projection = project(
            self._selection.selected,
            self._contact_map,
            self._filter.threshold,
            self._classifier.has_interaction,
            filter_enabled=self._filter.filter_enabled,
            all_keys=self._dataset.keys(),
        )
        self._filter = FilterState(
            threshold=self._filter.threshold,
            filter_enabled=self._filter.filter_enabled,
            projection=projection,
        )
        self._selection.set_disabled(projection.disabled)
        self._candidates = build_candidate_list(
            self._dataset,
            self._selection.selected,
            projection,
            self._filter.threshold,
        )
        self._hooks.candidates_changed(self._candidates)

    def set_threshold(self, value: float) -> float:
        """Request a new proximity threshold.

        The value is clamped immediately; recomputation is debounced so a
        burst of changes only re-projects once.

        Returns:
            The clamped threshold.
        """
        threshold = clamp_threshold(value)
        self._pending_threshold = threshold
        self._debouncer.trigger(lambda: self._apply_threshold(threshold))
        return threshold

    def _apply_threshold(self, threshold: float) -> None:
        logger.debug(f"Applying proximity threshold {threshold}")
        self._filter = FilterState(
            threshold=threshold,
            filter_enabled=self._filter.filter_enabled,
            projection=self._filter.projection,
        )
        self._refresh()

    def set_filter_enabled(self, enabled: bool) -> None:
        """Toggle neighbor filtering and re-project."""
        enabled = bool(enabled)
        self._selection.set_filter_enabled(enabled)
        self._filter = FilterState(
            threshold=self._filter.threshold,
            filter_enabled=enabled,
            projection=self._filter.projection,
        )
        self._refresh()

    # Selection

    def _on_selection_event(self, event: SelectionEvent) -> None:
        self._refresh()
        self._hooks.selection_changed(event)
        self._hooks.announce(
            describe_selection_event(event, self._dataset, self._max_selection)
        )

    def select(self, key: ResidueKey) -> SelectionEvent | None:
        return self._selection.select(key)

    def deselect(self, key: ResidueKey) -> SelectionEvent | None:
        return self._selection.deselect(key)

    def toggle(self, key: ResidueKey, checked: bool) -> SelectionEvent | None:
        """Apply a checkbox change to the selection."""
        if checked:
            return self.select(key)
        return self.deselect(key)

    def clear(self) -> SelectionEvent:
        """Clear the selection and any displayed interactions."""
        event = self._selection.clear()
        if event.accepted:
            self._last_result = None
            self._hooks.clear_interactions()
        return event

    def select_from_search(self, query: str) -> SelectionEvent | None:
        """Select the first residue matching a search query.

        Returns:
            The selection event, or None when nothing matches.
        """
        record = find_residue_by_query(self._dataset, query)
        if record is None:
            logger.debug(f"No residue matches search query {query!r}")
            return None
        return self._selection.select(record.key, action=SelectionAction.SEARCH)

    # Analysis

    def analyze(self) -> AnalysisResult | None:
        """Classify interactions among the selected residues.

        Returns:
            The AnalysisResult, or None when fewer than two (or more than the
            maximum) residues are selected.
        """
        if not self.can_analyze:
            self._hooks.announce(describe_analysis(None))
            return None
        result = analyze_selection(self._classifier, self._selection.selected)
        self._last_result = result
        logger.info(
            f"Analysis found {len(result)} interactions among {len(result.residues)} residues"
        )
        self._hooks.clear_interactions()
        if not result.is_empty:
            self._hooks.show_interactions(result)
        self._hooks.announce(describe_analysis(result))
        return result
