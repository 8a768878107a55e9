"""Capacity-bounded residue selection with accept/reject rules."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from residuescope.config.settings import MAX_SELECTION
from residuescope.models.residues import ResidueKey

logger = logging.getLogger(__name__)


class SelectionAction(str, Enum):
    """What triggered a selection event."""

    SELECT = "select"
    DESELECT = "deselect"
    CLEAR = "clear"
    SEARCH = "search"


class RejectReason(str, Enum):
    """Why a selection request was refused."""

    LIMIT = "limit"
    DISABLED = "disabled"
    EMPTY = "empty"


@dataclass(frozen=True)
class SelectionEvent:
    """Notification emitted for every accepted or rejected transition.

    Attributes:
        action: The requested transition.
        residue_key: Affected residue (None for clear).
        added: True if the residue ended up added to the selection.
        accepted: Whether the request changed (or confirmed) the selection.
        reason: Rejection reason when not accepted.
        selection: Selected keys after the transition, in sorted order.
    """

    action: SelectionAction
    residue_key: ResidueKey | None
    added: bool
    accepted: bool
    reason: RejectReason | None
    selection: tuple[ResidueKey, ...]


SelectionListener = Callable[[SelectionEvent], None]


class ResidueSelection:
    """Selection state machine for one loaded structure.

    Residues are either selected or not. A residue may additionally be
    disabled, which only blocks new selection attempts and never removes a
    residue that is already selected.
    """

    def __init__(
        self,
        known_keys: Iterable[ResidueKey] = (),
        max_selection: int = MAX_SELECTION,
    ):
        self._known = frozenset(known_keys)
        self._max_selection = max_selection
        self._selected: set[ResidueKey] = set()
        self._disabled: frozenset[ResidueKey] = frozenset()
        self._filter_enabled = True
        self._listeners: list[SelectionListener] = []

    # State

    @property
    def selected(self) -> frozenset[ResidueKey]:
        return frozenset(self._selected)

    @property
    def disabled(self) -> frozenset[ResidueKey]:
        return self._disabled

    @property
    def max_selection(self) -> int:
        return self._max_selection

    @property
    def filter_enabled(self) -> bool:
        return self._filter_enabled

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, key: object) -> bool:
        return key in self._selected

    def is_disabled(self, key: ResidueKey) -> bool:
        """Check whether a residue is blocked from being newly selected."""
        return key in self._disabled and key not in self._selected

    # Listeners

    def add_listener(self, callback: SelectionListener) -> None:
        """Register a callback receiving every SelectionEvent."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: SelectionListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _emit(self, event: SelectionEvent) -> SelectionEvent:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Selection listener failed for {event.action.value} event")
        return event

    def _event(
        self,
        action: SelectionAction,
        key: ResidueKey | None,
        added: bool,
        accepted: bool = True,
        reason: RejectReason | None = None,
    ) -> SelectionEvent:
        return self._emit(SelectionEvent(
            action=action,
            residue_key=key,
            added=added,
            accepted=accepted,
            reason=reason,
            selection=tuple(sorted(self._selected)),
        ))

    # Transitions

    def select(
        self,
        key: ResidueKey,
        action: SelectionAction = SelectionAction.SELECT,
    ) -> SelectionEvent | None:
        """Try to add a residue to the selection.

        Args:
            key: Residue to select.
            action: Reported action (SELECT, or SEARCH for search picks).

        Returns:
            The emitted event, or None for residues not in the structure.
        """
        if key not in self._known:
            return None
        if key in self._selected:
            return self._event(action, key, added=True)
        if len(self._selected) >= self._max_selection:
            logger.debug(f"Selection of {key} rejected: limit of {self._max_selection} reached")
            return self._event(action, key, added=False, accepted=False, reason=RejectReason.LIMIT)
        if key in self._disabled:
            logger.debug(f"Selection of {key} rejected: residue disabled")
            return self._event(action, key, added=False, accepted=False, reason=RejectReason.DISABLED)
        self._selected.add(key)
        return self._event(action, key, added=True)

    def deselect(self, key: ResidueKey) -> SelectionEvent | None:
        """Remove a residue from the selection (always accepted)."""
        if key not in self._known:
            return None
        self._selected.discard(key)
        return self._event(SelectionAction.DESELECT, key, added=False)

    def clear(self) -> SelectionEvent:
        """Empty the selection.

        An already empty selection produces a rejected CLEAR event with
        reason EMPTY so the UI can report that nothing was cleared.
        """
        if not self._selected:
            return self._event(
                SelectionAction.CLEAR, None, added=False, accepted=False, reason=RejectReason.EMPTY
            )
        self._selected.clear()
        return self._event(SelectionAction.CLEAR, None, added=False)

    def set_disabled(self, keys: Iterable[ResidueKey]) -> None:
        """Replace the set of residues blocked from new selection."""
        self._disabled = frozenset(keys)

    def set_filter_enabled(self, enabled: bool) -> None:
        """Toggle neighbor filtering; selection membership is untouched."""
        self._filter_enabled = bool(enabled)
