"""Tests for the residue selection state machine."""

from residuescope.models.residues import ResidueKey
from residuescope.models.selection import (
    RejectReason,
    ResidueSelection,
    SelectionAction,
)

KEYS = [ResidueKey("A", i) for i in range(1, 13)]


def _selection(**kwargs) -> ResidueSelection:
    return ResidueSelection(KEYS, **kwargs)


class TestSelect:
    """Tests for select/deselect transitions."""

    def test_select_adds_residue(self):
        selection = _selection()

        event = selection.select(KEYS[0])

        assert event.accepted is True
        assert event.added is True
        assert event.action is SelectionAction.SELECT
        assert event.selection == (KEYS[0],)
        assert KEYS[0] in selection

    def test_select_already_selected_is_accepted(self):
        selection = _selection()
        selection.select(KEYS[0])

        event = selection.select(KEYS[0])

        assert event.accepted is True
        assert len(selection) == 1

    def test_unknown_residue_is_ignored(self):
        selection = _selection()
        events = []
        selection.add_listener(events.append)

        assert selection.select(ResidueKey("Z", 1)) is None
        assert selection.deselect(ResidueKey("Z", 1)) is None
        assert events == []

    def test_deselect(self):
        selection = _selection()
        selection.select(KEYS[0])

        event = selection.deselect(KEYS[0])

        assert event.accepted is True
        assert event.added is False
        assert len(selection) == 0

    def test_event_selection_is_sorted(self):
        selection = _selection()
        selection.select(KEYS[5])
        event = selection.select(KEYS[1])

        assert event.selection == (KEYS[1], KEYS[5])


class TestSelectionLimit:
    """Tests for the selection capacity."""

    def test_eleventh_residue_rejected(self):
        selection = _selection()
        for key in KEYS[:10]:
            assert selection.select(key).accepted is True

        event = selection.select(KEYS[10])

        assert event.accepted is False
        assert event.reason is RejectReason.LIMIT
        assert event.reason.value == "limit"
        assert len(selection) == 10
        assert KEYS[10] not in selection

    def test_deselect_frees_capacity(self):
        selection = _selection()
        for key in KEYS[:10]:
            selection.select(key)
        selection.deselect(KEYS[0])

        assert selection.select(KEYS[10]).accepted is True

    def test_custom_limit(self):
        selection = _selection(max_selection=2)
        selection.select(KEYS[0])
        selection.select(KEYS[1])

        assert selection.select(KEYS[2]).reason is RejectReason.LIMIT


class TestDisabled:
    """Tests for the disabled-residue guard."""

    def test_disabled_residue_rejected(self):
        selection = _selection()
        selection.select(KEYS[0])
        selection.set_disabled([KEYS[3]])

        event = selection.select(KEYS[3])

        assert event.accepted is False
        assert event.reason is RejectReason.DISABLED
        assert KEYS[3] not in selection

    def test_disabling_never_removes_selected(self):
        selection = _selection()
        selection.select(KEYS[0])

        selection.set_disabled([KEYS[0]])

        assert KEYS[0] in selection
        assert selection.is_disabled(KEYS[0]) is False

    def test_limit_checked_before_disabled(self):
        selection = _selection(max_selection=1)
        selection.select(KEYS[0])
        selection.set_disabled([KEYS[1]])

        assert selection.select(KEYS[1]).reason is RejectReason.LIMIT

    def test_filter_flag_does_not_change_membership(self):
        selection = _selection()
        selection.select(KEYS[0])

        selection.set_filter_enabled(False)

        assert selection.filter_enabled is False
        assert selection.selected == frozenset({KEYS[0]})


class TestClear:
    """Tests for clearing the selection."""

    def test_clear(self):
        selection = _selection()
        selection.select(KEYS[0])
        selection.select(KEYS[1])

        event = selection.clear()

        assert event.accepted is True
        assert event.action is SelectionAction.CLEAR
        assert event.residue_key is None
        assert len(selection) == 0

    def test_clear_empty_selection(self):
        event = _selection().clear()

        assert event.accepted is False
        assert event.reason is RejectReason.EMPTY


class TestListeners:
    """Tests for selection listeners."""

    def test_listener_receives_events(self):
        selection = _selection()
        events = []
        selection.add_listener(events.append)

        selection.select(KEYS[0])
        selection.deselect(KEYS[0])

        assert [e.action for e in events] == [SelectionAction.SELECT, SelectionAction.DESELECT]

    def test_remove_listener(self):
        selection = _selection()
        events = []
        selection.add_listener(events.append)
        selection.remove_listener(events.append)

        selection.select(KEYS[0])

        assert events == []

    def test_failing_listener_does_not_block_others(self):
        selection = _selection()
        events = []

        def broken(event):
            raise RuntimeError("boom")

        selection.add_listener(broken)
        selection.add_listener(events.append)

        event = selection.select(KEYS[0])

        assert event.accepted is True
        assert events == [event]
