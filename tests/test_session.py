"""Tests for the analysis session."""

import pytest

from residuescope.models.residues import ResidueKey
from residuescope.models.scheduler import ManualScheduler
from residuescope.models.selection import RejectReason, SelectionAction
from residuescope.models.session import AnalysisSession

from conftest import ARG42, ASP50, GLY80, LEU70, SER60, make_structure


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def session(pocket_structure, scheduler, recording_hooks):
    session = AnalysisSession(scheduler=scheduler, hooks=recording_hooks)
    session.load(pocket_structure)
    return session


def _many_residues(count: int):
    # Side chains 3 Å apart along x: every residue is near its neighbors
    return make_structure([
        ("A", i + 1, "ALA", {"CB": (3.0 * i, 0.0, 0.0)}) for i in range(count)
    ])


class TestLoading:
    """Tests for structure loading and request tokens."""

    def test_load_builds_state(self, session, recording_hooks):
        assert len(session.dataset) == 5
        assert session.contact_map.num_contacts == 2
        assert len(recording_hooks.structures) == 1
        assert session.candidates().keys() == session.dataset.keys()

    def test_stale_load_dropped(self, pocket_structure):
        session = AnalysisSession()
        stale = session.begin_load()
        current = session.begin_load()

        assert session.complete_load(stale, pocket_structure) is False
        assert session.dataset.is_empty
        assert session.complete_load(current, pocket_structure) is True
        assert len(session.dataset) == 5

    def test_reload_resets_selection(self, session, pocket_structure):
        session.select(ARG42)

        session.load(pocket_structure)

        assert len(session.selection) == 0
        assert session.projection.disabled == frozenset()

    def test_fail_load_clears_dataset(self, session):
        token = session.begin_load()

        assert session.fail_load(token) is True
        assert session.dataset.is_empty
        assert len(session.candidates()) == 0

    def test_fail_stale_load_ignored(self, session):
        stale = session.begin_load()
        session.begin_load()

        assert session.fail_load(stale) is False
        assert len(session.dataset) == 5

    def test_unload(self, session, pocket_structure):
        token = session.begin_load()

        session.unload()

        assert session.dataset.is_empty
        assert session.complete_load(token, pocket_structure) is False


class TestEmptyStructure:
    """A structure without polymer residues makes every operation a no-op."""

    def test_everything_is_noop(self, recording_hooks):
        session = AnalysisSession(hooks=recording_hooks)
        session.load(make_structure([("A", 101, "HOH", {"O": (0.0, 0.0, 0.0)})]))

        assert len(session.candidates()) == 0
        assert session.select(ResidueKey("A", 101)) is None
        assert session.select_from_search("A101") is None
        assert session.clear().accepted is False
        assert len(session.selection) == 0
        assert session.analyze() is None


class TestSelection:
    """Tests for selection through the session."""

    def test_select_updates_projection_and_candidates(self, session, recording_hooks):
        event = session.select(ARG42)

        assert event.accepted is True
        assert session.projection.in_proximity == {ASP50, SER60}
        assert session.projection.has_interaction == {ASP50}
        assert session.selection.disabled == {LEU70, GLY80}
        assert session.candidates().keys() == [ARG42, ASP50, SER60, LEU70, GLY80]
        assert recording_hooks.events[-1] is event
        assert recording_hooks.messages[-1] == "ARG A42 selected."

    def test_disabled_residue_rejected(self, session, recording_hooks):
        session.select(ARG42)

        event = session.select(LEU70)

        assert event.accepted is False
        assert event.reason is RejectReason.DISABLED
        assert LEU70 not in session.selection
        assert recording_hooks.messages[-1] == "No interactions available. Selection unchanged."

    def test_filter_disabled_allows_any_residue(self, session):
        session.select(ARG42)
        session.set_filter_enabled(False)

        assert session.select(LEU70).accepted is True
        assert session.filter_enabled is False

    def test_toggle(self, session):
        session.toggle(ARG42, True)
        assert ARG42 in session.selection

        session.toggle(ARG42, False)
        assert ARG42 not in session.selection

    def test_deselect_announces(self, session, recording_hooks):
        session.select(ARG42)
        session.deselect(ARG42)

        assert recording_hooks.messages[-1] == "ARG A42 deselected."
        assert session.projection.disabled == frozenset()

    def test_clear(self, session, recording_hooks):
        session.select(ARG42)
        session.select(ASP50)

        event = session.clear()

        assert event.accepted is True
        assert len(session.selection) == 0
        assert recording_hooks.messages[-1] == "All selections cleared."

    def test_clear_when_empty(self, session, recording_hooks):
        session.clear()

        assert recording_hooks.messages[-1] == "No residues currently selected."

    def test_limit_of_ten(self, recording_hooks):
        session = AnalysisSession(hooks=recording_hooks)
        session.load(_many_residues(12))
        session.set_filter_enabled(False)
        keys = session.dataset.keys()

        for key in keys[:10]:
            assert session.select(key).accepted is True
        event = session.select(keys[10])

        assert event.accepted is False
        assert event.reason.value == "limit"
        assert len(session.selection) == 10
        assert recording_hooks.messages[-1] == "Maximum of 10 residues reached."

    def test_select_from_search(self, session, recording_hooks):
        event = session.select_from_search("ARG A42")

        assert event.action is SelectionAction.SEARCH
        assert ARG42 in session.selection
        assert recording_hooks.messages[-1] == "ARG A42 selected from search results."

    def test_search_selection_follows_disabled_rule(self, session):
        session.select(ARG42)

        event = session.select_from_search("LEU A70")

        assert event.accepted is False
        assert event.reason is RejectReason.DISABLED

    def test_search_without_match(self, session):
        assert session.select_from_search("TRP") is None


class TestThreshold:
    """Tests for debounced threshold changes."""

    def test_threshold_applied_after_delay(self, session, scheduler):
        session.select(ARG42)

        assert session.set_threshold(3.0) == 3.0
        assert session.pending_threshold == 3.0
        assert session.threshold == 5.0
        assert SER60 in session.projection.in_proximity

        scheduler.advance(75)

        assert session.threshold == 3.0
        assert session.projection.in_proximity == {ASP50}
        assert SER60 in session.selection.disabled

    def test_burst_collapses_to_last_value(self, session, scheduler, recording_hooks):
        session.select(ARG42)
        before = len(recording_hooks.candidates)

        session.set_threshold(2.0)
        scheduler.advance(40)
        session.set_threshold(3.0)
        scheduler.advance(40)
        session.set_threshold(4.0)
        scheduler.advance(40)

        assert session.threshold == 5.0

        scheduler.advance(35)

        assert session.threshold == 4.0
        assert len(recording_hooks.candidates) == before + 1
        assert session.candidates().divider_label == "---- Proximity limit 4 Å ----"

    def test_threshold_clamped(self, session, scheduler):
        assert session.set_threshold(0.1) == 1.0
        assert session.set_threshold(12.0) == 5.0

    def test_initial_threshold_clamped(self):
        assert AnalysisSession(threshold=9.0).threshold == 5.0

    def test_pending_change_cancelled_by_reload(self, session, scheduler, pocket_structure):
        session.set_threshold(2.0)

        session.load(pocket_structure)
        scheduler.advance(100)

        assert scheduler.pending_count == 0
        assert session.threshold == 2.0


class TestAnalyze:
    """Tests for running an analysis."""

    def test_requires_two_residues(self, session, recording_hooks):
        session.select(ARG42)

        assert session.can_analyze is False
        assert session.analyze() is None
        assert recording_hooks.messages[-1] == "Select at least 2 residues to analyze."

    def test_analyze_pair(self, session, recording_hooks):
        session.select(ARG42)
        session.select(ASP50)

        result = session.analyze()

        assert session.can_analyze is True
        assert len(result) == 2
        assert recording_hooks.results == [result]
        assert session.last_result is result
        assert recording_hooks.messages[-1] == "Found 2 interactions among 2 residues."

    def test_analyze_without_interactions(self, session, recording_hooks):
        session.select(ARG42)
        session.select(SER60)

        result = session.analyze()

        assert result.is_empty
        assert recording_hooks.results == []
        assert recording_hooks.messages[-1] == "No interactions found."

    def test_clear_drops_result(self, session, recording_hooks):
        session.select(ARG42)
        session.select(ASP50)
        session.analyze()
        cleared = recording_hooks.cleared

        session.clear()

        assert session.last_result is None
        assert recording_hooks.cleared == cleared + 1
