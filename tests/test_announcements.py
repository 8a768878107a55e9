"""Tests for status announcements."""

import pytest

from residuescope.models.announcements import (
    describe_analysis,
    describe_selection_count,
    describe_selection_event,
)
from residuescope.models.interactions import AnalysisResult, InteractionClassifier, analyze_selection
from residuescope.models.residues import build_residue_dataset
from residuescope.models.selection import RejectReason, SelectionAction, SelectionEvent

from conftest import ARG42, ASP50, SER60


@pytest.fixture
def dataset(pocket_structure):
    return build_residue_dataset(pocket_structure)


def _event(action, key=ARG42, accepted=True, reason=None):
    return SelectionEvent(
        action=action,
        residue_key=key,
        added=accepted and action is not SelectionAction.DESELECT,
        accepted=accepted,
        reason=reason,
        selection=(),
    )


class TestDescribeSelectionEvent:
    """Tests for describe_selection_event."""

    @pytest.mark.parametrize("action, message", [
        (SelectionAction.SELECT, "ARG A42 selected."),
        (SelectionAction.DESELECT, "ARG A42 deselected."),
        (SelectionAction.SEARCH, "ARG A42 selected from search results."),
    ])
    def test_accepted(self, dataset, action, message):
        assert describe_selection_event(_event(action), dataset, 10) == message

    def test_clear(self, dataset):
        event = _event(SelectionAction.CLEAR, key=None)

        assert describe_selection_event(event, dataset, 10) == "All selections cleared."

    @pytest.mark.parametrize("reason, message", [
        (RejectReason.LIMIT, "Maximum of 10 residues reached."),
        (RejectReason.DISABLED, "No interactions available. Selection unchanged."),
        (RejectReason.EMPTY, "No residues currently selected."),
    ])
    def test_rejected(self, dataset, reason, message):
        event = _event(SelectionAction.SELECT, accepted=False, reason=reason)

        assert describe_selection_event(event, dataset, 10) == message


class TestDescribeAnalysis:
    def test_not_enough_residues(self):
        assert describe_analysis(None) == "Select at least 2 residues to analyze."

    def test_no_interactions(self, dataset):
        result = analyze_selection(InteractionClassifier(dataset), [ARG42, SER60])

        assert describe_analysis(result) == "No interactions found."

    def test_counts(self, dataset):
        result = analyze_selection(InteractionClassifier(dataset), [ARG42, ASP50])

        assert describe_analysis(result) == "Found 2 interactions among 2 residues."

    def test_singular(self, dataset):
        full = analyze_selection(InteractionClassifier(dataset), [ARG42, ASP50])
        result = AnalysisResult(residues=full.residues, records=full.records[:1])

        assert describe_analysis(result) == "Found 1 interaction among 2 residues."


def test_describe_selection_count():
    assert describe_selection_count(3) == "Selected 3 residue(s)."
