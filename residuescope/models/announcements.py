"""Status strings for the accessibility live region."""

from residuescope.config.settings import MIN_ANALYSIS_SELECTION
from residuescope.models.interactions import AnalysisResult
from residuescope.models.residues import ResidueDataset
from residuescope.models.selection import RejectReason, SelectionAction, SelectionEvent


def describe_selection_event(event: SelectionEvent, dataset: ResidueDataset, max_selection: int) -> str:
    """Turn a selection event into a short status message."""
    if not event.accepted:
        if event.reason is RejectReason.LIMIT:
            return f"Maximum of {max_selection} residues reached."
        if event.reason is RejectReason.DISABLED:
            return "No interactions available. Selection unchanged."
        if event.reason is RejectReason.EMPTY:
            return "No residues currently selected."
        return "Selection unchanged."

    if event.action is SelectionAction.CLEAR:
        return "All selections cleared."

    record = dataset.get(event.residue_key) if event.residue_key is not None else None
    label = record.label if record is not None else str(event.residue_key)
    if event.action is SelectionAction.SEARCH:
        return f"{label} selected from search results."
    if event.action is SelectionAction.DESELECT:
        return f"{label} deselected."
    return f"{label} selected."


def describe_selection_count(count: int) -> str:
    return f"Selected {count} residue(s)."


def describe_analysis(result: AnalysisResult | None) -> str:
    """Summarise an analysis result."""
    if result is None:
        return f"Select at least {MIN_ANALYSIS_SELECTION} residues to analyze."
    if result.is_empty:
        return "No interactions found."
    noun = "interaction" if len(result) == 1 else "interactions"
    return f"Found {len(result)} {noun} among {len(result.residues)} residues."
