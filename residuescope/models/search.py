"""Residue lookup by free-text query."""

import re

from residuescope.models.proximity import CandidateItem, CandidateList
from residuescope.models.residues import ResidueDataset, ResidueRecord

_WHITESPACE = re.compile(r"\s+")
_RESNAME_CHAIN_NUMBER = re.compile(r"^([A-Z]{3})([A-Z]?)(-?\d+)$")
_CHAIN_NUMBER = re.compile(r"^([A-Z]?)(-?\d+)$")


def normalize_query(value: str) -> str:
    """Lower-case a query and drop all whitespace."""
    return _WHITESPACE.sub("", value or "").lower()


def filter_candidates(candidates: CandidateList, query: str) -> list[CandidateItem]:
    """Keep the candidate rows whose label contains the query.

    Matching is case-insensitive; an empty query keeps every row.
    """
    query = (query or "").strip().lower()
    if not query:
        return list(candidates.items)
    return [item for item in candidates.items if query in item.label.lower()]


def find_residue_by_query(dataset: ResidueDataset, query: str) -> ResidueRecord | None:
    """Resolve a free-text query to a residue.

    Accepted forms, tried in order: the full label (``"ARG A42"``), the key
    (``"A:42"``), residue name + optional chain + number (``"ARGA42"``,
    ``"ARG42"``), optional chain + number (``"A42"``, ``"42"``), and finally
    a substring of the label.

    Args:
        dataset: Residues of the loaded structure.
        query: Text typed by the user.

    Returns:
        The first matching residue in canonical order, or None.
    """
    if not query or not query.strip() or dataset.is_empty:
        return None

    normalized = normalize_query(query)
    for record in dataset:
        if normalize_query(record.label) == normalized:
            return record
    for record in dataset:
        if normalize_query(str(record.key)) == normalized:
            return record

    compact = normalized.upper()

    match = _RESNAME_CHAIN_NUMBER.match(compact)
    if match:
        resname, chain, number = match.groups()
        for record in dataset:
            if record.resname != resname or record.sequence_number != int(number):
                continue
            if not chain or record.chain.upper() == chain:
                return record

    match = _CHAIN_NUMBER.match(compact)
    if match:
        chain, number = match.groups()
        for record in dataset:
            if record.sequence_number != int(number):
                continue
            if not chain or record.chain.upper() == chain:
                return record

    lowered = query.strip().lower()
    for record in dataset:
        if lowered in record.label.lower():
            return record
    return None

