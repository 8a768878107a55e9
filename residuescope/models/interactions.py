"""Side-chain interaction classification between residue pairs.

Interactions are detected with fixed distance rules on named side-chain
atoms: hydrogen bonds between donor and acceptor atoms, salt bridges and
longer-range ionic contacts between charged atoms, and disulfide bonds
between cysteine SG atoms.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations

from residuescope.models.residues import ResidueDataset, ResidueKey, ResidueRecord

logger = logging.getLogger(__name__)

# Distance thresholds (Å)
HBOND_MAX_DISTANCE = 3.5
SALT_BRIDGE_MAX_DISTANCE = 4.0
IONIC_MAX_DISTANCE = 6.0
DISULFIDE_MAX_DISTANCE = 2.2

# Side-chain hydrogen bond donors by residue name
DONOR_ATOMS = {
    "ARG": ("NE", "NH1", "NH2"),
    "ASN": ("ND2",),
    "GLN": ("NE2",),
    "HIS": ("ND1", "NE2"),
    "LYS": ("NZ",),
    "SER": ("OG",),
    "THR": ("OG1",),
    "TRP": ("NE1",),
    "TYR": ("OH",),
}

# Side-chain hydrogen bond acceptors by residue name
ACCEPTOR_ATOMS = {
    "ASP": ("OD1", "OD2"),
    "GLU": ("OE1", "OE2"),
    "ASN": ("OD1",),
    "GLN": ("OE1",),
    "HIS": ("ND1", "NE2"),
    "MET": ("SD",),
    "SER": ("OG",),
    "THR": ("OG1",),
    "TYR": ("OH",),
}

# Atoms carrying a (potential) positive charge
POSITIVE_ATOMS = {
    "ARG": ("NE", "NH1", "NH2"),
    "LYS": ("NZ",),
    "HIS": ("ND1", "NE2"),
}

# Atoms carrying a negative charge
NEGATIVE_ATOMS = {
    "ASP": ("OD1", "OD2"),
    "GLU": ("OE1", "OE2"),
}

DISULFIDE_RESIDUES = ("CYS",)
DISULFIDE_ATOM = "SG"


class InteractionType(str, Enum):
    """Kinds of side-chain interaction, valued by their display name."""

    HYDROGEN_BOND = "Hydrogen Bond"
    SALT_BRIDGE = "Salt Bridge"
    IONIC = "Ionic Interaction"
    DISULFIDE = "Disulfide Bond"

    @property
    def color_class(self) -> str:
        """CSS-style class name used to pick the rendering color."""
        return _COLOR_CLASSES[self]


_COLOR_CLASSES = {
    InteractionType.HYDROGEN_BOND: "hydrogen-bond",
    InteractionType.SALT_BRIDGE: "salt-bridge",
    InteractionType.IONIC: "ionic",
    InteractionType.DISULFIDE: "disulfide",
}

_TYPE_ORDER = {kind: i for i, kind in enumerate(InteractionType)}


@dataclass(frozen=True)
class InteractionRecord:
    """A single detected interaction between two atoms.

    For directional rules ``atom_a`` is the donor (or positive) atom and
    ``atom_b`` the acceptor (or negative) atom; for disulfides ``atom_a`` is
    the lower atom index.
    """

    type: InteractionType
    description: str
    atom_a: int
    atom_b: int
    distance: float
    residue_a: ResidueKey
    residue_b: ResidueKey
    coord_a: tuple[float, float, float]
    coord_b: tuple[float, float, float]
    atom_name_a: str = ""
    atom_name_b: str = ""

    @property
    def color_class(self) -> str:
        return self.type.color_class

    def sort_key(self) -> tuple:
        return (_TYPE_ORDER[self.type], self.atom_a, self.atom_b)


class InteractionCache:
    """Memo of "any interaction exists" keyed by the unordered residue pair."""

    def __init__(self):
        self._values: dict[tuple[ResidueKey, ResidueKey], bool] = {}

    @staticmethod
    def pair_key(key_a: ResidueKey, key_b: ResidueKey) -> tuple[ResidueKey, ResidueKey]:
        """Canonical (smaller, larger) key of a residue pair."""
        return (key_a, key_b) if key_a <= key_b else (key_b, key_a)

    def get(self, key_a: ResidueKey, key_b: ResidueKey) -> bool | None:
        return self._values.get(self.pair_key(key_a, key_b))

    def put(self, key_a: ResidueKey, key_b: ResidueKey, value: bool) -> None:
        self._values[self.pair_key(key_a, key_b)] = value

    def clear(self) -> None:
        self._values.clear()

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return self.pair_key(*pair) in self._values

    def __len__(self) -> int:
        return len(self._values)


class InteractionClassifier:
    """Classify interactions between residues of one dataset.

    A classifier is bound to a single dataset; build a new one whenever the
    dataset is rebuilt so the cache never outlives its structure.
    """

    def __init__(self, dataset: ResidueDataset):
        self._dataset = dataset
        self._cache = InteractionCache()
        self._involved_atoms: set[int] = set()

    @property
    def dataset(self) -> ResidueDataset:
        return self._dataset

    @property
    def cache(self) -> InteractionCache:
        return self._cache

    @property
    def involved_atoms(self) -> frozenset[int]:
        """Atom indices taking part in interactions found by ``classify``."""
        return frozenset(self._involved_atoms)

    def reset_involved_atoms(self) -> None:
        self._involved_atoms.clear()

    def invalidate(self) -> None:
        """Drop all memoised results."""
        self._cache.clear()
        self._involved_atoms.clear()

    def classify(self, key_a: ResidueKey, key_b: ResidueKey) -> list[InteractionRecord]:
        """Find every interaction between two residues.

        The result does not depend on argument order. Unknown residues and
        residues lacking the named atoms simply yield no records.

        Args:
            key_a: First residue.
            key_b: Second residue.

        Returns:
            Interaction records sorted by type, then atom indices.
        """
        records = self._classify(key_a, key_b)
        for record in records:
            self._involved_atoms.add(record.atom_a)
            self._involved_atoms.add(record.atom_b)
        self._cache.put(key_a, key_b, bool(records))
        return records

    def has_interaction(self, key_a: ResidueKey, key_b: ResidueKey) -> bool:
        """Check whether any interaction exists between two residues (memoised)."""
        cached = self._cache.get(key_a, key_b)
        if cached is not None:
            return cached
        value = bool(self._classify(key_a, key_b))
        self._cache.put(key_a, key_b, value)
        return value

    def _classify(self, key_a: ResidueKey, key_b: ResidueKey) -> list[InteractionRecord]:
        if key_a == key_b:
            return []
        first = self._dataset.get(min(key_a, key_b))
        second = self._dataset.get(max(key_a, key_b))
        if first is None or second is None:
            return []

        records: list[InteractionRecord] = []
        records.extend(self._hydrogen_bonds(first, second))
        for positive, negative in ((first, second), (second, first)):
            records.extend(self._charged_contacts(positive, negative))
        records.extend(self._disulfides(first, second))
        records.sort(key=InteractionRecord.sort_key)
        return records

    def _hydrogen_bonds(
        self, first: ResidueRecord, second: ResidueRecord
    ) -> list[InteractionRecord]:
        found: dict[frozenset[int], InteractionRecord] = {}
        for donor, acceptor in ((first, second), (second, first)):
            for donor_atom, acceptor_atom in self._atom_pairs(
                donor, DONOR_ATOMS, acceptor, ACCEPTOR_ATOMS
            ):
                atom_pair = frozenset((donor_atom, acceptor_atom))
                if atom_pair in found:
                    continue
                dist = self._dataset.distance(donor_atom, acceptor_atom)
                if dist <= HBOND_MAX_DISTANCE:
                    found[atom_pair] = self._record(
                        InteractionType.HYDROGEN_BOND,
                        donor, donor_atom, acceptor, acceptor_atom, dist,
                    )
        return list(found.values())

    def _charged_contacts(
        self, positive: ResidueRecord, negative: ResidueRecord
    ) -> list[InteractionRecord]:
        records = []
        for pos_atom, neg_atom in self._atom_pairs(
            positive, POSITIVE_ATOMS, negative, NEGATIVE_ATOMS
        ):
            dist = self._dataset.distance(pos_atom, neg_atom)
            if dist <= SALT_BRIDGE_MAX_DISTANCE:
                kind = InteractionType.SALT_BRIDGE
            elif dist <= IONIC_MAX_DISTANCE:
                kind = InteractionType.IONIC
            else:
                continue
            records.append(self._record(kind, positive, pos_atom, negative, neg_atom, dist))
        return records

    def _disulfides(
        self, first: ResidueRecord, second: ResidueRecord
    ) -> list[InteractionRecord]:
        if first.resname not in DISULFIDE_RESIDUES or second.resname not in DISULFIDE_RESIDUES:
            return []
        records = []
        for atom_a in first.atoms(DISULFIDE_ATOM):
            for atom_b in second.atoms(DISULFIDE_ATOM):
                dist = self._dataset.distance(atom_a, atom_b)
                if dist > DISULFIDE_MAX_DISTANCE:
                    continue
                if atom_a <= atom_b:
                    record = self._record(
                        InteractionType.DISULFIDE, first, atom_a, second, atom_b, dist
                    )
                else:
                    record = self._record(
                        InteractionType.DISULFIDE, second, atom_b, first, atom_a, dist
                    )
                records.append(record)
        return records

    @staticmethod
    def _atom_pairs(
        residue_a: ResidueRecord,
        table_a: dict[str, tuple[str, ...]],
        residue_b: ResidueRecord,
        table_b: dict[str, tuple[str, ...]],
    ):
        names_a = table_a.get(residue_a.resname, ())
        names_b = table_b.get(residue_b.resname, ())
        for name_a in names_a:
            for atom_a in residue_a.atoms(name_a):
                for name_b in names_b:
                    for atom_b in residue_b.atoms(name_b):
                        yield atom_a, atom_b

    def _record(
        self,
        kind: InteractionType,
        residue_a: ResidueRecord,
        atom_a: int,
        residue_b: ResidueRecord,
        atom_b: int,
        dist: float,
    ) -> InteractionRecord:
        name_a = self._dataset.atom_name(atom_a)
        name_b = self._dataset.atom_name(atom_b)
        description = (
            f"{kind.value}: {residue_a.label} {name_a} - "
            f"{residue_b.label} {name_b} ({dist:.2f} Å)"
        )
        return InteractionRecord(
            type=kind,
            description=description,
            atom_a=atom_a,
            atom_b=atom_b,
            distance=dist,
            residue_a=residue_a.key,
            residue_b=residue_b.key,
            coord_a=tuple(float(c) for c in self._dataset.atom_coord(atom_a)),
            coord_b=tuple(float(c) for c in self._dataset.atom_coord(atom_b)),
            atom_name_a=name_a,
            atom_name_b=name_b,
        )


@dataclass
class AnalysisResult:
    """Interactions found among a set of selected residues.

    Attributes:
        residues: Analysed residue keys in canonical order.
        records: Every interaction found between pairs of those residues.
        involved_atoms: Atom indices taking part in any interaction.
    """

    residues: tuple[ResidueKey, ...]
    records: list[InteractionRecord] = field(default_factory=list)
    involved_atoms: frozenset[int] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return len(self.records)

    def count_by_type(self) -> dict[InteractionType, int]:
        """Count records per interaction type (types without records omitted)."""
        counts: dict[InteractionType, int] = {}
        for record in self.records:
            counts[record.type] = counts.get(record.type, 0) + 1
        return counts

    def to_rows(self) -> list[dict[str, object]]:
        """Flatten records into JSON-friendly dicts for tables and export."""
        return [
            {
                "type": record.type.value,
                "residue_a": str(record.residue_a),
                "residue_b": str(record.residue_b),
                "atom_a": record.atom_name_a,
                "atom_b": record.atom_name_b,
                "distance": round(record.distance, 2),
                "description": record.description,
            }
            for record in self.records
        ]


def analyze_selection(
    classifier: InteractionClassifier,
    keys,
) -> AnalysisResult:
    """Classify every unordered pair of the given residues.

    Args:
        classifier: Classifier bound to the current dataset.
        keys: Residue keys to analyse; unknown keys are ignored.

    Returns:
        AnalysisResult with records grouped by residue pair in canonical order.
    """
    dataset = classifier.dataset
    ordered = tuple(dataset.sort_keys(k for k in set(keys) if k in dataset))
    classifier.reset_involved_atoms()

    records: list[InteractionRecord] = []
    for key_a, key_b in combinations(ordered, 2):
        records.extend(classifier.classify(key_a, key_b))

    logger.debug(
        f"analyze_selection: {len(records)} interactions among {len(ordered)} residues"
    )
    return AnalysisResult(
        residues=ordered,
        records=records,
        involved_atoms=classifier.involved_atoms,
    )
