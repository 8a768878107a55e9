"""Per-residue atom index built from a raw structure.

A ``ResidueDataset`` is the starting point for every analysis: it groups the
atoms of each amino-acid residue by name, picks the side-chain atoms used for
distance queries and fixes the canonical display order (chain, then sequence
number).
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping

import numpy as np
from biotite.structure import AtomArray, filter_amino_acids, get_residue_starts

logger = logging.getLogger(__name__)

# Backbone atom names never counted as side chain
BACKBONE_ATOMS = frozenset({"N", "CA", "C", "O", "OXT"})


@dataclass(frozen=True, order=True)
class ResidueKey:
    """Identifier of a residue within one structure.

    Ordering is the canonical display order: chain (lexicographic), then
    sequence number, then insertion code.
    """

    chain: str
    number: int
    ins_code: str = ""

    def __str__(self) -> str:
        return f"{self.chain}:{self.number}{self.ins_code}"


def is_side_chain_atom(atom_name: str) -> bool:
    """Check whether an atom name belongs to the side chain.

    Hydrogens are recognised by name only (leading "H"), not by element.
    """
    return atom_name not in BACKBONE_ATOMS and not atom_name.startswith("H")


@dataclass(frozen=True)
class ResidueRecord:
    """One indexed residue.

    Attributes:
        key: Chain + sequence number (+ insertion code).
        resname: Upper-cased three-letter residue name.
        label: Display string, e.g. ``"ARG A42"``.
        atoms_by_name: Atom name -> atom indices (several for alternate
            conformations).
        side_chain_atom_indices: Atoms used for distance queries. Falls back
            to the CA atoms for residues without a side chain.
        all_atom_indices: Every atom of the residue.
    """

    key: ResidueKey
    resname: str
    label: str
    atoms_by_name: Mapping[str, tuple[int, ...]]
    side_chain_atom_indices: tuple[int, ...]
    all_atom_indices: tuple[int, ...]

    @property
    def chain(self) -> str:
        return self.key.chain

    @property
    def sequence_number(self) -> int:
        return self.key.number

    def atoms(self, name: str) -> tuple[int, ...]:
        """Get the indices of atoms with the given name (empty if absent)."""
        return self.atoms_by_name.get(name, ())


def make_label(resname: str, key: ResidueKey) -> str:
    """Build the display label of a residue."""
    return f"{resname} {key.chain}{key.number}{key.ins_code}"


@dataclass(frozen=True, eq=False)
class ResidueDataset:
    """Ordered collection of residue records for one loaded structure.

    Attributes:
        records: Residues in canonical order.
        coords: Coordinates of every atom of the source structure, indexed by
            the atom indices stored in the records.
        atom_names: Upper-cased atom names, same indexing as ``coords``.
    """

    records: tuple[ResidueRecord, ...] = ()
    coords: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    atom_names: tuple[str, ...] = ()

    def __post_init__(self):
        by_key = {record.key: record for record in self.records}
        rank = {record.key: i for i, record in enumerate(self.records)}
        object.__setattr__(self, "_by_key", by_key)
        object.__setattr__(self, "_rank", rank)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ResidueRecord]:
        return iter(self.records)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __getitem__(self, key: ResidueKey) -> ResidueRecord:
        return self._by_key[key]

    @property
    def is_empty(self) -> bool:
        return not self.records

    def get(self, key: ResidueKey) -> ResidueRecord | None:
        return self._by_key.get(key)

    def keys(self) -> list[ResidueKey]:
        """Get all residue keys in canonical order."""
        return [record.key for record in self.records]

    def rank(self, key: ResidueKey) -> int:
        """Get the canonical position of a residue key."""
        return self._rank[key]

    def sort_keys(self, keys) -> list[ResidueKey]:
        """Sort residue keys into canonical order."""
        return sorted(keys, key=self._rank.__getitem__)

    def get_chains(self) -> list[str]:
        """Get the chain IDs present, in canonical order."""
        return list(dict.fromkeys(record.chain for record in self.records))

    def atom_coord(self, index: int) -> np.ndarray:
        return self.coords[index]

    def atom_name(self, index: int) -> str:
        return self.atom_names[index]

    def distance(self, atom_a: int, atom_b: int) -> float:
        """Euclidean distance between two atoms (Å)."""
        return float(np.linalg.norm(self.coords[atom_a] - self.coords[atom_b]))


EMPTY_DATASET = ResidueDataset()


def build_residue_dataset(structure: AtomArray) -> ResidueDataset:
    """Index every amino-acid residue of a structure.

    Solvent, ligands and other non-polymer residues are excluded. Atoms are
    grouped by trimmed, upper-cased name. A structure without any amino-acid
    residue yields an empty dataset.

    Args:
        structure: Biotite AtomArray (a single model).

    Returns:
        ResidueDataset with residues sorted by chain then sequence number.
    """
    if structure is None or len(structure) == 0:
        return EMPTY_DATASET

    coords = np.asarray(structure.coord, dtype=float)
    atom_names = tuple(str(name).strip().upper() for name in structure.atom_name)

    aa_indices = np.nonzero(filter_amino_acids(structure))[0]
    if len(aa_indices) == 0:
        logger.debug("build_residue_dataset: no amino-acid residues found")
        return ResidueDataset(records=(), coords=coords, atom_names=atom_names)

    aa_structure = structure[aa_indices]
    starts = get_residue_starts(aa_structure, add_exclusive_stop=True)
    has_ins_code = "ins_code" in aa_structure.get_annotation_categories()

    # Residues split across the file are merged under one key
    grouped: dict[ResidueKey, tuple[str, list[int]]] = {}
    for start, stop in zip(starts[:-1], starts[1:]):
        chain = str(aa_structure.chain_id[start]).strip()
        number = int(aa_structure.res_id[start])
        ins_code = str(aa_structure.ins_code[start]).strip().upper() if has_ins_code else ""
        key = ResidueKey(chain, number, ins_code)
        resname = str(aa_structure.res_name[start]).strip().upper()
        indices = [int(i) for i in aa_indices[start:stop]]
        if key in grouped:
            grouped[key][1].extend(indices)
        else:
            grouped[key] = (resname, indices)

    records = []
    for key in sorted(grouped):
        resname, indices = grouped[key]
        records.append(_build_record(key, resname, indices, atom_names))

    dataset = ResidueDataset(records=tuple(records), coords=coords, atom_names=atom_names)
    logger.debug(f"build_residue_dataset: indexed {len(dataset)} residues")
    return dataset


def _build_record(
    key: ResidueKey,
    resname: str,
    indices: list[int],
    atom_names: tuple[str, ...],
) -> ResidueRecord:
    atoms_by_name: dict[str, list[int]] = {}
    side_chain: list[int] = []
    for index in indices:
        name = atom_names[index]
        atoms_by_name.setdefault(name, []).append(index)
        if is_side_chain_atom(name):
            side_chain.append(index)

    if not side_chain:
        # Glycine and truncated residues: CA stands in, or every atom if no CA
        side_chain = list(atoms_by_name.get("CA", [])) or list(indices)

    return ResidueRecord(
        key=key,
        resname=resname,
        label=make_label(resname, key),
        atoms_by_name=MappingProxyType(
            {name: tuple(atoms) for name, atoms in atoms_by_name.items()}
        ),
        side_chain_atom_indices=tuple(side_chain),
        all_atom_indices=tuple(indices),
    )
