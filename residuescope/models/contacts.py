"""Residue contact map built from side-chain atom proximity.

The contact map is computed once per loaded structure and answers "which
residues sit within the cutoff of this one" without touching coordinates
again. Candidate residue pairs come from a KD-tree pair query, so distant
pairs never reach the per-atom comparison.
"""

import logging
from types import MappingProxyType
from typing import Iterator, Mapping

import numpy as np
from scipy.spatial import cKDTree

from residuescope.config.settings import CONTACT_CUTOFF
from residuescope.models.residues import ResidueDataset, ResidueKey

logger = logging.getLogger(__name__)


class ContactMap:
    """Symmetric residue -> neighbor -> distance table.

    Only pairs whose representative atoms come within the cutoff are stored.
    An absent pair means "no registered contact", not an infinite distance.
    """

    def __init__(
        self,
        neighbors: Mapping[ResidueKey, Mapping[ResidueKey, float]] | None = None,
        cutoff: float = CONTACT_CUTOFF,
    ):
        self._neighbors = MappingProxyType({
            key: MappingProxyType(dict(partners))
            for key, partners in (neighbors or {}).items()
            if partners
        })
        self.cutoff = cutoff

    def __len__(self) -> int:
        """Number of residues with at least one contact."""
        return len(self._neighbors)

    def __contains__(self, key: object) -> bool:
        return key in self._neighbors

    def __iter__(self) -> Iterator[ResidueKey]:
        return iter(self._neighbors)

    def neighbors(self, key: ResidueKey) -> Mapping[ResidueKey, float]:
        """Get the neighbors of a residue with their recorded distances."""
        return self._neighbors.get(key, MappingProxyType({}))

    def distance(self, key_a: ResidueKey, key_b: ResidueKey) -> float | None:
        """Get the recorded distance between two residues, if in contact."""
        return self.neighbors(key_a).get(key_b)

    def pairs(self) -> Iterator[tuple[ResidueKey, ResidueKey, float]]:
        """Iterate over each contact once, as (smaller key, larger key, distance)."""
        for key, partners in self._neighbors.items():
            for partner, dist in partners.items():
                if key < partner:
                    yield key, partner, dist

    @property
    def num_contacts(self) -> int:
        """Number of unordered residue pairs in contact."""
        return sum(len(partners) for partners in self._neighbors.values()) // 2


EMPTY_CONTACT_MAP = ContactMap()


def _first_contact_distance(
    coords: np.ndarray,
    atoms_a: tuple[int, ...],
    atoms_b: tuple[int, ...],
    cutoff: float,
) -> float | None:
    """Scan atom pairs in order and stop at the first one within the cutoff."""
    for a in atoms_a:
        for b in atoms_b:
            dist = float(np.linalg.norm(coords[a] - coords[b]))
            if dist <= cutoff:
                return dist
    return None


def build_contact_map(
    dataset: ResidueDataset,
    cutoff: float = CONTACT_CUTOFF,
    exact: bool = True,
) -> ContactMap:
    """Compute the residue contact map of a dataset.

    Args:
        dataset: Indexed residues of the loaded structure.
        cutoff: Maximum side-chain atom distance (Å) for a contact.
        exact: If True, record the true minimum atom distance of each pair.
            If False, record the first atom distance found within the cutoff
            while scanning atoms in record order (cheaper, may overestimate).

    Returns:
        ContactMap with symmetric entries and no self contacts.
    """
    if len(dataset) < 2:
        return ContactMap(cutoff=cutoff)

    owners: list[int] = []
    atom_indices: list[int] = []
    for residue_pos, record in enumerate(dataset):
        owners.extend([residue_pos] * len(record.side_chain_atom_indices))
        atom_indices.extend(record.side_chain_atom_indices)

    owner_arr = np.asarray(owners, dtype=int)
    atom_arr = np.asarray(atom_indices, dtype=int)
    points = dataset.coords[atom_arr]

    tree = cKDTree(points)
    atom_pairs = tree.query_pairs(r=cutoff, output_type="ndarray")

    if len(atom_pairs) == 0:
        logger.debug("build_contact_map: no contacts within cutoff")
        return ContactMap(cutoff=cutoff)

    owner_i = owner_arr[atom_pairs[:, 0]]
    owner_j = owner_arr[atom_pairs[:, 1]]
    cross = owner_i != owner_j
    atom_pairs = atom_pairs[cross]
    owner_i = owner_i[cross]
    owner_j = owner_j[cross]

    residue_distances: dict[tuple[int, int], float] = {}
    if exact:
        dists = np.linalg.norm(points[atom_pairs[:, 0]] - points[atom_pairs[:, 1]], axis=1)
        for res_i, res_j, dist in zip(owner_i, owner_j, dists):
            pair = (int(min(res_i, res_j)), int(max(res_i, res_j)))
            dist = float(dist)
            if pair not in residue_distances or dist < residue_distances[pair]:
                residue_distances[pair] = dist
    else:
        candidates = {
            (int(min(res_i, res_j)), int(max(res_i, res_j)))
            for res_i, res_j in zip(owner_i, owner_j)
        }
        records = dataset.records
        for pos_a, pos_b in sorted(candidates):
            dist = _first_contact_distance(
                dataset.coords,
                records[pos_a].side_chain_atom_indices,
                records[pos_b].side_chain_atom_indices,
                cutoff,
            )
            if dist is not None:
                residue_distances[(pos_a, pos_b)] = dist

    neighbors: dict[ResidueKey, dict[ResidueKey, float]] = {}
    for (pos_a, pos_b), dist in residue_distances.items():
        key_a = dataset.records[pos_a].key
        key_b = dataset.records[pos_b].key
        neighbors.setdefault(key_a, {})[key_b] = dist
        neighbors.setdefault(key_b, {})[key_a] = dist

    contact_map = ContactMap(neighbors, cutoff=cutoff)
    logger.debug(
        f"build_contact_map: {contact_map.num_contacts} contacts "
        f"among {len(dataset)} residues (cutoff {cutoff} Å)"
    )
    return contact_map
