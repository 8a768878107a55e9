"""Shared fixtures for building small structures atom by atom."""

from pathlib import Path

import biotite.structure as struc
import biotite.structure.io.pdb as pdb
import numpy as np
import pytest

from residuescope.models.residues import ResidueKey
from residuescope.models.session import ViewerHooks


def make_structure(residues) -> struc.AtomArray:
    """Build an AtomArray from residue descriptions.

    Args:
        residues: Iterable of ``(chain, res_id, res_name, {atom_name: xyz})``.
            Append a fifth item to set the insertion code.
    """
    atoms = []
    for residue in residues:
        chain, res_id, res_name, atom_coords = residue[:4]
        ins_code = residue[4] if len(residue) > 4 else ""
        for atom_name, coord in atom_coords.items():
            atoms.append(struc.Atom(
                np.asarray(coord, dtype=float),
                chain_id=chain,
                res_id=res_id,
                ins_code=ins_code,
                res_name=res_name,
                hetero=res_name == "HOH",
                atom_name=atom_name,
                element=atom_name[0],
            ))
    return struc.array(atoms)


def write_pdb(structure: struc.AtomArray, path: Path) -> Path:
    """Write a structure to a PDB file with biotite."""
    pdb_file = pdb.PDBFile()
    pdb_file.set_structure(structure)
    pdb_file.write(str(path))
    return path


class RecordingHooks(ViewerHooks):
    """ViewerHooks that records every callback for assertions."""

    def __init__(self):
        self.structures = []
        self.candidates = []
        self.events = []
        self.results = []
        self.cleared = 0
        self.messages = []

    def structure_changed(self, dataset):
        self.structures.append(dataset)

    def candidates_changed(self, candidates):
        self.candidates.append(candidates)

    def selection_changed(self, event):
        self.events.append(event)

    def show_interactions(self, result):
        self.results.append(result)

    def clear_interactions(self):
        self.cleared += 1

    def announce(self, message):
        self.messages.append(message)


# Residues around ARG A42:
#   ASP A50 OD1 2.9 Å from NH1 (hydrogen bond + salt bridge)
#   SER A60 OG 4.5 Å from NH1 (contact only)
#   LEU A70 and GLY A80 far away
POCKET_RESIDUES = [
    ("A", 42, "ARG", {"CA": (-4.0, 0.0, 0.0), "CZ": (-1.2, 0.0, 0.0), "NH1": (0.0, 0.0, 0.0)}),
    ("A", 50, "ASP", {"CA": (6.0, 0.0, 0.0), "CG": (4.1, 0.0, 0.0), "OD1": (2.9, 0.0, 0.0)}),
    ("A", 60, "SER", {"CA": (0.0, 7.0, 0.0), "CB": (0.0, 5.8, 0.0), "OG": (0.0, 4.5, 0.0)}),
    ("A", 70, "LEU", {"CA": (20.0, 0.0, 0.0), "CG": (21.0, 0.0, 0.0), "CD1": (22.0, 0.0, 0.0)}),
    ("A", 80, "GLY", {"N": (40.0, 1.0, 0.0), "CA": (40.0, 0.0, 0.0)}),
]

ARG42 = ResidueKey("A", 42)
ASP50 = ResidueKey("A", 50)
SER60 = ResidueKey("A", 60)
LEU70 = ResidueKey("A", 70)
GLY80 = ResidueKey("A", 80)


@pytest.fixture
def pocket_structure():
    """Five residues on chain A with one salt-bridged pair."""
    return make_structure(POCKET_RESIDUES)


@pytest.fixture
def random_structure():
    """Thirty leucines with side chains scattered in a 15 Å box."""
    rng = np.random.default_rng(7)
    residues = []
    for i in range(30):
        center = rng.uniform(0.0, 15.0, size=3)
        residues.append((
            "A" if i < 15 else "B",
            i + 1,
            "LEU",
            {
                "CA": center + (0.0, 0.0, -1.5),
                "CG": center,
                "CD1": center + rng.normal(0.0, 1.0, size=3),
            },
        ))
    return make_structure(residues)


@pytest.fixture
def recording_hooks():
    return RecordingHooks()
