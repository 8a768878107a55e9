"""Structure loading for the analysis session."""

import logging
from pathlib import Path
from typing import Optional

import biotite.structure as struc
import biotite.structure.io.pdb as pdb
import biotite.structure.io.pdbx as pdbx
import numpy as np

from residuescope.models.residues import ResidueDataset, build_residue_dataset
from residuescope.utils.file_utils import get_file_format, validate_file_path

logger = logging.getLogger(__name__)


class Protein:
    """A structure file with lazy loading.

    Attributes:
        file_path: Path to the structure file.
        name: Name of the structure (derived from the filename).
    """

    def __init__(self, file_path: str | Path):
        """Initialize a Protein instance.

        Args:
            file_path: Path to a PDB or PDBx/mmCIF file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file format is not supported.
        """
        self.file_path = Path(file_path)

        if not validate_file_path(self.file_path):
            raise FileNotFoundError(f"File not found: {self.file_path}")

        self.file_format = get_file_format(self.file_path)
        self.name = self.file_path.stem
        self._structure: Optional[struc.AtomArray] = None

    def load_structure(self) -> struc.AtomArray:
        """Load the first model of the structure with biotite.

        The file is only parsed on first access.

        Returns:
            The structure as a biotite AtomArray.
        """
        if self._structure is None:
            logger.debug(f"Parsing {self.file_format} file {self.file_path}")
            if self.file_format == "pdb":
                pdb_file = pdb.PDBFile.read(str(self.file_path))
                structure = pdb_file.get_structure(model=1)
            else:
                cif_file = pdbx.CIFFile.read(str(self.file_path))
                structure = pdbx.get_structure(cif_file, model=1)

            if isinstance(structure, struc.AtomArrayStack):
                structure = structure[0]
            self._structure = structure

        return self._structure

    @property
    def structure(self) -> struc.AtomArray:
        """Get the structure, loading if necessary."""
        return self.load_structure()

    @property
    def is_loaded(self) -> bool:
        return self._structure is not None

    def unload(self) -> None:
        """Drop the parsed structure to free memory."""
        self._structure = None

    def get_num_residues(self) -> int:
        """Number of residues of any kind (including ligands and water)."""
        return struc.get_residue_count(self.structure)

    def get_chains(self) -> list[str]:
        """Get unique chain IDs in the structure."""
        return [str(chain) for chain in np.unique(self.structure.chain_id)]

    def build_dataset(self) -> ResidueDataset:
        """Index the polymer residues of the structure."""
        return build_residue_dataset(self.structure)

    def __repr__(self) -> str:
        loaded = "loaded" if self.is_loaded else "not loaded"
        return f"Protein(name='{self.name}', {loaded})"
