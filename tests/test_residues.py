"""Tests for residue indexing."""

import numpy as np
import pytest

from residuescope.models.residues import (
    EMPTY_DATASET,
    ResidueKey,
    build_residue_dataset,
    is_side_chain_atom,
    make_label,
)

from conftest import ARG42, ASP50, GLY80, make_structure


class TestResidueKey:
    """Tests for ResidueKey ordering and parsing."""

    def test_str(self):
        assert str(ResidueKey("A", 42)) == "A:42"
        assert str(ResidueKey("B", 7, "A")) == "B:7A"

    def test_ordering_chain_then_number(self):
        keys = [ResidueKey("B", 1), ResidueKey("A", 10), ResidueKey("A", 2)]
        assert sorted(keys) == [ResidueKey("A", 2), ResidueKey("A", 10), ResidueKey("B", 1)]

    def test_insertion_code_sorts_after_plain(self):
        assert ResidueKey("A", 5) < ResidueKey("A", 5, "A") < ResidueKey("A", 6)


class TestSideChainAtoms:
    """Tests for side-chain atom classification."""

    @pytest.mark.parametrize("name", ["N", "CA", "C", "O", "OXT"])
    def test_backbone_excluded(self, name):
        assert is_side_chain_atom(name) is False

    def test_hydrogens_excluded(self):
        assert is_side_chain_atom("HB2") is False

    def test_side_chain_included(self):
        assert is_side_chain_atom("CB") is True
        assert is_side_chain_atom("NH1") is True


class TestBuildResidueDataset:
    """Tests for build_residue_dataset."""

    def test_indexes_all_residues_in_order(self, pocket_structure):
        dataset = build_residue_dataset(pocket_structure)

        assert len(dataset) == 5
        assert dataset.keys()[0] == ARG42
        assert dataset.keys()[-1] == GLY80
        assert dataset.get_chains() == ["A"]

    def test_labels(self, pocket_structure):
        dataset = build_residue_dataset(pocket_structure)

        assert dataset[ARG42].label == "ARG A42"
        assert make_label("ASP", ASP50) == "ASP A50"

    def test_side_chain_atoms(self, pocket_structure):
        dataset = build_residue_dataset(pocket_structure)
        record = dataset[ARG42]

        names = {dataset.atom_name(i) for i in record.side_chain_atom_indices}
        assert names == {"CZ", "NH1"}
        assert len(record.all_atom_indices) == 3

    def test_glycine_falls_back_to_ca(self, pocket_structure):
        dataset = build_residue_dataset(pocket_structure)
        record = dataset[GLY80]

        assert [dataset.atom_name(i) for i in record.side_chain_atom_indices] == ["CA"]

    def test_atoms_by_name(self, pocket_structure):
        dataset = build_residue_dataset(pocket_structure)
        record = dataset[ARG42]

        (nh1,) = record.atoms("NH1")
        np.testing.assert_allclose(dataset.atom_coord(nh1), [0.0, 0.0, 0.0])
        assert record.atoms("NH2") == ()

    def test_canonical_order_across_chains(self):
        structure = make_structure([
            ("B", 1, "ALA", {"CB": (0.0, 0.0, 0.0)}),
            ("A", 10, "ALA", {"CB": (5.0, 0.0, 0.0)}),
            ("A", 2, "ALA", {"CB": (10.0, 0.0, 0.0)}),
        ])
        dataset = build_residue_dataset(structure)

        assert dataset.keys() == [ResidueKey("A", 2), ResidueKey("A", 10), ResidueKey("B", 1)]
        assert dataset.rank(ResidueKey("B", 1)) == 2
        assert dataset.sort_keys([ResidueKey("B", 1), ResidueKey("A", 2)]) == [
            ResidueKey("A", 2), ResidueKey("B", 1)
        ]

    def test_insertion_codes_are_separate_residues(self):
        structure = make_structure([
            ("A", 52, "SER", {"OG": (0.0, 0.0, 0.0)}),
            ("A", 52, "THR", {"OG1": (5.0, 0.0, 0.0)}, "A"),
        ])
        dataset = build_residue_dataset(structure)

        assert dataset.keys() == [ResidueKey("A", 52), ResidueKey("A", 52, "A")]
        assert dataset[ResidueKey("A", 52, "A")].label == "THR A52A"

    def test_water_and_ligands_excluded(self):
        structure = make_structure([
            ("A", 1, "LYS", {"NZ": (0.0, 0.0, 0.0)}),
            ("A", 101, "HOH", {"O": (2.0, 0.0, 0.0)}),
        ])
        dataset = build_residue_dataset(structure)

        assert dataset.keys() == [ResidueKey("A", 1)]

    def test_no_polymer_residues_gives_empty_dataset(self):
        structure = make_structure([("A", 101, "HOH", {"O": (0.0, 0.0, 0.0)})])
        dataset = build_residue_dataset(structure)

        assert dataset.is_empty
        assert len(dataset) == 0

    def test_none_gives_empty_dataset(self):
        assert build_residue_dataset(None) is EMPTY_DATASET

    def test_distance(self, pocket_structure):
        dataset = build_residue_dataset(pocket_structure)
        (nh1,) = dataset[ARG42].atoms("NH1")
        (od1,) = dataset[ASP50].atoms("OD1")

        assert dataset.distance(nh1, od1) == pytest.approx(2.9)
