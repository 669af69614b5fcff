"""
Commitment Tree Unit Tests
Tests for core/merkle/commitment_tree.py

Tests:
- Sequential leaf indices and capacity limit
- Closed-form empty root
- Membership proofs for every leaf against the live root
- Tampered or malformed paths are rejected
"""

import pytest

from core.crypto.hashing import hash_pair
from core.merkle import (
    CommitmentTree,
    MembershipProof,
    compute_root_from_path,
    compute_zero_hashes,
    empty_root,
)
from core.schemas.errors import CapacityExceededException, InvalidIndexException


def _filled(height: int, count: int) -> CommitmentTree:
    tree = CommitmentTree(height=height)
    for i in range(count):
        tree.insert(1000 + i)
    return tree


class TestZeroHashes:
    """Tests for compute_zero_hashes() / empty_root()."""

    def test_zero_chain(self):
        zeros = compute_zero_hashes(3)

        assert len(zeros) == 4
        assert zeros[0] == 0
        for k in range(1, 4):
            assert zeros[k] == hash_pair(zeros[k - 1], zeros[k - 1])

    def test_fresh_tree_root_is_empty_root(self):
        tree = CommitmentTree(height=5)

        assert tree.root == empty_root(5)
        assert tree.leaf_count == 0
        assert tree.capacity == 32

    def test_invalid_height(self):
        with pytest.raises(ValueError, match="height"):
            CommitmentTree(height=0)
        with pytest.raises(ValueError, match="height"):
            CommitmentTree(height=33)


class TestInsert:
    """Tests for CommitmentTree.insert()."""

    def test_indices_are_sequential(self):
        tree = CommitmentTree(height=3)

        assert [tree.insert(c) for c in (11, 22, 33)] == [0, 1, 2]
        assert tree.leaf_count == 3

    def test_root_changes_on_insert(self):
        tree = CommitmentTree(height=3)
        before = tree.root

        tree.insert(42)

        assert tree.root != before

    def test_single_leaf_root_by_hand(self):
        """One leaf at index 0 hashes with zero siblings all the way up."""
        tree = CommitmentTree(height=2)
        tree.insert(7)
        zeros = compute_zero_hashes(2)

        expected = hash_pair(hash_pair(7, zeros[0]), zeros[1])

        assert tree.root == expected

    def test_two_leaves_root_by_hand(self):
        tree = CommitmentTree(height=2)
        tree.insert(7)
        tree.insert(9)
        zeros = compute_zero_hashes(2)

        assert tree.root == hash_pair(hash_pair(7, 9), zeros[1])

    def test_capacity_exceeded_leaves_tree_unchanged(self):
        tree = _filled(2, 4)
        root = tree.root

        assert tree.is_full
        with pytest.raises(CapacityExceededException):
            tree.insert(99)

        assert tree.leaf_count == 4
        assert tree.root == root

    def test_out_of_range_commitment(self):
        tree = CommitmentTree(height=2)

        with pytest.raises(ValueError):
            tree.insert(-1)
        assert tree.leaf_count == 0

    def test_leaf_at(self):
        tree = _filled(3, 3)

        assert tree.leaf_at(2) == 1002
        with pytest.raises(InvalidIndexException):
            tree.leaf_at(3)


class TestMembership:
    """Tests for prove_membership() / verify_membership()."""

    @pytest.mark.parametrize("count", [1, 2, 5, 8])
    def test_every_leaf_verifies(self, count):
        tree = _filled(3, count)

        for index in range(count):
            proof = tree.prove_membership(index)
            assert proof.root == tree.root
            assert tree.verify_membership(proof.leaf, proof.siblings, proof.path_bits)

    def test_path_bits_encode_index(self):
        tree = _filled(3, 6)

        proof = tree.prove_membership(5)

        assert proof.path_bits == (1, 0, 1)
        assert len(proof.siblings) == 3

    @pytest.mark.parametrize("level", [0, 1, 2])
    @pytest.mark.parametrize("bit", [0, 1, 63, 128, 200, 253, 255])
    def test_flipped_sibling_bit_fails(self, level, bit):
        """Any single-bit change in any sibling breaks the path."""
        tree = _filled(3, 4)
        proof = tree.prove_membership(1)
        siblings = list(proof.siblings)
        siblings[level] ^= 1 << bit

        assert not tree.verify_membership(proof.leaf, siblings, proof.path_bits)

    def test_wrong_leaf_fails(self):
        tree = _filled(3, 4)
        proof = tree.prove_membership(0)

        assert not tree.verify_membership(proof.leaf + 1, proof.siblings, proof.path_bits)

    def test_stale_proof_fails_after_insert(self):
        tree = _filled(3, 2)
        proof = tree.prove_membership(0)

        tree.insert(5555)

        assert not tree.verify_membership(proof.leaf, proof.siblings, proof.path_bits)
        assert compute_root_from_path(proof.leaf, proof.siblings, proof.path_bits) == proof.root

    def test_wrong_length_is_false(self):
        tree = _filled(3, 2)
        proof = tree.prove_membership(0)

        assert not tree.verify_membership(proof.leaf, proof.siblings[:-1], proof.path_bits[:-1])

    def test_non_binary_bit_is_false(self):
        tree = _filled(3, 2)
        proof = tree.prove_membership(0)

        assert not tree.verify_membership(proof.leaf, proof.siblings, (2, 0, 0))

    def test_prove_unknown_index(self):
        tree = _filled(3, 2)

        with pytest.raises(InvalidIndexException):
            tree.prove_membership(2)

    def test_proof_lengths_must_match(self):
        with pytest.raises(ValueError, match="same length"):
            MembershipProof(leaf=1, leaf_index=0, siblings=(0, 0), path_bits=(0,), root=0)


class TestPluggableHasher:
    def test_custom_hasher_is_used(self):
        def add(left: int, right: int) -> int:
            return left + right

        tree = CommitmentTree(height=2, hasher=add)
        tree.insert(3)
        tree.insert(4)

        assert tree.root == 7
