"""
Commitment Tree

Fixed-height append-only Merkle tree with membership proofs.

Usage:
    from core.merkle import CommitmentTree

    tree = CommitmentTree(height=5)
    index = tree.insert(commitment)
    proof = tree.prove_membership(index)
    assert tree.verify_membership(proof.leaf, proof.siblings, proof.path_bits)
"""
from .commitment_tree import (
    DEFAULT_TREE_HEIGHT,
    MAX_TREE_HEIGHT,
    ZERO_VALUE,
    PairHasher,
    MembershipProof,
    CommitmentTree,
    compute_zero_hashes,
    compute_root_from_path,
    empty_root,
)


__all__ = [
    "DEFAULT_TREE_HEIGHT",
    "MAX_TREE_HEIGHT",
    "ZERO_VALUE",
    "PairHasher",
    "MembershipProof",
    "CommitmentTree",
    "compute_zero_hashes",
    "compute_root_from_path",
    "empty_root",
]
