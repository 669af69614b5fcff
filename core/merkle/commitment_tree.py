"""
Commitment Tree
Fixed-height, append-only incremental Merkle tree over 256-bit commitments.

This module provides:
- Zero-hash precomputation for empty subtrees
- O(height) insertion with a rightmost-filled-subtree cache
- Membership proof generation for any inserted leaf
- Membership proof verification against the live root

Tree Rules (Hard Contracts):
1. Leaf slots: 2**height; unfilled slots hold zeros[0] = 0
2. Empty subtree at level k: zeros[k] = hash(zeros[k-1], zeros[k-1])
3. Parent hashing: parent = hash(left, right), order preserved
4. Leaf index = insertion order; indices are never reused
5. Only computed nodes are stored; everything else resolves to zeros[level]

Path bits:
- path_bits[level] == 1 means the node on the path is the RIGHT child
  at that level (its sibling sits on the left)
- path_bits[level] == 0 means it is the LEFT child
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from core.crypto.hashing import UINT256_MAX, hash_pair, to_uint256_hex
from core.schemas.errors import CapacityExceededException, InvalidIndexException


logger = logging.getLogger(__name__)

PairHasher = Callable[[int, int], int]

DEFAULT_TREE_HEIGHT: int = 5
MAX_TREE_HEIGHT: int = 32
ZERO_VALUE: int = 0


@dataclass(frozen=True)
class MembershipProof:
    """
    A membership proof for a single leaf.

    Attributes:
        leaf: The commitment being proven
        leaf_index: 0-based position of the leaf
        siblings: Sibling hashes from leaf level to just below the root
        path_bits: 1 where the path node is a right child, else 0
        root: The root the proof was generated against
    """
    leaf: int
    leaf_index: int
    siblings: tuple[int, ...]
    path_bits: tuple[int, ...]
    root: int

    def __post_init__(self) -> None:
        if len(self.siblings) != len(self.path_bits):
            raise ValueError(
                f"siblings ({len(self.siblings)}) and path_bits "
                f"({len(self.path_bits)}) must have the same length"
            )


def compute_zero_hashes(height: int, hasher: PairHasher = hash_pair) -> tuple[int, ...]:
    """
    Compute default node values for every level 0..height.

    zeros[0] is the canonical zero leaf; zeros[height] is the
    root of a completely empty tree.
    """
    zeros = [ZERO_VALUE]
    for _ in range(height):
        zeros.append(hasher(zeros[-1], zeros[-1]))
    return tuple(zeros)


def empty_root(height: int, hasher: PairHasher = hash_pair) -> int:
    """Closed-form root of a tree with no leaves."""
    return compute_zero_hashes(height, hasher)[height]


def compute_root_from_path(
    leaf: int,
    siblings: Sequence[int],
    path_bits: Sequence[int],
    hasher: PairHasher = hash_pair,
) -> int:
    """
    Fold a leaf up its authentication path.

    Raises:
        ValueError: If siblings and path_bits differ in length or a
                    path bit is not 0/1
    """
    if len(siblings) != len(path_bits):
        raise ValueError("siblings and path_bits must have the same length")

    current = leaf
    for sibling, bit in zip(siblings, path_bits):
        if bit == 0:
            current = hasher(current, sibling)
        elif bit == 1:
            current = hasher(sibling, current)
        else:
            raise ValueError(f"Path bits must be 0 or 1, got {bit!r}")
    return current


class CommitmentTree:
    """
    Append-only commitment tree of fixed height.

    Usage:
        tree = CommitmentTree(height=5)
        index = tree.insert(commitment)
        proof = tree.prove_membership(index)
        assert tree.verify_membership(proof.leaf, proof.siblings, proof.path_bits)
    """

    def __init__(self, height: int = DEFAULT_TREE_HEIGHT, hasher: PairHasher = hash_pair) -> None:
        if not 1 <= height <= MAX_TREE_HEIGHT:
            raise ValueError(f"Tree height must be between 1 and {MAX_TREE_HEIGHT}, got {height}")

        self._height = height
        self._hasher = hasher
        self._zeros = compute_zero_hashes(height, hasher)
        self._filled_subtrees: list[int] = list(self._zeros[:height])
        self._nodes: dict[tuple[int, int], int] = {}
        self._leaf_count = 0
        self._root = self._zeros[height]

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def height(self) -> int:
        return self._height

    @property
    def capacity(self) -> int:
        return 1 << self._height

    @property
    def leaf_count(self) -> int:
        return self._leaf_count

    @property
    def is_full(self) -> bool:
        return self._leaf_count >= self.capacity

    @property
    def root(self) -> int:
        return self._root

    @property
    def zeros(self) -> tuple[int, ...]:
        return self._zeros

    @property
    def filled_subtrees(self) -> tuple[int, ...]:
        return tuple(self._filled_subtrees)

    def get_node(self, level: int, index: int) -> int:
        """Stored node at (level, index), or that level's default."""
        return self._nodes.get((level, index), self._zeros[level])

    def leaf_at(self, index: int) -> int:
        if not 0 <= index < self._leaf_count:
            raise InvalidIndexException(index, self._leaf_count)
        return self._nodes[(0, index)]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, commitment: int) -> int:
        """
        Append a commitment and return its leaf index.

        Raises:
            CapacityExceededException: If all 2**height slots are used
            ValueError: If commitment is not a uint256
        """
        if self.is_full:
            raise CapacityExceededException(self.capacity)
        if not 0 <= commitment <= UINT256_MAX:
            raise ValueError(f"Commitment out of uint256 range: {commitment}")

        leaf_index = self._leaf_count
        current_index = leaf_index
        current_hash = commitment

        for level in range(self._height):
            self._nodes[(level, current_index)] = current_hash
            if current_index % 2 == 0:
                self._filled_subtrees[level] = current_hash
                left, right = current_hash, self._zeros[level]
            else:
                # An odd index implies its even predecessor was inserted earlier
                left, right = self._nodes[(level, current_index - 1)], current_hash
            current_hash = self._hasher(left, right)
            current_index //= 2

        self._nodes[(self._height, 0)] = current_hash
        self._root = current_hash
        self._leaf_count += 1

        logger.debug(
            f"Inserted leaf {leaf_index} ({to_uint256_hex(commitment)}), "
            f"new root {to_uint256_hex(current_hash)}"
        )
        return leaf_index

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    def prove_membership(self, leaf_index: int) -> MembershipProof:
        """
        Build the authentication path for an inserted leaf.

        Raises:
            InvalidIndexException: If leaf_index was never assigned
        """
        if not 0 <= leaf_index < self._leaf_count:
            raise InvalidIndexException(leaf_index, self._leaf_count)

        siblings: list[int] = []
        path_bits: list[int] = []
        current_index = leaf_index

        for level in range(self._height):
            siblings.append(self.get_node(level, current_index ^ 1))
            path_bits.append(current_index & 1)
            current_index //= 2

        return MembershipProof(
            leaf=self._nodes[(0, leaf_index)],
            leaf_index=leaf_index,
            siblings=tuple(siblings),
            path_bits=tuple(path_bits),
            root=self._root,
        )

    def verify_membership(
        self,
        leaf: int,
        siblings: Sequence[int],
        path_bits: Sequence[int],
    ) -> bool:
        """
        Check that a leaf and its path reproduce the live root.

        Malformed paths (wrong length, non-binary bits) verify as False.
        """
        if len(siblings) != self._height or len(path_bits) != self._height:
            return False
        try:
            computed = compute_root_from_path(leaf, siblings, path_bits, self._hasher)
        except ValueError:
            return False
        return computed == self._root


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
