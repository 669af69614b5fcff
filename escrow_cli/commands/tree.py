"""
CLI Tree Commands

Offline commitment-tree tooling: compute the empty root, rebuild a tree
from a list of commitments, emit membership proofs and check them.

Usage:
    escrow tree empty-root --height 5 [--json]
    escrow tree build (--leaf HEX ... | --leaves-file F) [--index N] [--json]
    escrow tree verify (--leaf-list HEX ... | --leaves-file F) --leaf HEX \
        --siblings HEX ... --path-bits 0 1 ... [--json]
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from core.crypto.hashing import parse_uint256, to_uint256_hex
from core.merkle.commitment_tree import CommitmentTree, compute_zero_hashes


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class TreeSummary:
    """Summary of a rebuilt tree for CLI output."""
    height: int = 0
    capacity: int = 0
    leaf_count: int = 0
    root: str = ""
    proof: Optional[dict[str, Any]] = None
    zeros: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if self.proof is None:
            del d["proof"]
        if not d["zeros"]:
            del d["zeros"]
        return d


def load_leaves(args: Namespace) -> list[int]:
    """
    Collect leaves from repeated --leaf arguments or a JSON file.

    The file holds a JSON list of hex strings, decimal strings or integers.
    """
    leaves: list[int] = [parse_uint256(text) for text in (args.leaves or [])]

    if args.leaves_file:
        path = Path(args.leaves_file)
        data = json.loads(path.read_text())
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON list of commitments")
        for item in data:
            leaves.append(item if isinstance(item, int) else parse_uint256(str(item)))

    return leaves


def build_tree(height: int, leaves: list[int]) -> CommitmentTree:
    tree = CommitmentTree(height=height)
    for leaf in leaves:
        tree.insert(leaf)
    logger.info(f"Rebuilt tree of height {height} with {tree.leaf_count} leaves")
    return tree


def empty_root_cmd(args: Namespace) -> int:
    """Print the closed-form empty root and per-level zero hashes."""
    zeros = compute_zero_hashes(args.height)
    summary = TreeSummary(
        height=args.height,
        capacity=1 << args.height,
        root=to_uint256_hex(zeros[args.height]),
        zeros=[to_uint256_hex(z) for z in zeros],
    )

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(f"height: {summary.height}")
        print(f"empty_root: {summary.root}")
        for level, value in enumerate(summary.zeros):
            print(f"  zeros[{level}]: {value}")
    return EXIT_SUCCESS


def build_cmd(args: Namespace) -> int:
    """Rebuild a tree and optionally print a membership proof."""
    leaves = load_leaves(args)
    tree = build_tree(args.height, leaves)

    summary = TreeSummary(
        height=tree.height,
        capacity=tree.capacity,
        leaf_count=tree.leaf_count,
        root=to_uint256_hex(tree.root),
    )
    if args.index is not None:
        proof = tree.prove_membership(args.index)
        summary.proof = {
            "leaf_index": proof.leaf_index,
            "leaf": to_uint256_hex(proof.leaf),
            "siblings": [to_uint256_hex(s) for s in proof.siblings],
            "path_bits": list(proof.path_bits),
        }

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(f"height: {summary.height}")
        print(f"leaf_count: {summary.leaf_count}/{summary.capacity}")
        print(f"root: {summary.root}")
        if summary.proof:
            print(f"\nproof for leaf {summary.proof['leaf_index']}:")
            for level, (sibling, bit) in enumerate(
                zip(summary.proof["siblings"], summary.proof["path_bits"])
            ):
                side = "right" if bit else "left"
                print(f"  [{level}] {side}  sibling={sibling}")
    return EXIT_SUCCESS


def verify_cmd(args: Namespace) -> int:
    """Check a membership proof against a tree rebuilt from its leaves."""
    tree = build_tree(args.height, load_leaves(args))
    leaf = parse_uint256(args.leaf)
    siblings = [parse_uint256(s) for s in args.siblings]
    path_bits = list(args.path_bits)

    ok = tree.verify_membership(leaf, siblings, path_bits)
    result = {
        "root": to_uint256_hex(tree.root),
        "leaf": to_uint256_hex(leaf),
        "verified": ok,
    }

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print(f"root: {result['root']}")
        print(f"verified: {str(ok).lower()}")

    return EXIT_SUCCESS if ok else EXIT_VERIFICATION_FAILED
