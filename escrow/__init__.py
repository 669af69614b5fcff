"""
Escrow

Privacy-preserving swap escrow built on the commitment tree:
deposits behind commitments, operator-driven swaps keyed by nullifier
hash, and proof-gated withdrawals.
"""

from .assets import AssetBook, AssetBookSnapshot, HostTransaction, ReceiveHook
from .guard import ReentrancyGuard, atomic_entry
from .interfaces import BaseProofVerifier, ProofVerifier, SwapVenue
from .ledger import EscrowLedger, LedgerState

__all__ = [
    "AssetBook",
    "AssetBookSnapshot",
    "HostTransaction",
    "ReceiveHook",
    "ReentrancyGuard",
    "atomic_entry",
    "BaseProofVerifier",
    "ProofVerifier",
    "SwapVenue",
    "EscrowLedger",
    "LedgerState",
]
