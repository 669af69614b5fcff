"""
Test fixtures package for escrow tests.

Organized into layers:
- common.py: addresses, clocks and deterministic proofs
- fakes.py: verifier and swap-venue doubles
- ledger_fixtures.py: ledger factories and ready-made scenarios

Usage:
    from fixtures import make_ledger, make_proof, ALICE

    def test_something():
        ledger, book = make_ledger()
"""

from .common import (
    OWNER,
    OPERATOR,
    ALICE,
    BOB,
    RECIPIENT,
    EXECUTOR,
    VENUE_ADDRESS,
    LEDGER_ADDRESS,
    TOKEN_X,
    TOKEN_Y,
    FakeClock,
    make_commitment,
    make_nullifier_hash,
    make_proof,
)

from .fakes import (
    BindingVerifier,
    ConstantVerifier,
    ExplodingVerifier,
    FixedRateVenue,
    HookedVenue,
    FailingVenue,
    ScriptedOutcomeVenue,
)

from .ledger_fixtures import (
    NATIVE_DENOMINATION,
    TOKEN_DENOMINATION,
    make_ledger,
    deposit_native,
    deposit_token,
)

__all__ = [
    # Common
    "OWNER",
    "OPERATOR",
    "ALICE",
    "BOB",
    "RECIPIENT",
    "EXECUTOR",
    "VENUE_ADDRESS",
    "LEDGER_ADDRESS",
    "TOKEN_X",
    "TOKEN_Y",
    "FakeClock",
    "make_commitment",
    "make_nullifier_hash",
    "make_proof",
    # Fakes
    "BindingVerifier",
    "ConstantVerifier",
    "ExplodingVerifier",
    "FixedRateVenue",
    "HookedVenue",
    "FailingVenue",
    "ScriptedOutcomeVenue",
    # Ledger
    "NATIVE_DENOMINATION",
    "TOKEN_DENOMINATION",
    "make_ledger",
    "deposit_native",
    "deposit_token",
]
