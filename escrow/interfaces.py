"""
Collaborator Interfaces

The escrow ledger depends on two external capabilities it treats as opaque:

- a proof verifier: a boolean oracle over a fixed public-input layout
  [merkle_root, nullifier_hash, recipient]
- a swap venue: exchanges an exact input amount for a realized output

Both are expressed as protocols so fakes and alternate implementations
can be substituted without subclassing.
"""

from abc import ABC, abstractmethod
from typing import Protocol, Sequence, runtime_checkable

from core.schemas.ledger import SwapDescription


@runtime_checkable
class ProofVerifier(Protocol):
    """Protocol defining the proof-verifier oracle."""

    def verify(self, proof: Sequence[int], public_inputs: Sequence[int]) -> bool:
        """
        Check a zero-knowledge proof.

        Args:
            proof: Fixed-size opaque proof elements
            public_inputs: [merkle_root, nullifier_hash, recipient_as_int]

        Returns:
            True if the proof is valid for the public inputs
        """
        ...


@runtime_checkable
class SwapVenue(Protocol):
    """Protocol defining the swap-venue collaborator."""

    @property
    def address(self) -> str:
        """Address the venue spends allowances and receives native value under."""
        ...

    def swap(
        self,
        executor: str,
        description: SwapDescription,
        data: bytes,
        *,
        caller: str,
        value: int = 0,
    ) -> tuple[int, int]:
        """
        Execute a single exchange.

        Args:
            executor: Venue executor contract performing the route
            description: Assets, receivers, amount and limits
            data: Opaque routing data
            caller: Address invoking the venue (whose allowance is spent)
            value: Native value attached to the call

        Returns:
            (realized_output, spent_input)
        """
        ...


class BaseProofVerifier(ABC):
    """
    Convenience base for verifier implementations.

    Subclasses implement _verify; arity of the public inputs is
    checked here so every implementation rejects malformed layouts
    the same way.
    """

    PUBLIC_INPUT_COUNT = 3

    def verify(self, proof: Sequence[int], public_inputs: Sequence[int]) -> bool:
        if len(public_inputs) != self.PUBLIC_INPUT_COUNT:
            return False
        return self._verify(tuple(proof), tuple(public_inputs))

    @abstractmethod
    def _verify(self, proof: tuple[int, ...], public_inputs: tuple[int, ...]) -> bool:
        """Implementation-specific verification."""
        ...
