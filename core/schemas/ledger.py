"""
Ledger Schemas

Purpose: Data model for the escrow ledger: asset identifiers, swap
configurations, swap results and the venue call description.

Assets are identified by 20-byte hex addresses. The native asset uses
the conventional 0xeeee...eeee sentinel so a single identifier space
covers both native value and tokens.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

ZERO_ADDRESS: str = "0x" + "00" * 20
NATIVE_ASSET: str = "0x" + "ee" * 20


def normalize_address(address: str) -> str:
    """
    Normalize a 20-byte hex address to lower-case 0x form.

    Raises:
        ValueError: If the value is not a 0x-prefixed 40-hex-digit string
    """
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise ValueError(f"Not a 20-byte hex address: {address!r}")
    return address.lower()


def address_to_int(address: str) -> int:
    """Interpret an address as an unsigned integer (proof public input)."""
    return int(normalize_address(address), 16)


def is_native(asset: str) -> bool:
    return normalize_address(asset) == NATIVE_ASSET


class CommitmentState(str, Enum):
    """Per-commitment lifecycle. DEPOSITED is terminal for the ledger."""

    NONE = "NONE"
    DEPOSITED = "DEPOSITED"


class SwapConfiguration(BaseModel):
    """
    A fixed deposit denomination.

    Immutable once created; the registry has no update operation.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    config_id: int = Field(..., ge=1, description="Sequential identifier, starting at 1")
    input_asset: str = Field(..., description="Asset every deposit must supply")
    fixed_amount: int = Field(..., gt=0, description="Exact amount every deposit must supply")

    @field_validator("input_asset")
    @classmethod
    def validate_input_asset(cls, v: str) -> str:
        return normalize_address(v)

    @property
    def is_native(self) -> bool:
        return self.input_asset == NATIVE_ASSET


class SwapResult(BaseModel):
    """Outcome of a swap, keyed by nullifier hash in the ledger."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    output_asset: str = Field(..., description="Asset the claimant will receive")
    amount: int = Field(..., ge=0, description="Amount the claimant will receive")

    @field_validator("output_asset")
    @classmethod
    def validate_output_asset(cls, v: str) -> str:
        return normalize_address(v)


class VenueParams(BaseModel):
    """
    Operator-supplied routing parameters for a venue call.

    Passed through untouched; the ledger performs no slippage checks
    beyond forwarding min_return.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    executor: str = Field(..., description="Venue executor that performs the route")
    min_return: int = Field(default=0, ge=0, description="Minimum acceptable output")
    flags: int = Field(default=0, ge=0, description="Venue-specific flags")
    data: bytes = Field(default=b"", description="Opaque venue routing data")

    @field_validator("executor")
    @classmethod
    def validate_executor(cls, v: str) -> str:
        return normalize_address(v)


class SwapDescription(BaseModel):
    """Description handed to the swap venue for a single exchange."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    src_asset: str
    dst_asset: str
    src_receiver: str = Field(..., description="Where the venue routes the input")
    dst_receiver: str = Field(..., description="Where the venue sends the output")
    amount: int = Field(..., gt=0)
    min_return: int = Field(default=0, ge=0)
    flags: int = Field(default=0, ge=0)

    @field_validator("src_asset", "dst_asset", "src_receiver", "dst_receiver")
    @classmethod
    def validate_addresses(cls, v: str) -> str:
        return normalize_address(v)
