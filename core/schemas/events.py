"""
Ledger Events

Append-only, ordered records of accepted state transitions. Events are
published for external observers and never read back by the ledger.
"""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ledger import normalize_address


class LedgerEvent(BaseModel):
    """Base event; sequence is the position in the ledger's event log."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sequence: int = Field(..., ge=0)


class DepositRecorded(LedgerEvent):
    event: Literal["DepositRecorded"] = "DepositRecorded"
    commitment: int
    leaf_index: int = Field(..., ge=0)
    timestamp: int
    config_id: int


class SwapResultRecorded(LedgerEvent):
    event: Literal["SwapResultRecorded"] = "SwapResultRecorded"
    nullifier_hash: int
    output_asset: str
    amount: int = Field(..., gt=0)
    timestamp: int


class WithdrawalRecorded(LedgerEvent):
    event: Literal["WithdrawalRecorded"] = "WithdrawalRecorded"
    nullifier_hash: int
    recipient: str
    output_asset: str
    amount: int = Field(..., gt=0)

    @field_validator("recipient")
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        return normalize_address(v)


class ConfigurationAdded(LedgerEvent):
    event: Literal["ConfigurationAdded"] = "ConfigurationAdded"
    config_id: int
    input_asset: str
    fixed_amount: int


class OperatorUpdated(LedgerEvent):
    event: Literal["OperatorUpdated"] = "OperatorUpdated"
    previous_operator: str
    new_operator: str


AnyLedgerEvent = Union[
    DepositRecorded,
    SwapResultRecorded,
    WithdrawalRecorded,
    ConfigurationAdded,
    OperatorUpdated,
]
