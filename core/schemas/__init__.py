"""
Schemas

Public API for the schemas package: ledger data model, events,
canonical serialization and the error taxonomy.
"""

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
)

# Error models and exceptions
from .errors import (
    ErrorCategory,
    ErrorCodes,
    EscrowError,
    EscrowException,
    AuthorizationException,
    ValidationException,
    ReplayException,
    CapacityException,
    ProofException,
    ExternalCallException,
    UnauthorizedCallerException,
    ReentrantCallException,
    InvalidCommitmentException,
    AssetMismatchException,
    InvalidSwapConfigException,
    InvalidSwapPathException,
    InvalidAmountException,
    InvalidRecipientException,
    InvalidAddressException,
    InvalidIndexException,
    InvalidNullifierException,
    NullifierAlreadyUsedException,
    NoProceedsAvailableException,
    SwapNotYetExecutedException,
    CommitmentAlreadyDepositedException,
    CapacityExceededException,
    InvalidProofException,
    SwapExecutionException,
    VerifierCallException,
    InsufficientBalanceException,
    InsufficientAllowanceException,
    CanonicalizationException,
    ConfigurationException,
)

# Ledger data model
from .ledger import (
    NATIVE_ASSET,
    ZERO_ADDRESS,
    CommitmentState,
    SwapConfiguration,
    SwapDescription,
    SwapResult,
    VenueParams,
    address_to_int,
    is_native,
    normalize_address,
)

# Events
from .events import (
    AnyLedgerEvent,
    ConfigurationAdded,
    DepositRecorded,
    LedgerEvent,
    OperatorUpdated,
    SwapResultRecorded,
    WithdrawalRecorded,
)

__all__ = [
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    # Errors
    "ErrorCategory",
    "ErrorCodes",
    "EscrowError",
    "EscrowException",
    "AuthorizationException",
    "ValidationException",
    "ReplayException",
    "CapacityException",
    "ProofException",
    "ExternalCallException",
    "UnauthorizedCallerException",
    "ReentrantCallException",
    "InvalidCommitmentException",
    "AssetMismatchException",
    "InvalidSwapConfigException",
    "InvalidSwapPathException",
    "InvalidAmountException",
    "InvalidRecipientException",
    "InvalidAddressException",
    "InvalidIndexException",
    "InvalidNullifierException",
    "NullifierAlreadyUsedException",
    "NoProceedsAvailableException",
    "SwapNotYetExecutedException",
    "CommitmentAlreadyDepositedException",
    "CapacityExceededException",
    "InvalidProofException",
    "SwapExecutionException",
    "VerifierCallException",
    "InsufficientBalanceException",
    "InsufficientAllowanceException",
    "CanonicalizationException",
    "ConfigurationException",
    # Ledger model
    "NATIVE_ASSET",
    "ZERO_ADDRESS",
    "CommitmentState",
    "SwapConfiguration",
    "SwapDescription",
    "SwapResult",
    "VenueParams",
    "address_to_int",
    "is_native",
    "normalize_address",
    # Events
    "AnyLedgerEvent",
    "ConfigurationAdded",
    "DepositRecorded",
    "LedgerEvent",
    "OperatorUpdated",
    "SwapResultRecorded",
    "WithdrawalRecorded",
]
