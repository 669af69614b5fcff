"""
Error Taxonomy

Standard error taxonomy for the escrow ledger and commitment tree.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Every failure is an atomic abort: the operation that raised leaves
ledger state exactly as it found it. Nothing is retried internally.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Authorization Errors
    UNAUTHORIZED_CALLER = "UNAUTHORIZED_CALLER"
    REENTRANT_CALL = "REENTRANT_CALL"

    # Input Validation Errors
    INVALID_COMMITMENT = "INVALID_COMMITMENT"
    ASSET_MISMATCH = "ASSET_MISMATCH"
    INVALID_SWAP_CONFIG = "INVALID_SWAP_CONFIG"
    INVALID_SWAP_PATH = "INVALID_SWAP_PATH"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_INDEX = "INVALID_INDEX"
    INVALID_NULLIFIER = "INVALID_NULLIFIER"

    # Replay Errors
    NULLIFIER_ALREADY_USED = "NULLIFIER_ALREADY_USED"
    NO_PROCEEDS_AVAILABLE = "NO_PROCEEDS_AVAILABLE"
    SWAP_NOT_YET_EXECUTED = "SWAP_NOT_YET_EXECUTED"
    COMMITMENT_ALREADY_DEPOSITED = "COMMITMENT_ALREADY_DEPOSITED"

    # Capacity Errors
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"

    # Proof Errors
    INVALID_PROOF = "INVALID_PROOF"

    # External-Call Errors
    SWAP_EXECUTION_FAILED = "SWAP_EXECUTION_FAILED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_ALLOWANCE = "INSUFFICIENT_ALLOWANCE"
    VERIFIER_CALL_FAILED = "VERIFIER_CALL_FAILED"

    # Serialization & Configuration Errors
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class ErrorCategory:
    """Coarse error classes used for reporting."""

    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    REPLAY = "replay"
    CAPACITY = "capacity"
    PROOF = "proof"
    EXTERNAL_CALL = "external_call"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class EscrowError(BaseModel):
    """
    Structured error record.

    Lets callers (CLI, log shippers) serialize a failure without
    holding on to the exception object.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.NULLIFIER_ALREADY_USED],
    )
    category: str = Field(
        default=ErrorCategory.INTERNAL,
        description="Taxonomy class of the error",
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "EscrowException":
        """Convert this error model to a raisable exception."""
        return EscrowException(
            message=self.message,
            code=self.code,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class EscrowException(Exception):
    """
    Base exception for all escrow errors.

    Carries structured error information and converts to an
    EscrowError model for transport.
    """

    category: str = ErrorCategory.INTERNAL
    default_code: str = "ESCROW_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> EscrowError:
        """Convert this exception to an EscrowError model."""
        return EscrowError(
            code=self.code,
            category=self.category,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# --- category bases ---------------------------------------------------------

class AuthorizationException(EscrowException):
    category = ErrorCategory.AUTHORIZATION


class ValidationException(EscrowException):
    category = ErrorCategory.VALIDATION


class ReplayException(EscrowException):
    category = ErrorCategory.REPLAY


class CapacityException(EscrowException):
    category = ErrorCategory.CAPACITY


class ProofException(EscrowException):
    category = ErrorCategory.PROOF


class ExternalCallException(EscrowException):
    category = ErrorCategory.EXTERNAL_CALL


# --- authorization ----------------------------------------------------------

class UnauthorizedCallerException(AuthorizationException):
    """Raised when a restricted entry point is called by the wrong party."""

    default_code = ErrorCodes.UNAUTHORIZED_CALLER

    def __init__(self, operation: str, caller: str, required_role: str) -> None:
        super().__init__(
            message=f"{operation} requires the {required_role}; caller {caller} is not authorized",
            details={"operation": operation, "caller": caller, "required_role": required_role},
        )


class ReentrantCallException(AuthorizationException):
    """Raised when a mutating entry point is entered while another is running."""

    default_code = ErrorCodes.REENTRANT_CALL

    def __init__(self, operation: str, active_operation: str | None = None) -> None:
        super().__init__(
            message=f"Reentrant call to {operation} rejected while {active_operation} is in progress",
            details={"operation": operation, "active_operation": active_operation},
        )


# --- validation -------------------------------------------------------------

class InvalidCommitmentException(ValidationException):
    default_code = ErrorCodes.INVALID_COMMITMENT


class AssetMismatchException(ValidationException):
    default_code = ErrorCodes.ASSET_MISMATCH


class InvalidSwapConfigException(ValidationException):
    default_code = ErrorCodes.INVALID_SWAP_CONFIG

    def __init__(self, config_id: int, message: str | None = None) -> None:
        super().__init__(
            message=message or f"Swap configuration {config_id} is not set",
            details={"config_id": config_id},
        )


class InvalidSwapPathException(ValidationException):
    default_code = ErrorCodes.INVALID_SWAP_PATH


class InvalidAmountException(ValidationException):
    default_code = ErrorCodes.INVALID_AMOUNT

    def __init__(self, amount: Any, message: str | None = None) -> None:
        super().__init__(
            message=message or f"Amount must be positive, got {amount}",
            details={"amount": amount},
        )


class InvalidRecipientException(ValidationException):
    default_code = ErrorCodes.INVALID_RECIPIENT


class InvalidAddressException(ValidationException):
    default_code = ErrorCodes.INVALID_ADDRESS


class InvalidNullifierException(ValidationException):
    default_code = ErrorCodes.INVALID_NULLIFIER


class InvalidIndexException(ValidationException):
    default_code = ErrorCodes.INVALID_INDEX

    def __init__(self, leaf_index: int, leaf_count: int) -> None:
        super().__init__(
            message=f"Leaf index {leaf_index} out of range for {leaf_count} leaves",
            details={"leaf_index": leaf_index, "leaf_count": leaf_count},
        )


# --- replay -----------------------------------------------------------------

class NullifierAlreadyUsedException(ReplayException):
    default_code = ErrorCodes.NULLIFIER_ALREADY_USED

    def __init__(self, nullifier_hash: int) -> None:
        super().__init__(
            message=f"Nullifier {nullifier_hash:#x} already has a recorded swap",
            details={"nullifier_hash": hex(nullifier_hash)},
        )


class NoProceedsAvailableException(ReplayException):
    default_code = ErrorCodes.NO_PROCEEDS_AVAILABLE

    def __init__(self, nullifier_hash: int) -> None:
        super().__init__(
            message=f"No proceeds available for nullifier {nullifier_hash:#x}",
            details={"nullifier_hash": hex(nullifier_hash)},
        )


class SwapNotYetExecutedException(ReplayException):
    default_code = ErrorCodes.SWAP_NOT_YET_EXECUTED

    def __init__(self, nullifier_hash: int) -> None:
        super().__init__(
            message=f"No swap has been executed for nullifier {nullifier_hash:#x}",
            details={"nullifier_hash": hex(nullifier_hash)},
        )


class CommitmentAlreadyDepositedException(ReplayException):
    default_code = ErrorCodes.COMMITMENT_ALREADY_DEPOSITED

    def __init__(self, commitment: int) -> None:
        super().__init__(
            message=f"Commitment {commitment:#x} has already been deposited",
            details={"commitment": hex(commitment)},
        )


# --- capacity ---------------------------------------------------------------

class CapacityExceededException(CapacityException):
    default_code = ErrorCodes.CAPACITY_EXCEEDED

    def __init__(self, capacity: int) -> None:
        super().__init__(
            message=f"Commitment tree is full ({capacity} leaves)",
            details={"capacity": capacity},
        )


# --- proof ------------------------------------------------------------------

class InvalidProofException(ProofException):
    default_code = ErrorCodes.INVALID_PROOF


# --- external calls ---------------------------------------------------------

class SwapExecutionException(ExternalCallException):
    default_code = ErrorCodes.SWAP_EXECUTION_FAILED


class VerifierCallException(ExternalCallException):
    default_code = ErrorCodes.VERIFIER_CALL_FAILED


class InsufficientBalanceException(ExternalCallException):
    default_code = ErrorCodes.INSUFFICIENT_BALANCE

    def __init__(self, asset: str, holder: str, required: int, available: int) -> None:
        super().__init__(
            message=f"{holder} holds {available} of {asset}, {required} required",
            details={"asset": asset, "holder": holder, "required": required, "available": available},
        )


class InsufficientAllowanceException(ExternalCallException):
    default_code = ErrorCodes.INSUFFICIENT_ALLOWANCE

    def __init__(self, asset: str, owner: str, spender: str, required: int, available: int) -> None:
        super().__init__(
            message=f"{spender} may spend {available} of {owner}'s {asset}, {required} required",
            details={
                "asset": asset,
                "owner": owner,
                "spender": spender,
                "required": required,
                "available": available,
            },
        )


# --- serialization & configuration -----------------------------------------

class CanonicalizationException(EscrowException):
    """Exception raised when canonical serialization fails."""

    default_code = ErrorCodes.CANONICALIZATION_ERROR


class ConfigurationException(EscrowException):
    """Exception raised when runtime configuration is invalid."""

    category = ErrorCategory.CONFIGURATION
    default_code = ErrorCodes.CONFIGURATION_ERROR
