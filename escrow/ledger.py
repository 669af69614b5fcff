"""
Escrow Ledger

Binds deposits, swap outcomes and withdrawals together.

Lifecycle:
    deposit(commitment)            -> commitment inserted, state DEPOSITED
    execute_swap(nullifier_hash)   -> consumption flag set, SwapResult stored
    withdraw(nullifier_hash, proof)-> SwapResult deleted, proceeds released

Per-commitment state never moves past DEPOSITED: swaps and withdrawals are
keyed by nullifier hash, and only the external proof links a nullifier to
a commitment.

Replay guards:
- the consumption flag stops a second swap outcome for the same nullifier
- deleting the SwapResult before the payout transfer stops a second
  withdrawal, including one attempted from inside the transfer

Every mutating entry point is non-reentrant and atomic (see escrow.guard).
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from core.config.runtime import RuntimeConfig
from core.crypto.hashing import UINT256_MAX, hash_canonical, hash_pair, to_hex, to_uint256_hex
from core.merkle.commitment_tree import (
    DEFAULT_TREE_HEIGHT,
    CommitmentTree,
    MembershipProof,
    PairHasher,
)
from core.schemas.errors import (
    AssetMismatchException,
    CommitmentAlreadyDepositedException,
    ConfigurationException,
    EscrowException,
    InvalidAddressException,
    InvalidAmountException,
    InvalidCommitmentException,
    InvalidNullifierException,
    InvalidProofException,
    InvalidRecipientException,
    InvalidSwapConfigException,
    InvalidSwapPathException,
    InsufficientBalanceException,
    NoProceedsAvailableException,
    NullifierAlreadyUsedException,
    SwapExecutionException,
    SwapNotYetExecutedException,
    UnauthorizedCallerException,
    VerifierCallException,
)
from core.schemas.events import (
    ConfigurationAdded,
    DepositRecorded,
    LedgerEvent,
    OperatorUpdated,
    SwapResultRecorded,
    WithdrawalRecorded,
)
from core.schemas.ledger import (
    NATIVE_ASSET,
    ZERO_ADDRESS,
    CommitmentState,
    SwapConfiguration,
    SwapDescription,
    SwapResult,
    VenueParams,
    address_to_int,
    normalize_address,
)
from escrow.assets import AssetBook
from escrow.guard import ReentrancyGuard, atomic_entry
from escrow.interfaces import ProofVerifier, SwapVenue


logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def _system_clock() -> int:
    return int(time.time())


@dataclass
class LedgerState:
    """Everything an atomic operation may have to roll back, except the event log."""
    tree: CommitmentTree
    operator: str
    commitments: dict[int, CommitmentState] = field(default_factory=dict)
    deposit_timestamps: dict[int, int] = field(default_factory=dict)
    swap_configs: dict[int, SwapConfiguration] = field(default_factory=dict)
    next_config_id: int = 1
    swap_results: dict[int, SwapResult] = field(default_factory=dict)
    nullifier_used: dict[int, bool] = field(default_factory=dict)


class EscrowLedger:
    """
    Privacy-preserving swap escrow.

    Roles:
    - owner: adds swap configurations, rotates the operator
    - operator: executes or records swaps
    - anyone: deposits and withdraws

    Usage:
        ledger = EscrowLedger(owner=owner, operator=operator,
                              verifier=verifier, venue=venue, assets=book)
        config_id = ledger.add_swap_configuration(NATIVE_ASSET, 1000, caller=owner)
        leaf_index = ledger.deposit(commitment, config_id, caller=alice, value=1000)
        ledger.execute_swap(nullifier_hash, config_id, token, params, caller=operator)
        ledger.withdraw(nullifier_hash, recipient, proof)
    """

    def __init__(
        self,
        owner: str,
        operator: str,
        verifier: ProofVerifier,
        venue: SwapVenue,
        assets: AssetBook,
        *,
        address: str = "0x" + "5e" * 20,
        tree_height: int = DEFAULT_TREE_HEIGHT,
        proof_length: int = 8,
        clock: Optional[Clock] = None,
        hasher: PairHasher = hash_pair,
    ) -> None:
        self.address = normalize_address(address)
        self.owner = normalize_address(owner)
        self.proof_length = proof_length
        self._verifier = verifier
        self._venue = venue
        self._assets = assets
        self._clock = clock or _system_clock
        self._guard = ReentrancyGuard()
        self._events: list[LedgerEvent] = []
        self._state = LedgerState(
            tree=CommitmentTree(height=tree_height, hasher=hasher),
            operator=normalize_address(operator),
        )

    @classmethod
    def from_config(
        cls,
        config: RuntimeConfig,
        verifier: ProofVerifier,
        venue: SwapVenue,
        assets: AssetBook,
        clock: Optional[Clock] = None,
        hasher: PairHasher = hash_pair,
    ) -> "EscrowLedger":
        """
        Build a ledger from runtime configuration.

        hasher must be the pair hash the proving circuit uses for the tree.

        Raises:
            ConfigurationException: If the config is invalid or lacks
                an owner or operator
        """
        config.validate()
        if not config.ledger.owner or not config.ledger.operator:
            raise ConfigurationException(
                "ledger.owner and ledger.operator must both be configured",
                details={"owner": config.ledger.owner, "operator": config.ledger.operator},
            )
        return cls(
            owner=config.ledger.owner,
            operator=config.ledger.operator,
            verifier=verifier,
            venue=venue,
            assets=assets,
            address=config.ledger.address,
            tree_height=config.tree.height,
            proof_length=config.ledger.proof_length,
            clock=clock,
            hasher=hasher,
        )

    # ------------------------------------------------------------------
    # Atomicity hooks used by escrow.guard.atomic_entry
    # ------------------------------------------------------------------

    def _take_snapshot(self) -> tuple[LedgerState, int]:
        # Events are append-only: remembering the length is enough
        return copy.deepcopy(self._state), len(self._events)

    def _restore_snapshot(self, snapshot: tuple[LedgerState, int]) -> None:
        state, event_count = snapshot
        self._state = state
        del self._events[event_count:]

    # ------------------------------------------------------------------
    # Administrative entry points (owner only)
    # ------------------------------------------------------------------

    @atomic_entry
    def add_swap_configuration(self, input_asset: str, fixed_amount: int, *, caller: str) -> int:
        """
        Register a fixed deposit denomination.

        Returns:
            The new configuration id (sequential, starting at 1)
        """
        self._require_owner("add_swap_configuration", caller)
        input_asset = self._require_address(input_asset, "input_asset")
        if not isinstance(fixed_amount, int) or fixed_amount <= 0:
            raise InvalidAmountException(fixed_amount, "Configuration amount must be positive")

        config_id = self._state.next_config_id
        self._state.swap_configs[config_id] = SwapConfiguration(
            config_id=config_id,
            input_asset=input_asset,
            fixed_amount=fixed_amount,
        )
        self._state.next_config_id += 1

        self._emit(
            ConfigurationAdded,
            config_id=config_id,
            input_asset=input_asset,
            fixed_amount=fixed_amount,
        )
        logger.info(f"Swap configuration {config_id} added: {fixed_amount} of {input_asset}")
        return config_id

    @atomic_entry
    def set_operator(self, new_operator: str, *, caller: str) -> None:
        """Replace the operator allowed to execute and record swaps."""
        self._require_owner("set_operator", caller)
        new_operator = self._require_address(new_operator, "new_operator")
        if new_operator == ZERO_ADDRESS:
            raise InvalidAddressException("Operator must not be the zero address")

        previous = self._state.operator
        self._state.operator = new_operator
        self._emit(OperatorUpdated, previous_operator=previous, new_operator=new_operator)
        logger.info(f"Operator changed from {previous} to {new_operator}")

    # ------------------------------------------------------------------
    # Deposits (anyone)
    # ------------------------------------------------------------------

    @atomic_entry
    def deposit(self, commitment: int, config_id: int, *, caller: str, value: int = 0) -> int:
        """
        Lock a fixed-denomination asset behind a commitment.

        Native configurations need exactly `fixed_amount` attached as value.
        Token configurations need value == 0 and an allowance that lets the
        ledger pull exactly `fixed_amount` from the caller.

        Returns:
            The leaf index assigned to the commitment
        """
        caller = self._require_address(caller, "caller")
        if not isinstance(commitment, int) or not 0 < commitment <= UINT256_MAX:
            raise InvalidCommitmentException(
                "Commitment must be a non-zero uint256",
                details={"commitment": str(commitment)},
            )

        config = self._state.swap_configs.get(config_id)
        if config is None:
            raise InvalidSwapConfigException(config_id)
        if commitment in self._state.commitments:
            raise CommitmentAlreadyDepositedException(commitment)

        if config.is_native and value != config.fixed_amount:
            raise AssetMismatchException(
                f"Configuration {config_id} requires exactly {config.fixed_amount} "
                f"native units attached, got {value}",
                details={"config_id": config_id, "expected": config.fixed_amount, "value": value},
            )
        if not config.is_native and value != 0:
            raise AssetMismatchException(
                f"Configuration {config_id} takes {config.input_asset}; "
                f"no native value may be attached",
                details={"config_id": config_id, "value": value},
            )

        leaf_index = self._state.tree.insert(commitment)

        if config.is_native:
            self._assets.transfer(NATIVE_ASSET, caller, self.address, value)
        else:
            self._assets.transfer_from(
                config.input_asset, self.address, caller, self.address, config.fixed_amount
            )

        timestamp = self._clock()
        self._state.commitments[commitment] = CommitmentState.DEPOSITED
        self._state.deposit_timestamps[commitment] = timestamp

        self._emit(
            DepositRecorded,
            commitment=commitment,
            leaf_index=leaf_index,
            timestamp=timestamp,
            config_id=config_id,
        )
        logger.info(
            f"Deposit {to_uint256_hex(commitment)} accepted at leaf {leaf_index} "
            f"(config {config_id})"
        )
        return leaf_index

    # ------------------------------------------------------------------
    # Swaps (operator only)
    # ------------------------------------------------------------------

    @atomic_entry
    def execute_swap(
        self,
        nullifier_hash: int,
        config_id: int,
        output_asset: str,
        venue_params: VenueParams,
        *,
        caller: str,
    ) -> SwapResult:
        """
        Convert one deposit's worth of the configured input asset through
        the swap venue and bind the output to nullifier_hash.

        Paths: native->token, token->native, token->token.
        """
        self._require_operator("execute_swap", caller)
        self._require_nullifier(nullifier_hash)
        if self._state.nullifier_used.get(nullifier_hash, False):
            raise NullifierAlreadyUsedException(nullifier_hash)

        config = self._state.swap_configs.get(config_id)
        if config is None or config.fixed_amount == 0:
            raise InvalidSwapConfigException(config_id)

        output_asset = self._require_address(output_asset, "output_asset")
        if output_asset == config.input_asset:
            raise InvalidSwapPathException(
                f"Input and output asset are both {output_asset}",
                details={"config_id": config_id, "asset": output_asset},
            )

        if config.is_native:
            realized = self._swap_native_for_token(config, output_asset, venue_params)
        elif output_asset == NATIVE_ASSET:
            realized = self._swap_token_for_native(config, venue_params)
        else:
            realized = self._swap_token_for_token(config, output_asset, venue_params)

        # The venue call is an external boundary: re-read the flag
        if self._state.nullifier_used.get(nullifier_hash, False):
            raise NullifierAlreadyUsedException(nullifier_hash)

        return self._store_swap_result(nullifier_hash, output_asset, realized)

    @atomic_entry
    def record_swap_result(
        self,
        nullifier_hash: int,
        output_asset: str,
        amount: int,
        *,
        caller: str,
    ) -> SwapResult:
        """Record a swap executed or verified out of band."""
        self._require_operator("record_swap_result", caller)
        self._require_nullifier(nullifier_hash)
        if self._state.nullifier_used.get(nullifier_hash, False):
            raise NullifierAlreadyUsedException(nullifier_hash)
        if not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountException(amount)

        output_asset = self._require_address(output_asset, "output_asset")
        return self._store_swap_result(nullifier_hash, output_asset, amount)

    def _swap_native_for_token(
        self, config: SwapConfiguration, output_asset: str, params: VenueParams
    ) -> int:
        amount = config.fixed_amount
        self._require_holding(NATIVE_ASSET, amount)
        description = self._describe(NATIVE_ASSET, output_asset, amount, params)

        # Attached value travels with the call
        self._assets.transfer(NATIVE_ASSET, self.address, self._venue.address, amount)
        return self._call_venue(description, params, value=amount)

    def _swap_token_for_native(self, config: SwapConfiguration, params: VenueParams) -> int:
        return self._swap_from_token(config, NATIVE_ASSET, params)

    def _swap_token_for_token(
        self, config: SwapConfiguration, output_asset: str, params: VenueParams
    ) -> int:
        return self._swap_from_token(config, output_asset, params)

    def _swap_from_token(
        self, config: SwapConfiguration, output_asset: str, params: VenueParams
    ) -> int:
        amount = config.fixed_amount
        token = config.input_asset
        self._require_holding(token, amount)
        description = self._describe(token, output_asset, amount, params)

        self._assets.approve(token, self.address, self._venue.address, amount)
        realized = self._call_venue(description, params, value=0)
        self._assets.approve(token, self.address, self._venue.address, 0)
        return realized

    def _describe(
        self, src_asset: str, dst_asset: str, amount: int, params: VenueParams
    ) -> SwapDescription:
        return SwapDescription(
            src_asset=src_asset,
            dst_asset=dst_asset,
            src_receiver=params.executor,
            dst_receiver=self.address,
            amount=amount,
            min_return=params.min_return,
            flags=params.flags,
        )

    def _call_venue(self, description: SwapDescription, params: VenueParams, *, value: int) -> int:
        logger.debug(
            f"Calling swap venue {self._venue.address}: {description.amount} "
            f"{description.src_asset} -> {description.dst_asset}"
        )
        try:
            outcome = self._venue.swap(
                params.executor,
                description,
                params.data,
                caller=self.address,
                value=value,
            )
        except EscrowException:
            raise
        except Exception as e:
            raise SwapExecutionException(
                f"Swap venue call failed: {e}",
                details={"venue": self._venue.address, "error": str(e)},
            ) from e

        try:
            realized, spent = outcome
        except (TypeError, ValueError) as e:
            raise SwapExecutionException(
                f"Swap venue returned an unusable result: {outcome!r}",
                details={"venue": self._venue.address},
            ) from e

        if not isinstance(realized, int) or isinstance(realized, bool) or realized <= 0:
            raise SwapExecutionException(
                f"Swap venue reported a non-positive output: {realized!r}",
                details={"venue": self._venue.address, "realized": str(realized)},
            )
        if not isinstance(spent, int) or not 0 <= spent <= description.amount:
            raise SwapExecutionException(
                f"Swap venue reported spending {spent!r} of {description.amount}",
                details={"venue": self._venue.address, "spent": str(spent)},
            )

        logger.debug(f"Swap venue returned {realized} {description.dst_asset} for {spent}")
        return realized

    def _store_swap_result(self, nullifier_hash: int, output_asset: str, amount: int) -> SwapResult:
        result = SwapResult(output_asset=output_asset, amount=amount)
        self._state.nullifier_used[nullifier_hash] = True
        self._state.swap_results[nullifier_hash] = result

        self._emit(
            SwapResultRecorded,
            nullifier_hash=nullifier_hash,
            output_asset=output_asset,
            amount=amount,
            timestamp=self._clock(),
        )
        logger.info(
            f"Swap result recorded for nullifier {to_uint256_hex(nullifier_hash)}: "
            f"{amount} of {output_asset}"
        )
        return result

    # ------------------------------------------------------------------
    # Withdrawals (anyone holding a valid proof)
    # ------------------------------------------------------------------

    @atomic_entry
    def withdraw(
        self,
        nullifier_hash: int,
        recipient: str,
        proof: Sequence[int],
        *,
        caller: Optional[str] = None,
    ) -> SwapResult:
        """
        Release the proceeds bound to nullifier_hash to recipient.

        The proof is checked against the tree's current root, so it must
        have been generated after the most recent deposit.
        """
        try:
            recipient = normalize_address(recipient)
        except ValueError as e:
            raise InvalidRecipientException(
                f"Recipient is not an address: {recipient!r}"
            ) from e
        if recipient == ZERO_ADDRESS:
            raise InvalidRecipientException("Recipient must not be the zero address")

        result = self._state.swap_results.get(nullifier_hash)
        if result is None or result.amount == 0:
            raise NoProceedsAvailableException(nullifier_hash)
        if not self._state.nullifier_used.get(nullifier_hash, False):
            raise SwapNotYetExecutedException(nullifier_hash)

        proof = tuple(proof)
        if len(proof) != self.proof_length:
            raise InvalidProofException(
                f"Proof must have {self.proof_length} elements, got {len(proof)}",
                details={"expected": self.proof_length, "actual": len(proof)},
            )

        public_inputs = (self._state.tree.root, nullifier_hash, address_to_int(recipient))
        if not self._verify_proof(proof, public_inputs):
            logger.warning(f"Proof rejected for nullifier {to_uint256_hex(nullifier_hash)}")
            raise InvalidProofException(
                "Proof does not verify against the current root",
                details={"root": to_uint256_hex(public_inputs[0])},
            )

        # Delete before paying out so a reentrant claim finds nothing
        del self._state.swap_results[nullifier_hash]
        self._assets.transfer(result.output_asset, self.address, recipient, result.amount)

        self._emit(
            WithdrawalRecorded,
            nullifier_hash=nullifier_hash,
            recipient=recipient,
            output_asset=result.output_asset,
            amount=result.amount,
        )
        logger.info(
            f"Withdrawal for nullifier {to_uint256_hex(nullifier_hash)}: "
            f"{result.amount} of {result.output_asset} to {recipient}"
            + (f" (submitted by {caller})" if caller else "")
        )
        return result

    def _verify_proof(self, proof: tuple[int, ...], public_inputs: tuple[int, int, int]) -> bool:
        try:
            return self._verifier.verify(proof, public_inputs) is True
        except EscrowException:
            raise
        except Exception as e:
            raise VerifierCallException(
                f"Proof verifier call failed: {e}",
                details={"error": str(e)},
            ) from e

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def operator(self) -> str:
        return self._state.operator

    @property
    def current_root(self) -> int:
        return self._state.tree.root

    @property
    def leaf_count(self) -> int:
        return self._state.tree.leaf_count

    @property
    def tree_height(self) -> int:
        return self._state.tree.height

    @property
    def events(self) -> tuple[LedgerEvent, ...]:
        return tuple(self._events)

    def get_swap_result(self, nullifier_hash: int) -> Optional[SwapResult]:
        return self._state.swap_results.get(nullifier_hash)

    def get_swap_configuration(self, config_id: int) -> Optional[SwapConfiguration]:
        return self._state.swap_configs.get(config_id)

    def is_deposited(self, commitment: int) -> bool:
        return self.commitment_state(commitment) is CommitmentState.DEPOSITED

    def commitment_state(self, commitment: int) -> CommitmentState:
        return self._state.commitments.get(commitment, CommitmentState.NONE)

    def get_deposit_timestamp(self, commitment: int) -> Optional[int]:
        return self._state.deposit_timestamps.get(commitment)

    def is_nullifier_used(self, nullifier_hash: int) -> bool:
        return self._state.nullifier_used.get(nullifier_hash, False)

    def prove_membership(self, leaf_index: int) -> MembershipProof:
        """Authentication path for a deposited leaf against the current root."""
        return self._state.tree.prove_membership(leaf_index)

    def export_state(self) -> dict[str, Any]:
        """Plain-data view of the full ledger state, suitable for hashing."""
        state = self._state
        return {
            "address": self.address,
            "owner": self.owner,
            "operator": state.operator,
            "tree": {
                "height": state.tree.height,
                "leaf_count": state.tree.leaf_count,
                "root": state.tree.root,
                "leaves": [state.tree.leaf_at(i) for i in range(state.tree.leaf_count)],
            },
            "commitments": {
                str(c): {"state": s, "timestamp": state.deposit_timestamps.get(c)}
                for c, s in sorted(state.commitments.items())
            },
            "swap_configs": {str(k): v for k, v in sorted(state.swap_configs.items())},
            "next_config_id": state.next_config_id,
            "swap_results": {str(k): v for k, v in sorted(state.swap_results.items())},
            "nullifiers_used": sorted(k for k, used in state.nullifier_used.items() if used),
            "event_count": len(self._events),
        }

    def state_digest(self) -> str:
        """0x-prefixed sha256 of the canonical exported state."""
        return to_hex(hash_canonical(self.export_state()))

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_owner(self, operation: str, caller: str) -> str:
        caller = self._require_address(caller, "caller")
        if caller != self.owner:
            logger.warning(f"Rejected {operation} from non-owner {caller}")
            raise UnauthorizedCallerException(operation, caller, "owner")
        return caller

    def _require_operator(self, operation: str, caller: str) -> str:
        caller = self._require_address(caller, "caller")
        if caller != self._state.operator:
            logger.warning(f"Rejected {operation} from non-operator {caller}")
            raise UnauthorizedCallerException(operation, caller, "operator")
        return caller

    @staticmethod
    def _require_address(value: str, name: str) -> str:
        try:
            return normalize_address(value)
        except ValueError as e:
            raise InvalidAddressException(
                f"{name} is not a valid address: {value!r}",
                details={"field": name},
            ) from e

    @staticmethod
    def _require_nullifier(nullifier_hash: int) -> None:
        if (
            not isinstance(nullifier_hash, int)
            or isinstance(nullifier_hash, bool)
            or not 0 <= nullifier_hash <= UINT256_MAX
        ):
            raise InvalidNullifierException(
                "Nullifier hash must be a uint256",
                details={"nullifier_hash": str(nullifier_hash)},
            )

    def _require_holding(self, asset: str, amount: int) -> None:
        available = self._assets.balance_of(asset, self.address)
        if available < amount:
            raise InsufficientBalanceException(asset, self.address, amount, available)

    def _emit(self, event_cls: type[LedgerEvent], **fields: Any) -> LedgerEvent:
        event = event_cls(sequence=len(self._events), **fields)
        self._events.append(event)
        return event
