"""
Tests for reentrancy protection and atomic rollback.

Recipients and venues get control mid-operation through receive hooks
and venue callbacks. Any attempt to re-enter a mutating entry point
must be rejected without touching state.
"""

import pytest

from core.schemas import (
    NATIVE_ASSET,
    EscrowException,
    NoProceedsAvailableException,
    ReentrantCallException,
    VenueParams,
)
from escrow.assets import AssetBook
from escrow.guard import ReentrancyGuard
from fixtures import (
    BOB,
    EXECUTOR,
    LEDGER_ADDRESS,
    OPERATOR,
    RECIPIENT,
    TOKEN_X,
    HookedVenue,
    deposit_native,
    make_commitment,
    make_ledger,
    make_nullifier_hash,
    make_proof,
)


PARAMS = VenueParams(executor=EXECUTOR)


def _ready_to_withdraw(ledger):
    deposit_native(ledger, make_commitment("c1"))
    n1 = make_nullifier_hash("n1")
    ledger.execute_swap(n1, 1, TOKEN_X, PARAMS, caller=OPERATOR)
    return n1, make_proof(ledger.current_root, n1, RECIPIENT)


class TestReentrancyGuard:
    def test_nested_enter_rejected(self):
        guard = ReentrancyGuard()

        with guard.enter("withdraw"):
            assert guard.locked
            assert guard.active_operation == "withdraw"
            with pytest.raises(ReentrantCallException, match="withdraw"):
                with guard.enter("deposit"):
                    pass

        assert not guard.locked

    def test_released_after_exception(self):
        guard = ReentrancyGuard()

        with pytest.raises(RuntimeError):
            with guard.enter("deposit"):
                raise RuntimeError("boom")

        assert not guard.locked


class TestRecipientReentrancy:
    def test_reentrant_withdraw_aborts_whole_call(self, ledger, book):
        n1, proof = _ready_to_withdraw(ledger)
        digest = ledger.state_digest()

        def reenter(asset, sender, amount):
            ledger.withdraw(n1, RECIPIENT, proof)

        book.register_receive_hook(RECIPIENT, reenter)

        with pytest.raises(ReentrantCallException):
            ledger.withdraw(n1, RECIPIENT, proof)

        assert ledger.state_digest() == digest
        assert book.balance_of(TOKEN_X, RECIPIENT) == 0
        assert book.balance_of(TOKEN_X, LEDGER_ADDRESS) == 950

    def test_swallowed_reentry_pays_once(self, ledger, book):
        n1, proof = _ready_to_withdraw(ledger)
        errors = []

        def reenter(asset, sender, amount):
            try:
                ledger.withdraw(n1, RECIPIENT, proof)
            except Exception as e:
                errors.append(e)

        book.register_receive_hook(RECIPIENT, reenter)

        ledger.withdraw(n1, RECIPIENT, proof)

        assert len(errors) == 1
        assert isinstance(errors[0], ReentrantCallException)
        assert book.balance_of(TOKEN_X, RECIPIENT) == 950

        book.register_receive_hook(RECIPIENT, None)
        with pytest.raises(NoProceedsAvailableException):
            ledger.withdraw(n1, RECIPIENT, proof)

    def test_reentrant_deposit_rejected(self, ledger, book):
        n1, proof = _ready_to_withdraw(ledger)
        errors = []

        def reenter(asset, sender, amount):
            try:
                deposit_native(ledger, make_commitment("sneaky"), depositor=BOB)
            except Exception as e:
                errors.append(e)

        book.register_receive_hook(RECIPIENT, reenter)
        ledger.withdraw(n1, RECIPIENT, proof)

        assert isinstance(errors[0], ReentrantCallException)
        assert not ledger.is_deposited(make_commitment("sneaky"))
        assert ledger.leaf_count == 1


class TestVenueReentrancy:
    def test_venue_cannot_reenter_execute_swap(self):
        book = AssetBook()
        holder = {}

        def reenter():
            holder["ledger"].execute_swap(
                make_nullifier_hash("n2"), 1, TOKEN_X, PARAMS, caller=OPERATOR
            )

        venue = HookedVenue(book, reenter)
        ledger, _ = make_ledger(assets=book, venue=venue)
        holder["ledger"] = ledger
        deposit_native(ledger, make_commitment("c1"))
        deposit_native(ledger, make_commitment("c2"), depositor=BOB)

        result = ledger.execute_swap(make_nullifier_hash("n1"), 1, TOKEN_X, PARAMS, caller=OPERATOR)

        assert result.amount == 950
        assert len(venue.hook_errors) == 1
        assert isinstance(venue.hook_errors[0], ReentrantCallException)
        assert not ledger.is_nullifier_used(make_nullifier_hash("n2"))

    def test_venue_cannot_withdraw_mid_swap(self):
        book = AssetBook()
        holder = {}

        def reenter():
            ledger = holder["ledger"]
            n1 = holder["n1"]
            ledger.withdraw(n1, RECIPIENT, make_proof(ledger.current_root, n1, RECIPIENT))

        venue = HookedVenue(book, lambda: None)
        ledger, _ = make_ledger(assets=book, venue=venue)
        holder["ledger"] = ledger
        n1, _ = _ready_to_withdraw(ledger)
        holder["n1"] = n1
        deposit_native(ledger, make_commitment("c2"), depositor=BOB)
        venue.hook = reenter

        ledger.execute_swap(make_nullifier_hash("n2"), 1, TOKEN_X, PARAMS, caller=OPERATOR)

        assert isinstance(venue.hook_errors[0], ReentrantCallException)
        assert ledger.get_swap_result(n1).amount == 950
        assert book.balance_of(TOKEN_X, RECIPIENT) == 0


class TestAtomicity:
    def test_failed_calls_leave_digest_unchanged(self, ledger, book):
        n1, proof = _ready_to_withdraw(ledger)
        digest = ledger.state_digest()
        balance = book.balance_of(TOKEN_X, LEDGER_ADDRESS)

        failures = [
            lambda: ledger.withdraw(n1, BOB, proof),
            lambda: ledger.execute_swap(n1, 1, TOKEN_X, PARAMS, caller=OPERATOR),
            lambda: ledger.deposit(0, 1, caller=BOB, value=1000),
            lambda: ledger.set_operator(BOB, caller=BOB),
        ]
        for call in failures:
            with pytest.raises(EscrowException):
                call()

        assert ledger.state_digest() == digest
        assert book.balance_of(TOKEN_X, LEDGER_ADDRESS) == balance

    def test_digest_tracks_changes(self, ledger):
        before = ledger.state_digest()

        deposit_native(ledger, make_commitment("c1"))

        assert ledger.state_digest() != before
        assert ledger.state_digest().startswith("0x")


class TestSharedAssetBook:
    """Two ledgers on one host: an outer abort reverts nested ledger calls too."""

    OTHER_LEDGER = "0x" + "5f" * 20

    def _two_ledgers(self):
        first, book = make_ledger()
        second, _ = make_ledger(assets=book, address=self.OTHER_LEDGER)
        deposit_native(first, make_commitment("a1"))
        n1 = make_nullifier_hash("a1")
        first.record_swap_result(n1, NATIVE_ASSET, 1000, caller=OPERATOR)
        return first, second, book, n1

    def test_outer_abort_reverts_nested_deposit(self):
        first, second, book, n1 = self._two_ledgers()
        second_digest = second.state_digest()
        second_events = second.events
        nested = make_commitment("b1")

        def deposit_then_fail(asset, sender, amount):
            second.deposit(nested, 1, caller=RECIPIENT, value=amount)
            raise RuntimeError("recipient aborted")

        book.register_receive_hook(RECIPIENT, deposit_then_fail)

        with pytest.raises(RuntimeError, match="recipient aborted"):
            first.withdraw(n1, RECIPIENT, make_proof(first.current_root, n1, RECIPIENT))

        assert not second.is_deposited(nested)
        assert second.leaf_count == 0
        assert second.state_digest() == second_digest
        assert second.events == second_events
        assert book.balance_of(NATIVE_ASSET, self.OTHER_LEDGER) == 0
        assert book.balance_of(NATIVE_ASSET, RECIPIENT) == 0
        assert book.balance_of(NATIVE_ASSET, LEDGER_ADDRESS) == 1000
        assert first.get_swap_result(n1).amount == 1000

    def test_nested_deposit_kept_when_outer_succeeds(self):
        first, second, book, n1 = self._two_ledgers()
        nested = make_commitment("b1")

        def deposit(asset, sender, amount):
            second.deposit(nested, 1, caller=RECIPIENT, value=amount)

        book.register_receive_hook(RECIPIENT, deposit)

        first.withdraw(n1, RECIPIENT, make_proof(first.current_root, n1, RECIPIENT))

        assert second.is_deposited(nested)
        assert book.balance_of(NATIVE_ASSET, self.OTHER_LEDGER) == 1000
        assert book.balance_of(NATIVE_ASSET, RECIPIENT) == 0
        assert first.get_swap_result(n1) is None

    def test_failed_nested_call_leaves_outer_free_to_commit(self):
        first, second, book, n1 = self._two_ledgers()
        errors = []

        def bad_deposit(asset, sender, amount):
            try:
                second.deposit(make_commitment("b1"), 1, caller=RECIPIENT, value=amount - 1)
            except Exception as e:
                errors.append(e)

        book.register_receive_hook(RECIPIENT, bad_deposit)

        first.withdraw(n1, RECIPIENT, make_proof(first.current_root, n1, RECIPIENT))

        assert len(errors) == 1
        assert second.leaf_count == 0
        assert book.balance_of(NATIVE_ASSET, RECIPIENT) == 1000

