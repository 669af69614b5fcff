"""
Asset Book Unit Tests
Tests for escrow/assets.py
"""

import pytest

from core.schemas.errors import (
    InsufficientAllowanceException,
    InsufficientBalanceException,
    InvalidAmountException,
)
from core.schemas.ledger import NATIVE_ASSET
from escrow.assets import AssetBook


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
SPENDER = "0x" + "0e" * 20
TOKEN = "0x" + "11" * 20


@pytest.fixture
def funded():
    book = AssetBook()
    book.mint(NATIVE_ASSET, ALICE, 1000)
    book.mint(TOKEN, ALICE, 500)
    return book


class TestTransfer:
    def test_moves_balance(self, funded):
        funded.transfer(NATIVE_ASSET, ALICE, BOB, 400)

        assert funded.balance_of(NATIVE_ASSET, ALICE) == 600
        assert funded.balance_of(NATIVE_ASSET, BOB) == 400
        assert funded.total_supply(NATIVE_ASSET) == 1000

    def test_addresses_are_case_insensitive(self, funded):
        funded.transfer(TOKEN, ALICE.upper().replace("0X", "0x"), BOB, 1)

        assert funded.balance_of(TOKEN, BOB) == 1

    def test_insufficient_balance(self, funded):
        with pytest.raises(InsufficientBalanceException):
            funded.transfer(NATIVE_ASSET, BOB, ALICE, 1)

    def test_mint_requires_positive(self, funded):
        with pytest.raises(InvalidAmountException):
            funded.mint(TOKEN, BOB, 0)

    def test_receive_hook_runs_after_credit(self, funded):
        seen = []

        def hook(asset, sender, amount):
            seen.append((asset, sender, amount, funded.balance_of(asset, BOB)))

        funded.register_receive_hook(BOB, hook)
        funded.transfer(NATIVE_ASSET, ALICE, BOB, 10)

        assert seen == [(NATIVE_ASSET, ALICE, 10, 10)]

    def test_hook_can_be_removed(self, funded):
        seen = []
        funded.register_receive_hook(BOB, lambda *a: seen.append(a))
        funded.register_receive_hook(BOB, None)

        funded.transfer(NATIVE_ASSET, ALICE, BOB, 10)

        assert seen == []


class TestAllowances:
    def test_transfer_from_spends_allowance(self, funded):
        funded.approve(TOKEN, ALICE, SPENDER, 300)

        funded.transfer_from(TOKEN, SPENDER, ALICE, BOB, 200)

        assert funded.balance_of(TOKEN, BOB) == 200
        assert funded.allowance(TOKEN, ALICE, SPENDER) == 100

    def test_transfer_from_without_allowance(self, funded):
        with pytest.raises(InsufficientAllowanceException):
            funded.transfer_from(TOKEN, SPENDER, ALICE, BOB, 1)
        assert funded.balance_of(TOKEN, ALICE) == 500

    def test_approve_sets_not_adds(self, funded):
        funded.approve(TOKEN, ALICE, SPENDER, 50)
        funded.approve(TOKEN, ALICE, SPENDER, 20)

        assert funded.allowance(TOKEN, ALICE, SPENDER) == 20

    def test_approve_zero_clears(self, funded):
        funded.approve(TOKEN, ALICE, SPENDER, 50)
        funded.approve(TOKEN, ALICE, SPENDER, 0)

        assert funded.allowance(TOKEN, ALICE, SPENDER) == 0


class TestSnapshots:
    def test_restore(self, funded):
        snapshot = funded.snapshot()
        funded.transfer(NATIVE_ASSET, ALICE, BOB, 999)
        funded.approve(TOKEN, ALICE, SPENDER, 7)

        funded.restore(snapshot)

        assert funded.balance_of(NATIVE_ASSET, ALICE) == 1000
        assert funded.balance_of(NATIVE_ASSET, BOB) == 0
        assert funded.allowance(TOKEN, ALICE, SPENDER) == 0


class TestHostTransactions:
    """Tests for AssetBook.transaction() journaling."""

    def test_abort_restores_and_runs_undo(self, funded):
        undone = []

        with pytest.raises(RuntimeError):
            with funded.transaction(undo=lambda: undone.append("outer")):
                funded.transfer(NATIVE_ASSET, ALICE, BOB, 100)
                raise RuntimeError("abort")

        assert undone == ["outer"]
        assert funded.balance_of(NATIVE_ASSET, BOB) == 0
        assert not funded.in_transaction

    def test_committed_inner_frame_reverted_by_outer_abort(self, funded):
        undone = []

        with pytest.raises(RuntimeError):
            with funded.transaction(undo=lambda: undone.append("outer")):
                with funded.transaction(undo=lambda: undone.append("inner")):
                    funded.transfer(TOKEN, ALICE, BOB, 5)
                raise RuntimeError("abort")

        assert undone == ["inner", "outer"]
        assert funded.balance_of(TOKEN, BOB) == 0

    def test_inner_abort_leaves_outer_intact(self, funded):
        undone = []

        with funded.transaction(undo=lambda: undone.append("outer")):
            funded.transfer(TOKEN, ALICE, BOB, 5)
            with pytest.raises(RuntimeError):
                with funded.transaction(undo=lambda: undone.append("inner")):
                    funded.transfer(TOKEN, ALICE, BOB, 7)
                    raise RuntimeError("abort")

        assert undone == ["inner"]
        assert funded.balance_of(TOKEN, BOB) == 5

    def test_top_level_commit_discards_undo(self, funded):
        undone = []

        with funded.transaction(undo=lambda: undone.append("outer")):
            funded.transfer(TOKEN, ALICE, BOB, 5)

        assert undone == []
        assert funded.balance_of(TOKEN, BOB) == 5
