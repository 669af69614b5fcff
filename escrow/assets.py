"""
Asset Book

In-memory stand-in for the host ledger environment's value layer:
native balances, token balances and token allowances, keyed by address.

Receive hooks model contract recipients that run code when credited.
They fire after the balance update, which is where reentrant calls
into the escrow ledger originate.

The book also keeps the host journal: every ledger call runs inside
`transaction()`, so an aborted outer call reverts balances and the
state of every ledger that completed a call inside it.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from core.schemas.errors import (
    InsufficientAllowanceException,
    InsufficientBalanceException,
    InvalidAmountException,
)
from core.schemas.ledger import NATIVE_ASSET, normalize_address


logger = logging.getLogger(__name__)

# hook(asset, sender, amount)
ReceiveHook = Callable[[str, str, int], None]
UndoHook = Callable[[], None]


@dataclass
class AssetBookSnapshot:
    """Copy of balances and allowances taken before an atomic operation."""
    balances: dict[tuple[str, str], int] = field(default_factory=dict)
    allowances: dict[tuple[str, str, str], int] = field(default_factory=dict)


@dataclass
class HostTransaction:
    """
    One open frame of the host journal.

    Holds the book as it was when the frame opened and the undo hooks of
    every participant that wrote state inside it, including nested frames
    that already committed.
    """
    snapshot: AssetBookSnapshot
    undo: list[UndoHook] = field(default_factory=list)


class AssetBook:
    """
    Balances and allowances for every asset, including the native one.

    Usage:
        book = AssetBook()
        book.mint(NATIVE_ASSET, alice, 1_000)
        book.transfer(NATIVE_ASSET, alice, ledger, 1_000)
    """

    def __init__(self, native_asset: str = NATIVE_ASSET) -> None:
        self.native_asset = normalize_address(native_asset)
        self._balances: dict[tuple[str, str], int] = {}
        self._allowances: dict[tuple[str, str, str], int] = {}
        self._hooks: dict[str, ReceiveHook] = {}
        self._frames: list[HostTransaction] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def balance_of(self, asset: str, holder: str) -> int:
        return self._balances.get((normalize_address(asset), normalize_address(holder)), 0)

    def allowance(self, asset: str, owner: str, spender: str) -> int:
        key = (normalize_address(asset), normalize_address(owner), normalize_address(spender))
        return self._allowances.get(key, 0)

    def total_supply(self, asset: str) -> int:
        asset = normalize_address(asset)
        return sum(amount for (a, _), amount in self._balances.items() if a == asset)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def mint(self, asset: str, holder: str, amount: int) -> None:
        """Create balance out of thin air (test and genesis seeding)."""
        if amount <= 0:
            raise InvalidAmountException(amount)
        key = (normalize_address(asset), normalize_address(holder))
        self._balances[key] = self._balances.get(key, 0) + amount

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        """
        Move amount of asset from sender to recipient, then run the
        recipient's receive hook if one is registered.

        Raises:
            InsufficientBalanceException: If sender cannot cover amount
        """
        asset = normalize_address(asset)
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        if amount < 0:
            raise InvalidAmountException(amount, f"Transfer amount must not be negative, got {amount}")

        available = self._balances.get((asset, sender), 0)
        if available < amount:
            raise InsufficientBalanceException(asset, sender, amount, available)

        self._balances[(asset, sender)] = available - amount
        self._balances[(asset, recipient)] = self._balances.get((asset, recipient), 0) + amount
        logger.debug(f"Transfer {amount} of {asset}: {sender} -> {recipient}")

        hook = self._hooks.get(recipient)
        if hook is not None:
            hook(asset, sender, amount)

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        """Set (not add to) the spender's allowance over owner's asset."""
        if amount < 0:
            raise InvalidAmountException(amount, f"Allowance must not be negative, got {amount}")
        key = (normalize_address(asset), normalize_address(owner), normalize_address(spender))
        if amount == 0:
            self._allowances.pop(key, None)
        else:
            self._allowances[key] = amount

    def transfer_from(
        self,
        asset: str,
        spender: str,
        owner: str,
        recipient: str,
        amount: int,
    ) -> None:
        """
        Spend part of an allowance to move owner's asset to recipient.

        Raises:
            InsufficientAllowanceException: If the allowance is too small
            InsufficientBalanceException: If owner cannot cover amount
        """
        available = self.allowance(asset, owner, spender)
        if available < amount:
            raise InsufficientAllowanceException(
                normalize_address(asset),
                normalize_address(owner),
                normalize_address(spender),
                amount,
                available,
            )
        self.transfer(asset, owner, recipient, amount)
        self.approve(asset, owner, spender, available - amount)

    # ------------------------------------------------------------------
    # Hooks and snapshots
    # ------------------------------------------------------------------

    def register_receive_hook(self, address: str, hook: Optional[ReceiveHook]) -> None:
        """Install (or, with None, remove) the code run when address is credited."""
        address = normalize_address(address)
        if hook is None:
            self._hooks.pop(address, None)
        else:
            self._hooks[address] = hook

    def snapshot(self) -> AssetBookSnapshot:
        return AssetBookSnapshot(
            balances=copy.copy(self._balances),
            allowances=copy.copy(self._allowances),
        )

    def restore(self, snapshot: AssetBookSnapshot) -> None:
        self._balances = copy.copy(snapshot.balances)
        self._allowances = copy.copy(snapshot.allowances)

    # ------------------------------------------------------------------
    # Host transactions
    # ------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return bool(self._frames)

    @contextmanager
    def transaction(self, undo: Optional[UndoHook] = None) -> Iterator[HostTransaction]:
        """
        Run a block as one atomic host call.

        On exception the book is restored to its state at entry and every
        undo hook registered in the frame runs, newest first. On success
        the hooks move to the enclosing frame, so an outer abort still
        reverts state written by callers that completed inside it.
        """
        frame = HostTransaction(snapshot=self.snapshot())
        if undo is not None:
            frame.undo.append(undo)
        self._frames.append(frame)
        try:
            yield frame
        except Exception:
            self._frames.pop()
            self.restore(frame.snapshot)
            for hook in reversed(frame.undo):
                hook()
            logger.debug(f"Host transaction rolled back ({len(frame.undo)} participants)")
            raise
        self._frames.pop()
        if self._frames:
            self._frames[-1].undo.extend(frame.undo)
