"""
Reentrancy and Atomicity Guard

Every state-mutating ledger entry point runs under `atomic_entry`:

1. If another mutating call is already in progress on the same ledger,
   the new call is rejected before it touches anything.
2. Ledger state is snapshotted and a host transaction is opened on the
   asset book with the ledger's restore registered as its undo hook.
3. If the call raises, the book and the ledger are restored and the
   exception propagates. If it succeeds inside another host transaction,
   the undo hook moves to that transaction, so an enclosing abort on a
   different ledger still reverts this ledger's writes.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from core.schemas.errors import ReentrantCallException


F = TypeVar("F", bound=Callable[..., Any])


class ReentrancyGuard:
    """Single-slot lock recording which operation currently holds it."""

    def __init__(self) -> None:
        self._active: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._active is not None

    @property
    def active_operation(self) -> Optional[str]:
        return self._active

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        if self._active is not None:
            raise ReentrantCallException(operation, self._active)
        self._active = operation
        try:
            yield
        finally:
            self._active = None


def atomic_entry(method: F) -> F:
    """
    Decorator for mutating ledger methods.

    The decorated object must expose `_guard` (a ReentrancyGuard),
    `_assets` (an AssetBook), `_take_snapshot()` and
    `_restore_snapshot(snapshot)`.
    """

    @functools.wraps(method)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        with self._guard.enter(method.__name__):
            snapshot = self._take_snapshot()
            with self._assets.transaction(undo=lambda: self._restore_snapshot(snapshot)):
                return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
