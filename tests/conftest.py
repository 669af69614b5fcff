"""
Pytest configuration and shared fixtures for escrow tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")
_ledger = importlib.import_module("fixtures.ledger_fixtures")

FakeClock = _common.FakeClock
make_ledger = _ledger.make_ledger


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def clock():
    """Settable clock shared by the ledger under test."""
    return FakeClock()


@pytest.fixture
def ledger_and_book(clock):
    """Ledger with native config 1 and token config 2, plus its asset book."""
    return make_ledger(clock=clock)


@pytest.fixture
def ledger(ledger_and_book):
    return ledger_and_book[0]


@pytest.fixture
def book(ledger_and_book):
    return ledger_and_book[1]


@pytest.fixture(autouse=True)
def _isolate_escrow_env(monkeypatch):
    """Keep ESCROW_* variables from the developer's shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("ESCROW_"):
            monkeypatch.delenv(key, raising=False)
