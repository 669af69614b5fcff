"""
Runtime Configuration Module

Provides configuration loading and management for the escrow ledger.
"""

from .runtime import (
    RuntimeConfig,
    TreeConfig,
    LedgerConfig,
    LoggingConfig,
    get_default_config,
    set_default_config,
    get_default_config_template,
)

__all__ = [
    "RuntimeConfig",
    "TreeConfig",
    "LedgerConfig",
    "LoggingConfig",
    "get_default_config",
    "set_default_config",
    "get_default_config_template",
]
