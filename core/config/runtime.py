"""
Runtime Configuration

Central configuration for the commitment tree, the escrow ledger and logging.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from core.merkle.commitment_tree import DEFAULT_TREE_HEIGHT, MAX_TREE_HEIGHT
from core.schemas.errors import ConfigurationException
from core.schemas.ledger import normalize_address

load_dotenv()


DEFAULT_LEDGER_ADDRESS = "0x" + "5e" * 20
DEFAULT_PROOF_LENGTH = 8
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TreeConfig:
    """Configuration for the commitment tree."""
    height: int = DEFAULT_TREE_HEIGHT


@dataclass
class LedgerConfig:
    """Configuration for the escrow ledger."""
    address: str = DEFAULT_LEDGER_ADDRESS
    owner: Optional[str] = None
    operator: Optional[str] = None
    proof_length: int = DEFAULT_PROOF_LENGTH


@dataclass
class LoggingConfig:
    """Configuration for log output."""
    level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    tree: TreeConfig = field(default_factory=TreeConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - ESCROW_TREE_HEIGHT: Commitment tree height
        - ESCROW_LEDGER_ADDRESS: Address the ledger holds funds under
        - ESCROW_OWNER: Owner address (configuration entry points)
        - ESCROW_OPERATOR: Operator address (swap entry points)
        - ESCROW_PROOF_LENGTH: Number of elements in an opaque proof
        - ESCROW_LOG_LEVEL: Log level
        - ESCROW_LOG_FILE: Optional log file path
        """
        overrides: dict[str, Any] = {}

        if os.getenv("ESCROW_TREE_HEIGHT"):
            overrides.setdefault("tree", {})["height"] = _env_int("ESCROW_TREE_HEIGHT")

        if os.getenv("ESCROW_LEDGER_ADDRESS"):
            overrides.setdefault("ledger", {})["address"] = os.getenv("ESCROW_LEDGER_ADDRESS")
        if os.getenv("ESCROW_OWNER"):
            overrides.setdefault("ledger", {})["owner"] = os.getenv("ESCROW_OWNER")
        if os.getenv("ESCROW_OPERATOR"):
            overrides.setdefault("ledger", {})["operator"] = os.getenv("ESCROW_OPERATOR")
        if os.getenv("ESCROW_PROOF_LENGTH"):
            overrides.setdefault("ledger", {})["proof_length"] = _env_int("ESCROW_PROOF_LENGTH")

        if os.getenv("ESCROW_LOG_LEVEL"):
            overrides.setdefault("logging", {})["level"] = os.getenv("ESCROW_LOG_LEVEL", "INFO").upper()
        if os.getenv("ESCROW_LOG_FILE"):
            overrides.setdefault("logging", {})["log_file"] = os.getenv("ESCROW_LOG_FILE")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationException(
                f"Config file must contain a mapping, got {type(data).__name__}",
                details={"path": str(path)},
            )
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        try:
            tree = TreeConfig(**data.get("tree", {}))
            ledger = LedgerConfig(**data.get("ledger", {}))
            log_cfg = LoggingConfig(**data.get("logging", {}))
        except TypeError as e:
            raise ConfigurationException(f"Unknown configuration key: {e}") from e

        return cls(
            tree=tree,
            ledger=ledger,
            logging=log_cfg,
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section in ("tree", "ledger", "logging"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)
        return new_config

    def validate(self) -> "RuntimeConfig":
        """
        Check value ranges and address formats.

        Raises:
            ConfigurationException: On the first invalid setting
        """
        if not 1 <= self.tree.height <= MAX_TREE_HEIGHT:
            raise ConfigurationException(
                f"tree.height must be between 1 and {MAX_TREE_HEIGHT}",
                details={"height": self.tree.height},
            )
        if self.ledger.proof_length < 1:
            raise ConfigurationException(
                "ledger.proof_length must be positive",
                details={"proof_length": self.ledger.proof_length},
            )
        for name in ("address", "owner", "operator"):
            value = getattr(self.ledger, name)
            if value is None:
                continue
            try:
                normalize_address(value)
            except ValueError as e:
                raise ConfigurationException(
                    f"ledger.{name} is not a valid address",
                    details={name: value},
                ) from e
        if self.logging.level.upper() not in _LOG_LEVELS:
            raise ConfigurationException(
                f"logging.level must be one of {', '.join(_LOG_LEVELS)}",
                details={"level": self.logging.level},
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "tree": {
                "height": self.tree.height,
            },
            "ledger": {
                "address": self.ledger.address,
                "owner": self.ledger.owner,
                "operator": self.ledger.operator,
                "proof_length": self.ledger.proof_length,
            },
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
            },
            "extra": self.extra,
        }


def _env_int(name: str) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationException(
            f"{name} must be an integer, got {raw!r}",
            details={"variable": name},
        ) from e


def get_default_config_template() -> str:
    """YAML template written by `escrow config --init`."""
    return (
        "# Escrow configuration\n"
        "tree:\n"
        f"  height: {DEFAULT_TREE_HEIGHT}\n"
        "ledger:\n"
        f"  address: \"{DEFAULT_LEDGER_ADDRESS}\"\n"
        "  owner: null\n"
        "  operator: null\n"
        f"  proof_length: {DEFAULT_PROOF_LENGTH}\n"
        "logging:\n"
        "  level: INFO\n"
        "  log_file: null\n"
    )


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config
