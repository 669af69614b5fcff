"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m escrow_cli tree empty-root [--height H] [--json]
    python -m escrow_cli tree build --leaf HEX [--leaf HEX ...] [--index N] [--json]
    python -m escrow_cli tree verify --leaves-file F --leaf HEX --siblings ... --path-bits ...
    python -m escrow_cli config --init [--path escrow.yaml]
    python -m escrow_cli config --show

Environment Variables:
    ESCROW_TREE_HEIGHT      Default tree height (default: 5)
    ESCROW_LOG_LEVEL        Log level (default: INFO)
    ESCROW_LOG_FILE         Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config.runtime import RuntimeConfig, get_default_config_template
from escrow_cli import __version__
from escrow_cli.commands import tree


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def load_config(path: Path | None) -> RuntimeConfig:
    """Load config from a YAML file if given, then overlay env vars."""
    if path is not None:
        config = RuntimeConfig.from_yaml(path).with_env_overrides()
    else:
        config = RuntimeConfig.from_env()
    return config.validate()


def _add_leaf_sources(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Tree height (default: from config)",
    )
    parser.add_argument(
        "--leaves-file",
        type=str,
        default=None,
        help="JSON file with a list of commitments in insertion order",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="escrow",
        description="Escrow CLI - Inspect commitment trees and manage configuration.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to a YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- tree command ---
    tree_parser = subparsers.add_parser(
        "tree",
        help="Commitment tree tools",
        description="Compute roots and membership proofs offline.",
    )
    tree_subparsers = tree_parser.add_subparsers(dest="tree_command", help="Tree operation")

    empty_parser = tree_subparsers.add_parser(
        "empty-root",
        help="Print the root of an empty tree and its zero hashes",
    )
    empty_parser.add_argument("--height", type=int, default=None, help="Tree height")
    empty_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    empty_parser.set_defaults(func=tree.empty_root_cmd)

    build_parser = tree_subparsers.add_parser(
        "build",
        help="Rebuild a tree from commitments and print its root",
    )
    _add_leaf_sources(build_parser)
    build_parser.add_argument(
        "--leaf",
        dest="leaves",
        action="append",
        default=None,
        help="Commitment (hex or decimal); repeat in insertion order",
    )
    build_parser.add_argument(
        "--index",
        type=int,
        default=None,
        help="Also print the membership proof for this leaf index",
    )
    build_parser.set_defaults(func=tree.build_cmd)

    verify_parser = tree_subparsers.add_parser(
        "verify",
        help="Check a membership proof against a rebuilt tree",
    )
    _add_leaf_sources(verify_parser)
    verify_parser.add_argument(
        "--leaf-list",
        dest="leaves",
        nargs="+",
        default=None,
        help="Commitments in insertion order",
    )
    verify_parser.add_argument("--leaf", type=str, required=True, help="Leaf being proven")
    verify_parser.add_argument("--siblings", nargs="+", required=True, help="Sibling hashes, leaf level first")
    verify_parser.add_argument(
        "--path-bits",
        nargs="+",
        type=int,
        choices=[0, 1],
        required=True,
        help="1 where the path node is a right child",
    )
    verify_parser.set_defaults(func=tree.verify_cmd)

    tree_parser.set_defaults(func=lambda args: tree_parser.print_help() or EXIT_SUCCESS)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show the effective configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="escrow.yaml",
        help="Path for config file (default: escrow.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("You can also use environment variables (ESCROW_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: escrow config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(level=args.log_level or config.logging.level, log_file=config.logging.log_file)

    args.runtime_config = config
    if getattr(args, "height", "unset") is None:
        args.height = config.tree.height

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.log_level == "DEBUG":
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
