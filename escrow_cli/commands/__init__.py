"""
CLI command modules.
"""

from escrow_cli.commands import tree

__all__ = ["tree"]
