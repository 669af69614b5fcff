"""
Escrow CLI

Developer tooling for commitment trees and runtime configuration.

Usage:
    python -m escrow_cli tree empty-root --height 5
    python -m escrow_cli tree build --leaf 0xab.. --leaf 0xcd.. --index 1
    python -m escrow_cli tree verify --leaves-file leaves.json --leaf 0xab.. ...
    python -m escrow_cli config --init
"""

__version__ = "0.1.0"
