"""
Hashing Utilities
Field-domain hashing for the commitment tree plus byte/hex helpers.

This module provides:
- SHA-256 hashing for raw bytes
- 256-bit integer <-> 32-byte big-endian conversion
- hash_pair: the two-input compression function used by the commitment tree
- Canonical hashing for objects (via dumps_canonical)
- Hex encoding/decoding with 0x prefix

Hash Domain Rules (Hard Contracts):
1. Tree nodes are elements of the BN254 scalar field
2. hash_pair(l, r) = sha256(be32(l) || be32(r)) mod SNARK_SCALAR_FIELD
3. Inputs are 256-bit unsigned integers; leaves need not be reduced
4. The proving circuit must use the same function bit-for-bit
"""
from __future__ import annotations

import hashlib
from typing import Any

from core.schemas.canonical import dumps_canonical


# BN254 (alt_bn128) scalar field modulus
SNARK_SCALAR_FIELD: int = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

UINT256_MAX: int = 2**256 - 1


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.
    
    Args:
        data: Raw bytes to hash
        
    Returns:
        32-byte SHA-256 digest
    """
    return hashlib.sha256(data).digest()


def int_to_bytes32(value: int) -> bytes:
    """
    Encode an unsigned 256-bit integer as 32 big-endian bytes.
    
    Raises:
        ValueError: If value is negative or wider than 256 bits
    """
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"Value out of uint256 range: {value}")
    return value.to_bytes(32, "big")


def bytes32_to_int(data: bytes) -> int:
    """Decode 32 big-endian bytes into an unsigned integer."""
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}")
    return int.from_bytes(data, "big")


def hash_pair(left: int, right: int) -> int:
    """
    Two-input compression function over the scalar field.
    
    Order matters: hash_pair(a, b) != hash_pair(b, a) in general.
    
    Args:
        left: Left child value (uint256)
        right: Right child value (uint256)
        
    Returns:
        Parent value, reduced modulo SNARK_SCALAR_FIELD
    """
    digest = sha256(int_to_bytes32(left) + int_to_bytes32(right))
    return bytes32_to_int(digest) % SNARK_SCALAR_FIELD


def hash_canonical(obj: Any) -> bytes:
    """
    Hash an object using canonical JSON serialization.
    
    Rule: digest = sha256(dumps_canonical(obj).encode("utf-8"))
    
    Raises:
        CanonicalizationException: If object cannot be canonically serialized
    """
    canonical_json = dumps_canonical(obj)
    return sha256(canonical_json.encode("utf-8"))


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.
    
    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def to_uint256_hex(value: int) -> str:
    """Render an integer as a 0x-prefixed, 64-digit hex word."""
    return to_hex(int_to_bytes32(value))


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.
    
    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )
    
    hex_content = hex_string[2:]
    
    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )
    
    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def parse_uint256(text: str) -> int:
    """
    Parse a uint256 from a 0x-prefixed hex string or a decimal string.
    
    Raises:
        ValueError: If the text is not a number or out of range
    """
    text = text.strip()
    if text.lower().startswith("0x"):
        value = int(text[2:], 16) if len(text) > 2 else 0
    else:
        value = int(text, 10)
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"Value out of uint256 range: {text}")
    return value


__all__ = [
    "SNARK_SCALAR_FIELD",
    "UINT256_MAX",
    "sha256",
    "int_to_bytes32",
    "bytes32_to_int",
    "hash_pair",
    "hash_canonical",
    "to_hex",
    "to_uint256_hex",
    "from_hex",
    "parse_uint256",
]
