"""
Core cryptographic utilities.

Field-domain pair hashing for the commitment tree, canonical hashing
for state digests, and hex helpers.
"""
from .hashing import (
    SNARK_SCALAR_FIELD,
    UINT256_MAX,
    sha256,
    int_to_bytes32,
    bytes32_to_int,
    hash_pair,
    hash_canonical,
    to_hex,
    to_uint256_hex,
    from_hex,
    parse_uint256,
)

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
