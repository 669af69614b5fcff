"""
Common test fixtures shared by all modules.

Addresses, a controllable clock, and deterministic stand-ins for the
secrets a real depositor would hold.
"""

from core.crypto.hashing import SNARK_SCALAR_FIELD, bytes32_to_int, int_to_bytes32, sha256
from core.schemas.ledger import address_to_int


OWNER = "0x" + "01" * 20
OPERATOR = "0x" + "02" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
RECIPIENT = "0x" + "ef" * 20
EXECUTOR = "0x" + "ec" * 20
VENUE_ADDRESS = "0x" + "0e" * 20
LEDGER_ADDRESS = "0x" + "5e" * 20
TOKEN_X = "0x" + "11" * 20
TOKEN_Y = "0x" + "22" * 20


class FakeClock:
    """Callable clock returning a settable unix timestamp."""

    def __init__(self, start: int = 1_767_225_600) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def make_commitment(label: str) -> int:
    """Deterministic non-zero commitment derived from a label."""
    return bytes32_to_int(sha256(f"commitment:{label}".encode())) % SNARK_SCALAR_FIELD or 1


def make_nullifier_hash(label: str) -> int:
    return bytes32_to_int(sha256(f"nullifier:{label}".encode())) % SNARK_SCALAR_FIELD


def make_proof(root: int, nullifier_hash: int, recipient: str) -> tuple[int, ...]:
    """
    Eight opaque words bound to one (root, nullifier, recipient) triple.

    BindingVerifier accepts exactly these, so a proof made for one root
    or recipient fails for any other.
    """
    payload = b"".join(
        int_to_bytes32(x) for x in (root, nullifier_hash, address_to_int(recipient))
    )
    digest = sha256(payload) + sha256(b"proof" + payload)
    return tuple(int.from_bytes(digest[i:i + 8], "big") for i in range(0, 64, 8))
