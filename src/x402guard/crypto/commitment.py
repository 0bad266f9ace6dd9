"""Request commitment: the identifier binding one HTTP request to one payment.

The four request fields are ABI-encoded as ``(string, string, string, string)``
before hashing. Each string is offset-addressed and length-prefixed, so two
different tuples can never produce the same preimage by shifting characters
across a field boundary.
"""

from __future__ import annotations

from eth_abi import encode
from web3 import Web3

DEFAULT_COMMITMENT_WINDOW = "60"

COMMITMENT_ABI_TYPES = ["string", "string", "string", "string"]


def compute_request_commitment(
    method: str, url: str, payment_header: str, window: str
) -> str:
    """Return the 0x-prefixed keccak-256 commitment for a paid request."""
    encoded = encode(COMMITMENT_ABI_TYPES, [method, url, payment_header, window])
    return "0x" + bytes(Web3.keccak(encoded)).hex()


def commitment_to_bytes(commitment: str) -> bytes:
    """Decode a hex commitment into the 32 bytes used as a ``bytes32`` argument."""
    raw = bytes.fromhex(commitment.removeprefix("0x"))
    if len(raw) != 32:
        raise ValueError(f"Commitment must be 32 bytes, got {len(raw)}")
    return raw


def commitments_equal(left: str, right: str) -> bool:
    """Compare two commitments byte-for-byte, ignoring hex letter case."""
    try:
        return commitment_to_bytes(left) == commitment_to_bytes(right)
    except ValueError:
        return False


def commitment_fragment(commitment: str) -> str:
    """Short fragment used to name receipt files (hex characters 2..12)."""
    return commitment[2:12]
