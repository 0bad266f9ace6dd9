"""Minimal BondedEscrow ABI: only the functions the services call."""

from __future__ import annotations

from typing import Any


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[tuple[str, str]],
    mutability: str,
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
        "stateMutability": mutability,
    }


BONDED_ESCROW_ABI: list[dict[str, Any]] = [
    _fn("isHealthy", [], [("", "bool")], "view"),
    _fn("getBondBalance", [], [("", "uint256")], "view"),
    _fn("minBond", [], [("", "uint256")], "view"),
    _fn(
        "commitmentSettled",
        [("requestCommitment", "bytes32")],
        [("", "bool")],
        "view",
    ),
    _fn(
        "pendingPayments",
        [("requestCommitment", "bytes32")],
        [
            ("client", "address"),
            ("amount", "uint256"),
            ("deadline", "uint256"),
            ("completed", "bool"),
            ("refunded", "bool"),
        ],
        "view",
    ),
    _fn(
        "claimRefund",
        [
            ("requestCommitment", "bytes32"),
            ("amount", "uint256"),
            ("signature", "bytes"),
        ],
        [],
        "nonpayable",
    ),
    _fn(
        "metaClaimRefund",
        [
            ("requestCommitment", "bytes32"),
            ("amount", "uint256"),
            ("client", "address"),
            ("deadline", "uint256"),
            ("clientSignature", "bytes"),
            ("serverSignature", "bytes"),
        ],
        [],
        "nonpayable",
    ),
    _fn(
        "claimTimeoutRefund",
        [("requestCommitment", "bytes32")],
        [],
        "nonpayable",
    ),
]
