"""EIP-712 domains, message types and signature helpers.

Every signature in the protocol is scoped to a domain of
``{name, version, chainId, verifyingContract}``, so a voucher signed for one
escrow deployment or chain never verifies against another.
"""

from __future__ import annotations

from typing import Any, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from pydantic import BaseModel
from web3 import Web3

from ..domain.errors import InvalidSignatureError
from ..domain.shared import Signer
from .commitment import commitment_to_bytes

ESCROW_DOMAIN_NAME = "BondedEscrow"
INSURANCE_DOMAIN_NAME = "X402InsuranceV2"
DOMAIN_VERSION = "1"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

TypeFields = list[dict[str, str]]

REFUND_CLAIM_TYPES: dict[str, TypeFields] = {
    "RefundClaim": [
        {"name": "requestCommitment", "type": "bytes32"},
        {"name": "amount", "type": "uint256"},
    ],
}

META_REFUND_CLAIM_TYPES: dict[str, TypeFields] = {
    "MetaRefundClaim": [
        {"name": "requestCommitment", "type": "bytes32"},
        {"name": "amount", "type": "uint256"},
        {"name": "client", "type": "address"},
        {"name": "deadline", "type": "uint256"},
    ],
}

TIMEOUT_REFUND_CLAIM_TYPES: dict[str, TypeFields] = {
    "TimeoutRefundClaim": [
        {"name": "requestCommitment", "type": "bytes32"},
    ],
}

SERVICE_CONFIRMATION_TYPES: dict[str, TypeFields] = {
    "ServiceConfirmation": [
        {"name": "requestCommitment", "type": "bytes32"},
    ],
}

INSURANCE_CLAIM_TYPES: dict[str, TypeFields] = {
    "InsuranceClaim": [
        {"name": "requestCommitment", "type": "bytes32"},
    ],
}

INSURANCE_PURCHASE_TYPES: dict[str, TypeFields] = {
    "InsurancePurchase": [
        {"name": "requestCommitment", "type": "bytes32"},
        {"name": "provider", "type": "address"},
        {"name": "paymentAmount", "type": "uint256"},
        {"name": "insuranceFee", "type": "uint256"},
        {"name": "timeoutMinutes", "type": "uint256"},
        {"name": "delegate", "type": "address"},
    ],
}

PAYMENT_RECEIPT_TYPES: dict[str, TypeFields] = {
    "PaymentReceipt": [
        {"name": "requestCommitment", "type": "bytes32"},
        {"name": "amount", "type": "uint256"},
        {"name": "payer", "type": "address"},
    ],
}


class TypedDataDomain(BaseModel):
    """EIP-712 domain separator fields."""

    name: str
    version: str = DOMAIN_VERSION
    chain_id: int
    verifying_contract: str

    def as_eip712(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": Web3.to_checksum_address(self.verifying_contract),
        }


def escrow_domain(chain_id: int, escrow_address: str) -> TypedDataDomain:
    return TypedDataDomain(
        name=ESCROW_DOMAIN_NAME, chain_id=chain_id, verifying_contract=escrow_address
    )


def insurance_domain(chain_id: int, insurance_address: str) -> TypedDataDomain:
    return TypedDataDomain(
        name=INSURANCE_DOMAIN_NAME,
        chain_id=chain_id,
        verifying_contract=insurance_address,
    )


# Message builders. bytes32 fields are passed as raw bytes (eth_account >= 0.10
# rejects hex strings for bytes32).


def refund_claim_message(commitment: str, amount: int) -> dict[str, Any]:
    return {"requestCommitment": commitment_to_bytes(commitment), "amount": int(amount)}


def meta_refund_claim_message(
    commitment: str, amount: int, client: str, deadline: int
) -> dict[str, Any]:
    return {
        "requestCommitment": commitment_to_bytes(commitment),
        "amount": int(amount),
        "client": Web3.to_checksum_address(client),
        "deadline": int(deadline),
    }


def payment_receipt_message(
    commitment: str, amount: int, payer: str
) -> dict[str, Any]:
    return {
        "requestCommitment": commitment_to_bytes(commitment),
        "amount": int(amount),
        "payer": Web3.to_checksum_address(payer),
    }


def commitment_only_message(commitment: str) -> dict[str, Any]:
    return {"requestCommitment": commitment_to_bytes(commitment)}


def insurance_purchase_message(
    commitment: str,
    provider: str,
    payment_amount: int,
    insurance_fee: int,
    timeout_minutes: int,
    delegate: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "requestCommitment": commitment_to_bytes(commitment),
        "provider": Web3.to_checksum_address(provider),
        "paymentAmount": int(payment_amount),
        "insuranceFee": int(insurance_fee),
        "timeoutMinutes": int(timeout_minutes),
        "delegate": Web3.to_checksum_address(delegate or ZERO_ADDRESS),
    }


def sign_typed(
    signer: Signer,
    domain: TypedDataDomain,
    types: dict[str, TypeFields],
    message: dict[str, Any],
) -> str:
    """Sign ``message`` under ``domain`` with the given role signer."""
    return signer.sign_typed_data(domain.as_eip712(), types, message)


def recover_typed_signer(
    domain: TypedDataDomain,
    types: dict[str, TypeFields],
    message: dict[str, Any],
    signature: str,
) -> str:
    """Recover the checksummed signer address of an EIP-712 signature.

    Raises:
        InvalidSignatureError: If the signature is malformed or unrecoverable.
    """
    signable = encode_typed_data(
        domain_data=domain.as_eip712(), message_types=types, message_data=message
    )
    try:
        return Account.recover_message(signable, signature=signature)
    except Exception as e:
        raise InvalidSignatureError(f"Malformed signature: {e}") from e


def verify_typed_signer(
    domain: TypedDataDomain,
    types: dict[str, TypeFields],
    message: dict[str, Any],
    signature: str,
    expected_signer: str,
) -> None:
    """Raise ``InvalidSignatureError`` unless ``signature`` was made by ``expected_signer``."""
    recovered = recover_typed_signer(domain, types, message, signature)
    if recovered.lower() != expected_signer.lower():
        raise InvalidSignatureError(
            f"Signature recovered {recovered}, expected {expected_signer}"
        )
