"""X-PAYMENT header codec for the x402 "exact" scheme.

The header is base64-encoded JSON. Only what the refund protocol needs is
handled here: reading the paid amount back out of a header, and producing a
header on the client side when a resource answers 402.
"""

from __future__ import annotations

import base64
import binascii
import json
import secrets
import time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from web3 import Web3

from ..domain.errors import PaymentHeaderDecodeError
from ..domain.shared import Signer

X402_VERSION = 1
PAYMENT_RECEIPT_HEADER = "X-PAYMENT-RECEIPT"

TRANSFER_WITH_AUTHORIZATION_TYPES = {
    "TransferWithAuthorization": [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "bytes32"},
    ],
}


class PaymentRequirements(BaseModel):
    """One entry of the ``accepts`` list a resource returns with HTTP 402."""

    model_config = ConfigDict(populate_by_name=True)

    scheme: str = "exact"
    network: str
    max_amount_required: str = Field(..., alias="maxAmountRequired")
    resource: str
    description: str = ""
    mime_type: str = Field("application/json", alias="mimeType")
    pay_to: str = Field(..., alias="payTo")
    max_timeout_seconds: int = Field(60, alias="maxTimeoutSeconds")
    asset: str
    extra: Optional[dict[str, Any]] = None


def decode_payment_payload(header: str) -> dict[str, Any]:
    """Decode the base64 JSON envelope carried by the X-PAYMENT header."""
    try:
        raw = base64.b64decode(header, validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PaymentHeaderDecodeError(f"Payment header is not base64 JSON: {e}") from e
    if not isinstance(data, dict):
        raise PaymentHeaderDecodeError("Payment header must decode to a JSON object")
    return data


def _is_decimal(text: str) -> bool:
    # str.isdigit also accepts superscripts and other non-ASCII digits
    return text.isascii() and text.isdigit()


def _parse_amount(value: Any) -> int:
    if isinstance(value, bool):
        raise PaymentHeaderDecodeError("Payment amount must be an integer")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and _is_decimal(value.strip()):
        amount = int(value.strip())
    else:
        raise PaymentHeaderDecodeError(f"Payment amount {value!r} is not an integer")
    if amount <= 0:
        raise PaymentHeaderDecodeError("Payment amount must be positive")
    return amount


def decode_payment_amount(header: str) -> int:
    """Extract the paid amount (smallest token unit) from an X-PAYMENT header.

    Looks at ``payload.authorization.value``, then ``payload.amount``, then a
    top-level ``amount``. There is no fallback amount: a header without a
    readable positive amount is rejected.
    """
    data = decode_payment_payload(header)
    payload = data.get("payload")
    if not isinstance(payload, dict):
        payload = {}
    authorization = payload.get("authorization")
    if not isinstance(authorization, dict):
        authorization = {}

    for candidate in (
        authorization.get("value"),
        payload.get("amount"),
        data.get("amount"),
    ):
        if candidate is not None:
            return _parse_amount(candidate)
    raise PaymentHeaderDecodeError("Payment header carries no amount")


def encode_payment_header(data: dict[str, Any]) -> str:
    return base64.b64encode(
        json.dumps(data, separators=(",", ":")).encode("utf-8")
    ).decode("utf-8")


def build_exact_payment_header(
    signer: Signer,
    requirements: PaymentRequirements,
    chain_id: int,
    *,
    now: Optional[int] = None,
) -> str:
    """Sign an ERC-3009 transfer authorization satisfying ``requirements``."""
    now = int(time.time()) if now is None else now
    extra = requirements.extra or {}
    domain = {
        "name": extra.get("name", "USD Coin"),
        "version": extra.get("version", "2"),
        "chainId": chain_id,
        "verifyingContract": Web3.to_checksum_address(requirements.asset),
    }
    nonce = secrets.token_bytes(32)
    authorization = {
        "from": Web3.to_checksum_address(signer.address),
        "to": Web3.to_checksum_address(requirements.pay_to),
        "value": int(requirements.max_amount_required),
        "validAfter": now - 600,
        "validBefore": now + requirements.max_timeout_seconds,
        "nonce": nonce,
    }
    signature = signer.sign_typed_data(
        domain, TRANSFER_WITH_AUTHORIZATION_TYPES, authorization
    )
    return encode_payment_header(
        {
            "x402Version": X402_VERSION,
            "scheme": requirements.scheme,
            "network": requirements.network,
            "payload": {
                "signature": signature,
                "authorization": {
                    "from": authorization["from"],
                    "to": authorization["to"],
                    "value": str(authorization["value"]),
                    "validAfter": str(authorization["validAfter"]),
                    "validBefore": str(authorization["validBefore"]),
                    "nonce": "0x" + nonce.hex(),
                },
            },
        }
    )
