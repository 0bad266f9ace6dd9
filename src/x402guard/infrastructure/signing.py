"""Local-key implementation of the role signer protocol."""

from __future__ import annotations

from typing import Any

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount


class LocalAccountSigner:
    """Signs EIP-712 messages with an in-process secp256k1 key."""

    def __init__(self, private_key: str):
        self._account: LocalAccount = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def account(self) -> LocalAccount:
        return self._account

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        message: dict[str, Any],
    ) -> str:
        signable = encode_typed_data(
            domain_data=domain, message_types=types, message_data=message
        )
        signed = self._account.sign_message(signable)
        sig_hex = signed.signature.hex()
        # HexBytes.hex() includes the 0x prefix only in newer hexbytes releases
        return sig_hex if sig_hex.startswith("0x") else "0x" + sig_hex


def address_from_private_key(private_key: str) -> str:
    return Account.from_key(private_key).address
