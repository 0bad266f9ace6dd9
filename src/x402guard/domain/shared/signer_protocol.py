"""Protocol interface for role signing capabilities.

Client, provider and relay each hold a signing capability. Services accept
any object satisfying this protocol so that tests can substitute deterministic
signers and deployments can plug in remote key custody.
"""

from __future__ import annotations

from typing import Any, Protocol


class Signer(Protocol):
    """A role able to produce EIP-712 signatures."""

    @property
    def address(self) -> str:
        """Checksummed address of the signing key."""
        ...

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        message: dict[str, Any],
    ) -> str:
        """Sign an EIP-712 message and return the 0x-prefixed 65-byte signature."""
        ...
