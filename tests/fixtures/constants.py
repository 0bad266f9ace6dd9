"""Fixed keys, addresses and request data shared by the tests."""

from __future__ import annotations

from x402guard.crypto.payment_header import encode_payment_header

# Well-known development keys; never fund them on a live network.
CLIENT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
PROVIDER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
RELAYER_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"
DELEGATE_KEY = "0x7c852118294e51e653712a81e05800f419141751be58f605c371e15141b007a6"

CHAIN_ID = 84532
ESCROW_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
INSURANCE_ADDRESS = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"
ASSET_ADDRESS = "0x036cbd53842c5426634e7929541ec2318f3dcf7e"
PAID_URL = "http://localhost:4000/fail"
PAID_AMOUNT = 10_000


def make_payment_header(amount: int = PAID_AMOUNT, nonce: str = "01") -> str:
    """A minimal "exact" header carrying ``amount`` as the authorized value."""
    return encode_payment_header(
        {
            "x402Version": 1,
            "scheme": "exact",
            "network": "base-sepolia",
            "payload": {
                "signature": "0x" + "11" * 65,
                "authorization": {"value": str(amount), "nonce": "0x" + nonce * 32},
            },
        }
    )
