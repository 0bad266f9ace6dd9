"""Demo client: pay for a resource, then recover the money when it fails.

    x402guard-client refund      # GET /fail, verify the voucher, claim it
    x402guard-client insurance   # GET /premium insured, claim after timeout
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from .client.insurance import InsuranceClaimFlow
from .client.receipts import InsuranceReceiptStore, RefundReceiptStore
from .client.refund import RefundClaimClient
from .crypto.commitment import compute_request_commitment
from .crypto.payment_header import decode_payment_amount
from .crypto.typed_data import insurance_domain
from .domain.errors import PaymentRequiredError
from .envs.client_env import Settings, get_settings
from .infrastructure.escrow.web3_escrow_gateway import (
    Web3EscrowGatewayFactory,
    create_async_web3,
)
from .infrastructure.insurance.insurer_client import InsurerClient
from .infrastructure.provider.provider_client import ProviderClient
from .infrastructure.relay.relay_client import RelayClient
from .infrastructure.signing import LocalAccountSigner

logger = logging.getLogger("x402guard.client")

# Grace period after the insurance deadline before the first claim attempt
CLAIM_GRACE_SECONDS = 5


async def run_refund(settings: Settings, signer: LocalAccountSigner) -> None:
    relay: Optional[RelayClient] = (
        RelayClient(settings.relay_base_url) if settings.relay_base_url else None
    )
    async with ProviderClient(
        settings.provider_base_url, signer, settings.chain_id
    ) as provider:
        escrow_info = await provider.get_escrow()
        print(f"Provider: {escrow_info.provider_address}")
        print(f"Escrow:   {escrow_info.address}")

        factory = Web3EscrowGatewayFactory(
            create_async_web3(settings.rpc_url), signer.account, settings.chain_id
        )
        claims = RefundClaimClient(
            signer,
            factory.for_escrow(escrow_info.address),
            settings.chain_id,
            relay=relay,
            receipts=RefundReceiptStore(settings.receipts_dir),
            provider_address=escrow_info.provider_address,
            window=settings.commitment_window,
        )
        health = await claims.check_escrow_health()
        print(f"Escrow bond: {health.bond_balance} (min {health.min_bond})")

        paid = await provider.get_paid("/fail")
        print(f"Paid request answered {paid.status_code}: {paid.body.get('message')}")
        try:
            outcome = await claims.claim_from_response(paid, use_relay=relay is not None)
        finally:
            if relay is not None:
                await relay.aclose()

    if outcome is None:
        print("Service succeeded; nothing to refund")
    elif outcome.already_settled:
        print(f"Refund for {outcome.request_commitment} was already settled")
    else:
        via = "relay" if outcome.via_relay else "direct claim"
        print(f"Refunded {outcome.amount} via {via}: tx {outcome.tx_hash}")


async def run_insurance(settings: Settings, signer: LocalAccountSigner) -> None:
    if not (settings.insurer_base_url and settings.insurance_contract_address):
        raise ValueError(
            "INSURER_BASE_URL and INSURANCE_CONTRACT_ADDRESS are required for insurance"
        )
    async with ProviderClient(
        settings.provider_base_url, signer, settings.chain_id
    ) as provider, InsurerClient(settings.insurer_base_url) as insurer:
        escrow_info = await provider.get_escrow()
        flow = InsuranceClaimFlow(
            insurer,
            signer,
            insurance_domain(settings.chain_id, settings.insurance_contract_address),
            receipts=InsuranceReceiptStore(settings.receipts_dir),
            fee_percentage=settings.insurance_fee_percentage,
            timeout_minutes=settings.insurance_timeout_minutes,
        )
        stats = await flow.check_provider(escrow_info.provider_address)
        print(f"Provider bond: {stats.bond_balance} (min {stats.min_bond})")

        paid = await provider.get_paid("/premium")
        if not paid.payment_receipt:
            raise PaymentRequiredError("Provider sent no payment receipt to insure")
        commitment = compute_request_commitment(
            paid.method, paid.url, paid.payment_header, settings.commitment_window
        )
        policy = await flow.purchase(
            commitment,
            escrow_info.provider_address,
            decode_payment_amount(paid.payment_header),
            escrow_info.address,
            paid.payment_receipt,
        )
        print(f"Insured {commitment}: fee {policy.insurance_fee}, deadline {policy.deadline}")

        await asyncio.sleep(policy.time_left + CLAIM_GRACE_SECONDS)
        claimable = await flow.can_claim(commitment)
        if not claimable.can_claim:
            details = await insurer.get_claim_details(commitment)
            print(f"Insurance not claimable: policy is {details.status_name}")
            return
        claimed = await flow.claim(commitment)
        print(f"Insurance paid out {claimed.payout}")


def main() -> None:
    parser = argparse.ArgumentParser(description="x402guard demo client")
    parser.add_argument("scenario", choices=["refund", "insurance"])
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    signer = LocalAccountSigner(settings.client_private_key)
    print(f"Client address: {signer.address}")

    if args.scenario == "refund":
        asyncio.run(run_refund(settings, signer))
    else:
        asyncio.run(run_insurance(settings, signer))


if __name__ == "__main__":
    main()
