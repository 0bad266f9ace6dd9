"""Story: the provider serves an insured request and earns the fee."""

import pytest

from x402guard.client.insurance import InsuranceClaimFlow, confirm_service
from x402guard.domain.errors import (
    InvalidPolicyTransitionError,
    UnauthorizedPolicyActorError,
)
from x402guard.domain.insurance.entities import InsuranceStatus

from tests.fixtures.constants import ESCROW_ADDRESS, PAID_URL


async def test_provider_confirms_insured_request(
    insurance_service, bond_repository, refund_authorization_service, client_signer,
    provider_signer, insurance_typed_domain, payment_header, request_commitment, clock,
):
    await bond_repository.deposit(provider_signer.address, 100_000)
    flow = InsuranceClaimFlow(insurance_service, client_signer, insurance_typed_domain)
    receipt = refund_authorization_service.issue_receipt(
        "GET", PAID_URL, payment_header, client_signer.address
    )
    await flow.purchase(
        request_commitment, provider_signer.address, 10_000, ESCROW_ADDRESS, receipt
    )

    confirmed = await confirm_service(
        insurance_service, provider_signer, insurance_typed_domain, request_commitment
    )

    assert confirmed.status == InsuranceStatus.CONFIRMED
    assert confirmed.resolved_at == clock()
    stats = await insurance_service.get_provider_stats(provider_signer.address)
    assert (stats.bond_balance, stats.premiums_held) == (100_000 + 100, 0)

    clock.advance(61)
    assert (await flow.can_claim(request_commitment)).can_claim is False
    with pytest.raises(InvalidPolicyTransitionError):
        await flow.claim(request_commitment)


async def test_only_the_insured_provider_can_confirm(
    insurance_service, refund_authorization_service, client_signer, provider_signer,
    delegate_signer, insurance_typed_domain, payment_header, request_commitment,
):
    flow = InsuranceClaimFlow(insurance_service, client_signer, insurance_typed_domain)
    receipt = refund_authorization_service.issue_receipt(
        "GET", PAID_URL, payment_header, client_signer.address
    )
    await flow.purchase(
        request_commitment, provider_signer.address, 10_000, ESCROW_ADDRESS, receipt
    )

    with pytest.raises(UnauthorizedPolicyActorError):
        await confirm_service(
            insurance_service, delegate_signer, insurance_typed_domain, request_commitment
        )

    details = await insurance_service.get_claim_details(request_commitment)
    assert details.status == InsuranceStatus.PENDING
