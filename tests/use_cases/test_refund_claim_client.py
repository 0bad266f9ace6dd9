"""Tests for the client side of the refund protocol."""

import pytest

from x402guard.application.provider.dtos import ServiceFailureResponseDTO
from x402guard.application.provider.use_cases.refund_authorization import (
    RefundAuthorizationService,
)
from x402guard.domain.errors import (
    CommitmentMismatchError,
    EscrowUnhealthyError,
    InvalidSignatureError,
)
from x402guard.infrastructure.provider.provider_client import PaidResponse

from tests.fixtures.constants import PAID_URL, make_payment_header


def _offer(service: RefundAuthorizationService, header: str, url: str = PAID_URL):
    refund = service.issue("GET", url, header)
    return ServiceFailureResponseDTO(
        request_commitment=refund.request_commitment, refund=refund.bundle()
    )


async def test_direct_claim_refunds_client_and_saves_receipt(
    refund_client, refund_authorization_service, escrow, client_signer,
    refund_receipts, payment_header,
):
    offer = _offer(refund_authorization_service, payment_header)

    outcome = await refund_client.claim_refund("GET", PAID_URL, payment_header, offer)

    assert outcome.tx_hash is not None
    assert outcome.via_relay is False
    assert escrow.balance_of(client_signer.address) == 10_000
    receipt = refund_receipts.load(offer.request_commitment)
    assert receipt["amount"] == "10000"
    assert receipt["requestCommitment"] == offer.request_commitment


async def test_second_direct_claim_reports_already_settled(
    refund_client, refund_authorization_service, escrow, client_signer, payment_header
):
    offer = _offer(refund_authorization_service, payment_header)
    await refund_client.claim_refund("GET", PAID_URL, payment_header, offer)

    outcome = await refund_client.claim_refund("GET", PAID_URL, payment_header, offer)

    assert outcome.already_settled is True
    assert escrow.balance_of(client_signer.address) == 10_000


async def test_tampered_commitment_aborts_claim(
    refund_client, refund_authorization_service, escrow, payment_header
):
    # Voucher issued for a different URL than the one the client requested
    offer = _offer(
        refund_authorization_service, payment_header, url=PAID_URL + "?other=1"
    )

    with pytest.raises(CommitmentMismatchError):
        await refund_client.claim_refund("GET", PAID_URL, payment_header, offer)

    assert escrow.sent == []


async def test_voucher_from_wrong_key_is_rejected_before_claim(
    refund_client, delegate_signer, escrow_typed_domain, escrow, payment_header
):
    impostor = RefundAuthorizationService(delegate_signer, escrow_typed_domain)
    offer = _offer(impostor, payment_header)

    with pytest.raises(InvalidSignatureError):
        await refund_client.claim_refund("GET", PAID_URL, payment_header, offer)

    assert escrow.sent == []


async def test_relay_claim_is_gasless_for_client(
    refund_client, refund_authorization_service, escrow, client_signer,
    relay_stats, payment_header,
):
    offer = _offer(refund_authorization_service, payment_header)

    outcome = await refund_client.claim_refund_via_relay(
        "GET", PAID_URL, payment_header, offer
    )

    assert outcome.via_relay is True
    assert outcome.block_number is not None
    assert escrow.sent == ["metaClaimRefund"]
    assert escrow.balance_of(client_signer.address) == 10_000
    assert (await relay_stats.snapshot()).successful_relays == 1


async def test_relay_claim_of_settled_request_reports_already_settled(
    refund_client, refund_authorization_service, payment_header
):
    offer = _offer(refund_authorization_service, payment_header)
    await refund_client.claim_refund("GET", PAID_URL, payment_header, offer)

    outcome = await refund_client.claim_refund_via_relay(
        "GET", PAID_URL, payment_header, offer
    )

    assert outcome.already_settled is True
    assert outcome.via_relay is True


async def test_unhealthy_escrow_blocks_paid_requests(refund_client, escrow):
    escrow.bond_balance = 0

    with pytest.raises(EscrowUnhealthyError) as exc_info:
        await refund_client.check_escrow_health()

    assert exc_info.value.min_bond == 100_000


async def test_successful_response_carries_no_refund(refund_client, payment_header):
    paid = PaidResponse(
        method="GET",
        url=PAID_URL,
        payment_header=payment_header,
        status_code=200,
        body={"success": True, "message": "Premium content delivered!"},
    )
    assert await refund_client.claim_from_response(paid) is None


async def test_failure_response_is_claimed_from_its_body(
    refund_client, refund_authorization_service, escrow, client_signer
):
    header = make_payment_header(amount=7_500, nonce="02")
    offer = _offer(refund_authorization_service, header)
    paid = PaidResponse(
        method="GET",
        url=PAID_URL,
        payment_header=header,
        status_code=200,
        body=offer.model_dump(by_alias=True),
    )

    outcome = await refund_client.claim_from_response(paid, use_relay=True)

    assert outcome is not None and outcome.amount == 7_500
    assert escrow.balance_of(client_signer.address) == 7_500


async def test_timeout_refund_through_relay(
    refund_client, escrow, client_signer, request_commitment, clock
):
    escrow.escrow_payment(request_commitment, client_signer.address, 10_000, clock() + 60)
    clock.advance(61)

    outcome = await refund_client.claim_timeout_refund_via_relay(request_commitment)

    assert outcome.amount == 10_000
    assert escrow.sent == ["claimTimeoutRefund"]
    assert escrow.balance_of(client_signer.address) == 10_000
