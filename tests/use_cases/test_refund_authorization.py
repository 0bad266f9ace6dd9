"""Tests for RefundAuthorizationService."""

import pytest

from x402guard.crypto.commitment import compute_request_commitment
from x402guard.crypto.payment_header import encode_payment_header
from x402guard.crypto.typed_data import (
    PAYMENT_RECEIPT_TYPES,
    REFUND_CLAIM_TYPES,
    payment_receipt_message,
    recover_typed_signer,
    refund_claim_message,
)
from x402guard.domain.errors import PaymentHeaderDecodeError

from tests.fixtures.constants import PAID_URL, make_payment_header


def test_voucher_binds_request_and_paid_amount(
    refund_authorization_service, provider_signer, escrow_typed_domain, payment_header
):
    refund = refund_authorization_service.issue("GET", PAID_URL, payment_header)

    assert refund.request_commitment == compute_request_commitment(
        "GET", PAID_URL, payment_header, "60"
    )
    assert refund.amount == 10_000
    signer = recover_typed_signer(
        escrow_typed_domain,
        REFUND_CLAIM_TYPES,
        refund_claim_message(refund.request_commitment, refund.amount),
        refund.signature,
    )
    assert signer == provider_signer.address


def test_voucher_amount_follows_header(refund_authorization_service):
    refund = refund_authorization_service.issue(
        "GET", PAID_URL, make_payment_header(amount=25_000)
    )
    assert refund.amount == 25_000


def test_same_request_gets_same_commitment(refund_authorization_service, payment_header):
    first = refund_authorization_service.issue("GET", PAID_URL, payment_header)
    second = refund_authorization_service.issue("GET", PAID_URL, payment_header)
    assert first.request_commitment == second.request_commitment


def test_query_string_is_part_of_the_commitment(
    refund_authorization_service, payment_header
):
    plain = refund_authorization_service.issue("GET", PAID_URL, payment_header)
    with_query = refund_authorization_service.issue(
        "GET", PAID_URL + "?retry=1", payment_header
    )
    assert plain.request_commitment != with_query.request_commitment


def test_unreadable_header_gets_no_voucher(refund_authorization_service):
    with pytest.raises(PaymentHeaderDecodeError):
        refund_authorization_service.issue("GET", PAID_URL, "bm90IGpzb24=")


def test_bundle_serializes_amount_as_string(refund_authorization_service, payment_header):
    refund = refund_authorization_service.issue("GET", PAID_URL, payment_header)
    assert refund.bundle().model_dump(by_alias=True) == {
        "amount": "10000",
        "signature": refund.signature,
    }


def test_non_ascii_digit_amount_gets_no_voucher(refund_authorization_service):
    header = encode_payment_header({"payload": {"authorization": {"value": "²"}}})

    with pytest.raises(PaymentHeaderDecodeError):
        refund_authorization_service.issue("GET", PAID_URL, header)


def test_receipt_names_payer_and_paid_amount(
    refund_authorization_service, provider_signer, client_signer, escrow_typed_domain,
    payment_header, request_commitment,
):
    receipt = refund_authorization_service.issue_receipt(
        "GET", PAID_URL, payment_header, client_signer.address
    )

    signer = recover_typed_signer(
        escrow_typed_domain,
        PAYMENT_RECEIPT_TYPES,
        payment_receipt_message(request_commitment, 10_000, client_signer.address),
        receipt,
    )
    assert signer == provider_signer.address


def test_no_receipt_for_unreadable_amount(refund_authorization_service, client_signer):
    with pytest.raises(PaymentHeaderDecodeError):
        refund_authorization_service.issue_receipt(
            "GET", PAID_URL, encode_payment_header({}), client_signer.address
        )
