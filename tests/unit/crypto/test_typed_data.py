"""Tests for EIP-712 domains and signature verification."""

import pytest

from x402guard.crypto.typed_data import (
    INSURANCE_PURCHASE_TYPES,
    PAYMENT_RECEIPT_TYPES,
    REFUND_CLAIM_TYPES,
    ZERO_ADDRESS,
    escrow_domain,
    insurance_purchase_message,
    payment_receipt_message,
    recover_typed_signer,
    refund_claim_message,
    sign_typed,
    verify_typed_signer,
)
from x402guard.domain.errors import InvalidSignatureError

from tests.fixtures.constants import CHAIN_ID, ESCROW_ADDRESS, INSURANCE_ADDRESS


def test_refund_voucher_recovers_to_provider(
    provider_signer, escrow_typed_domain, request_commitment
):
    message = refund_claim_message(request_commitment, 10_000)
    signature = sign_typed(provider_signer, escrow_typed_domain, REFUND_CLAIM_TYPES, message)

    recovered = recover_typed_signer(
        escrow_typed_domain, REFUND_CLAIM_TYPES, message, signature
    )
    assert recovered == provider_signer.address
    assert signature.startswith("0x") and len(signature) == 132


def test_voucher_for_other_amount_does_not_verify(
    provider_signer, escrow_typed_domain, request_commitment
):
    signature = sign_typed(
        provider_signer,
        escrow_typed_domain,
        REFUND_CLAIM_TYPES,
        refund_claim_message(request_commitment, 10_000),
    )
    with pytest.raises(InvalidSignatureError):
        verify_typed_signer(
            escrow_typed_domain,
            REFUND_CLAIM_TYPES,
            refund_claim_message(request_commitment, 20_000),
            signature,
            provider_signer.address,
        )


@pytest.mark.parametrize(
    "other_domain",
    [
        escrow_domain(CHAIN_ID + 1, ESCROW_ADDRESS),
        escrow_domain(CHAIN_ID, INSURANCE_ADDRESS),
    ],
)
def test_voucher_is_bound_to_chain_and_escrow(
    provider_signer, escrow_typed_domain, request_commitment, other_domain
):
    message = refund_claim_message(request_commitment, 10_000)
    signature = sign_typed(provider_signer, escrow_typed_domain, REFUND_CLAIM_TYPES, message)

    with pytest.raises(InvalidSignatureError):
        verify_typed_signer(
            other_domain, REFUND_CLAIM_TYPES, message, signature, provider_signer.address
        )


def test_malformed_signature_is_rejected(escrow_typed_domain, request_commitment):
    with pytest.raises(InvalidSignatureError):
        recover_typed_signer(
            escrow_typed_domain,
            REFUND_CLAIM_TYPES,
            refund_claim_message(request_commitment, 1),
            "0x1234",
        )


def test_purchase_without_delegate_signs_zero_address(
    client_signer, insurance_typed_domain, request_commitment
):
    message = insurance_purchase_message(
        request_commitment, client_signer.address, 10_000, 100, 1
    )
    assert message["delegate"] == ZERO_ADDRESS

    signature = sign_typed(
        client_signer, insurance_typed_domain, INSURANCE_PURCHASE_TYPES, message
    )
    verify_typed_signer(
        insurance_typed_domain,
        INSURANCE_PURCHASE_TYPES,
        message,
        signature,
        client_signer.address,
    )


def test_refund_voucher_is_not_a_payment_receipt(
    provider_signer, client_signer, escrow_typed_domain, request_commitment
):
    voucher = sign_typed(
        provider_signer,
        escrow_typed_domain,
        REFUND_CLAIM_TYPES,
        refund_claim_message(request_commitment, 10_000),
    )

    with pytest.raises(InvalidSignatureError):
        verify_typed_signer(
            escrow_typed_domain,
            PAYMENT_RECEIPT_TYPES,
            payment_receipt_message(request_commitment, 10_000, client_signer.address),
            voucher,
            provider_signer.address,
        )
