"""Refund voucher issuance for paid requests the provider failed to serve."""

from __future__ import annotations

import logging

from ....crypto.commitment import DEFAULT_COMMITMENT_WINDOW, compute_request_commitment
from ....crypto.payment_header import decode_payment_amount
from ....crypto.typed_data import (
    PAYMENT_RECEIPT_TYPES,
    REFUND_CLAIM_TYPES,
    TypedDataDomain,
    payment_receipt_message,
    refund_claim_message,
    sign_typed,
)
from ....domain.errors import PaymentHeaderDecodeError
from ....domain.shared import Signer
from ..dtos import RefundAuthorizationDTO

logger = logging.getLogger(__name__)


class RefundAuthorizationService:
    """Signs ``RefundClaim`` vouchers bound to the exact inbound request.

    Stateless: nothing is recorded; the escrow enforces single use of a
    commitment at settlement time.
    """

    def __init__(
        self,
        signer: Signer,
        domain: TypedDataDomain,
        window: str = DEFAULT_COMMITMENT_WINDOW,
    ):
        self.signer = signer
        self.domain = domain
        self.window = window

    @property
    def provider_address(self) -> str:
        return self.signer.address

    def issue(self, method: str, url: str, payment_header: str) -> RefundAuthorizationDTO:
        """Authorize a refund of the amount paid through ``payment_header``.

        ``url`` must be the full URL the request arrived on (scheme, host,
        path and query), exactly as the client sent it.

        Raises:
            PaymentHeaderDecodeError: The header carries no readable amount.
        """
        try:
            amount = decode_payment_amount(payment_header)
        except PaymentHeaderDecodeError as e:
            logger.warning("Refusing refund voucher for %s %s: %s", method, url, e)
            raise

        commitment = compute_request_commitment(method, url, payment_header, self.window)
        signature = sign_typed(
            self.signer,
            self.domain,
            REFUND_CLAIM_TYPES,
            refund_claim_message(commitment, amount),
        )
        logger.info(
            "Refund voucher issued: commitment=%s amount=%d", commitment, amount
        )
        return RefundAuthorizationDTO(
            request_commitment=commitment, amount=amount, signature=signature
        )

    def issue_receipt(
        self, method: str, url: str, payment_header: str, payer: str
    ) -> str:
        """Sign a ``PaymentReceipt`` for a settled payment.

        The receipt is what an insurer accepts as proof that ``payer`` really
        paid ``amount`` for the request identified by the commitment.

        Raises:
            PaymentHeaderDecodeError: The header carries no readable amount.
        """
        amount = decode_payment_amount(payment_header)
        commitment = compute_request_commitment(method, url, payment_header, self.window)
        signature = sign_typed(
            self.signer,
            self.domain,
            PAYMENT_RECEIPT_TYPES,
            payment_receipt_message(commitment, amount, payer),
        )
        logger.debug(
            "Payment receipt issued: commitment=%s amount=%d payer=%s",
            commitment,
            amount,
            payer,
        )
        return signature
