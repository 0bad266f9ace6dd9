"""Client side of per-request insurance: buy, watch, claim."""

from __future__ import annotations

import logging
from typing import Optional

from ..application.insurance.dtos import (
    ClaimabilityDTO,
    ClaimInsuranceDTO,
    ConfirmServiceDTO,
    InsurancePolicyResponseDTO,
    ProviderStatsDTO,
    PurchaseInsuranceDTO,
)
from ..crypto.typed_data import (
    INSURANCE_CLAIM_TYPES,
    INSURANCE_PURCHASE_TYPES,
    SERVICE_CONFIRMATION_TYPES,
    TypedDataDomain,
    commitment_only_message,
    insurance_purchase_message,
    sign_typed,
)
from ..domain.shared import InsuranceLedger, Signer
from .receipts import InsuranceReceiptStore

logger = logging.getLogger(__name__)


def insurance_fee_for(payment_amount: int, fee_percentage: float) -> int:
    """Fee in token units; ``fee_percentage`` of 1 means 1% of the payment.

    Never less than one unit, so small payments are not insured for free.
    """
    return max(1, payment_amount * int(round(fee_percentage * 100)) // 10000)


class InsuranceClaimFlow:
    """Buys insurance for a paid request and claims it if the provider never confirms.

    Polling cadence is left to the caller: check ``can_claim`` and call
    ``claim`` once it reports true.
    """

    def __init__(
        self,
        ledger: InsuranceLedger,
        signer: Signer,
        domain: TypedDataDomain,
        receipts: Optional[InsuranceReceiptStore] = None,
        fee_percentage: float = 1.0,
        timeout_minutes: int = 1,
    ):
        self.ledger = ledger
        self.signer = signer
        self.domain = domain
        self.receipts = receipts
        self.fee_percentage = fee_percentage
        self.timeout_minutes = timeout_minutes

    async def check_provider(self, provider: str) -> ProviderStatsDTO:
        stats = await self.ledger.get_provider_stats(provider)
        if not stats.is_healthy:
            logger.warning(
                "Provider %s bond is unhealthy (%d < %d); claims may not be honored",
                provider,
                stats.bond_balance,
                stats.min_bond,
            )
        return stats

    async def purchase(
        self,
        request_commitment: str,
        provider: str,
        payment_amount: int,
        escrow_address: str,
        payment_receipt: str,
        delegate: Optional[str] = None,
    ) -> InsurancePolicyResponseDTO:
        """Insure a paid request.

        ``payment_receipt`` is the provider's X-PAYMENT-RECEIPT signature for
        the payment, made under the escrow at ``escrow_address``.
        """
        fee = insurance_fee_for(payment_amount, self.fee_percentage)
        signature = sign_typed(
            self.signer,
            self.domain,
            INSURANCE_PURCHASE_TYPES,
            insurance_purchase_message(
                request_commitment,
                provider,
                payment_amount,
                fee,
                self.timeout_minutes,
                delegate,
            ),
        )
        policy = await self.ledger.purchase_insurance(
            PurchaseInsuranceDTO(
                request_commitment=request_commitment,
                client=self.signer.address,
                provider=provider,
                payment_amount=payment_amount,
                insurance_fee=fee,
                timeout_minutes=self.timeout_minutes,
                delegate=delegate,
                client_signature=signature,
                escrow_address=escrow_address,
                payment_receipt=payment_receipt,
            )
        )
        if self.receipts is not None:
            path = self.receipts.save(
                request_commitment, payment_amount, fee, provider, self.timeout_minutes
            )
            logger.info("Insurance receipt saved: %s", path)
        return policy

    async def can_claim(self, request_commitment: str) -> ClaimabilityDTO:
        return await self.ledger.can_claim_insurance(request_commitment)

    async def claim(self, request_commitment: str) -> InsurancePolicyResponseDTO:
        signature = sign_typed(
            self.signer,
            self.domain,
            INSURANCE_CLAIM_TYPES,
            commitment_only_message(request_commitment),
        )
        policy = await self.ledger.claim_insurance(
            request_commitment,
            ClaimInsuranceDTO(claimer=self.signer.address, claimer_signature=signature),
        )
        logger.info("Insurance payout of %d received for %s", policy.payout, request_commitment)
        return policy


async def confirm_service(
    ledger: InsuranceLedger,
    provider_signer: Signer,
    domain: TypedDataDomain,
    request_commitment: str,
) -> InsurancePolicyResponseDTO:
    """Provider attests an insured request was served, closing the claim window."""
    signature = sign_typed(
        provider_signer,
        domain,
        SERVICE_CONFIRMATION_TYPES,
        commitment_only_message(request_commitment),
    )
    return await ledger.confirm_service(
        request_commitment,
        ConfirmServiceDTO(
            provider=provider_signer.address, provider_signature=signature
        ),
    )
