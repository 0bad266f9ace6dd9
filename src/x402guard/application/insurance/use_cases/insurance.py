"""Insurance use cases: purchase, confirm, claim and queries."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ....crypto.typed_data import (
    INSURANCE_CLAIM_TYPES,
    INSURANCE_PURCHASE_TYPES,
    PAYMENT_RECEIPT_TYPES,
    SERVICE_CONFIRMATION_TYPES,
    TypedDataDomain,
    commitment_only_message,
    escrow_domain,
    insurance_purchase_message,
    payment_receipt_message,
    verify_typed_signer,
)
from ....domain.errors import (
    InvalidPolicyTransitionError,
    PolicyNotFoundError,
)
from ....domain.insurance.entities import InsurancePolicy, InsuranceStatus
from ....domain.insurance.repositories import (
    InsurancePolicyRepository,
    ProviderBondRepository,
)
from ....domain.shared import InsuranceLedger
from ..dtos import (
    ClaimabilityDTO,
    ClaimInsuranceDTO,
    ConfirmServiceDTO,
    InsurancePolicyResponseDTO,
    ProviderStatsDTO,
    PurchaseInsuranceDTO,
)

logger = logging.getLogger(__name__)


class InsuranceService(InsuranceLedger):
    """Hosts the per-request insurance state machine.

    Every state change is authorized by an EIP-712 signature under the
    insurance domain: the client signs purchases, the provider signs
    confirmations and the client (or the delegate named at purchase) signs
    claims.
    """

    def __init__(
        self,
        policy_repo: InsurancePolicyRepository,
        bond_repo: ProviderBondRepository,
        domain: TypedDataDomain,
        min_bond: int,
        now: Callable[[], int] = lambda: int(time.time()),
    ):
        self.policy_repo = policy_repo
        self.bond_repo = bond_repo
        self.domain = domain
        self.min_bond = min_bond
        self._now = now

    async def _require_policy(self, request_commitment: str) -> InsurancePolicy:
        policy = await self.policy_repo.get(request_commitment)
        if policy is None:
            raise PolicyNotFoundError("No insurance for this request")
        return policy

    async def purchase_insurance(
        self, dto: PurchaseInsuranceDTO
    ) -> InsurancePolicyResponseDTO:
        """Open a policy for a paid request and take its fee into the premium pool.

        Both the client's purchase signature and the provider's payment
        receipt must verify, so nobody can insure a payment that never
        happened and claim it against the provider's bond.

        Raises:
            ValueError: Non-positive amount, fee or timeout.
            InvalidSignatureError: Either signature does not verify.
            PolicyAlreadyExistsError: The request is already insured.
        """
        if dto.payment_amount <= 0:
            raise ValueError("Payment amount must be positive")
        if dto.insurance_fee <= 0:
            raise ValueError("Insurance fee must be positive")
        if dto.timeout_minutes <= 0:
            raise ValueError("Timeout must be positive")

        verify_typed_signer(
            self.domain,
            INSURANCE_PURCHASE_TYPES,
            insurance_purchase_message(
                dto.request_commitment,
                dto.provider,
                dto.payment_amount,
                dto.insurance_fee,
                dto.timeout_minutes,
                dto.delegate,
            ),
            dto.client_signature,
            dto.client,
        )
        verify_typed_signer(
            escrow_domain(self.domain.chain_id, dto.escrow_address),
            PAYMENT_RECEIPT_TYPES,
            payment_receipt_message(
                dto.request_commitment, dto.payment_amount, dto.client
            ),
            dto.payment_receipt,
            dto.provider,
        )

        now = self._now()
        policy = InsurancePolicy(
            request_commitment=dto.request_commitment,
            client=dto.client,
            provider=dto.provider,
            payment_amount=dto.payment_amount,
            insurance_fee=dto.insurance_fee,
            deadline=now + dto.timeout_minutes * 60,
            delegate=dto.delegate,
            created_at=now,
        )
        await self.policy_repo.create(policy)
        logger.info(
            "Insurance purchased for %s: amount=%d fee=%d deadline=%d",
            policy.request_commitment,
            policy.payment_amount,
            policy.insurance_fee,
            policy.deadline,
        )
        return InsurancePolicyResponseDTO.from_policy(policy, now)

    async def confirm_service(
        self, request_commitment: str, dto: ConfirmServiceDTO
    ) -> InsurancePolicyResponseDTO:
        policy = await self._require_policy(request_commitment)
        verify_typed_signer(
            self.domain,
            SERVICE_CONFIRMATION_TYPES,
            commitment_only_message(request_commitment),
            dto.provider_signature,
            dto.provider,
        )

        now = self._now()
        confirmed = policy.confirm(dto.provider, now)
        if not await self.policy_repo.confirm(confirmed, InsuranceStatus.PENDING):
            raise InvalidPolicyTransitionError("Policy was resolved concurrently")
        logger.info("Service confirmed for %s", request_commitment)
        return InsurancePolicyResponseDTO.from_policy(confirmed, now)

    async def can_claim_insurance(self, request_commitment: str) -> ClaimabilityDTO:
        policy = await self._require_policy(request_commitment)
        now = self._now()
        return ClaimabilityDTO(
            request_commitment=policy.request_commitment,
            can_claim=policy.can_claim(now),
            time_left=policy.time_left(now),
        )

    async def claim_insurance(
        self, request_commitment: str, dto: ClaimInsuranceDTO
    ) -> InsurancePolicyResponseDTO:
        policy = await self._require_policy(request_commitment)
        verify_typed_signer(
            self.domain,
            INSURANCE_CLAIM_TYPES,
            commitment_only_message(request_commitment),
            dto.claimer_signature,
            dto.claimer,
        )

        now = self._now()
        claimed = policy.claim(dto.claimer, now)
        if not await self.policy_repo.claim(claimed, InsuranceStatus.PENDING):
            raise InvalidPolicyTransitionError("Policy was resolved concurrently")
        logger.info(
            "Insurance claimed for %s: payout=%d (%d slashed from %s)",
            request_commitment,
            claimed.payout,
            claimed.payment_amount,
            claimed.provider,
        )
        return InsurancePolicyResponseDTO.from_policy(claimed, now)

    async def get_claim_details(
        self, request_commitment: str
    ) -> InsurancePolicyResponseDTO:
        policy = await self._require_policy(request_commitment)
        return InsurancePolicyResponseDTO.from_policy(policy, self._now())

    async def get_provider_stats(self, provider: str) -> ProviderStatsDTO:
        balance = await self.bond_repo.get_balance(provider)
        return ProviderStatsDTO(
            provider=provider,
            bond_balance=balance,
            min_bond=self.min_bond,
            is_healthy=balance >= self.min_bond,
            premiums_held=await self.bond_repo.get_premiums(provider),
        )

    async def deposit_bond(self, provider: str, amount: int) -> ProviderStatsDTO:
        await self.bond_repo.deposit(provider, amount)
        logger.info("Bond deposit of %d for %s", amount, provider)
        return await self.get_provider_stats(provider)
