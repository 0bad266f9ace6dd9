"""Data Transfer Objects for the insurance application layer."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ...domain.insurance.entities import InsurancePolicy, InsuranceStatus

# Amounts stay exactly representable as Lua numbers inside the store scripts
MAX_AMOUNT_UNITS = 2**52


class PurchaseInsuranceDTO(BaseModel):
    """Client-signed request to insure one paid request.

    ``payment_receipt`` is the provider's ``PaymentReceipt`` signature over
    the commitment, amount and payer, made under the escrow domain of
    ``escrow_address``. It proves the insured payment took place.
    """

    request_commitment: str
    client: str
    provider: str
    payment_amount: int = Field(..., le=MAX_AMOUNT_UNITS)
    insurance_fee: int = Field(..., le=MAX_AMOUNT_UNITS)
    timeout_minutes: int = 1
    delegate: Optional[str] = None
    client_signature: str
    escrow_address: str
    payment_receipt: str


class ConfirmServiceDTO(BaseModel):
    """Provider attests the insured request was served."""

    provider: str
    provider_signature: str


class ClaimInsuranceDTO(BaseModel):
    """Client (or delegate) claims the payout after the deadline."""

    claimer: str
    claimer_signature: str


class DepositBondDTO(BaseModel):
    amount: int = Field(..., gt=0, le=MAX_AMOUNT_UNITS)


class InsurancePolicyResponseDTO(BaseModel):
    """Policy view returned by every insurance operation."""

    request_commitment: str
    client: str
    provider: str
    payment_amount: int
    insurance_fee: int
    deadline: int
    delegate: Optional[str] = None
    status: InsuranceStatus
    status_name: str
    time_left: int
    created_at: int
    resolved_at: Optional[int] = None
    payout: int = 0

    @classmethod
    def from_policy(cls, policy: InsurancePolicy, now: int) -> "InsurancePolicyResponseDTO":
        return cls(
            request_commitment=policy.request_commitment,
            client=policy.client,
            provider=policy.provider,
            payment_amount=policy.payment_amount,
            insurance_fee=policy.insurance_fee,
            deadline=policy.deadline,
            delegate=policy.delegate,
            status=policy.status,
            status_name=policy.status.name.capitalize(),
            time_left=policy.time_left(now),
            created_at=policy.created_at,
            resolved_at=policy.resolved_at,
            payout=policy.payout,
        )


class ClaimabilityDTO(BaseModel):
    request_commitment: str
    can_claim: bool
    time_left: int


class ProviderStatsDTO(BaseModel):
    provider: str
    bond_balance: int
    min_bond: int
    is_healthy: bool
    # Fees of open policies, held until each policy resolves
    premiums_held: int = 0
