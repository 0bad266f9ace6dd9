"""Insurance domain entities: InsurancePolicy and its status."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from pydantic import BaseModel

from ..errors import InvalidPolicyTransitionError, UnauthorizedPolicyActorError


class InsuranceStatus(IntEnum):
    PENDING = 0
    CONFIRMED = 1
    CLAIMED = 2


def _same_address(a: Optional[str], b: Optional[str]) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()


class InsurancePolicy(BaseModel):
    """Per-request insurance bought by a client against a provider's bond.

    Transitions return a new policy and never mutate ``self``; persistence
    decides whether the transition wins.
    """

    request_commitment: str
    client: str
    provider: str
    payment_amount: int
    insurance_fee: int
    deadline: int
    delegate: Optional[str] = None
    status: InsuranceStatus = InsuranceStatus.PENDING
    created_at: int
    resolved_at: Optional[int] = None
    payout: int = 0

    @property
    def claim_amount(self) -> int:
        return self.payment_amount + self.insurance_fee

    def time_left(self, now: int) -> int:
        return max(0, self.deadline - now)

    def can_claim(self, now: int) -> bool:
        return self.status == InsuranceStatus.PENDING and now > self.deadline

    def may_claim(self, actor: str) -> bool:
        return _same_address(actor, self.client) or _same_address(actor, self.delegate)

    def confirm(self, by: str, now: int) -> "InsurancePolicy":
        if self.status != InsuranceStatus.PENDING:
            raise InvalidPolicyTransitionError(
                f"Policy is {self.status.name.lower()}, only pending policies can be confirmed"
            )
        if not _same_address(by, self.provider):
            raise UnauthorizedPolicyActorError("Only the insured provider can confirm")
        if now > self.deadline:
            raise InvalidPolicyTransitionError("Confirmation window has closed")
        return self.model_copy(
            update={"status": InsuranceStatus.CONFIRMED, "resolved_at": now}
        )

    def claim(self, by: str, now: int) -> "InsurancePolicy":
        if self.status != InsuranceStatus.PENDING:
            raise InvalidPolicyTransitionError(
                f"Policy is {self.status.name.lower()}, only pending policies can be claimed"
            )
        if not self.may_claim(by):
            raise UnauthorizedPolicyActorError(
                "Only the insured client or its delegate can claim"
            )
        if now <= self.deadline:
            raise InvalidPolicyTransitionError(
                f"Timeout not reached, {self.time_left(now)}s left"
            )
        return self.model_copy(
            update={
                "status": InsuranceStatus.CLAIMED,
                "resolved_at": now,
                "payout": self.claim_amount,
            }
        )
