"""Insurance repositories implemented over a storage abstraction."""

from __future__ import annotations

from typing import Any, Optional

from ...domain.errors import InsufficientBondError, PolicyAlreadyExistsError
from ...domain.insurance.entities import InsurancePolicy, InsuranceStatus
from ...domain.insurance.repositories import (
    InsurancePolicyRepository,
    ProviderBondRepository,
)
from ..storage import KeyValueStore


def _policy_key(request_commitment: str) -> str:
    return f"insurance:policy:{request_commitment.lower()}"


def _bond_key(provider: str) -> str:
    return f"insurance:bond:{provider.lower()}"


def _premium_key(provider: str) -> str:
    return f"insurance:premium:{provider.lower()}"


def _script_code(result: Any) -> tuple[int, Optional[str]]:
    # result is a list-like: [code, payload_or_empty]
    code = int(result[0]) if result and result[0] not in (None, "") else 0
    payload = result[1] if len(result) > 1 and result[1] not in (None, "") else None
    return code, payload


class InsurancePolicyRepositoryImpl(InsurancePolicyRepository):
    """Insurance policy repository backed by KeyValueStore.

    Key layout:
      - insurance:policy:{commitment} -> InsurancePolicy JSON
      - insurance:bond:{provider}     -> integer bond balance
      - insurance:premium:{provider}  -> fees held for open policies
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def create(self, policy: InsurancePolicy) -> InsurancePolicy:
        result = await self.store.run_script(
            "purchase_policy",
            keys=[
                _policy_key(policy.request_commitment),
                _premium_key(policy.provider),
            ],
            args=[policy.model_dump_json(), str(policy.insurance_fee)],
        )
        code, _ = _script_code(result)
        if code != 1:
            raise PolicyAlreadyExistsError(
                "Insurance already purchased for this request"
            )
        return policy

    async def get(self, request_commitment: str) -> Optional[InsurancePolicy]:
        data = await self.store.get(_policy_key(request_commitment))
        if not data:
            return None
        return InsurancePolicy.model_validate_json(data)

    async def confirm(
        self, policy: InsurancePolicy, expected_status: InsuranceStatus
    ) -> bool:
        result = await self.store.run_script(
            "confirm_policy",
            keys=[
                _policy_key(policy.request_commitment),
                _bond_key(policy.provider),
                _premium_key(policy.provider),
            ],
            args=[
                str(int(expected_status)),
                policy.model_dump_json(),
                str(policy.insurance_fee),
            ],
        )
        code, _ = _script_code(result)
        return code == 1

    async def claim(
        self, policy: InsurancePolicy, expected_status: InsuranceStatus
    ) -> bool:
        result = await self.store.run_script(
            "claim_policy",
            keys=[
                _policy_key(policy.request_commitment),
                _bond_key(policy.provider),
                _premium_key(policy.provider),
            ],
            args=[
                str(int(expected_status)),
                policy.model_dump_json(),
                str(policy.payment_amount),
                str(policy.insurance_fee),
            ],
        )
        code, payload = _script_code(result)
        if code == 3:
            raise InsufficientBondError(
                f"Provider bond {payload or 0} cannot cover "
                f"payment {policy.payment_amount}"
            )
        return code == 1


class ProviderBondRepositoryImpl(ProviderBondRepository):
    """Provider bond balances backed by KeyValueStore counters."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get_balance(self, provider: str) -> int:
        raw = await self.store.get(_bond_key(provider))
        return int(raw) if raw else 0

    async def deposit(self, provider: str, amount: int) -> int:
        if amount <= 0:
            raise ValueError("Deposit amount must be positive")
        return await self.store.incrby(_bond_key(provider), amount)

    async def get_premiums(self, provider: str) -> int:
        raw = await self.store.get(_premium_key(provider))
        return int(raw) if raw else 0
