"""Insurance domain repositories: policies and provider bonds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import InsurancePolicy, InsuranceStatus


class InsurancePolicyRepository(ABC):
    """Repository for insurance policies keyed by request commitment."""

    @abstractmethod
    async def create(self, policy: InsurancePolicy) -> InsurancePolicy:
        """Store a new policy and hold its fee in the provider's premium pool.

        Raises:
            PolicyAlreadyExistsError: A policy already exists for the commitment.
        """
        pass

    @abstractmethod
    async def get(self, request_commitment: str) -> Optional[InsurancePolicy]:
        pass

    @abstractmethod
    async def confirm(
        self, policy: InsurancePolicy, expected_status: InsuranceStatus
    ) -> bool:
        """Store ``policy`` only if the stored status is still ``expected_status``.

        The held fee moves from the premium pool into the provider bond.
        """
        pass

    @abstractmethod
    async def claim(
        self, policy: InsurancePolicy, expected_status: InsuranceStatus
    ) -> bool:
        """Store ``policy`` and pay it out, atomically.

        The insured payment is slashed from the provider bond and the held fee
        is released from the premium pool.

        Returns False when the stored status moved on.

        Raises:
            InsufficientBondError: The provider bond cannot cover the payment.
        """
        pass


class ProviderBondRepository(ABC):
    """Repository for provider bonds held by the insurer."""

    @abstractmethod
    async def get_balance(self, provider: str) -> int:
        pass

    @abstractmethod
    async def deposit(self, provider: str, amount: int) -> int:
        """Add ``amount`` to the bond and return the new balance."""
        pass

    @abstractmethod
    async def get_premiums(self, provider: str) -> int:
        """Fees held for the provider's open policies."""
        pass
