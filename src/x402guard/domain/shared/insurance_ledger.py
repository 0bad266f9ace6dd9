"""Interface shared by the insurer service and its HTTP client.

Both the server-side ``InsuranceService`` and the client-side
``InsurerClient`` implement it, so client flows can run against either.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    # Avoid circular imports by only importing types during type checking
    from ...application.insurance.dtos import (
        ClaimabilityDTO,
        ClaimInsuranceDTO,
        ConfirmServiceDTO,
        InsurancePolicyResponseDTO,
        ProviderStatsDTO,
        PurchaseInsuranceDTO,
    )


class InsuranceLedger(ABC):
    @abstractmethod
    async def purchase_insurance(
        self, dto: "PurchaseInsuranceDTO"
    ) -> "InsurancePolicyResponseDTO":
        pass

    @abstractmethod
    async def confirm_service(
        self, request_commitment: str, dto: "ConfirmServiceDTO"
    ) -> "InsurancePolicyResponseDTO":
        pass

    @abstractmethod
    async def can_claim_insurance(self, request_commitment: str) -> "ClaimabilityDTO":
        pass

    @abstractmethod
    async def claim_insurance(
        self, request_commitment: str, dto: "ClaimInsuranceDTO"
    ) -> "InsurancePolicyResponseDTO":
        pass

    @abstractmethod
    async def get_claim_details(
        self, request_commitment: str
    ) -> "InsurancePolicyResponseDTO":
        pass

    @abstractmethod
    async def get_provider_stats(self, provider: str) -> "ProviderStatsDTO":
        pass
