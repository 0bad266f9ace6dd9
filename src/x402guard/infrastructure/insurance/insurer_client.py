from __future__ import annotations

from types import TracebackType
from typing import Optional, Type

import httpx

from ...application.insurance.dtos import (
    ClaimabilityDTO,
    ClaimInsuranceDTO,
    ConfirmServiceDTO,
    DepositBondDTO,
    InsurancePolicyResponseDTO,
    ProviderStatsDTO,
    PurchaseInsuranceDTO,
)
from ...domain.shared import InsuranceLedger
from ..http.http_client import AsyncHttpClient


class InsurerClient(InsuranceLedger):
    """Asynchronous client for the insurer HTTP API.

    Mirrors ``InsuranceService`` so client flows can target either. Rejections
    surface as ``httpx.HTTPStatusError``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)

    async def purchase_insurance(
        self, dto: PurchaseInsuranceDTO
    ) -> InsurancePolicyResponseDTO:
        resp = await self._http.post("/insurance/policies", json=dto.model_dump())
        return InsurancePolicyResponseDTO.model_validate(resp.json())

    async def confirm_service(
        self, request_commitment: str, dto: ConfirmServiceDTO
    ) -> InsurancePolicyResponseDTO:
        path = f"/insurance/policies/{request_commitment}/confirmation"
        resp = await self._http.post(path, json=dto.model_dump())
        return InsurancePolicyResponseDTO.model_validate(resp.json())

    async def can_claim_insurance(self, request_commitment: str) -> ClaimabilityDTO:
        resp = await self._http.get(
            f"/insurance/policies/{request_commitment}/claimable"
        )
        return ClaimabilityDTO.model_validate(resp.json())

    async def claim_insurance(
        self, request_commitment: str, dto: ClaimInsuranceDTO
    ) -> InsurancePolicyResponseDTO:
        path = f"/insurance/policies/{request_commitment}/claim"
        resp = await self._http.post(path, json=dto.model_dump())
        return InsurancePolicyResponseDTO.model_validate(resp.json())

    async def get_claim_details(
        self, request_commitment: str
    ) -> InsurancePolicyResponseDTO:
        resp = await self._http.get(f"/insurance/policies/{request_commitment}")
        return InsurancePolicyResponseDTO.model_validate(resp.json())

    async def get_provider_stats(self, provider: str) -> ProviderStatsDTO:
        resp = await self._http.get(f"/insurance/providers/{provider}")
        return ProviderStatsDTO.model_validate(resp.json())

    async def deposit_bond(self, provider: str, amount: int) -> ProviderStatsDTO:
        resp = await self._http.post(
            f"/insurance/providers/{provider}/bond",
            json=DepositBondDTO(amount=amount).model_dump(),
        )
        return ProviderStatsDTO.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "InsurerClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
