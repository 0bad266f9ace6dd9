"""Insurance API routes (insurer service)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from prometheus_client import Counter

from ....application.insurance.dtos import (
    ClaimabilityDTO,
    ClaimInsuranceDTO,
    ConfirmServiceDTO,
    DepositBondDTO,
    InsurancePolicyResponseDTO,
    ProviderStatsDTO,
    PurchaseInsuranceDTO,
)
from ....application.insurance.use_cases.insurance import InsuranceService
from ....domain.errors import PolicyAlreadyExistsError, PolicyNotFoundError
from ..dependencies import get_insurance_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/insurance", tags=["insurance"])


insurance_transitions_total = Counter(
    "insurance_transitions_total",
    "Insurance policy transitions attempted",
    ["transition", "status"],
)


def _rejected(transition: str, e: Exception) -> HTTPException:
    insurance_transitions_total.labels(
        transition=transition, status="client_error"
    ).inc()
    if isinstance(e, PolicyNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PolicyAlreadyExistsError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _failed(transition: str, e: Exception) -> HTTPException:
    insurance_transitions_total.labels(
        transition=transition, status="server_error"
    ).inc()
    logger.exception("Insurance %s failed", transition)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {transition} insurance: {str(e)}",
    )


@router.post(
    "/policies",
    response_model=InsurancePolicyResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def purchase_insurance(
    payload: PurchaseInsuranceDTO,
    service: InsuranceService = Depends(get_insurance_service),
) -> InsurancePolicyResponseDTO:
    try:
        result = await service.purchase_insurance(payload)
    except ValueError as e:
        raise _rejected("purchase", e)
    except Exception as e:
        raise _failed("purchase", e)
    insurance_transitions_total.labels(transition="purchase", status="success").inc()
    return result


@router.post(
    "/policies/{request_commitment}/confirmation",
    response_model=InsurancePolicyResponseDTO,
)
async def confirm_service(
    payload: ConfirmServiceDTO,
    request_commitment: str = Path(..., description="Request commitment (0x hex)"),
    service: InsuranceService = Depends(get_insurance_service),
) -> InsurancePolicyResponseDTO:
    try:
        result = await service.confirm_service(request_commitment, payload)
    except ValueError as e:
        raise _rejected("confirm", e)
    except Exception as e:
        raise _failed("confirm", e)
    insurance_transitions_total.labels(transition="confirm", status="success").inc()
    return result


@router.get(
    "/policies/{request_commitment}/claimable",
    response_model=ClaimabilityDTO,
)
async def can_claim_insurance(
    request_commitment: str = Path(..., description="Request commitment (0x hex)"),
    service: InsuranceService = Depends(get_insurance_service),
) -> ClaimabilityDTO:
    try:
        return await service.can_claim_insurance(request_commitment)
    except PolicyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/policies/{request_commitment}/claim",
    response_model=InsurancePolicyResponseDTO,
)
async def claim_insurance(
    payload: ClaimInsuranceDTO,
    request_commitment: str = Path(..., description="Request commitment (0x hex)"),
    service: InsuranceService = Depends(get_insurance_service),
) -> InsurancePolicyResponseDTO:
    try:
        result = await service.claim_insurance(request_commitment, payload)
    except ValueError as e:
        raise _rejected("claim", e)
    except Exception as e:
        raise _failed("claim", e)
    insurance_transitions_total.labels(transition="claim", status="success").inc()
    return result


@router.get(
    "/policies/{request_commitment}",
    response_model=InsurancePolicyResponseDTO,
)
async def get_claim_details(
    request_commitment: str = Path(..., description="Request commitment (0x hex)"),
    service: InsuranceService = Depends(get_insurance_service),
) -> InsurancePolicyResponseDTO:
    try:
        return await service.get_claim_details(request_commitment)
    except PolicyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/providers/{provider}", response_model=ProviderStatsDTO)
async def get_provider_stats(
    provider: str = Path(..., description="Provider address"),
    service: InsuranceService = Depends(get_insurance_service),
) -> ProviderStatsDTO:
    return await service.get_provider_stats(provider)


@router.post("/providers/{provider}/bond", response_model=ProviderStatsDTO)
async def deposit_bond(
    payload: DepositBondDTO,
    provider: str = Path(..., description="Provider address"),
    service: InsuranceService = Depends(get_insurance_service),
) -> ProviderStatsDTO:
    try:
        return await service.deposit_bond(provider, payload.amount)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
