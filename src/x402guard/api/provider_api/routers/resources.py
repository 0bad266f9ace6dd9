"""Provider routes: paid resources plus escrow discovery."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from prometheus_client import Counter

from ....application.provider.dtos import (
    EscrowInfoDTO,
    PremiumContentDTO,
    ProviderHealthDTO,
    ServiceFailureResponseDTO,
)
from ....application.provider.use_cases.refund_authorization import (
    RefundAuthorizationService,
)
from ....domain.errors import PaymentHeaderDecodeError
from ....domain.escrow.gateway import EscrowGateway
from ....envs.provider_env import Settings
from ..dependencies import (
    get_escrow_gateway,
    get_refund_authorization_service,
    get_settings_dependency,
)
from ..payments import require_payment

logger = logging.getLogger(__name__)

router = APIRouter(tags=["provider"])


refund_authorizations_total = Counter(
    "refund_authorizations_total",
    "Refund vouchers issued for paid requests that failed",
    ["status"],
)


@router.get("/escrow", response_model=EscrowInfoDTO, response_model_by_alias=True)
async def get_escrow(
    settings: Settings = Depends(get_settings_dependency),
    service: RefundAuthorizationService = Depends(get_refund_authorization_service),
) -> EscrowInfoDTO:
    """Escrow that backs this provider's refund vouchers."""
    return EscrowInfoDTO(
        address=settings.bond_escrow_address,
        provider_address=service.provider_address,
    )


@router.get(
    "/premium", response_model=PremiumContentDTO, response_model_by_alias=True
)
async def get_premium(
    payment_header: str = Depends(require_payment),
) -> PremiumContentDTO:
    return PremiumContentDTO(
        message="Premium content delivered!",
        data={
            "secret": "This is valuable paid content",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.get(
    "/fail",
    response_model=ServiceFailureResponseDTO,
    response_model_by_alias=True,
)
async def get_failing_resource(
    request: Request,
    payment_header: str = Depends(require_payment),
    service: RefundAuthorizationService = Depends(get_refund_authorization_service),
) -> ServiceFailureResponseDTO:
    """Paid resource that always fails after settlement.

    Answers 200: the payment went through, so the failure is reported in the
    body together with a refund voucher for the amount paid.
    """
    try:
        refund = service.issue(request.method, str(request.url), payment_header)
    except PaymentHeaderDecodeError as e:
        refund_authorizations_total.labels(status="client_error").inc()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        refund_authorizations_total.labels(status="server_error").inc()
        logger.exception("Failed to sign refund voucher")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to sign refund: {str(e)}",
        )
    refund_authorizations_total.labels(status="success").inc()
    return ServiceFailureResponseDTO(
        request_commitment=refund.request_commitment,
        refund=refund.bundle(),
    )


@router.get("/health", response_model=ProviderHealthDTO, response_model_by_alias=True)
async def health(
    settings: Settings = Depends(get_settings_dependency),
    escrow: EscrowGateway = Depends(get_escrow_gateway),
) -> ProviderHealthDTO:
    try:
        escrow_healthy = await escrow.is_healthy()
    except Exception as e:
        logger.warning("Escrow health check failed: %s", e)
        escrow_healthy = False
    return ProviderHealthDTO(
        escrow_address=settings.bond_escrow_address,
        escrow_healthy=escrow_healthy,
    )
