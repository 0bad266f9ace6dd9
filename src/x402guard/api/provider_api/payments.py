"""x402 payment gate for paid provider routes.

A route that depends on ``require_payment`` only runs once the facilitator
has verified and settled the request's X-PAYMENT header.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from ...application.provider.use_cases.refund_authorization import (
    RefundAuthorizationService,
)
from ...crypto.payment_header import (
    PAYMENT_RECEIPT_HEADER,
    X402_VERSION,
    PaymentRequirements,
    encode_payment_header,
)
from ...domain.errors import PaymentHeaderDecodeError, PaymentRequiredError
from ...envs.provider_env import Settings
from ...infrastructure.facilitator.facilitator_client import FacilitatorClient
from ...infrastructure.signing import LocalAccountSigner
from .dependencies import (
    get_facilitator_client,
    get_provider_signer,
    get_refund_authorization_service,
    get_settings_dependency,
)

logger = logging.getLogger(__name__)

PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"


def payment_requirements_for(
    request: Request, settings: Settings, pay_to: str
) -> PaymentRequirements:
    return PaymentRequirements(
        scheme="exact",
        network=settings.network,
        max_amount_required=str(settings.price_units),
        resource=str(request.url),
        description=f"Access to {request.url.path}",
        pay_to=pay_to,
        max_timeout_seconds=settings.max_timeout_seconds,
        asset=settings.asset_address,
        extra={"name": settings.asset_name, "version": settings.asset_version},
    )


async def require_payment(
    request: Request,
    response: Response,
    x_payment: Optional[str] = Header(None, alias="X-PAYMENT"),
    settings: Settings = Depends(get_settings_dependency),
    signer: LocalAccountSigner = Depends(get_provider_signer),
    facilitator: FacilitatorClient = Depends(get_facilitator_client),
    refund_authorization_service: RefundAuthorizationService = Depends(
        get_refund_authorization_service
    ),
) -> str:
    """Verify and settle the request's payment; returns the X-PAYMENT header.

    A settled payment with a known payer also gets a signed receipt in
    X-PAYMENT-RECEIPT, which insurers accept as proof of payment.

    Raises:
        PaymentRequiredError: No header, or the facilitator refused it.
    """
    requirements = payment_requirements_for(request, settings, signer.address)
    accepts = [requirements.model_dump(by_alias=True, exclude_none=True)]
    if not x_payment:
        raise PaymentRequiredError("X-PAYMENT header is required", accepts)

    try:
        verified = await facilitator.verify(x_payment, requirements)
        if not verified.is_valid:
            logger.warning(
                "Payment for %s rejected: %s", request.url.path, verified.invalid_reason
            )
            raise PaymentRequiredError(
                verified.invalid_reason or "Invalid payment", accepts
            )

        settled = await facilitator.settle(x_payment, requirements)
    except httpx.HTTPError as e:
        logger.exception("Facilitator unavailable")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Facilitator unavailable: {str(e)}",
        )
    if not settled.success:
        logger.warning(
            "Settlement for %s failed: %s", request.url.path, settled.error_reason
        )
        raise PaymentRequiredError(settled.error_reason or "Settlement failed", accepts)

    logger.info(
        "Payment settled for %s: payer=%s tx=%s",
        request.url.path,
        settled.payer,
        settled.transaction,
    )
    response.headers[PAYMENT_RESPONSE_HEADER] = encode_payment_header(
        settled.model_dump(by_alias=True, exclude_none=True)
    )

    payer = settled.payer or verified.payer
    if payer:
        try:
            response.headers[PAYMENT_RECEIPT_HEADER] = (
                refund_authorization_service.issue_receipt(
                    request.method, str(request.url), x_payment, payer
                )
            )
        except PaymentHeaderDecodeError as e:
            logger.warning("No payment receipt for %s: %s", request.url.path, e)
    return x_payment


async def payment_required_handler(
    request: Request, exc: PaymentRequiredError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        content={
            "x402Version": X402_VERSION,
            "error": str(exc),
            "accepts": exc.accepts,
        },
    )


def install_payment_handler(app: FastAPI) -> None:
    app.add_exception_handler(PaymentRequiredError, payment_required_handler)
