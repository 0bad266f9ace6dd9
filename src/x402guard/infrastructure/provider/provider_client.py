from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Optional, Type

import httpx
from pydantic import BaseModel

from ...application.provider.dtos import EscrowInfoDTO, ServiceFailureResponseDTO
from ...crypto.payment_header import (
    PAYMENT_RECEIPT_HEADER,
    PaymentRequirements,
    build_exact_payment_header,
)
from ...domain.errors import PaymentRequiredError
from ...domain.shared import Signer
from ..http.http_client import AsyncHttpClient

logger = logging.getLogger(__name__)

PAYMENT_HEADER = "X-PAYMENT"


class PaidResponse(BaseModel):
    """Outcome of a paid request, with everything needed to recompute its commitment."""

    method: str
    url: str
    payment_header: str
    status_code: int
    body: dict[str, Any]
    payment_receipt: Optional[str] = None

    @property
    def refund_offer(self) -> Optional[ServiceFailureResponseDTO]:
        """The refund voucher, when the provider failed after settlement."""
        if self.status_code // 100 != 2:
            return None
        if self.body.get("success") is False and "refund" in self.body:
            return ServiceFailureResponseDTO.model_validate(self.body)
        return None


class ProviderClient:
    """Asynchronous client for a provider's paid resources."""

    def __init__(
        self,
        base_url: str,
        signer: Signer,
        chain_id: int,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)
        self.signer = signer
        self.chain_id = chain_id

    async def get_escrow(self) -> EscrowInfoDTO:
        resp = await self._http.get("/escrow")
        return EscrowInfoDTO.model_validate(resp.json())

    async def get_paid(self, path: str) -> PaidResponse:
        """GET a paid resource, paying with an "exact" header when asked to.

        Raises:
            PaymentRequiredError: No acceptable requirements, or the payment was refused.
        """
        first = await self._http.get(path, raise_for_status=False)
        if first.status_code != 402:
            first.raise_for_status()
            raise PaymentRequiredError(f"{path} did not ask for payment")

        challenge = first.json()
        accepts = challenge.get("accepts") or []
        exact = [a for a in accepts if a.get("scheme") == "exact"]
        if not exact:
            raise PaymentRequiredError("No supported payment scheme offered", accepts)
        requirements = PaymentRequirements.model_validate(exact[0])
        header = build_exact_payment_header(self.signer, requirements, self.chain_id)

        resp = await self._http.get(
            path, headers={PAYMENT_HEADER: header}, raise_for_status=False
        )
        if resp.status_code == 402:
            raise PaymentRequiredError(
                resp.json().get("error", "Payment refused"), accepts
            )
        logger.info("Paid request %s answered %d", path, resp.status_code)
        return PaidResponse(
            method="GET",
            url=str(resp.request.url),
            payment_header=header,
            status_code=resp.status_code,
            body=resp.json(),
            payment_receipt=resp.headers.get(PAYMENT_RECEIPT_HEADER),
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ProviderClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
