"""Client for an x402 payment facilitator (``/verify`` and ``/settle``)."""

from __future__ import annotations

from types import TracebackType
from typing import Any, Optional, Type

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ...crypto.payment_header import (
    X402_VERSION,
    PaymentRequirements,
    decode_payment_payload,
)
from ..http.http_client import AsyncHttpClient


class VerifyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    invalid_reason: Optional[str] = Field(None, alias="invalidReason")
    payer: Optional[str] = None


class SettleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    error_reason: Optional[str] = Field(None, alias="errorReason")
    transaction: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None


class FacilitatorClient:
    """Asynchronous client for the facilitator HTTP API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)

    @staticmethod
    def _body(payment_header: str, requirements: PaymentRequirements) -> dict[str, Any]:
        return {
            "x402Version": X402_VERSION,
            "paymentPayload": decode_payment_payload(payment_header),
            "paymentRequirements": requirements.model_dump(
                by_alias=True, exclude_none=True
            ),
        }

    async def verify(
        self, payment_header: str, requirements: PaymentRequirements
    ) -> VerifyResponse:
        resp = await self._http.post(
            "/verify", json=self._body(payment_header, requirements)
        )
        return VerifyResponse.model_validate(resp.json())

    async def settle(
        self, payment_header: str, requirements: PaymentRequirements
    ) -> SettleResponse:
        resp = await self._http.post(
            "/settle", json=self._body(payment_header, requirements)
        )
        return SettleResponse.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "FacilitatorClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
