from __future__ import annotations

from types import TracebackType
from typing import Optional, Type

import httpx

from ...application.relay.dtos import (
    RelayErrorDTO,
    RelayHealthDTO,
    RelayRefundRequestDTO,
    RelayResultDTO,
    RelayStatsResponseDTO,
    RelayTimeoutRefundRequestDTO,
)
from ...domain.errors import RelayRequestError
from ..http.http_client import AsyncHttpClient


class RelayClient:
    """Asynchronous client for the relay HTTP API.

    Failure payloads (``success: false``) are raised as ``RelayRequestError``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)

    @staticmethod
    def _result(resp: httpx.Response) -> RelayResultDTO:
        body = resp.json()
        if resp.is_success and body.get("success"):
            return RelayResultDTO.model_validate(body)
        error = RelayErrorDTO.model_validate(body)
        raise RelayRequestError(
            resp.status_code,
            error.error,
            elapsed=error.elapsed,
            time_left=error.time_left,
        )

    async def relay_refund(self, dto: RelayRefundRequestDTO) -> RelayResultDTO:
        resp = await self._http.post(
            "/relay-refund",
            json=dto.model_dump(by_alias=True, exclude_none=True),
            raise_for_status=False,
        )
        return self._result(resp)

    async def relay_timeout_refund(
        self, dto: RelayTimeoutRefundRequestDTO
    ) -> RelayResultDTO:
        resp = await self._http.post(
            "/relay-timeout-refund",
            json=dto.model_dump(by_alias=True, exclude_none=True),
            raise_for_status=False,
        )
        return self._result(resp)

    async def health(self) -> RelayHealthDTO:
        resp = await self._http.get("/health")
        return RelayHealthDTO.model_validate(resp.json())

    async def stats(self) -> RelayStatsResponseDTO:
        resp = await self._http.get("/stats")
        return RelayStatsResponseDTO.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
