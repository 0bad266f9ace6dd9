"""Relay API routes: gasless refund claims and relay bookkeeping."""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram

from ....application.relay.dtos import (
    RelayErrorDTO,
    RelayRefundRequestDTO,
    RelayResultDTO,
    RelayTimeoutRefundRequestDTO,
    format_elapsed,
)
from ....application.relay.use_cases.relay import RelayService
from ....domain.errors import PaymentNotExpiredError, RelaySubmissionError
from ..dependencies import get_relay_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])


relay_requests_total = Counter(
    "relay_requests_total",
    "Total relay requests processed",
    ["endpoint", "status"],
)

relay_request_duration_seconds = Histogram(
    "relay_request_duration_seconds",
    "Wall time to process a relay request",
    ["endpoint", "status"],
)


def _error(status_code: int, error: RelayErrorDTO) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(by_alias=True, exclude_none=True),
    )


async def _relay(
    endpoint: str, call: Callable[[], Awaitable[RelayResultDTO]]
) -> Any:
    start_time = time.perf_counter()

    def observe(outcome: str) -> None:
        relay_requests_total.labels(endpoint=endpoint, status=outcome).inc()
        relay_request_duration_seconds.labels(
            endpoint=endpoint, status=outcome
        ).observe(time.perf_counter() - start_time)

    try:
        result = await call()
        observe("success")
        return result.model_dump(by_alias=True, exclude_none=True)
    except PaymentNotExpiredError as e:
        observe("client_error")
        return _error(
            status.HTTP_400_BAD_REQUEST,
            RelayErrorDTO(error=str(e), time_left=e.time_left),
        )
    except ValueError as e:
        observe("client_error")
        return _error(status.HTTP_400_BAD_REQUEST, RelayErrorDTO(error=str(e)))
    except RelaySubmissionError as e:
        observe("server_error")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            RelayErrorDTO(error=str(e), elapsed=format_elapsed(e.elapsed_ms)),
        )
    except Exception as e:
        observe("server_error")
        logger.exception("Unexpected relay failure on %s", endpoint)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, RelayErrorDTO(error=str(e)))


@router.post("/relay-refund")
async def relay_refund(
    payload: RelayRefundRequestDTO,
    service: RelayService = Depends(get_relay_service),
) -> Any:
    """Submit a client-signed refund claim, paying the gas."""
    return await _relay("relay-refund", lambda: service.relay_refund(payload))


@router.post("/relay-timeout-refund")
async def relay_timeout_refund(
    payload: RelayTimeoutRefundRequestDTO,
    service: RelayService = Depends(get_relay_service),
) -> Any:
    """Recover an escrowed payment the provider never resolved."""
    return await _relay(
        "relay-timeout-refund", lambda: service.relay_timeout_refund(payload)
    )


@router.get("/stats")
async def get_stats(service: RelayService = Depends(get_relay_service)) -> Any:
    try:
        stats = await service.get_stats()
    except Exception as e:
        logger.exception("Failed to read relay stats")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, RelayErrorDTO(error=str(e)))
    return stats.model_dump(by_alias=True)


@router.post("/reset-stats")
async def reset_stats(service: RelayService = Depends(get_relay_service)) -> Any:
    await service.reset_stats()
    return {"success": True, "message": "Stats reset"}


@router.get("/health")
async def health(service: RelayService = Depends(get_relay_service)) -> Any:
    try:
        result = await service.health()
    except Exception as e:
        logger.exception("Relay health check failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, RelayErrorDTO(error=str(e)))
    return result.model_dump(by_alias=True)
