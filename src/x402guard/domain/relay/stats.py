"""Process-scoped relay counters."""

from __future__ import annotations

import asyncio

from pydantic import BaseModel


class RelayStatsSnapshot(BaseModel):
    total_relays: int
    successful_relays: int
    failed_relays: int
    total_gas_used: int
    total_gas_cost: int

    @property
    def avg_gas_cost(self) -> int:
        if self.successful_relays == 0:
            return 0
        return self.total_gas_cost // self.successful_relays

    @property
    def success_rate(self) -> float:
        """Percentage of attempts that succeeded."""
        if self.total_relays == 0:
            return 0.0
        return self.successful_relays / self.total_relays * 100


class RelayStatistics:
    """Counters shared by all relay requests in one process.

    Every attempt bumps ``total_relays``. ``failed_relays`` only counts
    failures on or after broadcast; validation rejections are attempts that
    neither succeeded nor failed.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._total_relays = 0
        self._successful_relays = 0
        self._failed_relays = 0
        self._total_gas_used = 0
        self._total_gas_cost = 0

    async def record_attempt(self) -> None:
        async with self._lock:
            self._total_relays += 1

    async def record_success(self, gas_used: int, gas_cost: int) -> None:
        async with self._lock:
            self._successful_relays += 1
            self._total_gas_used += gas_used
            self._total_gas_cost += gas_cost

    async def record_failure(self) -> None:
        async with self._lock:
            self._failed_relays += 1

    async def snapshot(self) -> RelayStatsSnapshot:
        async with self._lock:
            return RelayStatsSnapshot(
                total_relays=self._total_relays,
                successful_relays=self._successful_relays,
                failed_relays=self._failed_relays,
                total_gas_used=self._total_gas_used,
                total_gas_cost=self._total_gas_cost,
            )

    async def reset(self) -> None:
        async with self._lock:
            self._total_relays = 0
            self._successful_relays = 0
            self._failed_relays = 0
            self._total_gas_used = 0
            self._total_gas_cost = 0
