"""Tests for process-scoped relay statistics."""

import asyncio

from x402guard.domain.relay.stats import RelayStatistics


async def test_snapshot_derives_average_and_success_rate():
    stats = RelayStatistics()
    for _ in range(4):
        await stats.record_attempt()
    await stats.record_success(gas_used=100, gas_cost=1_000)
    await stats.record_success(gas_used=300, gas_cost=3_000)
    await stats.record_failure()

    snapshot = await stats.snapshot()
    assert snapshot.total_relays == 4
    assert snapshot.successful_relays == 2
    assert snapshot.failed_relays == 1
    assert snapshot.total_gas_used == 400
    assert snapshot.avg_gas_cost == 2_000
    assert snapshot.success_rate == 50.0


async def test_empty_snapshot_has_zero_rates():
    snapshot = await RelayStatistics().snapshot()
    assert snapshot.avg_gas_cost == 0
    assert snapshot.success_rate == 0.0


async def test_concurrent_updates_are_not_lost():
    stats = RelayStatistics()

    async def relay_once() -> None:
        await stats.record_attempt()
        await stats.record_success(gas_used=1, gas_cost=1)

    await asyncio.gather(*(relay_once() for _ in range(200)))

    snapshot = await stats.snapshot()
    assert snapshot.total_relays == 200
    assert snapshot.successful_relays == 200


async def test_reset_zeroes_counters():
    stats = RelayStatistics()
    await stats.record_attempt()
    await stats.record_failure()
    await stats.reset()

    snapshot = await stats.snapshot()
    assert snapshot.total_relays == 0
    assert snapshot.failed_relays == 0
