"""Dependencies for the relay API."""

from __future__ import annotations

from functools import lru_cache

from eth_account import Account

from ...application.relay.use_cases.relay import RelayService
from ...domain.escrow.gateway import EscrowGatewayFactory
from ...domain.relay.stats import RelayStatistics
from ...envs.relay_env import Settings, get_settings
from ...infrastructure.escrow.web3_escrow_gateway import (
    Web3EscrowGatewayFactory,
    create_async_web3,
)


@lru_cache()
def get_settings_dependency() -> Settings:
    return get_settings()


@lru_cache()
def get_relay_statistics() -> RelayStatistics:
    return RelayStatistics()


@lru_cache()
def get_gateway_factory() -> EscrowGatewayFactory:
    settings = get_settings_dependency()
    return Web3EscrowGatewayFactory(
        create_async_web3(settings.rpc_url),
        Account.from_key(settings.relayer_private_key),
        settings.chain_id,
    )


def get_relay_service() -> RelayService:
    settings = get_settings_dependency()
    return RelayService(
        get_gateway_factory(),
        get_relay_statistics(),
        settings.chain_id,
        gas_buffer_percent=settings.gas_buffer_percent,
        low_balance_wei=settings.low_balance_wei,
    )
