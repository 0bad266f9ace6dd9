"""Dependencies for the provider (resource server) API."""

from __future__ import annotations

from functools import lru_cache

from ...application.provider.use_cases.refund_authorization import (
    RefundAuthorizationService,
)
from ...crypto.typed_data import escrow_domain
from ...domain.escrow.gateway import EscrowGateway
from ...envs.provider_env import Settings, get_settings
from ...infrastructure.escrow.web3_escrow_gateway import (
    Web3EscrowGatewayFactory,
    create_async_web3,
)
from ...infrastructure.facilitator.facilitator_client import FacilitatorClient
from ...infrastructure.signing import LocalAccountSigner


@lru_cache()
def get_settings_dependency() -> Settings:
    return get_settings()


@lru_cache()
def get_provider_signer() -> LocalAccountSigner:
    return LocalAccountSigner(get_settings_dependency().provider_private_key)


@lru_cache()
def get_facilitator_client() -> FacilitatorClient:
    return FacilitatorClient(get_settings_dependency().facilitator_url)


@lru_cache()
def get_escrow_gateway() -> EscrowGateway:
    settings = get_settings_dependency()
    factory = Web3EscrowGatewayFactory(
        create_async_web3(settings.rpc_url),
        get_provider_signer().account,
        settings.chain_id,
    )
    return factory.for_escrow(settings.bond_escrow_address)


def get_refund_authorization_service() -> RefundAuthorizationService:
    settings = get_settings_dependency()
    return RefundAuthorizationService(
        get_provider_signer(),
        escrow_domain(settings.chain_id, settings.bond_escrow_address),
        settings.commitment_window,
    )
