"""Fixtures for API router tests."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI

from x402guard.api.provider_api.dependencies import (
    get_escrow_gateway,
    get_facilitator_client,
    get_provider_signer,
    get_refund_authorization_service,
    get_settings_dependency,
)
from x402guard.api.provider_api.payments import install_payment_handler
from x402guard.api.provider_api.routers import resources
from x402guard.application.provider.use_cases.refund_authorization import (
    RefundAuthorizationService,
)
from x402guard.envs.provider_env import Settings
from x402guard.infrastructure.facilitator.facilitator_client import (
    SettleResponse,
    VerifyResponse,
)

from tests.fixtures.constants import (
    ASSET_ADDRESS,
    CHAIN_ID,
    ESCROW_ADDRESS,
    PROVIDER_KEY,
)


@pytest.fixture
def provider_settings() -> Settings:
    return Settings(
        api_host="127.0.0.1",
        api_port=4000,
        api_debug=False,
        api_cors_origins=["*"],
        app_name="x402guard",
        app_version="test",
        provider_private_key=PROVIDER_KEY,
        bond_escrow_address=ESCROW_ADDRESS,
        chain_id=CHAIN_ID,
        rpc_url="http://localhost:8545",
        facilitator_url="http://localhost:4001",
        network="base-sepolia",
        asset_address=ASSET_ADDRESS,
        asset_name="USDC",
        asset_version="2",
        price_units=10_000,
        max_timeout_seconds=60,
        commitment_window="60",
    )


@pytest.fixture
def facilitator(client_signer) -> AsyncMock:
    """Facilitator that accepts and settles every payment."""
    mock = AsyncMock()
    mock.verify.return_value = VerifyResponse(is_valid=True, payer=client_signer.address)
    mock.settle.return_value = SettleResponse(
        success=True,
        transaction="0x" + "ab" * 32,
        network="base-sepolia",
        payer=client_signer.address,
    )
    return mock


@pytest.fixture
def provider_app(
    provider_settings, provider_signer, escrow_typed_domain, facilitator, escrow
) -> FastAPI:
    app = FastAPI()
    install_payment_handler(app)
    app.include_router(resources.router)
    app.dependency_overrides[get_settings_dependency] = lambda: provider_settings
    app.dependency_overrides[get_provider_signer] = lambda: provider_signer
    app.dependency_overrides[get_facilitator_client] = lambda: facilitator
    app.dependency_overrides[get_escrow_gateway] = lambda: escrow
    app.dependency_overrides[get_refund_authorization_service] = (
        lambda: RefundAuthorizationService(provider_signer, escrow_typed_domain)
    )
    return app
