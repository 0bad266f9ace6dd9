"""Pytest fixtures for use case tests."""

from __future__ import annotations

import pytest

from x402guard.application.insurance.use_cases.insurance import InsuranceService
from x402guard.application.provider.use_cases.refund_authorization import (
    RefundAuthorizationService,
)
from x402guard.application.relay.use_cases.relay import RelayService
from x402guard.client.receipts import InsuranceReceiptStore, RefundReceiptStore
from x402guard.client.refund import RefundClaimClient
from x402guard.domain.relay.stats import RelayStatistics
from x402guard.infrastructure.insurance.repositories import (
    InsurancePolicyRepositoryImpl,
    ProviderBondRepositoryImpl,
)

from tests.fixtures.constants import CHAIN_ID
from tests.use_cases.helpers.relay_client_adapter import UseCaseRelayClient

START = 1_700_000_000


class Clock:
    """Settable unix clock injected as ``now``."""

    def __init__(self, start: int = START):
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def relay_stats() -> RelayStatistics:
    return RelayStatistics()


@pytest.fixture
def relay_service(gateway_factory, relay_stats, clock) -> RelayService:
    return RelayService(gateway_factory, relay_stats, CHAIN_ID, now=clock)


@pytest.fixture
def refund_authorization_service(
    provider_signer, escrow_typed_domain
) -> RefundAuthorizationService:
    return RefundAuthorizationService(provider_signer, escrow_typed_domain)


@pytest.fixture
def refund_receipts(tmp_path) -> RefundReceiptStore:
    return RefundReceiptStore(str(tmp_path))


@pytest.fixture
def insurance_receipts(tmp_path) -> InsuranceReceiptStore:
    return InsuranceReceiptStore(str(tmp_path))


@pytest.fixture
def refund_client(
    client_signer, provider_signer, escrow, relay_service, refund_receipts, clock
) -> RefundClaimClient:
    return RefundClaimClient(
        client_signer,
        escrow,
        CHAIN_ID,
        relay=UseCaseRelayClient(relay_service),
        receipts=refund_receipts,
        provider_address=provider_signer.address,
        now=clock,
    )


@pytest.fixture
def policy_repository(store) -> InsurancePolicyRepositoryImpl:
    return InsurancePolicyRepositoryImpl(store)


@pytest.fixture
def bond_repository(store) -> ProviderBondRepositoryImpl:
    return ProviderBondRepositoryImpl(store)


@pytest.fixture
def insurance_service(
    policy_repository, bond_repository, insurance_typed_domain, clock
) -> InsuranceService:
    return InsuranceService(
        policy_repository,
        bond_repository,
        insurance_typed_domain,
        min_bond=50_000,
        now=clock,
    )
