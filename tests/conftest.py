"""Shared pytest fixtures: role signers, domains, fake chain and storage."""

from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from x402guard.crypto.commitment import compute_request_commitment
from x402guard.crypto.typed_data import (
    TypedDataDomain,
    escrow_domain,
    insurance_domain,
)
from x402guard.infrastructure.database import DatabaseClient
from x402guard.infrastructure.scripts import INSURANCE_SCRIPTS
from x402guard.infrastructure.signing import LocalAccountSigner
from x402guard.infrastructure.storage import RedisKeyValueStore

from tests.fixtures.constants import (
    CHAIN_ID,
    CLIENT_KEY,
    DELEGATE_KEY,
    ESCROW_ADDRESS,
    INSURANCE_ADDRESS,
    PAID_URL,
    PROVIDER_KEY,
    RELAYER_KEY,
    make_payment_header,
)
from tests.fixtures import (
    FakeEscrowGateway,
    FakeEscrowGatewayFactory,
    InMemoryKeyValueStore,
)


@pytest.fixture
def client_signer() -> LocalAccountSigner:
    return LocalAccountSigner(CLIENT_KEY)


@pytest.fixture
def provider_signer() -> LocalAccountSigner:
    return LocalAccountSigner(PROVIDER_KEY)


@pytest.fixture
def relayer_signer() -> LocalAccountSigner:
    return LocalAccountSigner(RELAYER_KEY)


@pytest.fixture
def delegate_signer() -> LocalAccountSigner:
    return LocalAccountSigner(DELEGATE_KEY)


@pytest.fixture
def escrow_typed_domain() -> TypedDataDomain:
    return escrow_domain(CHAIN_ID, ESCROW_ADDRESS)


@pytest.fixture
def insurance_typed_domain() -> TypedDataDomain:
    return insurance_domain(CHAIN_ID, INSURANCE_ADDRESS)


@pytest.fixture
def payment_header() -> str:
    return make_payment_header()


@pytest.fixture
def request_commitment(payment_header: str) -> str:
    return compute_request_commitment("GET", PAID_URL, payment_header, "60")


@pytest.fixture
def escrow(
    provider_signer: LocalAccountSigner, client_signer: LocalAccountSigner
) -> FakeEscrowGateway:
    """Escrow as seen from the client's account (direct claims)."""
    return FakeEscrowGateway(
        ESCROW_ADDRESS, provider_signer.address, CHAIN_ID, sender=client_signer.address
    )


@pytest.fixture
def gateway_factory(
    escrow: FakeEscrowGateway, relayer_signer: LocalAccountSigner
) -> FakeEscrowGatewayFactory:
    return FakeEscrowGatewayFactory([escrow], relayer_signer.address, chain_id=CHAIN_ID)


@pytest_asyncio.fixture
async def store() -> InMemoryKeyValueStore:
    """In-memory store with the insurer's scripts registered, as at app startup."""
    kv = InMemoryKeyValueStore()
    for name, script in INSURANCE_SCRIPTS.items():
        await kv.register_script(name, script)
    return kv


class TestDatabaseSettings:
    """Test settings for Redis connection."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url


@pytest_asyncio.fixture
async def redis_db_client() -> AsyncGenerator[DatabaseClient, None]:
    """Create a Redis database client for testing.

    Uses database 15 by default, or TEST_REDIS_URL if set. Tests using it are
    skipped when Redis is not reachable.
    """
    test_redis_url = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")
    client = DatabaseClient(TestDatabaseSettings(database_url=test_redis_url))
    client.initialize_database()

    try:
        async with client.get_connection() as conn:
            await conn.ping()
    except Exception as e:
        await client.close()
        pytest.skip(f"Redis not available: {e}")

    yield client

    async with client.get_connection() as conn:
        await conn.flushdb()
    await client.close()


@pytest_asyncio.fixture
async def redis_store(redis_db_client: DatabaseClient) -> RedisKeyValueStore:
    """Redis-backed store with the insurer's scripts registered."""
    kv = RedisKeyValueStore(redis_db_client)
    for name, script in INSURANCE_SCRIPTS.items():
        await kv.register_script(name, script)
    return kv
