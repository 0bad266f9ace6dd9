"""Dependencies for the insurer API."""

from __future__ import annotations

from functools import lru_cache

from ...application.insurance.use_cases.insurance import InsuranceService
from ...crypto.typed_data import insurance_domain
from ...domain.insurance.repositories import (
    InsurancePolicyRepository,
    ProviderBondRepository,
)
from ...envs.insurance_env import Settings, get_settings
from ...infrastructure.database import DatabaseClient, get_database_client
from ...infrastructure.insurance.repositories import (
    InsurancePolicyRepositoryImpl,
    ProviderBondRepositoryImpl,
)
from ...infrastructure.storage import KeyValueStore, RedisKeyValueStore


@lru_cache()
def get_settings_dependency() -> Settings:
    return get_settings()


@lru_cache()
def get_database_client_dependency() -> DatabaseClient:
    return get_database_client(get_settings_dependency())


@lru_cache()
def get_store_dependency() -> KeyValueStore:
    return RedisKeyValueStore(get_database_client_dependency())


def get_policy_repository() -> InsurancePolicyRepository:
    return InsurancePolicyRepositoryImpl(get_store_dependency())


def get_bond_repository() -> ProviderBondRepository:
    return ProviderBondRepositoryImpl(get_store_dependency())


def get_insurance_service() -> InsuranceService:
    settings = get_settings_dependency()
    return InsuranceService(
        get_policy_repository(),
        get_bond_repository(),
        insurance_domain(settings.chain_id, settings.insurance_contract_address),
        settings.min_bond,
    )
