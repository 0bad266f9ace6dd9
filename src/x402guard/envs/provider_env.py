from __future__ import annotations

import os

from pydantic import BaseModel, field_validator

from ..crypto.commitment import DEFAULT_COMMITMENT_WINDOW
from .common import (
    env_bool,
    env_list,
    validate_address,
    validate_http_url,
    validate_private_key,
)


class Settings(BaseModel):
    api_host: str
    api_port: int
    api_debug: bool
    api_cors_origins: list[str]

    app_name: str
    app_version: str

    provider_private_key: str
    bond_escrow_address: str
    chain_id: int
    rpc_url: str
    facilitator_url: str

    network: str
    asset_address: str
    asset_name: str
    asset_version: str
    price_units: int
    max_timeout_seconds: int
    commitment_window: str

    @field_validator("provider_private_key")
    @classmethod
    def validate_provider_private_key(cls, v: str) -> str:
        return validate_private_key(v, "Provider private key")

    @field_validator("bond_escrow_address")
    @classmethod
    def validate_bond_escrow_address(cls, v: str) -> str:
        return validate_address(v, "Bond escrow address")

    @field_validator("asset_address")
    @classmethod
    def validate_asset_address(cls, v: str) -> str:
        return validate_address(v, "Asset address")

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        return validate_http_url(v, "RPC URL")

    @field_validator("facilitator_url")
    @classmethod
    def validate_facilitator_url(cls, v: str) -> str:
        return validate_http_url(v, "Facilitator URL")

    @field_validator("price_units")
    @classmethod
    def validate_price_units(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Price must be positive")
        return v


def get_settings() -> Settings:
    env = os.environ
    return Settings(
        api_host=env.get("PROVIDER_API_HOST", "0.0.0.0"),
        api_port=int(env.get("PROVIDER_API_PORT", "4000")),
        api_debug=env_bool(env.get("PROVIDER_API_DEBUG")),
        api_cors_origins=env_list(env.get("PROVIDER_API_CORS_ORIGINS"), ["*"]),
        app_name=env.get("PROVIDER_APP_NAME", "x402guard"),
        app_version=env.get("PROVIDER_APP_VERSION", "1.0.0"),
        provider_private_key=env.get("PROVIDER_PRIVATE_KEY"),
        bond_escrow_address=env.get("BOND_ESCROW_ADDRESS"),
        chain_id=int(env.get("CHAIN_ID", "84532")),
        rpc_url=env.get("RPC_URL", "http://localhost:8545"),
        facilitator_url=env.get("FACILITATOR_URL", "http://localhost:4001"),
        network=env.get("PROVIDER_NETWORK", "base-sepolia"),
        asset_address=env.get("PROVIDER_ASSET_ADDRESS"),
        asset_name=env.get("PROVIDER_ASSET_NAME", "USDC"),
        asset_version=env.get("PROVIDER_ASSET_VERSION", "2"),
        price_units=int(env.get("PROVIDER_PRICE_UNITS", "10000")),
        max_timeout_seconds=int(env.get("PROVIDER_MAX_TIMEOUT_SECONDS", "60")),
        commitment_window=env.get("COMMITMENT_WINDOW", DEFAULT_COMMITMENT_WINDOW),
    )
