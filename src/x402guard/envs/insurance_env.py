from __future__ import annotations

import os

from pydantic import BaseModel, field_validator

from .common import env_bool, env_list, validate_address


class Settings(BaseModel):
    database_url: str

    api_host: str
    api_port: int
    api_debug: bool
    api_cors_origins: list[str]

    app_name: str
    app_version: str

    insurance_contract_address: str
    chain_id: int
    min_bond: int

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Insurance database URL must be a redis:// URL")
        return v

    @field_validator("insurance_contract_address")
    @classmethod
    def validate_insurance_contract_address(cls, v: str) -> str:
        return validate_address(v, "Insurance contract address")

    @field_validator("min_bond")
    @classmethod
    def validate_min_bond(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Minimum bond cannot be negative")
        return v


def get_settings() -> Settings:
    env = os.environ
    return Settings(
        database_url=env.get("INSURANCE_DATABASE_URL", "redis://localhost:6379/0"),
        api_host=env.get("INSURANCE_API_HOST", "0.0.0.0"),
        api_port=int(env.get("INSURANCE_API_PORT", "4003")),
        api_debug=env_bool(env.get("INSURANCE_API_DEBUG")),
        api_cors_origins=env_list(env.get("INSURANCE_API_CORS_ORIGINS"), ["*"]),
        app_name=env.get("INSURANCE_APP_NAME", "x402guard"),
        app_version=env.get("INSURANCE_APP_VERSION", "1.0.0"),
        insurance_contract_address=env.get("INSURANCE_CONTRACT_ADDRESS"),
        chain_id=int(env.get("CHAIN_ID", "84532")),
        min_bond=int(env.get("INSURANCE_MIN_BOND", "1000000")),
    )
