from __future__ import annotations

import os

from pydantic import BaseModel, field_validator

from .common import env_bool, env_list, validate_http_url, validate_private_key


class Settings(BaseModel):
    api_host: str
    api_port: int
    api_debug: bool
    api_cors_origins: list[str]

    app_name: str
    app_version: str

    relayer_private_key: str
    rpc_url: str
    chain_id: int
    gas_buffer_percent: int
    low_balance_wei: int

    @field_validator("relayer_private_key")
    @classmethod
    def validate_relayer_private_key(cls, v: str) -> str:
        return validate_private_key(v, "Relayer private key")

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        return validate_http_url(v, "RPC URL")

    @field_validator("gas_buffer_percent")
    @classmethod
    def validate_gas_buffer_percent(cls, v: int) -> int:
        if v < 100:
            raise ValueError("Gas buffer must be at least 100 percent of the estimate")
        return v


def get_settings() -> Settings:
    env = os.environ
    return Settings(
        api_host=env.get("RELAY_API_HOST", "0.0.0.0"),
        api_port=int(env.get("RELAY_API_PORT", "4002")),
        api_debug=env_bool(env.get("RELAY_API_DEBUG")),
        api_cors_origins=env_list(env.get("RELAY_API_CORS_ORIGINS"), ["*"]),
        app_name=env.get("RELAY_APP_NAME", "x402guard"),
        app_version=env.get("RELAY_APP_VERSION", "1.0.0"),
        relayer_private_key=env.get("RELAYER_PRIVATE_KEY"),
        rpc_url=env.get("RPC_URL", "http://localhost:8545"),
        chain_id=int(env.get("CHAIN_ID", "84532")),
        gas_buffer_percent=int(env.get("RELAY_GAS_BUFFER_PERCENT", "120")),
        # 0.01 ETH
        low_balance_wei=int(env.get("RELAY_LOW_BALANCE_WEI", str(10**16))),
    )
