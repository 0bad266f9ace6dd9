from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, field_validator

from ..crypto.commitment import DEFAULT_COMMITMENT_WINDOW
from .common import validate_address, validate_http_url, validate_private_key


class Settings(BaseModel):
    client_private_key: str
    provider_base_url: str
    relay_base_url: Optional[str] = None
    insurer_base_url: Optional[str] = None
    insurance_contract_address: Optional[str] = None
    rpc_url: str
    chain_id: int
    receipts_dir: str
    insurance_fee_percentage: float = 1.0
    insurance_timeout_minutes: int = 1
    commitment_window: str = DEFAULT_COMMITMENT_WINDOW

    @field_validator("client_private_key")
    @classmethod
    def validate_client_private_key(cls, v: str) -> str:
        return validate_private_key(v, "Client private key")

    @field_validator("provider_base_url", "rpc_url")
    @classmethod
    def validate_required_url(cls, v: str) -> str:
        return validate_http_url(v, "URL")

    @field_validator("relay_base_url", "insurer_base_url")
    @classmethod
    def validate_optional_url(cls, v: Optional[str]) -> Optional[str]:
        return validate_http_url(v, "URL") if v else None

    @field_validator("insurance_contract_address")
    @classmethod
    def validate_insurance_contract_address(cls, v: Optional[str]) -> Optional[str]:
        return validate_address(v, "Insurance contract address") if v else None


def get_settings() -> Settings:
    env = os.environ
    client_private_key = env.get("CLIENT_PRIVATE_KEY")
    if not client_private_key:
        raise ValueError("CLIENT_PRIVATE_KEY is required")
    return Settings(
        client_private_key=client_private_key,
        provider_base_url=env.get("PROVIDER_BASE_URL", "http://localhost:4000"),
        relay_base_url=env.get("RELAY_BASE_URL"),
        insurer_base_url=env.get("INSURER_BASE_URL"),
        insurance_contract_address=env.get("INSURANCE_CONTRACT_ADDRESS"),
        rpc_url=env.get("RPC_URL", "http://localhost:8545"),
        chain_id=int(env.get("CHAIN_ID", "84532")),
        receipts_dir=env.get("RECEIPTS_DIR", os.getcwd()),
        insurance_fee_percentage=float(env.get("INSURANCE_FEE_PERCENTAGE", "1")),
        insurance_timeout_minutes=int(env.get("INSURANCE_TIMEOUT_MINUTES", "1")),
        commitment_window=env.get("COMMITMENT_WINDOW", DEFAULT_COMMITMENT_WINDOW),
    )
