"""Validators shared by the per-service settings."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from eth_account import Account
from web3 import Web3


def validate_private_key(v: str, label: str) -> str:
    if not v:
        raise ValueError(f"{label} cannot be empty")
    try:
        Account.from_key(v)
    except Exception as e:
        raise ValueError(f"Invalid {label}: {e}") from e
    return v


def validate_address(v: str, label: str) -> str:
    if not v:
        raise ValueError(f"{label} cannot be empty")
    if not Web3.is_address(v):
        raise ValueError(f"{label} is not an EVM address: {v}")
    return Web3.to_checksum_address(v)


def validate_http_url(v: str, label: str) -> str:
    if not v:
        raise ValueError(f"{label} cannot be empty")
    parsed = urlparse(v)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError(f"{label} must start with http:// or https://")
    if not parsed.netloc:
        raise ValueError(f"{label} must include a host")
    return v.rstrip("/")


def env_bool(value: Optional[str], default: bool = False) -> bool:
    return value.lower() == "true" if value is not None else default


def env_list(value: Optional[str], default: list[str]) -> list[str]:
    return value.split(",") if value is not None else default
