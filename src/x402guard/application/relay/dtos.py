"""Data Transfer Objects for the relay application layer.

Fields on requests are optional so that an incomplete body is answered with
the relay's own "Missing required parameters" error instead of a schema error.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from web3 import Web3


def format_ether(wei: int) -> str:
    if wei == 0:
        return "0"
    value = Decimal(Web3.from_wei(wei, "ether"))
    return format(value.normalize(), "f")


def format_elapsed(elapsed_ms: int) -> str:
    return f"{elapsed_ms}ms"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RelayRefundRequestDTO(CamelModel):
    escrow_address: Optional[str] = None
    request_commitment: Optional[str] = None
    amount: Optional[int] = None
    client: Optional[str] = None
    deadline: Optional[int] = None
    client_signature: Optional[str] = None
    server_signature: Optional[str] = None


class RelayTimeoutRefundRequestDTO(CamelModel):
    escrow_address: Optional[str] = None
    request_commitment: Optional[str] = None
    client_signature: Optional[str] = None


class RelayResultDTO(CamelModel):
    """Successful relay: the transaction was mined with status 1."""

    success: bool = True
    tx_hash: str
    block_number: int
    gas_used: str
    gas_cost: str
    elapsed: str
    message: Optional[str] = None


class RelayErrorDTO(CamelModel):
    success: bool = False
    error: str
    elapsed: Optional[str] = None
    time_left: Optional[int] = None


class RelayStatsDTO(CamelModel):
    total_relays: int
    successful_relays: int
    failed_relays: int
    total_gas_used: str
    total_gas_cost: str
    avg_gas_cost: str
    success_rate: str


class RelayStatsResponseDTO(CamelModel):
    success: bool = True
    relayer: str
    eth_balance: str
    stats: RelayStatsDTO


class RelayHealthDTO(CamelModel):
    success: bool = True
    relayer: str
    eth_balance: str
    block_number: int
    network: int
    low_balance: bool = False
    stats: RelayStatsDTO
