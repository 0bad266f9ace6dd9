"""Test fixtures for in-memory implementations."""

from .fake_escrow import FakeEscrowGateway, FakeEscrowGatewayFactory
from .in_memory_storage import InMemoryKeyValueStore

__all__ = [
    "FakeEscrowGateway",
    "FakeEscrowGatewayFactory",
    "InMemoryKeyValueStore",
]
