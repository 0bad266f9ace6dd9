"""Escrow settlement gateway: the contract-facing port used by every role."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel


class EscrowHealth(BaseModel):
    """Bond status of the provider behind an escrow."""

    is_healthy: bool
    bond_balance: int
    min_bond: int


class PendingPayment(BaseModel):
    """Escrowed payment record, keyed on-chain by request commitment."""

    client: str
    amount: int
    deadline: int
    completed: bool = False
    refunded: bool = False

    @property
    def is_settled(self) -> bool:
        return self.completed or self.refunded


class TransactionReceipt(BaseModel):
    """Mined transaction outcome."""

    tx_hash: str
    block_number: int
    gas_used: int
    effective_gas_price: int
    status: int = 1

    @property
    def gas_cost(self) -> int:
        return self.gas_used * self.effective_gas_price


class MetaRefundRequest(BaseModel):
    """Everything ``metaClaimRefund`` needs: provider voucher plus client authorization."""

    request_commitment: str
    amount: int
    client: str
    deadline: int
    client_signature: str
    server_signature: str


class EscrowGateway(ABC):
    """Bonded escrow bound to one contract address."""

    @property
    @abstractmethod
    def address(self) -> str:
        pass

    @abstractmethod
    async def is_healthy(self) -> bool:
        pass

    @abstractmethod
    async def get_bond_balance(self) -> int:
        pass

    @abstractmethod
    async def min_bond(self) -> int:
        pass

    async def health(self) -> EscrowHealth:
        return EscrowHealth(
            is_healthy=await self.is_healthy(),
            bond_balance=await self.get_bond_balance(),
            min_bond=await self.min_bond(),
        )

    @abstractmethod
    async def claim_refund(
        self, request_commitment: str, amount: int, signature: str
    ) -> TransactionReceipt:
        """Claim with a provider voucher, sent from the client's own account."""
        pass

    @abstractmethod
    async def estimate_meta_claim_refund_gas(self, request: MetaRefundRequest) -> int:
        """Estimate gas for ``metaClaimRefund``.

        Raises:
            GasEstimationError: The call would revert; nothing was broadcast.
        """
        pass

    @abstractmethod
    async def meta_claim_refund(
        self, request: MetaRefundRequest, gas_limit: int
    ) -> TransactionReceipt:
        pass

    @abstractmethod
    async def claim_timeout_refund(self, request_commitment: str) -> TransactionReceipt:
        pass

    @abstractmethod
    async def commitment_settled(self, request_commitment: str) -> bool:
        pass

    @abstractmethod
    async def pending_payments(self, request_commitment: str) -> PendingPayment:
        pass


class EscrowGatewayFactory(ABC):
    """Chain access for a gas-paying account: builds gateways per escrow address."""

    @property
    @abstractmethod
    def sender_address(self) -> str:
        pass

    @abstractmethod
    def for_escrow(self, escrow_address: str) -> EscrowGateway:
        pass

    @abstractmethod
    async def get_balance(self) -> int:
        """Native balance of the sender account, in wei."""
        pass

    @abstractmethod
    async def get_block_number(self) -> int:
        pass

    @abstractmethod
    async def get_chain_id(self) -> int:
        pass
