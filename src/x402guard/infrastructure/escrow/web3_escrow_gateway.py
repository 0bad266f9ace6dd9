"""BondedEscrow access over JSON-RPC with web3's async client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import Web3Exception

from ...crypto.commitment import commitment_to_bytes
from ...domain.errors import GasEstimationError, TransactionRevertedError
from ...domain.escrow.gateway import (
    EscrowGateway,
    EscrowGatewayFactory,
    MetaRefundRequest,
    PendingPayment,
    TransactionReceipt,
)
from .abi import BONDED_ESCROW_ABI

logger = logging.getLogger(__name__)

RECEIPT_TIMEOUT_SECONDS = 120


def _signature_bytes(signature: str) -> bytes:
    return bytes.fromhex(signature.removeprefix("0x"))


def _hex(value: Any) -> str:
    # HexBytes.hex() includes the 0x prefix only in newer hexbytes releases
    text = value.hex() if hasattr(value, "hex") else str(value)
    return text if text.startswith("0x") else "0x" + text


def create_async_web3(rpc_url: str) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(rpc_url))


class Web3EscrowGateway(EscrowGateway):
    """One escrow contract, transacting from one local account.

    ``nonce_lock`` serializes nonce assignment across gateways that share the
    same sending account.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        escrow_address: str,
        account: LocalAccount,
        chain_id: int,
        nonce_lock: Optional[asyncio.Lock] = None,
    ):
        self.w3 = w3
        self._address = Web3.to_checksum_address(escrow_address)
        self.account = account
        self.chain_id = chain_id
        self._nonce_lock = nonce_lock or asyncio.Lock()
        self.contract = w3.eth.contract(address=self._address, abi=BONDED_ESCROW_ABI)

    @property
    def address(self) -> str:
        return self._address

    async def is_healthy(self) -> bool:
        return bool(await self.contract.functions.isHealthy().call())

    async def get_bond_balance(self) -> int:
        return int(await self.contract.functions.getBondBalance().call())

    async def min_bond(self) -> int:
        return int(await self.contract.functions.minBond().call())

    async def commitment_settled(self, request_commitment: str) -> bool:
        return bool(
            await self.contract.functions.commitmentSettled(
                commitment_to_bytes(request_commitment)
            ).call()
        )

    async def pending_payments(self, request_commitment: str) -> PendingPayment:
        client, amount, deadline, completed, refunded = (
            await self.contract.functions.pendingPayments(
                commitment_to_bytes(request_commitment)
            ).call()
        )
        return PendingPayment(
            client=client,
            amount=amount,
            deadline=deadline,
            completed=completed,
            refunded=refunded,
        )

    def _meta_claim_call(self, request: MetaRefundRequest) -> Any:
        return self.contract.functions.metaClaimRefund(
            commitment_to_bytes(request.request_commitment),
            request.amount,
            Web3.to_checksum_address(request.client),
            request.deadline,
            _signature_bytes(request.client_signature),
            _signature_bytes(request.server_signature),
        )

    async def estimate_meta_claim_refund_gas(self, request: MetaRefundRequest) -> int:
        try:
            return int(
                await self._meta_claim_call(request).estimate_gas(
                    {"from": self.account.address}
                )
            )
        except (Web3Exception, ValueError) as e:
            raise GasEstimationError(f"Gas estimation failed: {e}") from e

    async def meta_claim_refund(
        self, request: MetaRefundRequest, gas_limit: int
    ) -> TransactionReceipt:
        return await self._send(self._meta_claim_call(request), gas_limit)

    async def claim_refund(
        self, request_commitment: str, amount: int, signature: str
    ) -> TransactionReceipt:
        call = self.contract.functions.claimRefund(
            commitment_to_bytes(request_commitment),
            amount,
            _signature_bytes(signature),
        )
        return await self._send(call)

    async def claim_timeout_refund(self, request_commitment: str) -> TransactionReceipt:
        call = self.contract.functions.claimTimeoutRefund(
            commitment_to_bytes(request_commitment)
        )
        return await self._send(call)

    async def _send(self, call: Any, gas_limit: Optional[int] = None) -> TransactionReceipt:
        """Build, sign, and send a transaction, then wait for it to be mined."""
        async with self._nonce_lock:
            params: dict[str, Any] = {
                "from": self.account.address,
                "chainId": self.chain_id,
                "nonce": await self.w3.eth.get_transaction_count(
                    self.account.address, "pending"
                ),
            }
            if gas_limit is not None:
                params["gas"] = gas_limit
            tx = await call.build_transaction(params)
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info("Transaction sent: %s", _hex(tx_hash))

        receipt = await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=RECEIPT_TIMEOUT_SECONDS
        )
        result = TransactionReceipt(
            tx_hash=_hex(receipt["transactionHash"]),
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
            effective_gas_price=receipt.get("effectiveGasPrice")
            or tx.get("gasPrice")
            or tx.get("maxFeePerGas", 0),
            status=receipt["status"],
        )
        if result.status != 1:
            raise TransactionRevertedError(result.tx_hash)
        return result


class Web3EscrowGatewayFactory(EscrowGatewayFactory):
    """Gateways for any escrow address, all sending from one account."""

    def __init__(self, w3: AsyncWeb3, account: LocalAccount, chain_id: int):
        self.w3 = w3
        self.account = account
        self.chain_id = chain_id
        self._nonce_lock = asyncio.Lock()

    @property
    def sender_address(self) -> str:
        return self.account.address

    def for_escrow(self, escrow_address: str) -> EscrowGateway:
        return Web3EscrowGateway(
            self.w3,
            escrow_address,
            self.account,
            self.chain_id,
            nonce_lock=self._nonce_lock,
        )

    async def get_balance(self) -> int:
        return int(await self.w3.eth.get_balance(self.account.address))

    async def get_block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def get_chain_id(self) -> int:
        return int(await self.w3.eth.chain_id)
