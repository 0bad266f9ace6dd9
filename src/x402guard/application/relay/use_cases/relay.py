"""Gas-paying relay for client-signed refund claims."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Optional

from ....crypto.typed_data import (
    META_REFUND_CLAIM_TYPES,
    TIMEOUT_REFUND_CLAIM_TYPES,
    commitment_only_message,
    escrow_domain,
    meta_refund_claim_message,
    verify_typed_signer,
)
from ....domain.errors import (
    AlreadySettledError,
    MissingFieldsError,
    PaymentNotExpiredError,
    RelaySubmissionError,
    SignatureExpiredError,
)
from ....domain.escrow.gateway import (
    EscrowGatewayFactory,
    MetaRefundRequest,
    TransactionReceipt,
)
from ....domain.relay.stats import RelayStatistics, RelayStatsSnapshot
from ..dtos import (
    RelayHealthDTO,
    RelayRefundRequestDTO,
    RelayResultDTO,
    RelayStatsDTO,
    RelayStatsResponseDTO,
    RelayTimeoutRefundRequestDTO,
    format_elapsed,
    format_ether,
)

logger = logging.getLogger(__name__)

REFUND_RELAYED_MESSAGE = "Refund claimed! Gas paid by the relay."

_REFUND_FIELDS = (
    "escrow_address",
    "request_commitment",
    "amount",
    "client",
    "deadline",
    "client_signature",
    "server_signature",
)
_TIMEOUT_FIELDS = ("escrow_address", "request_commitment", "client_signature")


def _missing(dto: object, fields: tuple[str, ...]) -> list[str]:
    # Zero amounts and deadlines count as missing, like empty strings
    return [name for name in fields if not getattr(dto, name)]


def _stats_dto(snapshot: RelayStatsSnapshot) -> RelayStatsDTO:
    return RelayStatsDTO(
        total_relays=snapshot.total_relays,
        successful_relays=snapshot.successful_relays,
        failed_relays=snapshot.failed_relays,
        total_gas_used=str(snapshot.total_gas_used),
        total_gas_cost=format_ether(snapshot.total_gas_cost),
        avg_gas_cost=format_ether(snapshot.avg_gas_cost),
        success_rate=f"{snapshot.success_rate:.2f}%"
        if snapshot.total_relays
        else "0%",
    )


class RelayService:
    """Submits refund claims to the escrow on behalf of clients.

    Validation rejections raise ``ValueError`` subclasses before anything is
    broadcast. Failures on or after broadcast raise ``RelaySubmissionError``
    and are counted in ``failed_relays``.
    """

    def __init__(
        self,
        gateways: EscrowGatewayFactory,
        stats: RelayStatistics,
        chain_id: int,
        gas_buffer_percent: int = 120,
        low_balance_wei: int = 0,
        now: Callable[[], int] = lambda: int(time.time()),
    ):
        self.gateways = gateways
        self.stats = stats
        self.chain_id = chain_id
        self.gas_buffer_percent = gas_buffer_percent
        self.low_balance_wei = low_balance_wei
        self._now = now

    def gas_limit_for(self, estimate: int) -> int:
        return estimate * self.gas_buffer_percent // 100

    async def relay_refund(self, dto: RelayRefundRequestDTO) -> RelayResultDTO:
        started = time.monotonic()
        await self.stats.record_attempt()

        missing = _missing(dto, _REFUND_FIELDS)
        if missing:
            raise MissingFieldsError(missing)
        assert dto.escrow_address and dto.request_commitment and dto.client
        assert dto.amount and dto.deadline
        assert dto.client_signature and dto.server_signature

        logger.info(
            "Relaying refund: client=%s amount=%d escrow=%s commitment=%s",
            dto.client,
            dto.amount,
            dto.escrow_address,
            dto.request_commitment,
        )
        gateway = self.gateways.for_escrow(dto.escrow_address)

        if await gateway.commitment_settled(dto.request_commitment):
            raise AlreadySettledError()

        now = self._now()
        if now > dto.deadline:
            raise SignatureExpiredError(dto.deadline, now)

        verify_typed_signer(
            escrow_domain(self.chain_id, dto.escrow_address),
            META_REFUND_CLAIM_TYPES,
            meta_refund_claim_message(
                dto.request_commitment, dto.amount, dto.client, dto.deadline
            ),
            dto.client_signature,
            dto.client,
        )

        request = MetaRefundRequest(
            request_commitment=dto.request_commitment,
            amount=dto.amount,
            client=dto.client,
            deadline=dto.deadline,
            client_signature=dto.client_signature,
            server_signature=dto.server_signature,
        )
        # Raises GasEstimationError, a rejection: nothing has been broadcast yet
        estimate = await gateway.estimate_meta_claim_refund_gas(request)
        gas_limit = self.gas_limit_for(estimate)
        logger.info("Estimated gas %d, sending with limit %d", estimate, gas_limit)

        receipt = await self._submit(
            started, lambda: gateway.meta_claim_refund(request, gas_limit)
        )
        return await self._succeeded(started, receipt, REFUND_RELAYED_MESSAGE)

    async def relay_timeout_refund(
        self, dto: RelayTimeoutRefundRequestDTO
    ) -> RelayResultDTO:
        started = time.monotonic()
        await self.stats.record_attempt()

        missing = _missing(dto, _TIMEOUT_FIELDS)
        if missing:
            raise MissingFieldsError(missing)
        assert dto.escrow_address and dto.request_commitment and dto.client_signature

        logger.info(
            "Relaying timeout refund: escrow=%s commitment=%s",
            dto.escrow_address,
            dto.request_commitment,
        )
        gateway = self.gateways.for_escrow(dto.escrow_address)

        payment = await gateway.pending_payments(dto.request_commitment)
        if payment.is_settled:
            raise AlreadySettledError("Payment already settled")

        now = self._now()
        if now <= payment.deadline:
            raise PaymentNotExpiredError(payment.deadline - now)

        verify_typed_signer(
            escrow_domain(self.chain_id, dto.escrow_address),
            TIMEOUT_REFUND_CLAIM_TYPES,
            commitment_only_message(dto.request_commitment),
            dto.client_signature,
            payment.client,
        )

        commitment = dto.request_commitment
        receipt = await self._submit(
            started, lambda: gateway.claim_timeout_refund(commitment)
        )
        return await self._succeeded(started, receipt, None)

    async def _submit(
        self, started: float, send: Callable[[], Awaitable[TransactionReceipt]]
    ) -> TransactionReceipt:
        try:
            receipt = await send()
        except Exception as e:
            await self.stats.record_failure()
            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.exception("Relay failed after %dms", elapsed_ms)
            raise RelaySubmissionError(str(e), elapsed_ms) from e
        logger.info("Transaction mined: %s", receipt.tx_hash)
        return receipt

    async def _succeeded(
        self, started: float, receipt: TransactionReceipt, message: Optional[str]
    ) -> RelayResultDTO:
        await self.stats.record_success(receipt.gas_used, receipt.gas_cost)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Relay succeeded: tx=%s block=%d gas=%d elapsed=%dms",
            receipt.tx_hash,
            receipt.block_number,
            receipt.gas_used,
            elapsed_ms,
        )
        return RelayResultDTO(
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            gas_used=str(receipt.gas_used),
            gas_cost=format_ether(receipt.gas_cost),
            elapsed=format_elapsed(elapsed_ms),
            message=message,
        )

    async def get_stats(self) -> RelayStatsResponseDTO:
        balance = await self.gateways.get_balance()
        return RelayStatsResponseDTO(
            relayer=self.gateways.sender_address,
            eth_balance=format_ether(balance),
            stats=_stats_dto(await self.stats.snapshot()),
        )

    async def reset_stats(self) -> None:
        await self.stats.reset()

    async def health(self) -> RelayHealthDTO:
        balance = await self.gateways.get_balance()
        low = balance < self.low_balance_wei
        if low:
            logger.warning(
                "Relay balance is low: %s ETH at %s",
                format_ether(balance),
                self.gateways.sender_address,
            )
        return RelayHealthDTO(
            relayer=self.gateways.sender_address,
            eth_balance=format_ether(balance),
            block_number=await self.gateways.get_block_number(),
            network=await self.gateways.get_chain_id(),
            low_balance=low,
            stats=_stats_dto(await self.stats.snapshot()),
        )
