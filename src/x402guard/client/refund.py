"""Client side of the refund protocol: verify a voucher, then claim it."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel

from ..application.provider.dtos import ServiceFailureResponseDTO
from ..application.relay.dtos import RelayRefundRequestDTO, RelayTimeoutRefundRequestDTO
from ..crypto.commitment import (
    DEFAULT_COMMITMENT_WINDOW,
    commitments_equal,
    compute_request_commitment,
)
from ..crypto.typed_data import (
    META_REFUND_CLAIM_TYPES,
    REFUND_CLAIM_TYPES,
    TIMEOUT_REFUND_CLAIM_TYPES,
    TypedDataDomain,
    commitment_only_message,
    escrow_domain,
    meta_refund_claim_message,
    refund_claim_message,
    sign_typed,
    verify_typed_signer,
)
from ..domain.errors import (
    CommitmentMismatchError,
    EscrowUnhealthyError,
    RelayRequestError,
)
from ..domain.escrow.gateway import EscrowGateway, EscrowHealth
from ..domain.shared import Signer
from ..infrastructure.provider.provider_client import PaidResponse
from ..infrastructure.relay.relay_client import RelayClient
from .receipts import RefundReceiptStore

logger = logging.getLogger(__name__)

ALREADY_SETTLED = "Request already settled"


class RefundOutcome(BaseModel):
    request_commitment: str
    amount: int
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    already_settled: bool = False
    via_relay: bool = False


class RefundClaimClient:
    """Claims refunds for failed paid requests against a bonded escrow.

    The commitment is always recomputed locally from the request the client
    actually sent; a server-supplied commitment is never trusted as-is.
    """

    def __init__(
        self,
        signer: Signer,
        escrow: EscrowGateway,
        chain_id: int,
        relay: Optional[RelayClient] = None,
        receipts: Optional[RefundReceiptStore] = None,
        provider_address: Optional[str] = None,
        window: str = DEFAULT_COMMITMENT_WINDOW,
        now: Callable[[], int] = lambda: int(time.time()),
    ):
        self.signer = signer
        self.escrow = escrow
        self.chain_id = chain_id
        self.relay = relay
        self.receipts = receipts
        self.provider_address = provider_address
        self.window = window
        self._now = now

    @property
    def domain(self) -> TypedDataDomain:
        return escrow_domain(self.chain_id, self.escrow.address)

    async def check_escrow_health(self) -> EscrowHealth:
        """Pre-flight check; paid requests must not be made against an unhealthy bond."""
        health = await self.escrow.health()
        if not health.is_healthy:
            logger.warning(
                "Escrow %s unhealthy: bond %d below minimum %d",
                self.escrow.address,
                health.bond_balance,
                health.min_bond,
            )
            raise EscrowUnhealthyError(
                bond_balance=health.bond_balance, min_bond=health.min_bond
            )
        return health

    def verify_refund_offer(
        self,
        method: str,
        url: str,
        payment_header: str,
        offer: ServiceFailureResponseDTO,
    ) -> str:
        """Return the locally computed commitment if the offer matches it.

        Raises:
            CommitmentMismatchError: The server's commitment is not ours.
            InvalidSignatureError: A provider address is known and did not sign.
        """
        expected = compute_request_commitment(method, url, payment_header, self.window)
        if not commitments_equal(expected, offer.request_commitment):
            logger.error(
                "Commitment mismatch for %s %s: computed %s, server sent %s",
                method,
                url,
                expected,
                offer.request_commitment,
            )
            raise CommitmentMismatchError(expected, offer.request_commitment)
        if self.provider_address:
            verify_typed_signer(
                self.domain,
                REFUND_CLAIM_TYPES,
                refund_claim_message(expected, offer.refund.amount),
                offer.refund.signature,
                self.provider_address,
            )
        return expected

    def _save_receipt(self, commitment: str, offer: ServiceFailureResponseDTO) -> None:
        if self.receipts is not None:
            path = self.receipts.save(
                commitment, offer.refund.amount, offer.refund.signature
            )
            logger.info("Refund receipt saved: %s", path)

    async def claim_refund(
        self,
        method: str,
        url: str,
        payment_header: str,
        offer: ServiceFailureResponseDTO,
    ) -> RefundOutcome:
        """Claim directly from the escrow, paying gas from the client's account."""
        commitment = self.verify_refund_offer(method, url, payment_header, offer)
        self._save_receipt(commitment, offer)
        amount = offer.refund.amount
        try:
            receipt = await self.escrow.claim_refund(
                commitment, amount, offer.refund.signature
            )
        except Exception:
            if await self.escrow.commitment_settled(commitment):
                logger.info("Refund for %s was already settled", commitment)
                return RefundOutcome(
                    request_commitment=commitment, amount=amount, already_settled=True
                )
            raise
        logger.info("Refund claimed for %s in block %d", commitment, receipt.block_number)
        return RefundOutcome(
            request_commitment=commitment,
            amount=amount,
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
        )

    def build_meta_refund_request(
        self, offer: ServiceFailureResponseDTO, deadline: int
    ) -> RelayRefundRequestDTO:
        client_signature = sign_typed(
            self.signer,
            self.domain,
            META_REFUND_CLAIM_TYPES,
            meta_refund_claim_message(
                offer.request_commitment,
                offer.refund.amount,
                self.signer.address,
                deadline,
            ),
        )
        return RelayRefundRequestDTO(
            escrow_address=self.escrow.address,
            request_commitment=offer.request_commitment,
            amount=offer.refund.amount,
            client=self.signer.address,
            deadline=deadline,
            client_signature=client_signature,
            server_signature=offer.refund.signature,
        )

    def _require_relay(self) -> RelayClient:
        if self.relay is None:
            raise RuntimeError("No relay configured for gasless claims")
        return self.relay

    async def claim_refund_via_relay(
        self,
        method: str,
        url: str,
        payment_header: str,
        offer: ServiceFailureResponseDTO,
        valid_for_seconds: int = 300,
    ) -> RefundOutcome:
        """Claim through the relay; the client signs, the relay pays gas."""
        relay = self._require_relay()
        commitment = self.verify_refund_offer(method, url, payment_header, offer)
        self._save_receipt(commitment, offer)
        request = self.build_meta_refund_request(
            offer, self._now() + valid_for_seconds
        )
        try:
            result = await relay.relay_refund(request)
        except RelayRequestError as e:
            if e.error == ALREADY_SETTLED:
                logger.info("Refund for %s was already settled", commitment)
                return RefundOutcome(
                    request_commitment=commitment,
                    amount=offer.refund.amount,
                    already_settled=True,
                    via_relay=True,
                )
            raise
        return RefundOutcome(
            request_commitment=commitment,
            amount=offer.refund.amount,
            tx_hash=result.tx_hash,
            block_number=result.block_number,
            via_relay=True,
        )

    async def claim_timeout_refund_via_relay(self, request_commitment: str) -> RefundOutcome:
        """Recover an escrowed payment the provider never resolved before its deadline."""
        relay = self._require_relay()
        signature = sign_typed(
            self.signer,
            self.domain,
            TIMEOUT_REFUND_CLAIM_TYPES,
            commitment_only_message(request_commitment),
        )
        payment = await self.escrow.pending_payments(request_commitment)
        result = await relay.relay_timeout_refund(
            RelayTimeoutRefundRequestDTO(
                escrow_address=self.escrow.address,
                request_commitment=request_commitment,
                client_signature=signature,
            )
        )
        return RefundOutcome(
            request_commitment=request_commitment,
            amount=payment.amount,
            tx_hash=result.tx_hash,
            block_number=result.block_number,
            via_relay=True,
        )

    async def claim_from_response(
        self, paid: PaidResponse, use_relay: bool = False
    ) -> Optional[RefundOutcome]:
        """Claim the refund a paid response carries, if it carries one."""
        offer = paid.refund_offer
        if offer is None:
            return None
        if use_relay:
            return await self.claim_refund_via_relay(
                paid.method, paid.url, paid.payment_header, offer
            )
        return await self.claim_refund(paid.method, paid.url, paid.payment_header, offer)
