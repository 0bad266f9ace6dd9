"""Local JSON receipts for refund and insurance offers (audit trail only)."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any

from ..crypto.commitment import commitment_fragment


class _ReceiptStore:
    prefix: str

    def __init__(self, directory: str):
        self.directory = directory

    def path_for(self, request_commitment: str) -> str:
        return os.path.join(
            self.directory, f"{self.prefix}-{commitment_fragment(request_commitment)}.json"
        )

    def _write(self, request_commitment: str, details: dict[str, Any]) -> str:
        os.makedirs(self.directory, exist_ok=True)
        receipt = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "requestCommitment": request_commitment,
            **details,
        }
        path = self.path_for(request_commitment)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(receipt, f, indent=2)
        return path

    def load(self, request_commitment: str) -> dict[str, Any]:
        with open(self.path_for(request_commitment), encoding="utf-8") as f:
            return json.load(f)


class RefundReceiptStore(_ReceiptStore):
    """Writes ``refund-<fragment>.json`` with the voucher the provider returned."""

    prefix = "refund"

    def save(self, request_commitment: str, amount: int, signature: str) -> str:
        return self._write(
            request_commitment, {"amount": str(amount), "signature": signature}
        )


class InsuranceReceiptStore(_ReceiptStore):
    """Writes ``insurance-<fragment>.json`` describing a purchased policy."""

    prefix = "insurance"

    def save(
        self,
        request_commitment: str,
        payment_amount: int,
        insurance_fee: int,
        provider: str,
        timeout_minutes: int,
    ) -> str:
        return self._write(
            request_commitment,
            {
                "paymentAmount": str(payment_amount),
                "insuranceFee": str(insurance_fee),
                "provider": provider,
                "timeoutMinutes": timeout_minutes,
            },
        )
