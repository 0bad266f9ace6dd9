"""Domain-specific exceptions.

Validation failures subclass ``ValueError`` so API layers can map them to
client errors the same way they map any other rejected input.
"""

from __future__ import annotations

from typing import Optional


class CommitmentMismatchError(Exception):
    """Recomputed request commitment differs from the one the server returned.

    Possible tampering: the claim must be aborted, never retried as-is.
    """

    def __init__(self, expected: str, received: str):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Request commitment mismatch: computed {expected}, server sent {received}"
        )


class PaymentHeaderDecodeError(ValueError):
    """The X-PAYMENT header could not be decoded into a payment amount."""


class MissingFieldsError(ValueError):
    """A relay request is missing required parameters."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__("Missing required parameters")


class AlreadySettledError(ValueError):
    """The escrow already settled this commitment."""

    def __init__(self, message: str = "Request already settled"):
        super().__init__(message)


class SignatureExpiredError(ValueError):
    """A signed meta-transaction is past its deadline."""

    def __init__(self, deadline: int, now: int):
        self.deadline = deadline
        self.now = now
        super().__init__("Signature expired")


class InvalidSignatureError(ValueError):
    """A typed-data signature does not recover to the expected signer."""


class PaymentNotExpiredError(ValueError):
    """Timeout refund requested before the payment deadline passed."""

    def __init__(self, time_left: int):
        self.time_left = time_left
        super().__init__("Payment not yet expired")


class GasEstimationError(ValueError):
    """The escrow rejected the call during gas estimation (nothing broadcast)."""


class EscrowUnhealthyError(Exception):
    """The escrow bond is unhealthy or unreachable; new paid requests must stop."""

    def __init__(
        self,
        message: str = "Escrow is not healthy",
        *,
        bond_balance: Optional[int] = None,
        min_bond: Optional[int] = None,
    ):
        self.bond_balance = bond_balance
        self.min_bond = min_bond
        super().__init__(message)


class TransactionRevertedError(Exception):
    """A broadcast transaction was mined with a failure status."""

    def __init__(self, tx_hash: str, reason: str = "Transaction reverted"):
        self.tx_hash = tx_hash
        self.reason = reason
        super().__init__(f"{reason} ({tx_hash})")


class RelaySubmissionError(Exception):
    """Relay submission failed on or after broadcast."""

    def __init__(self, message: str, elapsed_ms: int):
        self.elapsed_ms = elapsed_ms
        super().__init__(message)


class PolicyAlreadyExistsError(ValueError):
    """An insurance policy already exists for this commitment."""


class PolicyNotFoundError(ValueError):
    """No insurance policy exists for this commitment."""


class InvalidPolicyTransitionError(ValueError):
    """Requested insurance state transition is not allowed from the current state."""


class UnauthorizedPolicyActorError(ValueError):
    """The caller is not the party allowed to perform this policy transition."""


class InsufficientBondError(ValueError):
    """Provider bond cannot cover the insured payment."""


class RelayRequestError(Exception):
    """The relay answered with a failure payload."""

    def __init__(
        self,
        status_code: int,
        error: str,
        *,
        elapsed: Optional[str] = None,
        time_left: Optional[int] = None,
    ):
        self.status_code = status_code
        self.error = error
        self.elapsed = elapsed
        self.time_left = time_left
        super().__init__(f"Relay rejected request ({status_code}): {error}")


class PaymentRequiredError(Exception):
    """A paid resource could not be paid for or the payment was refused."""

    def __init__(self, message: str, accepts: Optional[list[dict]] = None):
        self.accepts = accepts or []
        super().__init__(message)
