"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .insurance_ledger import InsuranceLedger
from .signer_protocol import Signer

__all__ = ["InsuranceLedger", "Signer"]
