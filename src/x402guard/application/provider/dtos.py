"""Data Transfer Objects for the resource server (provider) application layer.

Wire names are camelCase, matching what x402 clients already parse.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RefundBundleDTO(CamelModel):
    """Provider-signed refund voucher carried inside a failure response."""

    amount: int
    signature: str

    @field_serializer("amount")
    def serialize_amount(self, value: int) -> str:
        return str(value)


class RefundAuthorizationDTO(CamelModel):
    """What a failed paid request hands back to the client."""

    request_commitment: str
    amount: int
    signature: str

    @field_serializer("amount")
    def serialize_amount(self, value: int) -> str:
        return str(value)

    def bundle(self) -> RefundBundleDTO:
        return RefundBundleDTO(amount=self.amount, signature=self.signature)


class ServiceFailureResponseDTO(CamelModel):
    """Paid request failed after settlement; carries the refund voucher."""

    success: bool = False
    code: str = "INTERNAL_ERROR"
    message: str = "Service temporarily unavailable"
    request_commitment: str
    refund: RefundBundleDTO


class PremiumContentDTO(CamelModel):
    success: bool = True
    message: str
    data: dict[str, Any]


class EscrowInfoDTO(CamelModel):
    success: bool = True
    address: str
    provider_address: str


class ProviderHealthDTO(CamelModel):
    success: bool = True
    status: str = "healthy"
    escrow_address: str
    escrow_healthy: Optional[bool] = None
