from __future__ import annotations

from typing import Dict, Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from core.exceptions import PatchValidationError
from core.models import OrderStatus, PaymentDecision


class OrderPatch(BaseModel):
    """Closed set of order fields the back office may change."""

    model_config = ConfigDict(extra="forbid")

    status: Optional[OrderStatus] = None
    customer_name: Optional[str] = None
    customer_adds: Optional[str] = None

    @field_validator("status", mode="before")
    def norm_status(cls, v):
        if v is None or isinstance(v, OrderStatus):
            return v
        v = str(v).strip().upper()
        if v not in OrderStatus.__members__:
            raise ValueError(
                "status must be one of PENDING, WAITING_DELIVERY, IN_DELIVERY, CANCELLED, FINISHED"
            )
        return v

    @field_validator("customer_name")
    def validate_name(cls, v: Optional[str]):
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Customer name is required")
        return v

    @field_validator("customer_adds")
    def validate_adds(cls, v: Optional[str]):
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Customer address is required")
        return v

    @model_validator(mode="after")
    def require_change(self):
        if self.status is None and self.customer_name is None and self.customer_adds is None:
            raise ValueError("Order patch must change at least one field")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Wire body for PATCH /orders/{orderId}."""
        payload: Dict[str, Any] = {}
        if self.status is not None:
            payload["status"] = self.status.value
        if self.customer_name is not None:
            payload["customerName"] = self.customer_name
        if self.customer_adds is not None:
            payload["customerAdds"] = self.customer_adds
        return payload


def validate_order_patch(data: Dict[str, Any]) -> OrderPatch:
    """
    Build an OrderPatch from snake_case or camelCase keys.

    Raises:
        PatchValidationError: unknown fields or invalid values
    """
    if isinstance(data, OrderPatch):
        return data
    if data is not None and not isinstance(data, dict):
        raise PatchValidationError(f"Order patch must be an object, got {type(data).__name__}")
    aliases = {"customerName": "customer_name", "customerAdds": "customer_adds"}
    row = {aliases.get(k, k): v for k, v in (data or {}).items()}
    try:
        return OrderPatch(**row)
    except ValidationError as e:
        raise PatchValidationError(str(e)) from e


def parse_decision(value: Any) -> PaymentDecision:
    """Normalize "accept"/"reject" (any case) into a PaymentDecision."""
    if isinstance(value, PaymentDecision):
        return value
    v = str(value or "").strip().lower()
    try:
        return PaymentDecision(v)
    except ValueError:
        raise PatchValidationError("decision must be accept or reject") from None
