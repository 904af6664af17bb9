"""
Storefront gateway contract.
Every backend transport (REST, in-memory) implements this interface.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class GatewayResponse:
    """Uniform envelope: success is the only failure signal."""
    success: bool
    data: Any = None
    message: str = ""

    @classmethod
    def ok(cls, data: Any = None, message: str = "") -> "GatewayResponse":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str) -> "GatewayResponse":
        return cls(success=False, data=None, message=message)

    @classmethod
    def from_json(cls, body: Any) -> "GatewayResponse":
        """Normalize a backend JSON body into an envelope."""
        if not isinstance(body, dict):
            return cls.fail(f"Unexpected response format: {body!r}")
        error = body.get("error")
        message = body.get("message") or ""
        if isinstance(error, dict) and not message:
            message = error.get("message", "")
        return cls(
            success=body.get("success") is True,
            data=body.get("data"),
            message=message,
        )


class StoreGateway(ABC):
    """
    Base class for storefront backends.
    Implementations never raise for backend failures; they return
    GatewayResponse(success=False, message=...).
    """

    @abstractmethod
    def get_store_orders(
        self, store_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> GatewayResponse:
        """Return data={"orders": [...]}."""
        pass

    @abstractmethod
    def get_store_order(self, store_id: str, order_id: str) -> GatewayResponse:
        """Return data=order."""
        pass

    @abstractmethod
    def update_store_order(
        self, store_id: str, order_id: str, patch: Dict[str, Any]
    ) -> GatewayResponse:
        """
        Apply a camelCase patch (status, customerName, customerAdds).
        Return data=updated order.
        """
        pass

    @abstractmethod
    def get_store_transactions(
        self, store_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> GatewayResponse:
        """Return data={"transactions": [...]}; entries may be null."""
        pass

    @abstractmethod
    def update_transaction_by_order_id(
        self, store_id: str, order_id: str, status: str
    ) -> GatewayResponse:
        """
        Confirm or reject the transaction of an order.
        status is "confirmed" or "rejected".
        """
        pass
