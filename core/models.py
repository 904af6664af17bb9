"""
Core domain models for orders, payment transactions and transfer slips.

Wire payloads from the storefront backend are camelCase JSON; each model
parses with ``from_dict`` and serializes back with ``to_dict``.
"""
from enum import Enum
from typing import Optional, Dict, Any, Tuple
from dataclasses import dataclass, field


REJECTED_PAYMENT_METHOD = "REJECTED"


class OrderStatus(str, Enum):
    """Order status enum."""
    PENDING = "PENDING"
    WAITING_DELIVERY = "WAITING_DELIVERY"
    IN_DELIVERY = "IN_DELIVERY"
    CANCELLED = "CANCELLED"
    FINISHED = "FINISHED"

    @property
    def label(self) -> str:
        return ORDER_STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.CANCELLED, OrderStatus.FINISHED)


ORDER_STATUS_LABELS = {
    OrderStatus.PENDING: "Waiting Payment",
    OrderStatus.WAITING_DELIVERY: "Waiting Delivery",
    OrderStatus.IN_DELIVERY: "In Delivery",
    OrderStatus.CANCELLED: "Cancelled",
    OrderStatus.FINISHED: "Finished",
}


class TransactionState(str, Enum):
    """Derived confirmation state of a transaction."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class PaymentDecision(str, Enum):
    """Accept or reject a payment."""
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def gateway_status(self) -> str:
        """Status string the backend expects for this decision."""
        return "confirmed" if self is PaymentDecision.ACCEPT else "rejected"


@dataclass(frozen=True)
class OrderProductInfo:
    """One ordered line."""
    product_id: str
    name: str
    price: float
    quantity: int
    customization: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderProductInfo":
        if not isinstance(data, dict):
            raise TypeError(f"product line must be an object, got {type(data).__name__}")
        return cls(
            product_id=str(data.get("productId", "")),
            name=data.get("name", ""),
            price=float(data.get("price") or 0),
            quantity=int(data.get("quantity") or 0),
            customization=data.get("customization"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "productId": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }
        if self.customization is not None:
            out["customization"] = self.customization
        return out


@dataclass(frozen=True)
class Order:
    """Customer order as served by the storefront backend."""
    id: str
    status: OrderStatus
    customer_name: str = ""
    customer_adds: str = ""
    customer_line_id: str = ""
    product_info: Tuple[OrderProductInfo, ...] = ()
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def total(self) -> float:
        return sum(p.line_total for p in self.product_info)

    @property
    def item_count(self) -> int:
        return len(self.product_info)

    @property
    def is_valid(self) -> bool:
        return bool(self.product_info)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """Parse a wire order. Raises ValueError on an unknown status, TypeError on bad product lines."""
        lines = data.get("productInfo") or []
        if not isinstance(lines, list):
            raise TypeError(f"productInfo must be a list, got {type(lines).__name__}")
        return cls(
            id=str(data["id"]),
            status=OrderStatus(data.get("status")),
            customer_name=data.get("customerName") or "",
            customer_adds=data.get("customerAdds") or "",
            customer_line_id=data.get("customerLineId") or "",
            product_info=tuple(OrderProductInfo.from_dict(p) for p in lines),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "customerName": self.customer_name,
            "customerAdds": self.customer_adds,
            "customerLineId": self.customer_line_id,
            "productInfo": [p.to_dict() for p in self.product_info],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class SlipParty:
    """Sender or receiver of a bank transfer."""
    display_name: str = ""
    name: str = ""
    account: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SlipParty":
        data = data or {}
        account = data.get("account") or {}
        return cls(
            display_name=data.get("displayName") or "",
            name=data.get("name") or "",
            account=account.get("value") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "displayName": self.display_name,
            "name": self.name,
            "account": {"value": self.account},
        }


@dataclass(frozen=True)
class Slip:
    """A single bank-transfer receipt attached to a transaction."""
    id: str
    amount: float = 0.0
    is_confirmed: bool = False
    trans_date: str = ""
    trans_time: str = ""
    sender: SlipParty = field(default_factory=SlipParty)
    receiver: SlipParty = field(default_factory=SlipParty)
    sending_bank: str = ""
    receiving_bank: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Slip":
        if not isinstance(data, dict):
            raise TypeError(f"slip must be an object, got {type(data).__name__}")
        return cls(
            id=str(data.get("id", "")),
            amount=float(data.get("amount") or 0),
            is_confirmed=bool(data.get("isConfirmed", False)),
            trans_date=data.get("transDate") or "",
            trans_time=data.get("transTime") or "",
            sender=SlipParty.from_dict(data.get("sender")),
            receiver=SlipParty.from_dict(data.get("receiver")),
            sending_bank=data.get("sendingBank") or "",
            receiving_bank=data.get("receivingBank") or "",
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "isConfirmed": self.is_confirmed,
            "transDate": self.trans_date,
            "transTime": self.trans_time,
            "sender": self.sender.to_dict(),
            "receiver": self.receiver.to_dict(),
            "sendingBank": self.sending_bank,
            "receivingBank": self.receiving_bank,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class Transaction:
    """Payment transaction for an order, owning zero or more slips."""
    id: str
    order_id: Optional[str] = None
    total_amount: float = 0.0
    payment_method: Optional[str] = None
    is_confirmed: bool = False
    slip: Tuple[Slip, ...] = ()
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def state(self) -> TransactionState:
        # Rejection takes precedence over the confirmed flag
        if self.payment_method == REJECTED_PAYMENT_METHOD:
            return TransactionState.REJECTED
        if self.is_confirmed:
            return TransactionState.CONFIRMED
        return TransactionState.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.state is not TransactionState.PENDING

    @property
    def slips_confirmed(self) -> bool:
        return bool(self.slip) and all(s.is_confirmed for s in self.slip)

    @property
    def slip_total(self) -> float:
        return sum(s.amount for s in self.slip)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        order_id = data.get("orderId")
        return cls(
            id=str(data.get("id", "")),
            order_id=str(order_id) if order_id else None,
            total_amount=float(data.get("totalAmount") or 0),
            payment_method=data.get("paymentMethod"),
            is_confirmed=bool(data.get("isConfirmed", False)),
            slip=tuple(Slip.from_dict(s) for s in (data.get("slip") or []) if s),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "totalAmount": self.total_amount,
            "paymentMethod": self.payment_method,
            "isConfirmed": self.is_confirmed,
            "state": self.state.value,
            "slip": [s.to_dict() for s in self.slip],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class Notification:
    """User-visible outcome of a workflow action."""
    level: str  # success | info | warning | error
    message: str

    @property
    def ok(self) -> bool:
        return self.level in ("success", "info")
