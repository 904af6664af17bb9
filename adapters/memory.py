"""
In-memory storefront gateway.

Behaves like the storefront backend: confirming a payment moves the order to
WAITING_DELIVERY, rejecting it marks the transaction REJECTED and cancels the
order. Transactions are listed one entry per order, null where the order has
no transaction yet.
"""
import copy
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from adapters.base import GatewayResponse, StoreGateway
from core.models import OrderStatus, REJECTED_PAYMENT_METHOD

PATCHABLE_ORDER_FIELDS = {"status", "customerName", "customerAdds"}


class InMemoryStoreGateway(StoreGateway):
    """Dict-backed gateway for demos and tests."""

    def __init__(self) -> None:
        self._orders: Dict[str, List[Dict[str, Any]]] = {}
        self._transactions: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------
    # Seeding
    # ------------------------------------------------

    def add_order(self, store_id: str, order: Dict[str, Any]) -> None:
        with self._lock:
            self._orders.setdefault(store_id, []).append(copy.deepcopy(order))

    def add_transaction(self, store_id: str, transaction: Dict[str, Any]) -> None:
        order_id = transaction.get("orderId")
        if not order_id:
            raise ValueError("transaction needs an orderId")
        with self._lock:
            self._transactions.setdefault(store_id, {})[order_id] = copy.deepcopy(transaction)

    def _find_order(self, store_id: str, order_id: str) -> Optional[Dict[str, Any]]:
        for order in self._orders.get(store_id, []):
            if order.get("id") == order_id:
                return order
        return None

    @staticmethod
    def _now() -> str:
        return datetime.now().isoformat()

    # ------------------------------------------------
    # Orders
    # ------------------------------------------------

    def get_store_orders(self, store_id, page=None, limit=None):
        with self._lock:
            orders = copy.deepcopy(self._orders.get(store_id, []))
        if page and limit:
            start = (page - 1) * limit
            orders = orders[start:start + limit]
        return GatewayResponse.ok(
            {"orders": orders, "total": len(orders)}, "Orders retrieved successfully"
        )

    def get_store_order(self, store_id, order_id):
        with self._lock:
            order = self._find_order(store_id, order_id)
            if order is None:
                return GatewayResponse.fail("Order not found in specified store")
            return GatewayResponse.ok(copy.deepcopy(order), "Order retrieved successfully")

    def update_store_order(self, store_id, order_id, patch):
        unknown = set(patch) - PATCHABLE_ORDER_FIELDS
        if unknown:
            return GatewayResponse.fail(f"Unsupported order fields: {sorted(unknown)}")
        if "status" in patch and patch["status"] not in OrderStatus.__members__:
            return GatewayResponse.fail(f"Invalid order status: {patch['status']}")
        with self._lock:
            order = self._find_order(store_id, order_id)
            if order is None:
                return GatewayResponse.fail("Order not found")
            order.update(patch)
            order["updatedAt"] = self._now()
            return GatewayResponse.ok(copy.deepcopy(order), "Order updated successfully")

    # ------------------------------------------------
    # Transactions
    # ------------------------------------------------

    def get_store_transactions(self, store_id, page=None, limit=None):
        with self._lock:
            by_order = self._transactions.get(store_id, {})
            transactions = [
                copy.deepcopy(by_order.get(order["id"]))
                for order in self._orders.get(store_id, [])
            ]
        return GatewayResponse.ok(
            {"transactions": transactions, "total": len(transactions)},
            "Transactions retrieved successfully",
        )

    def update_transaction_by_order_id(self, store_id, order_id, status):
        if status not in ("confirmed", "rejected"):
            return GatewayResponse.fail(f"Invalid transaction status: {status}")
        with self._lock:
            order = self._find_order(store_id, order_id)
            if order is None:
                return GatewayResponse.fail("Order not found")
            transaction = self._transactions.get(store_id, {}).get(order_id)
            if transaction is None:
                return GatewayResponse.fail("Transaction not found")

            now = self._now()
            if status == "confirmed":
                transaction["isConfirmed"] = True
                order["status"] = OrderStatus.WAITING_DELIVERY.value
            else:
                transaction["isConfirmed"] = False
                transaction["paymentMethod"] = REJECTED_PAYMENT_METHOD
                order["status"] = OrderStatus.CANCELLED.value
            transaction["updatedAt"] = now
            order["updatedAt"] = now
            return GatewayResponse.ok(
                {
                    "updatedTransaction": copy.deepcopy(transaction),
                    "updatedOrder": copy.deepcopy(order),
                },
                "Transaction updated successfully",
            )
