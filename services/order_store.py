"""
Order snapshot for one store, with status counts and tab filters.
"""
import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from adapters.base import StoreGateway
from core.exceptions import FetchError
from core.models import Order, OrderStatus
from services.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

# Tab name -> status. "all" is handled separately.
ORDER_VIEWS = {
    "waiting-payment": OrderStatus.PENDING,
    "waiting-delivery": OrderStatus.WAITING_DELIVERY,
    "in-delivery": OrderStatus.IN_DELIVERY,
}
ALL_VIEW = "all"


@dataclass(frozen=True)
class StatusCount:
    waiting_payment: int = 0
    waiting_delivery: int = 0
    in_delivery: int = 0
    all: int = 0

    @property
    def other(self) -> int:
        """Orders outside the three tab buckets (cancelled, finished)."""
        return self.all - self.waiting_payment - self.waiting_delivery - self.in_delivery

    @staticmethod
    def badge(count: int) -> str:
        if count <= 0:
            return ""
        return "99+" if count > 99 else str(count)

    def to_dict(self) -> Dict[str, int]:
        return {
            "waitingPayment": self.waiting_payment,
            "waitingDelivery": self.waiting_delivery,
            "inDelivery": self.in_delivery,
            "all": self.all,
        }


def parse_orders(raw: Any) -> List[Order]:
    """Parse wire orders, skipping nulls and records that do not parse."""
    orders: List[Order] = []
    for item in raw or []:
        if not item:
            continue
        try:
            orders.append(Order.from_dict(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping malformed order {item.get('id') if isinstance(item, dict) else item!r}: {e}")
    return orders


class OrderStore(SnapshotStore[Order]):
    """Authoritative in-memory copy of a store's orders as last fetched."""

    def __init__(self, store_id: str, gateway: StoreGateway):
        super().__init__(store_id)
        self.gateway = gateway

    def load(self) -> bool:
        """
        Fetch all orders and replace the snapshot.

        Returns:
            True if the snapshot was replaced, False if a newer load superseded this one

        Raises:
            FetchError: gateway failure; the previous snapshot is kept
        """
        token = self._begin_load()
        try:
            response = self.gateway.get_store_orders(self.store_id)
        except Exception as e:
            raise FetchError(f"Fetching orders failed: {e}") from e

        if not response.success:
            raise FetchError(f"Fetching orders failed: {response.message or 'unknown error'}")

        data = response.data or {}
        orders = parse_orders(data.get("orders") if isinstance(data, dict) else None)
        applied = self._commit(token, orders)
        if applied:
            logger.info(f"Loaded {len(orders)} orders for store {self.store_id}")
        return applied

    def orders(self) -> List[Order]:
        return self._items_view()

    def snapshot(self) -> List[Order]:
        """Deep copy of the current snapshot."""
        return copy.deepcopy(self._items_view())

    def get(self, order_id: str) -> Optional[Order]:
        for order in self._items_view():
            if order.id == order_id:
                return order
        return None

    def count_by_status(self) -> StatusCount:
        orders = self._items_view()
        return StatusCount(
            waiting_payment=sum(1 for o in orders if o.status is OrderStatus.PENDING),
            waiting_delivery=sum(1 for o in orders if o.status is OrderStatus.WAITING_DELIVERY),
            in_delivery=sum(1 for o in orders if o.status is OrderStatus.IN_DELIVERY),
            all=len(orders),
        )

    def filter(self, view: str) -> List[Order]:
        """Orders for a tab; an unknown tab yields no orders."""
        orders = self._items_view()
        if view == ALL_VIEW:
            return orders
        status = ORDER_VIEWS.get(view)
        if status is None:
            return []
        return [o for o in orders if o.status is status]

    def apply_patch(self, updated: Order) -> bool:
        """Replace one order in place. Returns False if it is not in the snapshot."""
        with self._lock:
            for i, order in enumerate(self._items):
                if order.id == updated.id:
                    items = list(self._items)
                    items[i] = updated
                    self._items = items
                    return True
        return False
