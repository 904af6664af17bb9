"""
Order & payment reconciliation for one store.

Handles the back-office flows:
1. Load orders and transactions, join them by order id
2. Filter order tabs and transfer tabs
3. Stage, then commit, an accept/reject decision on a payment
4. Update an order's status or customer details

Gateway failures never escape the engine: each action logs the failure and
records a Notification for the caller to show.
"""
import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from adapters.base import GatewayResponse, StoreGateway
from config.settings import settings
from core.exceptions import (
    DecisionError,
    FetchError,
    InconsistentReferenceError,
    PatchValidationError,
    TransitionNotAllowedError,
    UpdateError,
)
from core.models import (
    Notification,
    Order,
    OrderStatus,
    PaymentDecision,
    Transaction,
)
from services.order_store import OrderStore, StatusCount
from services.transaction_store import TransactionStore
from validator.order_patch import OrderPatch, parse_decision, validate_order_patch

logger = logging.getLogger(__name__)


@dataclass
class StagedDecision:
    """An accept/reject choice waiting for explicit confirmation."""
    transaction: Transaction
    decision: PaymentDecision
    staged_at: datetime = field(default_factory=datetime.now)

    @property
    def order_id(self) -> str:
        return self.transaction.order_id


@dataclass
class OrderRow:
    """An order with its transaction, if any."""
    order: Order
    transaction: Optional[Transaction] = None


@dataclass
class TransferRow:
    """A transaction with its order; order is None when the reference is unknown."""
    transaction: Transaction
    order: Optional[Order] = None

    @property
    def reference_missing(self) -> bool:
        return self.order is None

    @property
    def customer_name(self) -> str:
        return self.order.customer_name if self.order else "Unknown order"


class TransitionPolicy:
    """
    Decides which order status changes are allowed.

    The back office lets any status be set to any other. With lock_terminal,
    CANCELLED and FINISHED orders can no longer change status.
    """

    def __init__(self, lock_terminal: bool = False):
        self.lock_terminal = lock_terminal

    def check(self, current: OrderStatus, target: OrderStatus) -> None:
        if current is target:
            return
        if self.lock_terminal and current.is_terminal:
            raise TransitionNotAllowedError(
                f"Order is {current.value}; it cannot move to {target.value}"
            )


class ReconciliationEngine:
    """
    Owns the order and transaction snapshots of one store for the lifetime
    of a back-office view.
    """

    def __init__(
        self,
        store_id: str,
        gateway: StoreGateway,
        policy: Optional[TransitionPolicy] = None,
    ):
        self.store_id = store_id
        self.gateway = gateway
        self.policy = policy or TransitionPolicy(lock_terminal=settings.LOCK_TERMINAL_ORDERS)
        self.orders = OrderStore(store_id, gateway)
        self.transactions = TransactionStore(store_id, gateway)
        self.counts = StatusCount()
        self.notifications: List[Notification] = []
        self._staged: Optional[StagedDecision] = None
        self._stage_lock = threading.Lock()

    # ------------------------------------------------
    # Notifications
    # ------------------------------------------------

    def _notify(self, level: str, message: str) -> Notification:
        note = Notification(level=level, message=message)
        self.notifications.append(note)
        return note

    def drain_notifications(self) -> List[Notification]:
        notes, self.notifications = self.notifications, []
        return notes

    # ------------------------------------------------
    # Loading
    # ------------------------------------------------

    def load(self) -> bool:
        """
        Reload orders and transactions. Each store keeps its previous snapshot
        if its own fetch fails.

        Returns:
            True if both fetches succeeded
        """
        ok = True
        for store in (self.orders, self.transactions):
            try:
                store.load()
            except FetchError as e:
                logger.error(f"Store {self.store_id}: {e}")
                ok = False
        self.counts = self.orders.count_by_status()
        if not ok:
            self._notify("error", "Error fetching data")
        return ok

    # ------------------------------------------------
    # Views
    # ------------------------------------------------

    def order_rows(self, view: str) -> List[OrderRow]:
        index = self.transactions.index_by_order_id()
        return [OrderRow(order=o, transaction=index.get(o.id)) for o in self.orders.filter(view)]

    def transfer_rows(self, view: str) -> List[TransferRow]:
        orders_by_id = {o.id: o for o in self.orders.orders()}
        rows = []
        for transaction in self.transactions.filter(view):
            try:
                order = self._order_for(transaction, orders_by_id)
            except InconsistentReferenceError as e:
                logger.warning(str(e))
                order = None
            rows.append(TransferRow(transaction=transaction, order=order))
        return rows

    @staticmethod
    def _order_for(transaction: Transaction, orders_by_id: Dict[str, Order]) -> Order:
        order = orders_by_id.get(transaction.order_id) if transaction.order_id else None
        if order is None:
            raise InconsistentReferenceError(transaction.id, transaction.order_id)
        return order

    # ------------------------------------------------
    # Payment decisions
    # ------------------------------------------------

    @property
    def staged(self) -> Optional[StagedDecision]:
        return self._staged

    def request_transaction_decision(self, transaction: Transaction, decision: Any) -> Notification:
        """
        Stage an accept/reject decision. Nothing is sent until
        commit_transaction_decision(); staging again replaces the previous stage.
        """
        try:
            decision = parse_decision(decision)
            self._check_stageable(transaction)
        except (PatchValidationError, DecisionError) as e:
            logger.warning(f"Store {self.store_id}: decision refused: {e}")
            return self._notify("error", str(e))

        with self._stage_lock:
            replaced = self._staged
            self._staged = StagedDecision(transaction=transaction, decision=decision)
        if replaced is not None:
            logger.info(
                f"Store {self.store_id}: replacing staged {replaced.decision.value} "
                f"for order {replaced.order_id}"
            )
        verb = "accepting" if decision is PaymentDecision.ACCEPT else "rejecting"
        return self._notify("info", f"Confirm {verb} payment for order {transaction.order_id}?")

    def _check_stageable(self, transaction: Transaction) -> None:
        if transaction is None:
            raise DecisionError("No transaction selected")
        if not transaction.order_id:
            raise DecisionError(f"Transaction {transaction.id} is not linked to an order")
        if transaction.is_terminal:
            raise DecisionError(
                f"Payment for order {transaction.order_id} is already {transaction.state.value}"
            )

    def cancel_transaction_decision(self) -> Optional[StagedDecision]:
        with self._stage_lock:
            staged, self._staged = self._staged, None
        return staged

    def commit_transaction_decision(self) -> Notification:
        """
        Send the staged decision to the backend, then reload both snapshots.
        The stage is cleared whatever the outcome.
        """
        staged = self.cancel_transaction_decision()
        if staged is None:
            return self._notify("error", "No payment decision to confirm")

        try:
            self._send_decision(staged)
        except DecisionError as e:
            logger.warning(f"Store {self.store_id}: {e}")
            return self._notify("error", str(e))
        except UpdateError as e:
            logger.error(f"Store {self.store_id}: {e}")
            return self._notify("error", "Error updating order status")

        logger.info(
            f"Store {self.store_id}: order {staged.order_id} payment "
            f"{staged.decision.gateway_status}"
        )
        note = self._notify(
            "success",
            "Payment verified successfully"
            if staged.decision is PaymentDecision.ACCEPT
            else "Payment rejected",
        )
        # The backend moves the order too; re-fetch instead of patching locally
        self.load()
        return note

    def _send_decision(self, staged: StagedDecision) -> None:
        current = self.transactions.get_by_order_id(staged.order_id)
        if current is not None and current.is_terminal:
            raise DecisionError(
                f"Payment for order {staged.order_id} is already {current.state.value}"
            )
        response = self._call(
            self.gateway.update_transaction_by_order_id,
            self.store_id,
            staged.order_id,
            staged.decision.gateway_status,
        )
        if not response.success:
            raise UpdateError(
                f"Updating transaction of order {staged.order_id} failed: "
                f"{response.message or 'unknown error'}"
            )

    # ------------------------------------------------
    # Order updates
    # ------------------------------------------------

    def update_order(self, order_id: str, patch: Any) -> Notification:
        """
        Change status, customer name or address of one order.

        On success the local order is replaced in place and counts are
        recomputed; on any failure the snapshot is untouched.
        """
        try:
            patch = validate_order_patch(patch)
        except PatchValidationError as e:
            logger.warning(f"Store {self.store_id}: invalid patch for {order_id}: {e}")
            return self._notify("error", f"Invalid order update: {e}")

        current = self.orders.get(order_id)
        if current is None:
            return self._notify("error", f"Order {order_id} not found")

        if patch.status is not None:
            try:
                self.policy.check(current.status, patch.status)
            except TransitionNotAllowedError as e:
                return self._notify("error", str(e))

        try:
            updated = self._send_order_update(current, patch)
        except UpdateError as e:
            logger.error(f"Store {self.store_id}: {e}")
            return self._notify("error", "Error updating order")

        self.orders.apply_patch(updated)
        self.counts = self.orders.count_by_status()
        return self._notify("success", "Order updated successfully")

    def _send_order_update(self, current: Order, patch: OrderPatch) -> Order:
        response = self._call(
            self.gateway.update_store_order, self.store_id, current.id, patch.to_payload()
        )
        if not response.success:
            raise UpdateError(
                f"Updating order {current.id} failed: {response.message or 'unknown error'}"
            )
        return self._merge_order(current, patch, response.data)

    @staticmethod
    def _merge_order(current: Order, patch: OrderPatch, data: Any) -> Order:
        # Prefer the backend's copy; fall back to applying the patch locally
        if isinstance(data, dict) and data.get("id") == current.id:
            try:
                return Order.from_dict(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Unparseable order in update response for {current.id}: {e}")
        changes = {}
        if patch.status is not None:
            changes["status"] = patch.status
        if patch.customer_name is not None:
            changes["customer_name"] = patch.customer_name
        if patch.customer_adds is not None:
            changes["customer_adds"] = patch.customer_adds
        return dataclasses.replace(current, **changes)

    @staticmethod
    def _call(fn, *args) -> GatewayResponse:
        try:
            return fn(*args)
        except Exception as e:
            logger.error(f"Gateway call {getattr(fn, '__name__', fn)} raised: {e}", exc_info=True)
            return GatewayResponse.fail(str(e))
