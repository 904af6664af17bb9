"""
Transaction snapshot for one store.
"""
import logging
from typing import Any, Dict, List, Optional

from adapters.base import StoreGateway
from core.exceptions import FetchError
from core.models import Transaction, REJECTED_PAYMENT_METHOD
from services.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

NOT_VERIFIED_VIEW = "not-verified"
ALL_VIEW = "all"


def parse_transactions(raw: Any) -> List[Transaction]:
    """Parse wire transactions; null entries are dropped."""
    transactions: List[Transaction] = []
    skipped = 0
    for item in raw or []:
        if not item:
            skipped += 1
            continue
        try:
            transactions.append(Transaction.from_dict(item))
        except (TypeError, ValueError, AttributeError) as e:
            skipped += 1
            logger.warning(f"Skipping malformed transaction: {e}")
    if skipped:
        logger.debug(f"Dropped {skipped} empty or malformed transaction entries")
    return transactions


def is_awaiting_verification(transaction: Transaction) -> bool:
    return (
        not transaction.is_confirmed
        and transaction.payment_method is not None
        and transaction.payment_method != REJECTED_PAYMENT_METHOD
    )


class TransactionStore(SnapshotStore[Transaction]):
    """In-memory copy of a store's transactions as last fetched."""

    def __init__(self, store_id: str, gateway: StoreGateway):
        super().__init__(store_id)
        self.gateway = gateway

    def load(self) -> bool:
        """
        Fetch all transactions and replace the snapshot.

        Raises:
            FetchError: gateway failure; the previous snapshot is kept
        """
        token = self._begin_load()
        try:
            response = self.gateway.get_store_transactions(self.store_id)
        except Exception as e:
            raise FetchError(f"Fetching transactions failed: {e}") from e

        if not response.success:
            raise FetchError(
                f"Fetching transactions failed: {response.message or 'unknown error'}"
            )

        data = response.data or {}
        transactions = parse_transactions(
            data.get("transactions") if isinstance(data, dict) else None
        )
        applied = self._commit(token, transactions)
        if applied:
            logger.info(f"Loaded {len(transactions)} transactions for store {self.store_id}")
        return applied

    def transactions(self) -> List[Transaction]:
        return self._items_view()

    def index_by_order_id(self) -> Dict[str, Transaction]:
        """
        Map order id -> transaction.

        Transactions without an order id are left out. When two transactions
        share an order id the later one wins; that is logged because the
        backend keeps one transaction per order.
        """
        index: Dict[str, Transaction] = {}
        for transaction in self._items_view():
            if not transaction.order_id:
                continue
            if transaction.order_id in index:
                logger.warning(
                    f"Order {transaction.order_id} has more than one transaction "
                    f"({index[transaction.order_id].id}, {transaction.id}); keeping {transaction.id}"
                )
            index[transaction.order_id] = transaction
        return index

    def duplicate_order_ids(self) -> List[str]:
        seen = set()
        duplicates: List[str] = []
        for transaction in self._items_view():
            oid = transaction.order_id
            if not oid:
                continue
            if oid in seen and oid not in duplicates:
                duplicates.append(oid)
            seen.add(oid)
        return duplicates

    def get_by_order_id(self, order_id: str) -> Optional[Transaction]:
        return self.index_by_order_id().get(order_id)

    def filter(self, view: str) -> List[Transaction]:
        """
        Transactions for a tab.

        "not-verified" lists payments still waiting for a decision, newest first.
        """
        transactions = self._items_view()
        if view == ALL_VIEW:
            return transactions
        if view == NOT_VERIFIED_VIEW:
            pending = [t for t in transactions if is_awaiting_verification(t)]
            pending.reverse()
            return pending
        return []
