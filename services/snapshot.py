from __future__ import annotations

import threading
import logging
from typing import Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotStore(Generic[T]):
    """
    Holds the last successfully loaded list of entities for one store.

    Each load takes a request token; a response whose token is no longer the
    newest is dropped so an older, slower load cannot overwrite a newer one.
    The snapshot is always swapped whole under the lock.
    """

    def __init__(self, store_id: str) -> None:
        if not store_id:
            raise ValueError("store_id is required")
        self.store_id = store_id
        self._items: List[T] = []
        self._lock = threading.Lock()
        self._latest_token = 0
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _begin_load(self) -> int:
        with self._lock:
            self._latest_token += 1
            return self._latest_token

    def _commit(self, token: int, items: List[T]) -> bool:
        with self._lock:
            if token != self._latest_token:
                logger.info(
                    f"{type(self).__name__}[{self.store_id}]: dropping stale response "
                    f"(token {token}, latest {self._latest_token})"
                )
                return False
            self._items = items
            self._loaded = True
            return True

    def _items_view(self) -> List[T]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
