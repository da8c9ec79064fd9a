"""
In-Memory Order Store

Maps order identifiers to OrderRecords for the lifetime of the process.
Records expire ORDER_TTL_MS after issuance; expired records are invisible
to get() and physically removed by sweep().

Nothing is persisted: a restart forgets every outstanding order, and
orders issued by one server instance cannot be verified by another.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional, Set

from ..models.orders import OrderRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class OrderStore:
    """
    Thread-safe order mapping with time-based expiry.

    The lock is held for a single dictionary operation at a time, never
    across I/O.
    """

    def __init__(self, ttl_ms: int, clock: Clock = now_ms):
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._orders: Dict[str, OrderRecord] = {}
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    def now(self) -> int:
        return self._clock()

    def is_expired(self, record: OrderRecord, now: Optional[int] = None) -> bool:
        if now is None:
            now = self._clock()
        return now - record.created_at > self.ttl_ms

    def put(self, order_id: str, record: OrderRecord) -> None:
        with self._lock:
            self._orders[order_id] = record

    def get(self, order_id: str, now: Optional[int] = None) -> Optional[OrderRecord]:
        """
        Return the live record for order_id.

        Returns None if the order was never stored, was deleted, or is
        older than the TTL (even if a sweep has not yet removed it).
        """
        with self._lock:
            record = self._orders.get(order_id)
        if record is None or self.is_expired(record, now):
            return None
        return record

    def delete(self, order_id: str) -> bool:
        """Remove an order. Returns True if it was present."""
        with self._lock:
            return self._orders.pop(order_id, None) is not None

    def claim(self, order_id: str) -> bool:
        """
        Mark an order as having a confirmation in flight.

        Returns False if another confirmation already holds the claim.
        The claim is independent of the record and must be released.
        """
        with self._lock:
            if order_id in self._in_flight:
                return False
            self._in_flight.add(order_id)
            return True

    def release(self, order_id: str) -> None:
        with self._lock:
            self._in_flight.discard(order_id)

    def sweep(self, now: Optional[int] = None) -> int:
        """
        Remove every record older than the TTL.

        Returns:
            Number of records removed
        """
        if now is None:
            now = self._clock()
        with self._lock:
            expired = [
                order_id for order_id, record in self._orders.items()
                if self.is_expired(record, now)
            ]
            for order_id in expired:
                del self._orders[order_id]

        if expired:
            logger.debug(f"Swept {len(expired)} expired orders, {len(self)} remaining")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)

    def __contains__(self, order_id: str) -> bool:
        with self._lock:
            return order_id in self._orders
