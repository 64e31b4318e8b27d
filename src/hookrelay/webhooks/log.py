"""Bounded in-memory log of recent webhook deliveries.

Backs the debugging view that polls for recent outcomes. Entries live only
as long as the process; the oldest entry is evicted once capacity is reached.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hookrelay.models import WebhookDelivery

DEFAULT_CAPACITY = 50


class DeliveryLog:
    """Most-recent-first record of completed deliveries.

    Safe to share between concurrent deliveries and the inspection API.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._entries: deque[WebhookDelivery] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        """Maximum number of entries kept."""
        return self._entries.maxlen or DEFAULT_CAPACITY

    def record(self, delivery: WebhookDelivery) -> None:
        """Insert a delivery at the front, evicting the oldest when full."""
        with self._lock:
            self._entries.appendleft(delivery)

    def recent(self) -> list[WebhookDelivery]:
        """Snapshot of logged deliveries, newest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> int:
        """Remove all entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
