"""Scripted response queue."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
import threading

from .errors import EmptyResponseQueue

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class QueueItem:
    """A scripted response, returned for exactly one request."""

    status_code: int
    body: str
    content_type: str = DEFAULT_CONTENT_TYPE


class ResponseQueue:
    """
    Thread-safe FIFO of scripted responses.

    Consumption order is enqueue order. Popping an empty queue raises
    `EmptyResponseQueue` immediately instead of waiting.
    """

    def __init__(self, lock: threading.RLock | None = None):
        self._items: deque[QueueItem] = deque()
        self._lock = lock or threading.RLock()

    def enqueue(
        self,
        status_code: int,
        body: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        """Append a response. The status code is not validated."""
        item = QueueItem(status_code, body, content_type)
        with self._lock:
            self._items.append(item)
        logger.debug("Enqueued %d response (%s, %d chars)", status_code, content_type, len(body))

    def pop_next(self) -> QueueItem:
        """
        Remove and return the oldest response.

        Raises EmptyResponseQueue if nothing is enqueued.
        """
        with self._lock:
            if not self._items:
                raise EmptyResponseQueue("Request received, but no response queued")
            return self._items.popleft()

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
