"""Captured request records and the ledger that stores them."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import threading
from typing import Optional

from .errors import EmptyRequestLedger
from .headers import RequestHeaders


@dataclass(frozen=True, slots=True)
class CapturedRequest:
    """
    An inbound request as seen by the server.

    Attributes:
        method: Request method, as sent (e.g. "GET")
        uri: Request target exactly as sent, path plus query
        headers: Request headers
    """
    method: str
    uri: str
    headers: RequestHeaders = field(default_factory=RequestHeaders)

    @property
    def path(self) -> str:
        """The request target without its query string."""
        return self.uri.split("?", 1)[0]


class RequestLedger:
    """
    Thread-safe FIFO of captured requests.

    Requests are appended before any response is produced, so a test can
    observe a request even when answering it failed.
    """

    def __init__(
        self,
        lock: threading.RLock | None = None,
        empty_error: type[EmptyRequestLedger] = EmptyRequestLedger,
        empty_message: str = "No request received",
    ):
        self._requests: deque[CapturedRequest] = deque()
        self._lock = lock or threading.RLock()
        self._empty_error = empty_error
        self._empty_message = empty_message

    def append(self, request: CapturedRequest) -> None:
        with self._lock:
            self._requests.append(request)

    def take_next(self) -> CapturedRequest:
        """
        Remove and return the oldest captured request.

        Raises the ledger's empty error (EmptyRequestLedger by default) if
        nothing was captured.
        """
        with self._lock:
            if not self._requests:
                raise self._empty_error(self._empty_message)
            return self._requests.popleft()

    def peek_head(self) -> Optional[CapturedRequest]:
        """Return the oldest captured request without removing it."""
        with self._lock:
            return self._requests[0] if self._requests else None

    def count(self) -> int:
        with self._lock:
            return len(self._requests)

    def clear(self) -> None:
        with self._lock:
            self._requests.clear()
