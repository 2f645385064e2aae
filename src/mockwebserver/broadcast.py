"""Fan-out of captured requests to live subscribers."""

from __future__ import annotations

import math
import threading

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from .ledger import CapturedRequest


class RequestBroadcaster:
    """
    Publish-only channel for captured requests.

    Each subscriber gets its own unbounded memory object stream, so
    `publish()` never waits and never depends on anyone listening. There is
    no backlog: a subscriber only sees requests published after it joined.
    """

    def __init__(self, lock: threading.RLock | None = None):
        self._subscribers: list[MemoryObjectSendStream[CapturedRequest]] = []
        self._lock = lock or threading.RLock()

    def subscribe(self) -> MemoryObjectReceiveStream[CapturedRequest]:
        send, receive = anyio.create_memory_object_stream[CapturedRequest](math.inf)
        with self._lock:
            self._subscribers.append(send)
        return receive

    def publish(self, request: CapturedRequest) -> None:
        """Deliver `request` to every current subscriber, in subscription order."""
        with self._lock:
            subscribers = list(self._subscribers)

        gone: list[MemoryObjectSendStream[CapturedRequest]] = []
        for send in subscribers:
            try:
                send.send_nowait(request)
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                # Receiver closed its end; stop delivering to it.
                gone.append(send)

        if gone:
            with self._lock:
                self._subscribers = [s for s in self._subscribers if s not in gone]
            for send in gone:
                send.close()

    def close(self) -> None:
        """End every subscriber's stream and forget all subscribers."""
        with self._lock:
            subscribers, self._subscribers = self._subscribers, []
        for send in subscribers:
            send.close()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
