"""
MockWebServer - scripted HTTP test double.

Lifecycle:
  Stopped --start()--> Running(port) --shutdown()--> Stopped

Usage:
  async with MockWebServer() as server:
      server.enqueue(200, '{"name": "John"}')
      ...  # point the client under test at server.url
      assert server.take_request().method == "GET"
"""

from __future__ import annotations

from collections import deque
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
import threading
from typing import AsyncIterator, Optional

import anyio
import httpx
from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream
from typing_extensions import Self

from .broadcast import RequestBroadcaster
from .dispatch import Dispatcher
from .errors import (
    EmptyRequestHeaders,
    RequestCountMismatch,
    UnconsumedRequestsRemaining,
)
from .headers import RequestHeaders
from .http.listener import Listener
from .ledger import CapturedRequest, RequestLedger
from .queue import DEFAULT_CONTENT_TYPE, ResponseQueue

UNBOUND_PORT = -1


class MockWebServer:
    """
    In-process HTTP server answering requests from a queue of scripted responses.

    Every inbound request is recorded (see `take_request()`,
    `take_request_headers()`) and published to live subscribers (see
    `request_stream()`) before its response is written.
    """

    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 0,
        max_header_bytes: int = 64 * 1024,
        default_content_type: str = DEFAULT_CONTENT_TYPE,
    ):
        self._host = host
        self._requested_port = port
        self._max_header_bytes = max_header_bytes
        self._default_content_type = default_content_type

        # One lock orders every mutation of the shared structures below.
        self._lock = threading.RLock()
        self._responses = ResponseQueue(self._lock)
        self._requests = RequestLedger(self._lock)
        self._headers = RequestLedger(
            self._lock,
            empty_error=EmptyRequestHeaders,
            empty_message="No request header received",
        )
        self._broadcaster = RequestBroadcaster(self._lock)
        self._failures: deque[Exception] = deque()
        self._dispatcher = Dispatcher(self._responses)

        self._listener: Optional[Listener] = None
        self._serving: Optional[AbstractAsyncContextManager[Self]] = None

    # --- Lifecycle ---

    @property
    def port(self) -> int:
        """The bound port, or -1 while stopped."""
        return self._listener.port if self._listener is not None else UNBOUND_PORT

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._listener is not None

    async def start(self, task_group: TaskGroup, *, port: int | None = None) -> None:
        """
        Bind and start serving in `task_group`.

        Listens on `port` if passed, otherwise on the constructor port
        (0 picks a free port).
        """
        if self._listener is not None:
            raise RuntimeError(f"MockWebServer already running on port {self.port}")

        listener = Listener(
            responses=self._responses,
            ledgers=(self._requests, self._headers),
            broadcaster=self._broadcaster,
            on_failure=self._record_failure,
            host=self._host,
            max_header_bytes=self._max_header_bytes,
        )
        await listener.bind(self._requested_port if port is None else port)
        try:
            await listener.start(task_group)
        except BaseException:
            with anyio.CancelScope(shield=True):
                await listener.aclose()
            raise
        self._listener = listener

    async def shutdown(self) -> None:
        """
        Force-close the server and reset all state.

        Open connections are dropped, not drained. After the reset, the
        oldest listener failure not taken with `take_failure()` is raised.
        """
        listener, self._listener = self._listener, None
        if listener is not None:
            await listener.aclose()

        with self._lock:
            self._responses.clear()
            self._requests.clear()
            self._headers.clear()
            failures = list(self._failures)
            self._failures.clear()
        self._broadcaster.close()

        if failures:
            raise failures[0]

    @asynccontextmanager
    async def serving(self, *, port: int | None = None) -> AsyncIterator[Self]:
        """Run the server in a task group of its own for the duration of the block."""
        # The task group is closed by hand so errors raised by shutdown() reach
        # the caller as-is instead of wrapped in an exception group.
        stack = AsyncExitStack()
        task_group = await stack.enter_async_context(anyio.create_task_group())
        try:
            await self.start(task_group, port=port)
            try:
                yield self
            finally:
                with anyio.CancelScope(shield=True):
                    await self.shutdown()
        finally:
            await stack.aclose()

    async def __aenter__(self) -> Self:
        self._serving = self.serving()
        return await self._serving.__aenter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> Optional[bool]:
        serving, self._serving = self._serving, None
        assert serving is not None
        return await serving.__aexit__(exc_type, exc_val, exc_tb)

    # --- Scripting ---

    def enqueue(self, status_code: int, body: str, content_type: str | None = None) -> None:
        """
        Add a response to the queue.

        `content_type` defaults to the server's default content type
        (application/json unless configured otherwise).
        """
        if content_type is None:
            content_type = self._default_content_type
        self._responses.enqueue(status_code, body, content_type)

    def dispatch_request(self, request: httpx.Request) -> httpx.Response:
        """Answer `request` from the queue without any networking."""
        return self._dispatcher.dispatch_request(request)

    def transport(self) -> httpx.MockTransport:
        """An httpx transport that answers every request via `dispatch_request()`."""
        return self._dispatcher.transport()

    # --- Inspection ---

    def request_stream(self) -> MemoryObjectReceiveStream[CapturedRequest]:
        """
        Subscribe to requests received from now on.

        The stream ends when the server shuts down.
        """
        return self._broadcaster.subscribe()

    def take_request_headers(self) -> RequestHeaders:
        """Headers of the oldest request not yet taken by this method."""
        return self._headers.take_next().headers

    def take_request(self) -> CapturedRequest:
        """The oldest request not yet taken by this method."""
        return self._requests.take_next()

    def take_failure(self) -> Optional[Exception]:
        """Pop the oldest error raised while serving a request, if any."""
        with self._lock:
            return self._failures.popleft() if self._failures else None

    def verify_request_count(self, count: int) -> None:
        """Raise RequestCountMismatch unless exactly `count` requests are recorded."""
        actual = self._requests.count()
        if actual != count:
            raise RequestCountMismatch(count, actual)

    def verify_no_more_requests(self) -> None:
        """Raise UnconsumedRequestsRemaining (consuming the offender) if any request is left."""
        with self._lock:
            if self._requests.peek_head() is None:
                return
            request = self._requests.take_next()
        raise UnconsumedRequestsRemaining(request)

    def _record_failure(self, error: Exception) -> None:
        with self._lock:
            self._failures.append(error)
