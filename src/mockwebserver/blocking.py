"""Synchronous facade over MockWebServer.

The async server runs on an AnyIO blocking portal (a private event loop
thread), so tests written with a synchronous HTTP client can script and
inspect it without any async code.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Iterator, Optional

import anyio
import httpx
from anyio.from_thread import BlockingPortal, start_blocking_portal
from anyio.streams.memory import MemoryObjectReceiveStream
from typing_extensions import Self

from .headers import RequestHeaders
from .ledger import CapturedRequest
from .server import MockWebServer


class BlockingRequestStream:
    """Iterator over requests published after subscription. Ends at server shutdown."""

    def __init__(self, portal: BlockingPortal, stream: MemoryObjectReceiveStream[CapturedRequest]):
        self._portal = portal
        self._stream = stream

    def receive(self, timeout: float | None = None) -> CapturedRequest:
        """
        Block until the next request arrives.

        Raises TimeoutError after `timeout` seconds and anyio.EndOfStream
        once the server has shut down.
        """
        async def _receive() -> CapturedRequest:
            with anyio.fail_after(timeout):
                return await self._stream.receive()

        return self._portal.call(_receive)

    def __iter__(self) -> Iterator[CapturedRequest]:
        return self

    def __next__(self) -> CapturedRequest:
        try:
            return self.receive()
        except anyio.EndOfStream:
            raise StopIteration from None

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class BlockingMockWebServer:
    """
    MockWebServer for synchronous tests.

    Example:
        with BlockingMockWebServer() as server:
            server.enqueue(200, '{"name": "John"}')
            httpx.get(server.url)
            server.verify_request_count(1)
    """

    def __init__(self, **kwargs: Any):
        self._server = MockWebServer(**kwargs)
        self._portal_cm: Optional[AbstractContextManager[BlockingPortal]] = None
        self._portal: Optional[BlockingPortal] = None
        self._serving: Optional[AbstractContextManager[MockWebServer]] = None

    @property
    def port(self) -> int:
        return self._server.port

    @property
    def url(self) -> str:
        return self._server.url

    @property
    def running(self) -> bool:
        return self._server.running

    def start(self, port: int | None = None) -> None:
        if self._portal is not None:
            raise RuntimeError(f"MockWebServer already running on port {self.port}")

        portal_cm = start_blocking_portal()
        portal = portal_cm.__enter__()
        try:
            serving = portal.wrap_async_context_manager(self._server.serving(port=port))
            serving.__enter__()
        except BaseException:
            portal_cm.__exit__(None, None, None)
            raise
        self._portal_cm, self._portal, self._serving = portal_cm, portal, serving

    def shutdown(self) -> None:
        """Stop the server and its event loop thread; see MockWebServer.shutdown()."""
        portal_cm, serving = self._portal_cm, self._serving
        self._portal_cm = self._portal = self._serving = None
        if portal_cm is None or serving is None:
            return
        try:
            serving.__exit__(None, None, None)
        finally:
            portal_cm.__exit__(None, None, None)

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    def enqueue(self, status_code: int, body: str, content_type: str | None = None) -> None:
        self._server.enqueue(status_code, body, content_type)

    def dispatch_request(self, request: httpx.Request) -> httpx.Response:
        return self._server.dispatch_request(request)

    def transport(self) -> httpx.MockTransport:
        return self._server.transport()

    def request_stream(self) -> BlockingRequestStream:
        if self._portal is None:
            raise RuntimeError("MockWebServer is not running")
        return BlockingRequestStream(self._portal, self._portal.call(self._server.request_stream))

    def take_request_headers(self) -> RequestHeaders:
        return self._server.take_request_headers()

    def take_request(self) -> CapturedRequest:
        return self._server.take_request()

    def take_failure(self) -> Optional[Exception]:
        return self._server.take_failure()

    def verify_request_count(self, count: int) -> None:
        self._server.verify_request_count(count)

    def verify_no_more_requests(self) -> None:
        self._server.verify_no_more_requests()
