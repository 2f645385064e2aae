"""Socket side of the mock web server.

The listener binds a loopback TCP port, accepts connections in its own task
group and answers each request from the response queue:

1. capture the request into the ledger
2. drain the request body
3. publish the captured request
4. pop the next scripted response
5. write it back and close the connection

Everything runs inside one cancel scope so shutdown tears down the listening
socket and every open connection at once.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import anyio
from anyio.abc import SocketAttribute, SocketStream, TaskGroup, TaskStatus
from anyio.streams.stapled import MultiListener

from ..broadcast import RequestBroadcaster
from ..errors import EmptyResponseQueue
from ..ledger import CapturedRequest, RequestLedger
from ..queue import ResponseQueue
from .wire import BufferedReader, drain_body, encode_response, parse_request_head, write_response

logger = logging.getLogger(__name__)

COMPAT_CONTENT_TYPE_HEADER = "x-mockwebserver-content-type"

FailureHandler = Callable[[Exception], None]


class Listener:
    """
    Accepts connections and serves scripted responses.

    A listener serves one bind. Create a new one for every start.
    """

    def __init__(
        self,
        *,
        responses: ResponseQueue,
        ledgers: tuple[RequestLedger, ...],
        broadcaster: RequestBroadcaster,
        on_failure: FailureHandler,
        host: str = "127.0.0.1",
        max_header_bytes: int = 64 * 1024,
    ):
        self._responses = responses
        self._ledgers = ledgers
        self._broadcaster = broadcaster
        self._on_failure = on_failure
        self._host = host
        self._max_header_bytes = max_header_bytes
        self._listener: Optional[MultiListener[SocketStream]] = None
        self._scope: anyio.CancelScope | None = None
        self._stopped = anyio.Event()
        self.port: int = -1

    async def bind(self, port: int = 0) -> int:
        """Bind the socket. Returns the bound port (OS-assigned when `port` is 0)."""
        self._listener = await anyio.create_tcp_listener(local_host=self._host, local_port=port)
        self.port = self._listener.extra(SocketAttribute.local_port)
        logger.info("Mock web server listening on http://%s:%d", self._host, self.port)
        return self.port

    async def start(self, task_group: TaskGroup) -> None:
        if self._listener is None:
            raise RuntimeError("Listener must be bound before it is started")
        self._scope = await task_group.start(self._serve_loop)

    async def _serve_loop(self, *, task_status: TaskStatus[anyio.CancelScope] = anyio.TASK_STATUS_IGNORED) -> None:
        try:
            with anyio.CancelScope() as scope:
                task_status.started(scope)
                async with self._listener, anyio.create_task_group() as connections:
                    await self._listener.serve(self._handle_client, task_group=connections)
        finally:
            self._stopped.set()

    async def aclose(self) -> None:
        """Force-close the socket and every open connection, without draining."""
        if self._scope is None:
            if self._listener is not None:
                await self._listener.aclose()
            self._stopped.set()
        else:
            self._scope.cancel()
            await self._stopped.wait()
        self._listener = None
        self.port = -1
        logger.info("Mock web server shut down")

    async def _handle_client(self, stream: SocketStream) -> None:
        async with stream:
            try:
                await self._serve_request(stream)
            except (anyio.BrokenResourceError, anyio.EndOfStream) as e:
                logger.debug("Client went away: %r", e)

    async def _serve_request(self, stream: SocketStream) -> None:
        reader = BufferedReader(stream)
        try:
            header_block = await reader.read_until(b"\r\n\r\n", self._max_header_bytes)
            if not header_block:
                return
            head = parse_request_head(header_block)
        except ValueError as e:
            logger.warning("Rejecting malformed request: %s", e)
            await _reject(stream, e)
            return

        request = CapturedRequest(method=head.method, uri=head.target, headers=head.headers)
        for ledger in self._ledgers:
            ledger.append(request)

        try:
            await drain_body(reader, head.headers, self._max_header_bytes)
        except ValueError as e:
            logger.warning("Malformed body on %s %s: %s", request.method, request.uri, e)
            self._broadcaster.publish(request)
            await _reject(stream, e)
            return
        self._broadcaster.publish(request)

        try:
            item = self._responses.pop_next()
        except EmptyResponseQueue as e:
            logger.error("%s %s received, but no response queued", request.method, request.uri)
            self._on_failure(e)
            return

        try:
            payload = encode_response(
                item.status_code,
                [
                    ("content-type", item.content_type),
                    (COMPAT_CONTENT_TYPE_HEADER, item.content_type),
                ],
                item.body.encode("utf-8"),
            )
        except UnicodeEncodeError as e:
            logger.error("Scripted response for %s %s cannot be encoded: %s", request.method, request.uri, e)
            self._on_failure(e)
            return

        await stream.send(payload)
        logger.debug("%s %s -> %d", request.method, request.uri, item.status_code)


async def _reject(stream: SocketStream, error: ValueError) -> None:
    await write_response(
        stream,
        400,
        [("content-type", "text/plain; charset=utf-8")],
        f"bad request: {error}".encode("utf-8"),
    )
