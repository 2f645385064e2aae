"""Scripted in-process HTTP server for testing HTTP clients."""

from .errors import (
    MockWebServerError,
    EmptyResponseQueue,
    EmptyRequestLedger,
    EmptyRequestHeaders,
    RequestCountMismatch,
    UnconsumedRequestsRemaining,
)
from .headers import RequestHeaders
from .queue import QueueItem, ResponseQueue, DEFAULT_CONTENT_TYPE
from .ledger import CapturedRequest, RequestLedger
from .broadcast import RequestBroadcaster
from .dispatch import Dispatcher
from .server import MockWebServer, UNBOUND_PORT
from .blocking import BlockingMockWebServer, BlockingRequestStream

__all__ = [
    # Servers
    "MockWebServer",
    "BlockingMockWebServer",
    "BlockingRequestStream",
    "UNBOUND_PORT",
    # Building blocks
    "QueueItem",
    "ResponseQueue",
    "DEFAULT_CONTENT_TYPE",
    "CapturedRequest",
    "RequestHeaders",
    "RequestLedger",
    "RequestBroadcaster",
    "Dispatcher",
    # Errors
    "MockWebServerError",
    "EmptyResponseQueue",
    "EmptyRequestLedger",
    "EmptyRequestHeaders",
    "RequestCountMismatch",
    "UnconsumedRequestsRemaining",
]
