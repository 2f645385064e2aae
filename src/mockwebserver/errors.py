"""Exceptions raised by the mock web server.

Every failure is raised at the call site that caused it so a failing test
points at the unscripted interaction or the violated expectation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ledger import CapturedRequest


class MockWebServerError(Exception):
    """Base class for all mock web server errors."""


class EmptyResponseQueue(MockWebServerError, LookupError):
    """A response was needed but none was enqueued."""


class EmptyRequestLedger(MockWebServerError, LookupError):
    """A captured request was taken but none remain."""


class EmptyRequestHeaders(EmptyRequestLedger):
    """Captured request headers were taken but none remain."""


class RequestCountMismatch(MockWebServerError, AssertionError):
    """The number of captured requests differs from the expected count."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected {expected} requests, but received {actual}")
        self.expected = expected
        self.actual = actual


class UnconsumedRequestsRemaining(MockWebServerError, AssertionError):
    """Captured requests remain that the test never took."""

    def __init__(self, request: "CapturedRequest"):
        super().__init__(
            f"Request queue not empty. Remaining request: {request.method} {request.uri}"
        )
        self.request = request
