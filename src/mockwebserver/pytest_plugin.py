"""pytest fixture providing a running BlockingMockWebServer.

Registered through the ``pytest11`` entry point, so installing the package
is enough for tests to request ``mock_web_server``. Teardown shuts the
server down, which fails the test if a request arrived with no response
queued.
"""

from __future__ import annotations

from typing import Iterator

import pytest

from .blocking import BlockingMockWebServer


@pytest.fixture
def mock_web_server() -> Iterator[BlockingMockWebServer]:
    server = BlockingMockWebServer()
    server.start()
    try:
        yield server
    finally:
        server.shutdown()
