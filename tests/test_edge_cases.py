"""Edge case and error condition tests."""

import logging

import httpx
import pytest

from mockwebserver import (
    CapturedRequest,
    EmptyRequestHeaders,
    EmptyRequestLedger,
    EmptyResponseQueue,
    MockWebServer,
    MockWebServerError,
    RequestCountMismatch,
    UnconsumedRequestsRemaining,
)


class TestErrors:
    """Errors can be told apart by type, not just by message."""

    @pytest.mark.parametrize(
        "error",
        [EmptyResponseQueue, EmptyRequestLedger, EmptyRequestHeaders, RequestCountMismatch, UnconsumedRequestsRemaining],
    )
    def test_all_errors_share_base(self, error):
        assert issubclass(error, MockWebServerError)

    def test_empty_errors_are_distinct(self):
        assert not issubclass(EmptyResponseQueue, EmptyRequestLedger)
        assert not issubclass(EmptyRequestLedger, EmptyResponseQueue)

    def test_unconsumed_message(self):
        error = UnconsumedRequestsRemaining(CapturedRequest("PATCH", "/a?b=c"))

        assert str(error) == "Request queue not empty. Remaining request: PATCH /a?b=c"
        assert isinstance(error, AssertionError)

    def test_count_mismatch_attributes(self):
        error = RequestCountMismatch(expected=3, actual=0)

        assert str(error) == "Expected 3 requests, but received 0"
        assert (error.expected, error.actual) == (3, 0)


class TestServerEdgeCases:
    """Server behaviour outside the happy path."""

    def test_unstarted_server(self):
        server = MockWebServer()

        assert server.port == -1
        assert server.url == "http://127.0.0.1:-1"
        assert not server.running
        server.verify_request_count(0)
        server.verify_no_more_requests()
        assert server.take_failure() is None

    def test_empty_content_type_is_kept(self):
        """Only a missing content type falls back to the default."""
        server = MockWebServer()
        server.enqueue(200, "", content_type="")

        response = server.dispatch_request(httpx.Request("GET", "http://test/"))

        assert response.headers["x-mockwebserver-content-type"] == ""

    @pytest.mark.anyio
    async def test_unscripted_request_is_logged(self, caplog):
        caplog.set_level(logging.ERROR, logger="mockwebserver")

        async with MockWebServer() as server:
            async with httpx.AsyncClient() as client:
                with pytest.raises(httpx.TransportError):
                    await client.get(f"{server.url}/nothing")
            assert isinstance(server.take_failure(), EmptyResponseQueue)

        assert "GET /nothing received, but no response queued" in caplog.text

    @pytest.mark.anyio
    async def test_failures_are_cleared_by_shutdown(self):
        server = MockWebServer()

        with pytest.raises(EmptyResponseQueue):
            async with server:
                async with httpx.AsyncClient(base_url=server.url) as client:
                    for path in ("/a", "/b"):
                        with pytest.raises(httpx.TransportError):
                            await client.get(path)
                server.verify_request_count(2)

        assert server.take_failure() is None
