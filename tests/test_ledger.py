"""Tests for RequestLedger, CapturedRequest and RequestHeaders."""

import pytest

from mockwebserver import (
    CapturedRequest,
    EmptyRequestHeaders,
    EmptyRequestLedger,
    RequestHeaders,
    RequestLedger,
)


def make_request(method: str = "GET", uri: str = "/") -> CapturedRequest:
    return CapturedRequest(method, uri, RequestHeaders([("Host", "localhost")]))


class TestRequestLedger:
    """Test RequestLedger functionality."""

    def test_take_in_append_order(self):
        ledger = RequestLedger()
        ledger.append(make_request("GET", "/a"))
        ledger.append(make_request("POST", "/b"))

        assert ledger.take_next().uri == "/a"
        assert ledger.take_next().uri == "/b"

    def test_take_empty_raises(self):
        with pytest.raises(EmptyRequestLedger, match="No request received"):
            RequestLedger().take_next()

    def test_custom_empty_error(self):
        ledger = RequestLedger(empty_error=EmptyRequestHeaders, empty_message="No request header received")

        with pytest.raises(EmptyRequestHeaders, match="No request header received"):
            ledger.take_next()

    def test_headers_error_is_ledger_error(self):
        assert issubclass(EmptyRequestHeaders, EmptyRequestLedger)

    def test_count_does_not_consume(self):
        ledger = RequestLedger()
        ledger.append(make_request())
        ledger.append(make_request())

        assert ledger.count() == 2
        assert ledger.count() == 2

    def test_peek_head(self):
        ledger = RequestLedger()
        assert ledger.peek_head() is None

        first = make_request("DELETE", "/x")
        ledger.append(first)
        ledger.append(make_request())

        assert ledger.peek_head() is first
        assert ledger.count() == 2

    def test_clear(self):
        ledger = RequestLedger()
        ledger.append(make_request())

        ledger.clear()

        assert ledger.count() == 0
        assert ledger.peek_head() is None


class TestCapturedRequest:
    def test_path_strips_query(self):
        request = CapturedRequest("GET", "/search?q=python&page=2")

        assert request.path == "/search"
        assert request.uri == "/search?q=python&page=2"

    def test_default_headers_are_empty(self):
        assert len(CapturedRequest("GET", "/").headers) == 0

    def test_equality(self):
        assert make_request("GET", "/a") == make_request("GET", "/a")
        assert make_request("GET", "/a") != make_request("POST", "/a")


class TestRequestHeaders:
    def test_case_insensitive_lookup(self):
        headers = RequestHeaders([("User-Agent", "Dart")])

        assert headers["user-agent"] == ("Dart",)
        assert headers["USER-AGENT"] == ("Dart",)
        assert "User-Agent" in headers
        assert list(headers) == ["user-agent"]

    def test_repeated_names_keep_all_values(self):
        headers = RequestHeaders([("Accept", "text/html"), ("X-Id", "1"), ("accept", "application/json")])

        assert headers["accept"] == ("text/html", "application/json")
        assert headers.first("accept") == "text/html"
        assert len(headers) == 2
        assert headers.items_flat() == (
            ("accept", "text/html"),
            ("x-id", "1"),
            ("accept", "application/json"),
        )

    def test_missing_header(self):
        headers = RequestHeaders()

        assert headers.first("host") is None
        assert headers.first("host", "fallback") == "fallback"
        assert headers.get_all("host") == ()
        assert headers.get("host") is None
        with pytest.raises(KeyError):
            headers["host"]

    def test_non_string_membership(self):
        assert 1 not in RequestHeaders([("a", "b")])

    def test_equality_and_hash(self):
        a = RequestHeaders([("Host", "x")])
        b = RequestHeaders([("host", "x")])

        assert a == b
        assert hash(a) == hash(b)
        assert a == {"host": ("x",)}
