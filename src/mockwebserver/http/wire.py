"""HTTP/1.1 wire helpers on top of AnyIO socket streams.

Features:
- Request line + headers parsing into a multimap
- Body draining for Content-Length and chunked transfer encoding
- One response per connection (Connection: close)
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Iterable

import anyio
from anyio.abc import ByteStream

from ..headers import RequestHeaders

_CHUNK_SIZE = 4096


@dataclass(frozen=True, slots=True)
class RequestHead:
    method: str
    target: str
    version: str
    headers: RequestHeaders


def status_line(status: int) -> str:
    try:
        text = HTTPStatus(status).phrase
    except ValueError:
        text = "Unknown"
    return f"HTTP/1.1 {status} {text}\r\n"


class BufferedReader:
    """Byte stream reader that keeps whatever was read past a boundary."""

    def __init__(self, stream: ByteStream):
        self._stream = stream
        self._buf = bytearray()

    async def _fill(self) -> bool:
        try:
            chunk = await self._stream.receive(_CHUNK_SIZE)
        except anyio.EndOfStream:
            return False
        if not chunk:
            return False
        self._buf.extend(chunk)
        return True

    async def read_until(self, marker: bytes, max_bytes: int) -> bytes:
        """Read through `marker`. Returns whatever arrived if the peer closes first."""
        while True:
            idx = self._buf.find(marker)
            if idx != -1:
                end = idx + len(marker)
                data = bytes(self._buf[:end])
                del self._buf[:end]
                return data
            if len(self._buf) > max_bytes:
                raise ValueError("request too large")
            if not await self._fill():
                data = bytes(self._buf)
                self._buf.clear()
                return data

    async def skip(self, n: int) -> int:
        """Discard up to `n` bytes. Returns how many were discarded."""
        skipped = 0
        while skipped < n:
            if not self._buf and not await self._fill():
                break
            take = min(n - skipped, len(self._buf))
            del self._buf[:take]
            skipped += take
        return skipped


def parse_request_head(block: bytes) -> RequestHead:
    # block contains request line + headers ending with \r\n\r\n
    head = block.decode("iso-8859-1")

    lines = head.split("\r\n")
    if not lines or not lines[0]:
        raise ValueError("missing request line")

    parts = lines[0].split(" ")
    if len(parts) != 3:
        raise ValueError("invalid request line")
    method, target, version = parts

    pairs: list[tuple[str, str]] = []
    for line in lines[1:]:
        if line == "":
            break
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        pairs.append((k.strip(), v.strip()))
    return RequestHead(method=method, target=target, version=version, headers=RequestHeaders(pairs))


async def drain_body(reader: BufferedReader, headers: RequestHeaders, max_line_bytes: int) -> int:
    """
    Consume the request body without keeping it.

    Returns the number of body bytes discarded.
    """
    encoding = (headers.first("transfer-encoding") or "").lower()
    if "chunked" in encoding:
        total = 0
        while True:
            size_line = await reader.read_until(b"\r\n", max_line_bytes)
            if not size_line:
                return total
            try:
                size = int(size_line.split(b";", 1)[0].strip(), 16)
            except ValueError as e:
                raise ValueError(f"invalid chunk size: {size_line!r}") from e
            if size == 0:
                # Trailers end with an empty line.
                while await reader.read_until(b"\r\n", max_line_bytes) not in (b"\r\n", b""):
                    pass
                return total
            total += await reader.skip(size)
            await reader.skip(2)

    length = headers.first("content-length") or "0"
    try:
        content_length = int(length)
    except ValueError as e:
        raise ValueError(f"invalid content-length: {length!r}") from e
    return await reader.skip(content_length)


def encode_response(
    status: int,
    headers: Iterable[tuple[str, str]],
    body: bytes,
) -> bytes:
    """
    Serialize a complete response.

    Raises UnicodeEncodeError if a header does not fit latin-1.
    """
    merged = {k.lower(): v for k, v in headers}

    merged.setdefault("content-length", str(len(body)))
    merged.setdefault("connection", "close")

    start = status_line(status).encode("ascii")
    head = b"".join(f"{k}: {v}\r\n".encode("latin-1") for k, v in merged.items())

    return start + head + b"\r\n" + body


async def write_response(
    stream: ByteStream,
    status: int,
    headers: Iterable[tuple[str, str]],
    body: bytes,
) -> None:
    await stream.send(encode_response(status, headers, body))
