"""
MockWebServer Example

Scripts two responses, drives them with an httpx client and prints what the
server captured along the way.

Run:
  uv run python examples/01_mock_web_server.py
"""

from __future__ import annotations

import anyio
import httpx

from mockwebserver import CapturedRequest, MockWebServer


async def watch(stream) -> None:
    async with stream:
        async for request in stream:
            print(f"  observed {request.method} {request.uri}")


async def main() -> None:
    async with MockWebServer() as server:
        print(f"Listening on {server.url}")

        server.enqueue(200, '{"name": "John"}')
        server.enqueue(201, "created", content_type="text/plain")

        async with anyio.create_task_group() as tg:
            tg.start_soon(watch, server.request_stream())

            async with httpx.AsyncClient(base_url=server.url) as client:
                first = await client.get("/users/1", headers={"user-agent": "example"})
                second = await client.post("/users", json={"name": "Jane"})

            print(f"GET  -> {first.status_code} {first.text}")
            print(f"POST -> {second.status_code} {second.text}")

            server.verify_request_count(2)
            request: CapturedRequest = server.take_request()
            print(f"first request: {request.method} {request.uri} ua={server.take_request_headers().first('user-agent')}")

            tg.cancel_scope.cancel()


if __name__ == "__main__":
    anyio.run(main)
