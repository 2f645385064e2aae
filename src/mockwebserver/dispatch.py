"""In-memory dispatch of requests against the response queue.

No socket is involved: a request value goes in, the next scripted response
comes out as an `httpx.Response`. Plugging `Dispatcher.transport()` into an
`httpx.Client` exercises response handling without any networking.
"""

from __future__ import annotations

import httpx

from .http.listener import COMPAT_CONTENT_TYPE_HEADER
from .queue import ResponseQueue


class Dispatcher:
    def __init__(self, responses: ResponseQueue):
        self._responses = responses

    def dispatch_request(self, request: httpx.Request) -> httpx.Response:
        """
        Answer `request` with the next scripted response.

        Raises EmptyResponseQueue if nothing is enqueued.
        """
        item = self._responses.pop_next()
        return httpx.Response(
            item.status_code,
            headers={
                "content-type": item.content_type,
                COMPAT_CONTENT_TYPE_HEADER: item.content_type,
            },
            content=item.body.encode("utf-8"),
            request=request,
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.dispatch_request)
