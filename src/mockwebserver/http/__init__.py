"""Socket listener and HTTP/1.1 wire helpers.

Only the subset of HTTP/1.1 a test client needs: one request per connection,
Content-Length or chunked request bodies, Content-Length responses.
"""

from .listener import COMPAT_CONTENT_TYPE_HEADER, Listener

__all__ = [
    "COMPAT_CONTENT_TYPE_HEADER",
    "Listener",
]
