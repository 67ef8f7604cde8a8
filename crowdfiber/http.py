"""Module to describe HTTP messages and the transport that exchanges them."""

import http
import multidict

from collections.abc import Mapping
from crowdfiber.stream import BytesStream, Stream, stream_bytes
from typing import Optional


Headers = multidict.CIMultiDict
Query = multidict.MultiDict


APPLICATION_JSON = "application/json"

DEFAULT_HEADERS: Mapping[str, str] = multidict.CIMultiDictProxy(
    Headers({"Accept": APPLICATION_JSON})
)


def merge_headers(*headers: Mapping[str, str] | None) -> Headers:
    """
    Merge header mappings into a new headers object. Values from later mappings replace
    values of earlier mappings with the same (case-insensitive) name.
    """
    result = Headers()
    for h in headers:
        if h:
            for name in set(h.keys()):
                result.popall(name, None)
            result.extend(h.items())
    return result


class Message:
    """
    Base class for HTTP request and response.

    Parameters and attributes:
    • headers: multi-value, case-insensitive dictionary to store headers
    • body: stream message body, or None if no body
    """

    def __init__(
        self,
        *,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Stream] = None,
    ):
        super().__init__()
        self.headers = Headers(headers or {})
        self.body = body

    async def read(self) -> bytes | None:
        """Read the entire message body; returns None if message has no body."""
        return await stream_bytes(self.body)

    def __repr__(self):
        return f"Message(headers={self.headers}, body={self.body})"


class Request(Message):
    """
    HTTP request.

    Parameters and attributes:
    • method: the HTTP method name, in upper case
    • url: absolute URL of the request target, including query string
    • headers: multi-value, case-insensitive dictionary to store headers
    • body: stream for request body, or None
    """

    def __init__(
        self,
        *,
        method: str = "GET",
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Stream | bytes] = None,
    ):
        super().__init__(headers=headers, body=body)
        if isinstance(body, bytes | bytearray):
            self.body = BytesStream(body, self.headers.get("Content-Type", APPLICATION_JSON))
        self.method = method.upper()
        self.url = url

    def __repr__(self):
        return (
            f"Request(method={self.method}, url={self.url}, headers={self.headers}, "
            f"body={self.body})"
        )


class Response(Message):
    """
    HTTP response.

    Parameters and attributes:
    • status: HTTP status code
    • headers: multi-value, case-insensitive dictionary to store headers
    • body: stream for response body, or None
    """

    def __init__(
        self,
        *,
        status: int = http.HTTPStatus.OK.value,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Stream | bytes] = None,
    ):
        if isinstance(body, bytes | bytearray):
            body = BytesStream(body)
        super().__init__(headers=headers, body=body)
        self.status = status

    @property
    def ok(self) -> bool:
        """Return True if the response has a 2xx status code."""
        return 200 <= self.status <= 299

    def __repr__(self):
        return f"Response(status={self.status}, headers={self.headers}, body={self.body})"


class Transport:
    """
    Base class for HTTP transports.

    A transport sends a request and returns the response. If the request cannot be
    performed (connection refused, timeout, etc.), the transport raises
    crowdfiber.error.TransportError. A response with any status code, including error
    codes, is returned rather than raised.

    A transport carries no iteration state; it can be shared by any number of concurrently
    iterating sequences. The lifetime of its connections is the transport's concern.
    """

    async def send(self, request: Request) -> Response:
        """Send a request and return its response."""
        raise NotImplementedError
