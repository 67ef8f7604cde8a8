"""Module to send HTTP requests through httpx."""

import httpx
import logging

from crowdfiber.error import TransportError
from crowdfiber.http import Request, Response, Transport


_logger = logging.getLogger(__name__)


class HTTPXTransport(Transport):
    """
    HTTP transport backed by an httpx asynchronous client.

    Parameters:
    • client: httpx client to send requests through  [new client]
    • timeout: request timeout in seconds, if a new client is created

    If the transport creates its own client, it closes the client when the transport is
    closed, or when exiting its `async with` context. A client supplied by the caller is
    never closed by the transport.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, *, timeout: float = 30.0):
        self._owned = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self) -> None:
        """Close the underlying client, if owned by the transport."""
        if self._owned:
            await self.client.aclose()

    async def send(self, request: Request) -> Response:
        content = await request.read()
        try:
            response = await self.client.request(
                request.method,
                request.url,
                headers=list(request.headers.items()),
                content=content,
            )
        except httpx.HTTPError as e:
            _logger.debug("transport error: %s %s: %s", request.method, request.url, e)
            raise TransportError(str(e) or type(e).__name__) from e
        return Response(
            status=response.status_code,
            headers=list(response.headers.multi_items()),
            body=response.content,
        )
