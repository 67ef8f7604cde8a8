"""Module to access the API through a client."""

import crowdfiber.address
import crowdfiber.note
import crowdfiber.order
import crowdfiber.zone

from collections.abc import Callable, Mapping
from crowdfiber.auth import Authentication, NoAuth
from crowdfiber.codec import EncodeError, encode
from crowdfiber.error import EncodeFailureError, OtherError
from crowdfiber.http import APPLICATION_JSON, DEFAULT_HEADERS, Request, Transport
from crowdfiber.http import merge_headers
from crowdfiber.pagination import PaginatedSequence
from crowdfiber.request import handle, send
from crowdfiber.transport import HTTPXTransport
from crowdfiber.url import join, with_query
from typing import Any, TypeVar


T = TypeVar("T")


def bound(client: "Client | None", name: str) -> "Client":
    """Return the client a resource is bound to; raises OtherError if it is not bound."""
    if client is None:
        raise OtherError(f"{name} is not bound to a client")
    return client


class Client:
    """
    Client of the API.

    Parameters and attributes:
    • url: root URL of the API  (e.g. "https://example.crowdfiber.com/api/v2/")
    • auth: authentication of requests
    • transport: transport to send requests through  [new HTTPXTransport]
    • default_headers: headers sent with every request
    • per_page: number of items to request in each page of a collection

    If the client creates its own transport, it closes the transport when the client is
    closed, or when exiting its `async with` context.
    """

    def __init__(
        self,
        url: str,
        *,
        auth: Authentication = NoAuth(),
        transport: Transport | None = None,
        default_headers: Mapping[str, str] = DEFAULT_HEADERS,
        per_page: int = 50,
    ):
        self.url = url
        self.auth = auth
        self._owned = transport is None
        self.transport = transport or HTTPXTransport()
        self.default_headers = default_headers
        self.per_page = per_page

    def __repr__(self):
        return f"Client(url={self.url!r}, auth={self.auth!r})"

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self) -> None:
        """Close the transport, if owned by the client."""
        if self._owned:
            await self.transport.close()

    @property
    def zones(self) -> "crowdfiber.zone.Zones":
        """Zone resources."""
        return crowdfiber.zone.Zones(self)

    @property
    def addresses(self) -> "crowdfiber.address.Addresses":
        """Address resources."""
        return crowdfiber.address.Addresses(self)

    @property
    def orders(self) -> "crowdfiber.order.Orders":
        """Order resources."""
        return crowdfiber.order.Orders(self)

    @property
    def notes(self) -> "crowdfiber.note.Notes":
        """Note resources."""
        return crowdfiber.note.Notes(self)

    def url_for(self, *segments: str | int, **params: str | int) -> str:
        """Return URL of a resource, relative to the root URL of the API."""
        url = join(self.url, *segments)
        return with_query(url, params) if params else url

    async def request(
        self,
        method: str,
        segments: tuple[str | int, ...],
        *,
        decode: Callable[[Any], T] | None = None,
        body_type: Any = None,
        body: Any = None,
    ) -> T | None:
        """
        Send a request to a resource and handle its response.

        Parameters:
        • method: HTTP method of the request
        • segments: path segments of the resource, relative to the API root URL
        • decode: function to decode the JSON response body, or None to ignore the body
        • body_type: type of the request body, if a body is to be sent
        • body: value of the request body, encoded as JSON

        Raises EncodeFailureError if the body cannot be encoded, and any error raised while
        sending the request or handling its response.
        """
        headers = [self.default_headers]
        content = None
        if body_type is not None:
            try:
                content = encode(body_type, body)
            except EncodeError as ee:
                raise EncodeFailureError(str(ee) or "invalid value") from ee
            except Exception as e:
                raise OtherError(str(e) or type(e).__name__) from e
            headers.append({"Content-Type": APPLICATION_JSON})
        request = Request(
            method=method,
            url=self.url_for(*segments),
            headers=merge_headers(*headers, self.auth.headers),
            body=content,
        )
        response = await send(self.transport, request)
        return await handle(response, decode)

    def paginate(
        self,
        segments: tuple[str | int, ...],
        decode: Callable[[Any], T],
        **params: str | int,
    ) -> PaginatedSequence[T]:
        """
        Return a paginated sequence of a resource collection.

        Parameters:
        • segments: path segments of the collection, relative to the API root URL
        • decode: function to decode each item in a page
        • params: query string parameters to request the collection with
        """
        return PaginatedSequence(
            self.url_for(*segments, **({"per_page": self.per_page} | params)),
            decode=decode,
            transport=self.transport,
            auth=self.auth,
            default_headers=self.default_headers,
        )
