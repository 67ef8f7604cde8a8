"""
Module to iterate through paginated resource collections.

A collection is served in pages. Each page is requested by stamping a 1-based page number
onto the collection URL (by default, the "page" query string parameter). A page response
contains a JSON array of records, and pagination headers:

  • Link: relation links to the first, last, previous and next pages
  • X-Total-Count: total number of records in the collection (optional)

A PaginatedSequence presents the records of all pages as a single asynchronous iterator of
(item, metadata) pairs. Pages are fetched lazily, one at a time, as items are consumed:

  async for zone, metadata in PaginatedSequence(url, decode=..., transport=...):
      ...

The sequence ends when a fetched page is empty, or when the last item of a page that
advertises no next page is consumed. Any error while fetching a page is raised to the
consumer; the sequence is not advanced, so the consumer can retry by requesting the next
item again.
"""

import logging
import wrapt

from collections.abc import Callable, Mapping
from crowdfiber.auth import Authentication, NoAuth
from crowdfiber.codec import CodecError, DecodeError, JSONCodec, _wrap
from crowdfiber.http import DEFAULT_HEADERS, Request, Transport, merge_headers
from crowdfiber.link import Relation, parse_links
from crowdfiber.request import check_status, decode_body, send
from crowdfiber.url import get_param, with_query
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, NamedTuple, TypeVar


_logger = logging.getLogger(__name__)


E = TypeVar("E")  # element type
R = TypeVar("R")  # raw element type


@dataclass(frozen=True)
class PaginationMetadata:
    """
    Describes the page an item was fetched from.

    Attributes:
    • current_page: 1-based number of the page
    • total_pages: total number of pages, or 0 if unknown
    • total_objects: total number of items in the collection, or 0 if unknown

    Not all servers report totals; a value of 0 means unknown, not empty.
    """

    current_page: int
    total_pages: int = 0
    total_objects: int = 0


class PaginatedItem(NamedTuple, Generic[E]):
    """An item yielded by a paginated sequence, with metadata of the page it came from."""

    item: E
    metadata: PaginationMetadata


@dataclass
class Page(Generic[E]):
    """
    A fetched page.

    Attributes:
    • items: decoded items of the page, in order received
    • has_next: whether the server advertised a next page
    • total_pages: total number of pages, if the server advertised a last page
    • total_objects: total number of items in the collection, if reported by the server
    """

    items: list[E] = field(default_factory=list)
    has_next: bool = False
    total_pages: int | None = None
    total_objects: int | None = None


def _int(value: str | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def set_page(page: int, url: str) -> str:
    """Default page stamping strategy: set the "page" query string parameter to the page."""
    return with_query(url, page=page)


def decoder(python_type: Any) -> Callable[[Any], Any]:
    """Return a function that decodes a JSON value into the specified Python type."""
    return JSONCodec.get(python_type).decode


async def fetch_page(
    url: str,
    auth_headers: Mapping[str, str] | None,
    transport: Transport,
    decode: Callable[[Any], E],
    *,
    default_headers: Mapping[str, str] = DEFAULT_HEADERS,
) -> Page[E]:
    """
    Fetch a single page of a paginated collection.

    Parameters:
    • url: URL of the page to fetch
    • auth_headers: headers to authenticate the request
    • transport: transport to send the request through
    • decode: function to decode each JSON array element into an item
    • default_headers: headers to send with the request; auth headers take precedence

    Errors raised:
    • TransportError: the transport failed to perform the request
    • NotFoundError: the server responded with 404 status
    • ServerMessageError: the server responded with any other non-2xx status
    • EmptyResponseError: the server responded successfully without a body
    • DecodeFailureError: the body is not a JSON array of decodable items
    """
    headers = merge_headers(default_headers, auth_headers)
    request = Request(method="GET", url=url, headers=headers)
    response = await send(transport, request)
    body = await response.read()
    check_status(response.status, body)

    def _decode(value: Any) -> list[E]:
        if not isinstance(value, list):
            raise DecodeError("expecting JSON array")
        items = []
        for index, element in enumerate(value):
            with CodecError.path_on_error(index), _wrap(DecodeError):
                items.append(decode(element))
        return items

    items = decode_body(body, _decode)
    links = parse_links(response.headers.get("Link"))
    total_pages = None
    if last := links.get(Relation.LAST):
        total_pages = _int(get_param(last, "page"))
    page = Page(
        items=items,
        has_next=Relation.NEXT in links,
        total_pages=total_pages,
        total_objects=_int(response.headers.get("X-Total-Count")),
    )
    _logger.debug(
        "fetched page: %s: %d items, has_next=%s, total_pages=%s, total_objects=%s",
        url,
        len(page.items),
        page.has_next,
        page.total_pages,
        page.total_objects,
    )
    return page


class State(StrEnum):
    """State of a paginated sequence."""

    NOT_STARTED = "not_started"
    FETCHING = "fetching"
    BUFFERED = "buffered"
    EXHAUSTED = "exhausted"


@wrapt.decorator
async def _exclusive(wrapped, instance, args, kwargs):
    if instance._fetching:
        raise RuntimeError("sequence is already being advanced")
    instance._fetching = True
    try:
        return await wrapped(*args, **kwargs)
    finally:
        instance._fetching = False


class PaginatedSequence(Generic[E]):
    """
    Lazy asynchronous sequence of the items of a paginated collection.

    Parameters:
    • url: URL of the collection
    • decode: function to decode each JSON array element into an item
    • transport: transport to send requests through
    • auth: authentication of requests  [no authentication]
    • stamp: function that returns the URL of a page, given page number and current URL
    • default_headers: headers to send with each request

    Attributes:
    • url: URL of the current page
    • current_page: 1-based number of the current page
    • total_pages: total number of pages, once advertised by the server, otherwise None
    • total_objects: total number of items, as last reported by the server, otherwise None
    • has_next: whether the last fetched page advertised a next page
    • fetched: whether a page has been fetched

    No request is made until the first item is requested. The transport and authentication
    are borrowed; they can be shared with other sequences. A sequence must not be advanced
    by more than one consumer at a time.
    """

    def __init__(
        self,
        url: str,
        *,
        decode: Callable[[Any], E],
        transport: Transport,
        auth: Authentication = NoAuth(),
        stamp: Callable[[int, str], str] = set_page,
        default_headers: Mapping[str, str] = DEFAULT_HEADERS,
    ):
        self.url = url
        self.decode = decode
        self.transport = transport
        self.auth = auth
        self.stamp = stamp
        self.default_headers = default_headers
        self.current_page = 1
        self.total_pages = None
        self.total_objects = None
        self.has_next = False
        self.fetched = False
        self._items = []
        self._index = 0
        self._exhausted = False
        self._fetching = False

    def __repr__(self):
        return (
            f"PaginatedSequence(url={self.url!r}, state={self.state}, "
            f"current_page={self.current_page}, total_pages={self.total_pages})"
        )

    @property
    def state(self) -> State:
        """The current state of the sequence."""
        if self._exhausted:
            return State.EXHAUSTED
        if self._fetching:
            return State.FETCHING
        if not self.fetched:
            return State.NOT_STARTED
        return State.BUFFERED

    @property
    def metadata(self) -> PaginationMetadata:
        """Metadata describing the current page."""
        return PaginationMetadata(
            current_page=self.current_page,
            total_pages=self.total_pages or 0,
            total_objects=self.total_objects or 0,
        )

    async def _load(self, page_number: int) -> None:
        url = self.stamp(page_number, self.url)
        page = await fetch_page(
            url,
            self.auth.headers,
            self.transport,
            self.decode,
            default_headers=self.default_headers,
        )
        # state changes only after a successful fetch, so a failed fetch can be retried
        self.url = url
        self.current_page = page_number
        self._items = page.items
        self._index = 0
        self.has_next = page.has_next
        self.total_objects = page.total_objects
        if self.total_pages is None:  # assume total stays stable across iteration
            self.total_pages = page.total_pages
        self.fetched = True
        if not self._items:
            self._exhausted = True

    @_exclusive
    async def next(self) -> PaginatedItem[E] | None:
        """
        Return the next item with metadata of its page, or None if the sequence is exhausted.
        Fetches the next page if all items of the current page have been consumed.
        """
        if self._exhausted:
            return None
        if not self.fetched:
            await self._load(self.current_page)
        elif self._index >= len(self._items):
            if not self.has_next:
                self._exhausted = True
                return None
            await self._load(self.current_page + 1)
        if self._exhausted:
            return None
        item = self._items[self._index]
        self._index += 1
        return PaginatedItem(item, self.metadata)

    def __aiter__(self):
        return self

    async def __anext__(self) -> PaginatedItem[E]:
        if (result := await self.next()) is None:
            raise StopAsyncIteration
        return result


class ResourceSequence(Generic[R, E]):
    """
    Sequence that converts the raw items of a paginated sequence into their public form.

    Parameters:
    • sequence: paginated sequence of raw items
    • convert: function to convert a raw item into its public form

    The sequence yields the same metadata and terminates the same way as the wrapped
    paginated sequence.
    """

    def __init__(self, sequence: PaginatedSequence[R], convert: Callable[[R], E]):
        self.sequence = sequence
        self.convert = convert

    def __repr__(self):
        return f"{type(self).__name__}({self.sequence!r})"

    @property
    def metadata(self) -> PaginationMetadata:
        """Metadata describing the current page."""
        return self.sequence.metadata

    @property
    def state(self) -> State:
        """The current state of the sequence."""
        return self.sequence.state

    async def next(self) -> PaginatedItem[E] | None:
        """Return the next item with metadata of its page, or None if exhausted."""
        if (result := await self.sequence.next()) is None:
            return None
        return PaginatedItem(self.convert(result.item), result.metadata)

    def __aiter__(self):
        return self

    async def __anext__(self) -> PaginatedItem[E]:
        if (result := await self.next()) is None:
            raise StopAsyncIteration
        return result
