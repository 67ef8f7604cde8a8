import asyncio
import json
import pytest

from crowdfiber.auth import TokenAuth
from crowdfiber.error import (
    DecodeFailureError,
    EmptyResponseError,
    NotFoundError,
    ServerMessageError,
    TransportError,
)
from crowdfiber.http import Request, Response, Transport
from crowdfiber.pagination import (
    PaginatedSequence,
    PaginationMetadata,
    ResourceSequence,
    State,
    fetch_page,
    set_page,
)
from crowdfiber.url import get_param, with_query


pytestmark = pytest.mark.asyncio


URL = "https://example.com/api/v2/items"


class PageTransport(Transport):
    """Serves pages of a collection, and records the requests it receives."""

    def __init__(self, pages: list[list], *, total_count: bool = True, last: bool = True):
        self.pages = pages
        self.total_count = total_count
        self.last = last
        self.requests = []
        self.failures = []  # exceptions to raise for next requests

    def links(self, page: int) -> str:
        links = []
        if page < len(self.pages):
            links.append(f'<{with_query(URL, page=page + 1)}>; rel="next"')
        if self.last:
            links.append(f'<{with_query(URL, page=len(self.pages))}>; rel="last"')
        return ", ".join(links)

    async def send(self, request: Request) -> Response:
        self.requests.append(request)
        if self.failures:
            raise self.failures.pop(0)
        page = int(get_param(request.url, "page") or "1")
        items = self.pages[page - 1] if page <= len(self.pages) else []
        headers = {"Content-Type": "application/json"}
        if link := self.links(page):
            headers["Link"] = link
        if self.total_count:
            headers["X-Total-Count"] = str(sum(len(p) for p in self.pages))
        return Response(headers=headers, body=json.dumps(items).encode())


class StaticTransport(Transport):
    """Responds to every request with the same response."""

    def __init__(self, status: int = 200, body: bytes | None = None, headers=None):
        self.status = status
        self.body = body
        self.headers = headers
        self.requests = []

    async def send(self, request: Request) -> Response:
        self.requests.append(request)
        return Response(status=self.status, headers=self.headers, body=self.body)


def sequence(transport: Transport, **kwargs) -> PaginatedSequence[str]:
    return PaginatedSequence(URL, decode=str, transport=transport, **kwargs)


async def collect(seq) -> list:
    return [item async for item, _ in seq]


async def test_order_preserved():
    transport = PageTransport([["a", "b"], ["c", "d"], ["e"]])
    assert await collect(sequence(transport)) == ["a", "b", "c", "d", "e"]
    assert [get_param(r.url, "page") for r in transport.requests] == ["1", "2", "3"]


async def test_metadata_current_page():
    transport = PageTransport([["a", "b"], ["c", "d"], ["e"]])
    pages = [metadata.current_page async for _, metadata in sequence(transport)]
    assert pages == [1, 1, 2, 2, 3]


async def test_metadata_totals():
    transport = PageTransport([["a", "b"], ["c"]])
    async for _, metadata in sequence(transport):
        assert metadata.total_pages == 2
        assert metadata.total_objects == 3


async def test_total_pages_fixed_once_established():
    transport = PageTransport([["a"], ["b"], ["c"]])
    seq = sequence(transport)
    await seq.next()
    assert seq.total_pages == 3
    transport.pages.append(["d"])  # collection grows during iteration
    assert [m.total_pages async for _, m in seq] == [3, 3, 3]


async def test_termination_idempotent():
    seq = sequence(PageTransport([["a"]]))
    assert (await seq.next()).item == "a"
    assert await seq.next() is None
    assert await seq.next() is None
    assert seq.state == State.EXHAUSTED


async def test_no_request_after_exhausted():
    transport = PageTransport([["a"]])
    seq = sequence(transport)
    await collect(seq)
    await seq.next()
    assert len(transport.requests) == 1


async def test_empty_first_page():
    transport = PageTransport([[]])
    seq = sequence(transport)
    assert await seq.next() is None
    assert seq.state == State.EXHAUSTED
    assert seq.fetched


async def test_empty_page_ends_sequence():
    transport = PageTransport([["a"], [], ["c"]])
    assert await collect(sequence(transport)) == ["a"]


async def test_lazy_construction():
    transport = PageTransport([["a"]])
    seq = sequence(transport)
    assert transport.requests == []
    assert seq.state == State.NOT_STARTED
    assert not seq.fetched


async def test_state_buffered():
    seq = sequence(PageTransport([["a", "b"]]))
    await seq.next()
    assert seq.state == State.BUFFERED


async def test_missing_total_count():
    seq = sequence(PageTransport([["a"]], total_count=False))
    assert seq.metadata.total_objects == 0
    assert not seq.fetched
    result = await seq.next()
    assert result.metadata.total_objects == 0
    assert seq.fetched


async def test_missing_last_link():
    seq = sequence(PageTransport([["a"], ["b"]], last=False))
    assert [m.total_pages async for _, m in seq] == [0, 0]


async def test_not_found():
    with pytest.raises(NotFoundError):
        await sequence(StaticTransport(status=404, body=b"nope")).next()


async def test_server_message():
    with pytest.raises(ServerMessageError) as ei:
        await sequence(StaticTransport(status=500, body=b"internal failure")).next()
    assert ei.value.message == "internal failure"
    assert ei.value.status == 500
    assert str(ei.value) == "error message from server: internal failure"


async def test_empty_response():
    with pytest.raises(EmptyResponseError):
        await sequence(StaticTransport(body=None)).next()


async def test_empty_body_bytes():
    with pytest.raises(EmptyResponseError):
        await sequence(StaticTransport(body=b"")).next()


async def test_decode_failure_retains_raw_body():
    with pytest.raises(DecodeFailureError) as ei:
        await sequence(StaticTransport(body=b"not json")).next()
    assert ei.value.raw_body == "not json"


async def test_decode_failure_not_array():
    with pytest.raises(DecodeFailureError) as ei:
        await sequence(StaticTransport(body=b'{"a": 1}')).next()
    assert ei.value.raw_body == '{"a": 1}'


async def test_decode_failure_element():
    seq = PaginatedSequence(URL, decode=int, transport=StaticTransport(body=b'[1, "x"]'))
    with pytest.raises(DecodeFailureError):
        await seq.next()


async def test_decode_failure_from_decoder_exception():
    transport = StaticTransport(body=b'[{"id": 1}, {"x": 2}]')
    seq = PaginatedSequence(URL, decode=lambda r: r["id"], transport=transport)
    with pytest.raises(DecodeFailureError) as ei:
        await seq.next()
    assert ei.value.raw_body == '[{"id": 1}, {"x": 2}]'
    assert isinstance(ei.value.__cause__.__cause__, KeyError)
    assert ei.value.__cause__.path == [1]
    assert seq.state == State.NOT_STARTED


async def test_transport_failure():
    transport = PageTransport([["a"]])
    transport.failures.append(ConnectionRefusedError("refused"))
    with pytest.raises(TransportError) as ei:
        await sequence(transport).next()
    assert isinstance(ei.value.__cause__, ConnectionRefusedError)


async def test_retry_resumes_same_page():
    transport = PageTransport([["a", "b"], ["c", "d"], ["e"]])
    seq = sequence(transport)
    assert [(await seq.next()).item for _ in range(2)] == ["a", "b"]
    transport.failures.append(TransportError("timed out"))
    with pytest.raises(TransportError):
        await seq.next()
    assert seq.current_page == 1
    assert seq.state == State.BUFFERED
    assert await collect(seq) == ["c", "d", "e"]
    assert [get_param(r.url, "page") for r in transport.requests] == ["1", "2", "2", "3"]


async def test_retry_first_page():
    transport = PageTransport([["a"]])
    transport.failures.append(TransportError("timed out"))
    seq = sequence(transport)
    with pytest.raises(TransportError):
        await seq.next()
    assert seq.state == State.NOT_STARTED
    assert await collect(seq) == ["a"]


async def test_default_headers():
    transport = PageTransport([["a"]])
    await sequence(transport).next()
    assert transport.requests[0].method == "GET"
    assert transport.requests[0].headers["Accept"] == "application/json"
    assert "Authorization" not in transport.requests[0].headers


async def test_auth_headers_take_precedence():
    transport = PageTransport([["a"]])
    seq = sequence(
        transport,
        auth=TokenAuth("secret"),
        default_headers={"authorization": "Token default", "X-Extra": "1"},
    )
    await seq.next()
    headers = transport.requests[0].headers
    assert headers.getall("Authorization") == ["Token secret"]
    assert headers["X-Extra"] == "1"


async def test_query_parameters_preserved():
    transport = PageTransport([["a"], ["b"]])
    seq = PaginatedSequence(
        with_query(URL, per_page=1, with_zones=7), decode=str, transport=transport
    )
    await collect(seq)
    for request in transport.requests:
        assert get_param(request.url, "per_page") == "1"
        assert get_param(request.url, "with_zones") == "7"


async def test_custom_stamp():
    urls = []

    def stamp(page: int, url: str) -> str:
        urls.append(url)
        return set_page(page, url)

    transport = PageTransport([["a"], ["b"]])
    assert await collect(sequence(transport, stamp=stamp)) == ["a", "b"]
    assert len(urls) == 2


class BlockingTransport(Transport):
    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def send(self, request: Request) -> Response:
        self.entered.set()
        await self.release.wait()
        return Response(body=b'["a"]')


async def test_concurrent_advance():
    transport = BlockingTransport()
    seq = sequence(transport)
    task = asyncio.create_task(seq.next())
    await transport.entered.wait()
    assert seq.state == State.FETCHING
    with pytest.raises(RuntimeError):
        await seq.next()
    transport.release.set()
    assert (await task).item == "a"
    assert await seq.next() is None


async def test_resource_sequence():
    transport = PageTransport([["a", "b"], ["c"]])
    seq = ResourceSequence(sequence(transport), str.upper)
    assert seq.state == State.NOT_STARTED
    results = [result async for result in seq]
    assert [item for item, _ in results] == ["A", "B", "C"]
    assert results[2].metadata == PaginationMetadata(2, 2, 3)
    assert await seq.next() is None
    assert seq.state == State.EXHAUSTED


async def test_fetch_page():
    transport = PageTransport([["a", "b"], ["c"]])
    page = await fetch_page(with_query(URL, page=1), None, transport, str)
    assert page.items == ["a", "b"]
    assert page.has_next
    assert page.total_pages == 2
    assert page.total_objects == 3


async def test_fetch_last_page():
    transport = PageTransport([["a", "b"], ["c"]], total_count=False)
    page = await fetch_page(with_query(URL, page=2), None, transport, str)
    assert page.items == ["c"]
    assert not page.has_next
    assert page.total_objects is None
