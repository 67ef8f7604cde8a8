import httpx
import json
import pytest

from crowdfiber.auth import TokenAuth
from crowdfiber.client import Client
from crowdfiber.transport import HTTPXTransport


URL = "https://example.com/api/v2/"


class API:
    """Fake API server; routes httpx requests to handlers by method and path."""

    def __init__(self):
        self.handlers = {}
        self.requests = []

    def respond(self, method: str, path: str, status: int = 200, body=None):
        def handler(request: httpx.Request) -> httpx.Response:
            if body is None:
                return httpx.Response(status)
            return httpx.Response(status, json=body)

        self.handlers[(method, f"/api/v2/{path}")] = handler

    def collection(self, path: str, pages: list[list]):
        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params.get("page", "1"))
            links = [f'<{URL}{path}?page={len(pages)}>; rel="last"']
            if page < len(pages):
                links.insert(0, f'<{URL}{path}?page={page + 1}>; rel="next"')
            headers = {
                "Link": ", ".join(links),
                "X-Total-Count": str(sum(len(p) for p in pages)),
            }
            items = pages[page - 1] if page <= len(pages) else []
            return httpx.Response(200, json=items, headers=headers)

        self.handlers[("GET", f"/api/v2/{path}")] = handler

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, text="not found")
        return handler(request)


@pytest.fixture
def api():
    return API()


@pytest.fixture
def client(api):
    transport = HTTPXTransport(httpx.AsyncClient(transport=httpx.MockTransport(api)))
    return Client(URL, auth=TokenAuth("secret"), transport=transport, per_page=2)
