import json
import pytest

from crowdfiber.client import Client
from crowdfiber.error import (
    DecodeFailureError,
    EmptyResponseError,
    EncodeFailureError,
    NotFoundError,
    OtherError,
    ServerMessageError,
)
from crowdfiber.pagination import decoder
from crowdfiber.transport import HTTPXTransport


pytestmark = pytest.mark.asyncio


async def test_url_for(client):
    assert client.url_for("zones", 5) == "https://example.com/api/v2/zones/5"
    assert client.url_for("zones", page=2) == "https://example.com/api/v2/zones?page=2"


async def test_request_decode(api, client):
    api.respond("GET", "things/1", body={"a": 1})
    result = await client.request("GET", ("things", 1), decode=decoder(dict[str, int]))
    assert result == {"a": 1}


async def test_request_headers(api, client):
    api.respond("GET", "things", body=[])
    await client.request("GET", ("things",))
    request = api.requests[0]
    assert request.headers["Accept"] == "application/json"
    assert request.headers["Authorization"] == "Token secret"
    assert "Content-Type" not in request.headers


async def test_request_body(api, client):
    api.respond("PUT", "things/1", status=204)
    result = await client.request("PUT", ("things", 1), body_type=dict[str, int], body={"a": 2})
    assert result is None
    assert api.requests[0].headers["Content-Type"] == "application/json"
    assert api.body() == {"a": 2}


async def test_request_not_found(client):
    with pytest.raises(NotFoundError):
        await client.request("GET", ("missing",))


async def test_request_server_message(api, client):
    api.respond("GET", "things", status=422, body={"error": "invalid"})
    with pytest.raises(ServerMessageError) as ei:
        await client.request("GET", ("things",))
    assert ei.value.status == 422
    assert "invalid" in ei.value.message


async def test_request_encode_failure(api, client):
    with pytest.raises(EncodeFailureError):
        await client.request("POST", ("things",), body_type=int, body="not int")
    assert api.requests == []


async def test_request_other_error(api, client):
    with pytest.raises(OtherError):
        await client.request("POST", ("things",), body_type=object, body=object())
    assert api.requests == []


async def test_paginate_per_page(api, client):
    api.collection("things", [["a", "b"], ["c"]])
    items = [item async for item, _ in client.paginate(("things",), decoder(str))]
    assert items == ["a", "b", "c"]
    assert [r.url.params["per_page"] for r in api.requests] == ["2", "2"]
    assert [r.url.params["page"] for r in api.requests] == ["1", "2"]
    assert api.requests[0].headers["Authorization"] == "Token secret"


async def test_paginate_params(api, client):
    api.collection("things", [["a"]])
    seq = client.paginate(("things",), decoder(str), with_zones=3, per_page=10)
    await seq.next()
    assert api.requests[0].url.params["with_zones"] == "3"
    assert api.requests[0].url.params["per_page"] == "10"


async def test_owned_transport_closed():
    async with Client("https://example.com/api/v2/") as client:
        transport = client.transport
    assert transport.client.is_closed


async def test_supplied_transport_not_closed(client):
    await client.close()
    assert not client.transport.client.is_closed
    await client.transport.client.aclose()


async def test_repr_masks_secret(client):
    assert "secret" not in repr(client)


async def test_resources(client):
    assert client.zones.client is client
    assert client.addresses.client is client
    assert client.orders.client is client
    assert client.notes.client is client
    assert isinstance(client.transport, HTTPXTransport)


async def test_request_decoder_exception(api, client):
    api.respond("GET", "things/1", body={"a": 1})
    with pytest.raises(DecodeFailureError) as ei:
        await client.request("GET", ("things", 1), decode=lambda value: value["b"])
    assert json.loads(ei.value.raw_body) == {"a": 1}


async def test_request_empty_body(api, client):
    api.respond("GET", "things/1", status=200)
    with pytest.raises(EmptyResponseError):
        await client.request("GET", ("things", 1), decode=decoder(dict[str, int]))
