from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
import pytest

from http_client.contract import HTTPClient
from http_client.encoding import EncodingError
from http_client.mock import (
    DeleteCall,
    GetCall,
    MockHTTPClient,
    PatchCall,
    PatchEncodableCall,
    PostCall,
    PostEncodableCall,
    PutCall,
    PutEncodableCall,
)
from http_client.types import (
    CachePolicy,
    EncodingFailure,
    HTTPResult,
    HTTPSuccess,
    InvalidResponse,
    Method,
    ResponseMetadata,
    ServerError,
    TransportFailure,
)


@dataclass
class Foo:
    name: str = "foo"


def _success(data: bytes, status_code: int, url: str = "https://a.com") -> HTTPResult:
    return HTTPResult.ok(
        HTTPSuccess(data=data, response=ResponseMetadata(status_code=status_code, url=url))
    )


@pytest.fixture
def mock() -> MockHTTPClient:
    return MockHTTPClient()


def test_satisfies_http_client_contract(mock: MockHTTPClient) -> None:
    assert isinstance(mock, HTTPClient)


def test_fresh_mock_has_no_recorded_calls(mock: MockHTTPClient) -> None:
    assert mock.recorded_calls == ()


@pytest.mark.asyncio
async def test_get_returns_stub_and_records_call(mock: MockHTTPClient) -> None:
    await mock.set_get_result(_success(bytes([0, 1, 2]), 200))

    result = await mock.get(
        "/foo",
        headers={"h": "v"},
        query_items={"q": "x"},
        fragment="frag",
        cache_policy=CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA,
    )

    assert result.success is not None
    assert result.success.data == bytes([0, 1, 2])
    assert result.success.status_code == 200
    assert mock.recorded_calls == (
        GetCall(path="/foo", headers={"h": "v"}, query_items={"q": "x"}, fragment="frag"),
    )


@pytest.mark.asyncio
async def test_post_data_returns_stub_and_records_call(mock: MockHTTPClient) -> None:
    await mock.set_post_result(HTTPResult.fail(InvalidResponse()))

    result = await mock.post("/bar", data=b"body")

    assert isinstance(result.failure, InvalidResponse)
    assert mock.recorded_calls == (
        PostCall(path="/bar", headers=None, query_items=None, data=b"body", fragment=None),
    )


@pytest.mark.asyncio
async def test_post_encodable_records_marker_without_body(mock: MockHTTPClient) -> None:
    await mock.set_post_result(_success(bytes([3, 2, 1]), 201, url="https://mock.com"))

    result = await mock.post_encodable(
        "/baz", Foo(), fragment="zzz", cache_policy=CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD
    )

    assert result.success is not None
    assert result.success.status_code == 201
    assert result.success.data == bytes([3, 2, 1])
    assert mock.recorded_calls == (
        PostEncodableCall(path="/baz", headers=None, query_items=None, fragment="zzz"),
    )


@pytest.mark.asyncio
async def test_encodable_body_content_does_not_affect_equality(mock: MockHTTPClient) -> None:
    await mock.post_encodable("/same", Foo(name="a"))
    await mock.post_encodable("/same", Foo(name="b"))

    first, second = mock.recorded_calls
    assert first == second


@pytest.mark.asyncio
async def test_put_returns_server_failure_and_records_call(mock: MockHTTPClient) -> None:
    server_data = bytes([9, 8])
    await mock.set_put_result(HTTPResult.fail(ServerError(status_code=404, data=server_data)))

    result = await mock.put(
        "/p", headers={"A": "B"}, query_items={"x": "y"}, data=server_data, fragment="abc"
    )

    assert isinstance(result.failure, ServerError)
    assert result.failure.status_code == 404
    assert result.failure.data == server_data
    assert mock.recorded_calls == (
        PutCall(path="/p", headers={"A": "B"}, query_items={"x": "y"}, data=server_data, fragment="abc"),
    )


@pytest.mark.asyncio
async def test_patch_returns_encoding_failure_and_records_call(mock: MockHTTPClient) -> None:
    await mock.set_patch_result(HTTPResult.fail(EncodingFailure(EncodingError("E"))))

    result = await mock.patch("/patch", data=b"123")

    assert isinstance(result.failure, EncodingFailure)
    assert isinstance(result.failure.underlying, EncodingError)
    assert str(result.failure.underlying) == "E"
    assert mock.recorded_calls == (
        PatchCall(path="/patch", headers=None, query_items=None, data=b"123", fragment=None),
    )


@pytest.mark.asyncio
async def test_delete_returns_transport_failure_and_records_call(mock: MockHTTPClient) -> None:
    await mock.set_delete_result(HTTPResult.fail(TransportFailure(httpx.ConnectTimeout("timed out"))))

    result = await mock.delete(
        "/del",
        headers={"del": "hdr"},
        query_items={"q": "1"},
        data=b"del",
        fragment="end",
        cache_policy=CachePolicy.RELOAD_IGNORING_LOCAL_AND_REMOTE_CACHE_DATA,
    )

    assert isinstance(result.failure, TransportFailure)
    assert isinstance(result.failure.underlying, httpx.TimeoutException)
    assert mock.recorded_calls == (
        DeleteCall(path="/del", headers={"del": "hdr"}, query_items={"q": "1"}, data=b"del", fragment="end"),
    )


@pytest.mark.asyncio
async def test_all_verbs_are_recorded_in_order(mock: MockHTTPClient) -> None:
    await mock.get("/a")
    await mock.post("/b", data=None)
    await mock.post_encodable("/c", Foo())
    await mock.put("/d", data=None)
    await mock.patch("/e", data=None)
    await mock.delete("/f", data=None)

    assert mock.recorded_calls == (
        GetCall(path="/a", headers=None, query_items=None, fragment=None),
        PostCall(path="/b", headers=None, query_items=None, data=None, fragment=None),
        PostEncodableCall(path="/c", headers=None, query_items=None, fragment=None),
        PutCall(path="/d", headers=None, query_items=None, data=None, fragment=None),
        PatchCall(path="/e", headers=None, query_items=None, data=None, fragment=None),
        DeleteCall(path="/f", headers=None, query_items=None, data=None, fragment=None),
    )


@pytest.mark.asyncio
async def test_put_and_patch_encodable_share_verb_stub(mock: MockHTTPClient) -> None:
    await mock.set_put_result(_success(b"put", 200))
    await mock.set_patch_result(_success(b"patch", 200))

    put_result = await mock.put_encodable("/put", {"a": 1})
    patch_result = await mock.patch_encodable("/patch", {"b": 2}, headers={"X": "1"})

    assert put_result.unwrap().data == b"put"
    assert patch_result.unwrap().data == b"patch"
    assert mock.recorded_calls == (
        PutEncodableCall(path="/put"),
        PatchEncodableCall(path="/patch", headers={"X": "1"}),
    )


def test_calls_compare_structurally() -> None:
    get1 = GetCall(path="x", headers=None, query_items=None, fragment=None)
    get2 = GetCall(path="x", headers=None, query_items=None, fragment=None)
    get3 = GetCall(path="y", headers=None, query_items=None, fragment=None)

    assert get1 == get2
    assert get1 != get3


def test_calls_of_different_verbs_are_not_equal() -> None:
    assert PutCall(path="/x") != PatchCall(path="/x")
    assert PostCall(path="/x") != PostEncodableCall(path="/x")


def test_omitted_mappings_differ_from_empty_mappings() -> None:
    assert GetCall(path="/x") != GetCall(path="/x", headers={}, query_items={})


def test_query_item_order_is_not_significant() -> None:
    a = GetCall(path="/x", query_items={"a": "1", "b": "2"})
    b = GetCall(path="/x", query_items={"b": "2", "a": "1"})
    assert a == b


@pytest.mark.asyncio
async def test_stub_is_returned_until_reconfigured(mock: MockHTTPClient) -> None:
    first = _success(b"one", 200)
    second = HTTPResult.fail(ServerError(status_code=500))
    await mock.set_get_result(first)

    assert await mock.get("/a") is first
    assert await mock.get("/b") is first

    await mock.set_get_result(second)
    assert await mock.get("/c") is second
    assert len(mock.recorded_calls) == 3


@pytest.mark.asyncio
async def test_set_result_by_method(mock: MockHTTPClient) -> None:
    expected = _success(b"x", 204)
    await mock.set_result(Method.DELETE, expected)
    assert await mock.delete("/x") is expected


@pytest.mark.asyncio
async def test_unstubbed_verb_returns_invalid_response(mock: MockHTTPClient) -> None:
    result = await mock.get("/nothing")

    assert result == HTTPResult.fail(InvalidResponse())
    with pytest.raises(InvalidResponse):
        result.unwrap()


@pytest.mark.asyncio
async def test_snapshot_is_not_affected_by_later_calls(mock: MockHTTPClient) -> None:
    await mock.get("/a")
    snapshot = mock.recorded_calls

    await mock.get("/b")

    assert len(snapshot) == 1
    assert len(mock.recorded_calls) == 2


@pytest.mark.asyncio
async def test_reading_recorded_calls_is_idempotent(mock: MockHTTPClient) -> None:
    await mock.post("/a", data=b"x")
    assert mock.recorded_calls == mock.recorded_calls


@pytest.mark.asyncio
async def test_recorded_headers_are_copied(mock: MockHTTPClient) -> None:
    headers = {"h": "v"}
    await mock.get("/a", headers=headers)

    headers["h"] = "changed"

    assert mock.recorded_calls[0].headers == {"h": "v"}


@pytest.mark.asyncio
async def test_concurrent_calls_are_each_recorded_once(mock: MockHTTPClient) -> None:
    await mock.set_get_result(_success(b"g", 200))
    await mock.set_delete_result(HTTPResult.fail(ServerError(status_code=410)))

    results = await asyncio.gather(
        *(mock.get(f"/get/{i}") for i in range(50)),
        *(mock.delete(f"/delete/{i}") for i in range(50)),
    )

    calls = mock.recorded_calls
    assert len(calls) == 100
    assert [c.path for c in calls] == [f"/get/{i}" for i in range(50)] + [
        f"/delete/{i}" for i in range(50)
    ]
    assert all(r.is_success for r in results[:50])
    assert all(isinstance(r.failure, ServerError) for r in results[50:])


@pytest.mark.asyncio
async def test_stub_updates_interleaved_with_calls(mock: MockHTTPClient) -> None:
    async def caller(i: int) -> HTTPResult:
        await mock.set_post_result(_success(str(i).encode(), 200))
        return await mock.post(f"/p/{i}")

    results = await asyncio.gather(*(caller(i) for i in range(20)))

    assert len(mock.recorded_calls) == 20
    assert all(r.is_success for r in results)


@pytest.mark.asyncio
async def test_snapshot_cannot_modify_recorded_mappings(mock: MockHTTPClient) -> None:
    await mock.get("/a", headers={"h": "v"}, query_items={"q": "1"})
    snapshot = mock.recorded_calls

    with pytest.raises(TypeError):
        snapshot[0].headers["h"] = "tampered"  # type: ignore[index]
    with pytest.raises(TypeError):
        snapshot[0].query_items["q"] = "2"  # type: ignore[index]

    assert mock.recorded_calls[0] == GetCall(path="/a", headers={"h": "v"}, query_items={"q": "1"})


def test_calls_are_consistently_unhashable() -> None:
    with pytest.raises(TypeError):
        hash(GetCall(path="/a"))
    with pytest.raises(TypeError):
        hash(GetCall(path="/a", headers={"h": "v"}))
    with pytest.raises(TypeError):
        hash(DeleteCall(path="/a", data=b"x"))
