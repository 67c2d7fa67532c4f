from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, TypeVar

from http_client.contract import Headers, QueryItems
from http_client.encoding import Encoder
from http_client.types import CachePolicy, HTTPResult, InvalidResponse, Method

_C = TypeVar("_C", bound=type)


def call_record(cls: _C) -> _C:
    cls = dataclass(frozen=True)(cls)
    # calls hold mappings, so every Call is unhashable
    cls.__hash__ = None  # type: ignore[assignment]
    return cls


@call_record
class Call:
    method: ClassVar[Method]
    encodable: ClassVar[bool] = False

    path: str
    headers: Optional[Mapping[str, str]] = None
    query_items: Optional[Mapping[str, str]] = None

    def __post_init__(self) -> None:
        # read-only copies: the log never aliases caller dicts or hands out mutable ones
        for name in ("headers", "query_items"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"method": self.method.value, "encodable": self.encodable}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bytes):
                value = base64.b64encode(value).decode("ascii")
            elif isinstance(value, MappingProxyType):
                value = dict(value)
            payload[f.name] = value
        return payload


@call_record
class GetCall(Call):
    method: ClassVar[Method] = Method.GET

    fragment: Optional[str] = None


@call_record
class PostCall(Call):
    method: ClassVar[Method] = Method.POST

    data: Optional[bytes] = None
    fragment: Optional[str] = None


@call_record
class PostEncodableCall(Call):
    method: ClassVar[Method] = Method.POST
    encodable: ClassVar[bool] = True

    fragment: Optional[str] = None


@call_record
class PutCall(Call):
    method: ClassVar[Method] = Method.PUT

    data: Optional[bytes] = None
    fragment: Optional[str] = None


@call_record
class PutEncodableCall(Call):
    method: ClassVar[Method] = Method.PUT
    encodable: ClassVar[bool] = True

    fragment: Optional[str] = None


@call_record
class PatchCall(Call):
    method: ClassVar[Method] = Method.PATCH

    data: Optional[bytes] = None
    fragment: Optional[str] = None


@call_record
class PatchEncodableCall(Call):
    method: ClassVar[Method] = Method.PATCH
    encodable: ClassVar[bool] = True

    fragment: Optional[str] = None


@call_record
class DeleteCall(Call):
    method: ClassVar[Method] = Method.DELETE

    data: Optional[bytes] = None
    fragment: Optional[str] = None


def unstubbed_result() -> HTTPResult:
    return HTTPResult.fail(InvalidResponse())


class MockHTTPClient:
    """
    Record-and-stub HTTPClient. Never touches the network.

    Each verb returns the result set for it with set_<verb>_result (encodable
    forms share their verb's stub) and appends a Call to recorded_calls.
    Verbs without a stub return unstubbed_result(). Encodable bodies are
    neither encoded nor kept in the log.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._stubs: Dict[Method, HTTPResult] = {}
        self._calls: List[Call] = []

    @property
    def recorded_calls(self) -> Tuple[Call, ...]:
        return tuple(self._calls)

    async def set_result(self, method: Method, result: HTTPResult) -> None:
        async with self._lock:
            self._stubs[Method(method)] = result

    async def set_get_result(self, result: HTTPResult) -> None:
        await self.set_result(Method.GET, result)

    async def set_post_result(self, result: HTTPResult) -> None:
        await self.set_result(Method.POST, result)

    async def set_put_result(self, result: HTTPResult) -> None:
        await self.set_result(Method.PUT, result)

    async def set_patch_result(self, result: HTTPResult) -> None:
        await self.set_result(Method.PATCH, result)

    async def set_delete_result(self, result: HTTPResult) -> None:
        await self.set_result(Method.DELETE, result)

    async def apply_fixture(self, stubs: Mapping[Method, HTTPResult]) -> None:
        async with self._lock:
            for method, result in stubs.items():
                self._stubs[Method(method)] = result

    async def _record(self, call: Call) -> HTTPResult:
        async with self._lock:
            self._calls.append(call)
            stub = self._stubs.get(call.method)
        return stub if stub is not None else unstubbed_result()

    async def get(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._record(GetCall(path, headers, query_items, fragment))

    async def post(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._record(PostCall(path, headers, query_items, data, fragment))

    async def post_encodable(
        self,
        path: str,
        body: Any,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
        encoder: Optional[Encoder] = None,
    ) -> HTTPResult:
        return await self._record(PostEncodableCall(path, headers, query_items, fragment))

    async def put(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._record(PutCall(path, headers, query_items, data, fragment))

    async def put_encodable(
        self,
        path: str,
        body: Any,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
        encoder: Optional[Encoder] = None,
    ) -> HTTPResult:
        return await self._record(PutEncodableCall(path, headers, query_items, fragment))

    async def patch(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._record(PatchCall(path, headers, query_items, data, fragment))

    async def patch_encodable(
        self,
        path: str,
        body: Any,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
        encoder: Optional[Encoder] = None,
    ) -> HTTPResult:
        return await self._record(PatchEncodableCall(path, headers, query_items, fragment))

    async def delete(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._record(DeleteCall(path, headers, query_items, data, fragment))
