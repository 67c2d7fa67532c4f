from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from http_client.encoding import Encoder
from http_client.types import CachePolicy, HTTPResult

Headers = Dict[str, str]
QueryItems = Dict[str, str]


@runtime_checkable
class HTTPClient(Protocol):
    """
    Async HTTP client contract shared by HTTPXClient and MockHTTPClient.
    Every operation resolves to exactly one HTTPResult; failures are returned, not raised.
    """

    async def get(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        ...

    async def post(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        ...

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
        ...

    async def put(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        ...

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
        ...

    async def patch(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        ...

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
        ...

    async def delete(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        ...
