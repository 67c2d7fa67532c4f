from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from client_runtime.audit import AuditLogger
from client_runtime.config import Settings
from client_runtime.metrics import ClientMetrics, metrics
from http_client.contract import Headers, QueryItems
from http_client.encoding import Encoder, JSONEncoder
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

_CACHE_CONTROL = {
    CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA: "no-cache",
    CachePolicy.RELOAD_IGNORING_LOCAL_AND_REMOTE_CACHE_DATA: "no-cache",
    CachePolicy.RELOAD_REVALIDATING_CACHE_DATA: "max-age=0",
}


def outcome_of(result: HTTPResult) -> str:
    if result.is_success:
        return "success"
    return {
        InvalidResponse: "invalid_response",
        ServerError: "server",
        EncodingFailure: "encoding",
        TransportFailure: "transport",
    }.get(type(result.failure), "unknown")


def _has_header(headers: Headers, name: str) -> bool:
    return any(k.lower() == name for k in headers)


@dataclass
class HTTPXClientConfig:
    base_url: str
    timeout_ms: int = 5000
    default_headers: Dict[str, str] = field(default_factory=dict)


class HTTPXClient:
    """
    HTTPClient backed by httpx.AsyncClient.
    No retries, no redirects, no caching: one call is one exchange.
    """

    def __init__(
        self,
        config: HTTPXClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        audit: Optional[AuditLogger] = None,
        collector: Optional[ClientMetrics] = metrics,
    ):
        self.config = config
        self.audit = audit
        self.metrics = collector
        timeout = max(config.timeout_ms / 1000.0, 0.1)
        self._client = httpx.AsyncClient(
            headers=config.default_headers,
            timeout=timeout,
            follow_redirects=False,
            trust_env=False,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "HTTPXClient":
        config = HTTPXClientConfig(
            base_url=settings.base_url,
            timeout_ms=settings.timeout_ms,
            default_headers={"User-Agent": settings.user_agent},
        )
        return cls(
            config,
            transport=transport,
            audit=AuditLogger(settings.audit_log_path) if settings.audit_log_path else None,
            collector=metrics if settings.metrics_enabled else None,
        )

    async def __aenter__(self) -> "HTTPXClient":
        return self

    async def __aexit__(self, *_args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_url(
        self, path: str, query_items: Optional[QueryItems] = None, fragment: Optional[str] = None
    ) -> httpx.URL:
        url = httpx.URL(self.config.base_url.rstrip("/") + "/" + path.lstrip("/"))
        if query_items:
            url = url.copy_merge_params(query_items)
        if fragment is not None:
            url = url.copy_with(fragment=fragment)
        return url

    async def get(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._send(Method.GET, path, headers, query_items, None, fragment, cache_policy)

    async def post(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._send(Method.POST, path, headers, query_items, data, fragment, cache_policy)

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
        return await self._send_encoded(
            Method.POST, path, body, headers, query_items, fragment, cache_policy, encoder
        )

    async def put(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._send(Method.PUT, path, headers, query_items, data, fragment, cache_policy)

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
        return await self._send_encoded(
            Method.PUT, path, body, headers, query_items, fragment, cache_policy, encoder
        )

    async def patch(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._send(Method.PATCH, path, headers, query_items, data, fragment, cache_policy)

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
        return await self._send_encoded(
            Method.PATCH, path, body, headers, query_items, fragment, cache_policy, encoder
        )

    async def delete(
        self,
        path: str,
        headers: Optional[Headers] = None,
        query_items: Optional[QueryItems] = None,
        data: Optional[bytes] = None,
        fragment: Optional[str] = None,
        cache_policy: Optional[CachePolicy] = None,
    ) -> HTTPResult:
        return await self._send(Method.DELETE, path, headers, query_items, data, fragment, cache_policy)

    async def _send_encoded(
        self,
        method: Method,
        path: str,
        body: Any,
        headers: Optional[Headers],
        query_items: Optional[QueryItems],
        fragment: Optional[str],
        cache_policy: Optional[CachePolicy],
        encoder: Optional[Encoder],
    ) -> HTTPResult:
        encoder = encoder or JSONEncoder()
        t0 = time.perf_counter()
        try:
            content = encoder.encode(body)
        except Exception as exc:
            result = HTTPResult.fail(EncodingFailure(exc))
            await self._observe(method, self._url_text(path, query_items, fragment), result, None, t0)
            return result

        request_headers = dict(headers or {})
        if not _has_header(request_headers, "content-type"):
            request_headers["Content-Type"] = encoder.content_type
        return await self._send(method, path, request_headers, query_items, content, fragment, cache_policy)

    async def _send(
        self,
        method: Method,
        path: str,
        headers: Optional[Headers],
        query_items: Optional[QueryItems],
        content: Optional[bytes],
        fragment: Optional[str],
        cache_policy: Optional[CachePolicy],
    ) -> HTTPResult:
        request_headers = dict(headers or {})
        cache_control = _CACHE_CONTROL.get(cache_policy) if cache_policy is not None else None
        if cache_control and not _has_header(request_headers, "cache-control"):
            request_headers["Cache-Control"] = cache_control

        t0 = time.perf_counter()
        url_text = path
        status_code: Optional[int] = None
        try:
            url = self.build_url(path, query_items, fragment)
            url_text = str(url)
            response = await self._client.request(
                method.value, url, headers=request_headers, content=content
            )
        except httpx.InvalidURL as exc:
            result = HTTPResult.fail(TransportFailure(exc))
        except (httpx.RemoteProtocolError, httpx.DecodingError):
            result = HTTPResult.fail(InvalidResponse())
        except httpx.TransportError as exc:
            result = HTTPResult.fail(TransportFailure(exc))
        else:
            status_code = response.status_code
            result = self._to_result(response)

        await self._observe(method, url_text, result, status_code, t0)
        return result

    def _url_text(
        self, path: str, query_items: Optional[QueryItems], fragment: Optional[str]
    ) -> str:
        try:
            return str(self.build_url(path, query_items, fragment))
        except httpx.InvalidURL:
            return path

    @staticmethod
    def _to_result(response: httpx.Response) -> HTTPResult:
        meta = ResponseMetadata(
            status_code=response.status_code,
            headers=dict(response.headers),
            url=str(response.url),
        )
        if 200 <= response.status_code < 300:
            return HTTPResult.ok(HTTPSuccess(data=response.content, response=meta))
        return HTTPResult.fail(ServerError(status_code=response.status_code, data=response.content))

    async def _observe(
        self,
        method: Method,
        url: str,
        result: HTTPResult,
        status_code: Optional[int],
        t0: float,
    ) -> None:
        latency_ms = (time.perf_counter() - t0) * 1000.0
        outcome = outcome_of(result)
        if self.metrics is not None:
            self.metrics.inc(method.value, outcome)
            self.metrics.observe_latency(method.value, latency_ms)
        if self.audit is not None:
            # blocking file write, run off the event loop
            await asyncio.to_thread(
                self.audit.exchange, method.value, url, outcome, status_code, latency_ms
            )
