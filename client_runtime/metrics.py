from __future__ import annotations

import threading
from collections import Counter
from typing import Tuple


class ClientMetrics:
    """Small in-memory Prometheus-style metrics collector for outgoing requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: Counter[Tuple[str, str]] = Counter()
        self._latency_buckets: Counter[Tuple[str, str]] = Counter()
        self._bucket_edges = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)

    def inc(self, method: str, outcome: str, n: int = 1) -> None:
        with self._lock:
            self._requests[(method, outcome)] += n

    def observe_latency(self, method: str, latency_ms: float) -> None:
        bucket = self._bucket_for(latency_ms)
        with self._lock:
            self._latency_buckets[(method, bucket)] += 1

    def count(self, method: str, outcome: str) -> int:
        with self._lock:
            return self._requests[(method, outcome)]

    def _bucket_for(self, latency_ms: float) -> str:
        for edge in self._bucket_edges:
            if latency_ms <= edge:
                return str(edge)
        return "+Inf"

    def render_prometheus(self) -> str:
        with self._lock:
            requests = sorted(self._requests.items())
            buckets = sorted(self._latency_buckets.items())

        lines = ["# TYPE http_client_requests_total counter"]
        for (method, outcome), value in requests:
            lines.append(
                f'http_client_requests_total{{method="{method}",outcome="{outcome}"}} {value}'
            )

        lines.append("# TYPE http_client_latency_ms_bucket counter")
        for (method, bucket), value in buckets:
            lines.append(
                f'http_client_latency_ms_bucket{{method="{method}",le="{bucket}"}} {value}'
            )

        return "\n".join(lines) + "\n"


metrics = ClientMetrics()
