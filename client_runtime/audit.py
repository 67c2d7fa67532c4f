from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional


class AuditLogger:
    """
    Appends one JSON line per outgoing HTTP exchange.
    Events carry method, url, outcome, status_code and latency_ms; `ts` is stamped on write.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def exchange(
        self,
        method: str,
        url: str,
        outcome: str,
        status_code: Optional[int],
        latency_ms: float,
        **extra: Any,
    ) -> None:
        event: Dict[str, Any] = {
            "event": "http_exchange",
            "method": method,
            "url": url,
            "outcome": outcome,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 3),
        }
        event.update(extra)
        self.emit(event)

    def emit(self, event: Dict[str, Any]) -> None:
        event = dict(event)
        event.setdefault("ts", time.time())
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=False, sort_keys=True) + "\n")
