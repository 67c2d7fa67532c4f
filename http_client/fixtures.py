from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable

import httpx
import yaml
from jsonschema import Draft202012Validator

from http_client.encoding import EncodingError
from http_client.mock import Call
from http_client.types import (
    EncodingFailure,
    HTTPFailure,
    HTTPResult,
    HTTPSuccess,
    InvalidResponse,
    Method,
    ResponseMetadata,
    ServerError,
    TransportFailure,
)

_SCHEMA_PATH = Path(__file__).resolve().parent / "stub_schema.json"


def load_stub_schema() -> Dict[str, Any]:
    return json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_fixture_payload(payload: Any) -> None:
    validator = Draft202012Validator(load_stub_schema())
    errors = sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    if errors:
        joined = "; ".join(e.message for e in errors)
        raise ValueError(f"stub fixture validation failed: {joined}")


def _failure_from(doc: Dict[str, Any]) -> HTTPFailure:
    kind = doc["kind"]
    message = doc.get("message", kind)
    if kind == "server":
        return ServerError(status_code=doc["status_code"], data=doc.get("data", "").encode("utf-8"))
    if kind == "encoding":
        return EncodingFailure(EncodingError(message))
    if kind == "transport":
        return TransportFailure(httpx.TransportError(message))
    return InvalidResponse()


def result_from(doc: Dict[str, Any]) -> HTTPResult:
    if "success" in doc:
        s = doc["success"]
        meta = ResponseMetadata(
            status_code=s["status_code"],
            headers=s.get("headers") or {},
            url=s.get("url", ""),
        )
        return HTTPResult.ok(HTTPSuccess(data=s.get("data", "").encode("utf-8"), response=meta))
    return HTTPResult.fail(_failure_from(doc["failure"]))


def parse_fixture(payload: Any) -> Dict[Method, HTTPResult]:
    validate_fixture_payload(payload)
    return {Method(verb.upper()): result_from(doc) for verb, doc in payload["stubs"].items()}


def load_fixture(path: str | Path) -> Dict[Method, HTTPResult]:
    with open(path, "r", encoding="utf-8") as f:
        return parse_fixture(yaml.safe_load(f))


def write_calls_json(path: str | Path, calls: Iterable[Call]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = {"calls": [c.to_payload() for c in calls]}
    p.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
