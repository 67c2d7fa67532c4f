from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import TypeAdapter

_ANY: TypeAdapter[Any] = TypeAdapter(Any)


class EncodingError(ValueError):
    pass


@runtime_checkable
class Encoder(Protocol):
    """Serializes a request body. Should raise EncodingError; HTTPXClient wraps any exception in EncodingFailure."""

    content_type: str

    def encode(self, value: Any) -> bytes:
        ...


class JSONEncoder:
    """
    Serializes pydantic models, dataclasses, mappings and scalars to JSON bytes.
    Raises EncodingError when the value cannot be serialized.
    """

    content_type = "application/json"

    def __init__(self, indent: Optional[int] = None):
        self.indent = indent

    def encode(self, value: Any) -> bytes:
        try:
            return _ANY.dump_json(value, indent=self.indent)
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"cannot encode {type(value).__name__}: {exc}") from exc
