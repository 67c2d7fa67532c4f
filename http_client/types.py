from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class CachePolicy(str, Enum):
    USE_PROTOCOL_CACHE_POLICY = "use_protocol_cache_policy"
    RELOAD_IGNORING_LOCAL_CACHE_DATA = "reload_ignoring_local_cache_data"
    RELOAD_IGNORING_LOCAL_AND_REMOTE_CACHE_DATA = "reload_ignoring_local_and_remote_cache_data"
    RETURN_CACHE_DATA_ELSE_LOAD = "return_cache_data_else_load"
    RETURN_CACHE_DATA_DONT_LOAD = "return_cache_data_dont_load"
    RELOAD_REVALIDATING_CACHE_DATA = "reload_revalidating_cache_data"


class ResponseMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    url: str = ""


@dataclass(frozen=True)
class HTTPSuccess:
    data: bytes
    response: ResponseMetadata

    @property
    def status_code(self) -> int:
        return self.response.status_code


class HTTPFailure(Exception):
    """
    Base of the closed failure taxonomy.
    Instances are returned as data inside an HTTPResult; unwrap() raises them.
    """


@dataclass
class InvalidResponse(HTTPFailure):
    def __str__(self) -> str:
        return "response could not be interpreted as HTTP"


@dataclass
class ServerError(HTTPFailure):
    status_code: int
    data: bytes = b""

    def __str__(self) -> str:
        return f"server responded with status {self.status_code}"


@dataclass(eq=False)
class _WrappedFailure(HTTPFailure):
    underlying: Exception

    # equal when the wrapped errors are of the same type
    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return type(self.underlying) is type(other.underlying)  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), type(self.underlying)))

    def __str__(self) -> str:
        return f"{type(self.underlying).__name__}: {self.underlying}"


class EncodingFailure(_WrappedFailure):
    pass


class TransportFailure(_WrappedFailure):
    pass


@dataclass(frozen=True)
class HTTPResult:
    success: Optional[HTTPSuccess] = None
    failure: Optional[HTTPFailure] = None

    def __post_init__(self) -> None:
        if (self.success is None) == (self.failure is None):
            raise ValueError("HTTPResult holds exactly one of success or failure")

    @staticmethod
    def ok(success: HTTPSuccess) -> "HTTPResult":
        return HTTPResult(success=success)

    @staticmethod
    def fail(failure: HTTPFailure) -> "HTTPResult":
        return HTTPResult(failure=failure)

    @property
    def is_success(self) -> bool:
        return self.success is not None

    def unwrap(self) -> HTTPSuccess:
        if self.failure is not None:
            raise self.failure
        assert self.success is not None
        return self.success
