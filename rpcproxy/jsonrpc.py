"""JSON-RPC 2.0 message types and their wire encoding."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping, Union

JSON_RPC_VERSION = "2.0"

_U64_MAX = 2**64 - 1
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1
_NUMERIC_STRING = re.compile(r"\+?[0-9]+")


class JsonRpcDecodeError(ValueError):
    """Raised when a document is not a valid JSON-RPC message."""


def _object(data: Any) -> Mapping:
    if not isinstance(data, Mapping):
        raise JsonRpcDecodeError("expected a JSON object")
    return data


def _required(data: Mapping, key: str) -> Any:
    if key not in data:
        raise JsonRpcDecodeError(f"missing field `{key}`")
    return data[key]


def _string(data: Mapping, key: str) -> str:
    value = _required(data, key)
    if not isinstance(value, str):
        raise JsonRpcDecodeError(f"field `{key}` must be a string")
    return value


def _optional_string(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise JsonRpcDecodeError(f"field `{key}` must be a string")
    return value


def _unsigned(value: Any, key: str, *, limit: int | None = None, from_text: bool = False) -> int:
    """Check a non-negative integer, optionally given as decimal text."""
    if from_text and isinstance(value, str) and value.isascii() and value.isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise JsonRpcDecodeError(f"field `{key}` must be a non-negative integer")
    if limit is not None and value > limit:
        raise JsonRpcDecodeError(f"field `{key}` out of range: {value}")
    return value


def _message_id(value: Any) -> int:
    """Accept an unsigned 64-bit id given as a number or a numeric string."""
    if isinstance(value, str):
        if not _NUMERIC_STRING.fullmatch(value):
            raise JsonRpcDecodeError(f"invalid message id: {value!r}")
        value = int(value)
    return _unsigned(value, "id", limit=_U64_MAX)


def _envelope(data: Mapping) -> dict:
    """Read the fields every message carries."""
    return {"id": _message_id(_required(data, "id")), "jsonrpc": _string(data, "jsonrpc")}


def _header(message: Any) -> dict:
    return {"id": message.id, "jsonrpc": message.jsonrpc}


@dataclass(frozen=True)
class JsonRpcRequest:
    """A request to the server."""

    id: int
    method: str
    jsonrpc: str = JSON_RPC_VERSION

    def to_dict(self) -> dict:
        return {**_header(self), "method": self.method}

    @classmethod
    def from_dict(cls, data: Any) -> "JsonRpcRequest":
        data = _object(data)
        return cls(**_envelope(data), method=_string(data, "method"))


@dataclass(frozen=True)
class ErrorResponse:
    """The error body of a failed call."""

    code: int
    message: str
    data: str | None = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result

    @classmethod
    def from_dict(cls, data: Any) -> "ErrorResponse":
        data = _object(data)
        code = _required(data, "code")
        if isinstance(code, bool) or not isinstance(code, int):
            raise JsonRpcDecodeError("field `code` must be an integer")
        if not _I32_MIN <= code <= _I32_MAX:
            raise JsonRpcDecodeError(f"error code out of range: {code}")
        return cls(
            code=code,
            message=_string(data, "message"),
            data=_optional_string(data, "data"),
        )


@dataclass(frozen=True)
class JsonRpcResult:
    """A successful response carrying a result value."""

    id: int
    result: Any
    jsonrpc: str = JSON_RPC_VERSION

    def to_dict(self) -> dict:
        return {**_header(self), "result": self.result}

    @classmethod
    def from_dict(cls, data: Any) -> "JsonRpcResult":
        data = _object(data)
        return cls(**_envelope(data), result=_required(data, "result"))


@dataclass(frozen=True)
class JsonRpcError:
    """A response describing a failed call."""

    id: int
    error: ErrorResponse
    jsonrpc: str = JSON_RPC_VERSION

    def to_dict(self) -> dict:
        return {**_header(self), "error": self.error.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> "JsonRpcError":
        data = _object(data)
        return cls(**_envelope(data), error=ErrorResponse.from_dict(_required(data, "error")))


JsonRpcResponse = Union[JsonRpcResult, JsonRpcError]
JsonRpcPayload = Union[JsonRpcRequest, JsonRpcResult, JsonRpcError]


def dumps(payload: JsonRpcPayload) -> str:
    """Serialise a message to compact JSON."""
    return json.dumps(payload.to_dict(), separators=(",", ":"), ensure_ascii=False)


def _parse(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise JsonRpcDecodeError(f"invalid JSON: {exc}") from exc


def _first_match(data: Any, kinds: tuple) -> Any:
    for kind in kinds:
        try:
            return kind.from_dict(data)
        except JsonRpcDecodeError:
            continue
    names = ", ".join(kind.__name__ for kind in kinds)
    raise JsonRpcDecodeError(f"data did not match any of: {names}")


def loads_payload(text: str | bytes) -> JsonRpcPayload:
    """Decode a request or a response, trying a request first."""
    return _first_match(_parse(text), (JsonRpcRequest, JsonRpcResult, JsonRpcError))


def loads_response(text: str | bytes) -> JsonRpcResponse:
    """Decode a response: a result or an error."""
    return _first_match(_parse(text), (JsonRpcResult, JsonRpcError))