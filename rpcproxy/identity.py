"""Identity lookup types and the handling of self-provider results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from http import HTTPStatus
from typing import Any, Mapping

from .jsonrpc import JsonRpcError, JsonRpcResult
from .project import ProjectDataError

EMPTY_RPC_RESPONSE = "0x"
SELF_PROVIDER_ERROR_PREFIX = "SelfProviderError: "
IDENTITY_CACHE_TTL = timedelta(days=1)

_PROJECT_NOT_FOUND_MESSAGE = (
    SELF_PROVIDER_ERROR_PREFIX + "RpcError: ProjectDataError(NotFound)"
)
_LOOKUP_KINDS = ("name", "avatar")


class IdentityLookupSource(Enum):
    """Where an identity was served from."""

    CACHE = "cache"
    RPC = "rpc"


def _optional_string(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


@dataclass(frozen=True)
class IdentityResponse:
    """The name and avatar resolved for an address."""

    name: str | None = None
    avatar: str | None = None

    def to_dict(self) -> dict:
        return {"name": self.name, "avatar": self.avatar}

    @classmethod
    def from_dict(cls, data: Any) -> "IdentityResponse":
        if not isinstance(data, Mapping):
            raise ValueError("expected a JSON object")
        return cls(name=_optional_string(data, "name"), avatar=_optional_string(data, "avatar"))


class SelfProviderError(Exception):
    """A failure of an RPC call routed back through the proxy itself."""

    def __init__(
        self,
        detail: str,
        *,
        status: HTTPStatus | None = None,
        body: str | None = None,
    ) -> None:
        self.status = status
        self.body = body
        super().__init__(detail)


def _provider_status_error(status: HTTPStatus, body: str) -> SelfProviderError:
    return SelfProviderError(
        f"proxy_handler status code not OK: {status.value} {status.phrase} {body}",
        status=status,
        body=body,
    )


class LookupError(Exception):
    """A name or avatar lookup failed inside the proxy."""

    def __init__(self, kind: str, detail: str) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind} lookup failed: {detail}")


def check_rpc_result(result: JsonRpcResult | JsonRpcError) -> Any:
    """Return the result value of a response, raising on errors and empty results."""
    if isinstance(result, JsonRpcError):
        raise SelfProviderError(f"JsonRpcError: {result!r}")
    if result.result == EMPTY_RPC_RESPONSE:
        raise _provider_status_error(
            HTTPStatus.METHOD_NOT_ALLOWED, f"JSON-RPC result is {EMPTY_RPC_RESPONSE}"
        )
    return result.result


def classify_lookup_error(message: str, kind: str) -> None:
    """Turn a provider error message into the error it stands for.

    Errors raised by the proxy itself are re-raised; any other failure
    means the name or avatar is simply absent, and None is returned.
    """
    if kind not in _LOOKUP_KINDS:
        raise ValueError(f"unknown lookup kind: {kind!r}")
    if message == _PROJECT_NOT_FOUND_MESSAGE:
        raise ProjectDataError(ProjectDataError.NOT_FOUND)
    if message.startswith(SELF_PROVIDER_ERROR_PREFIX):
        raise LookupError(kind, message[len(SELF_PROVIDER_ERROR_PREFIX):])
    return None