"""Name profile payloads and the checks applied to names and attributes."""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Pattern

from .jsonrpc import _object, _required, _string, _unsigned

ALLOWED_ZONES: tuple[str, ...] = ("wc.ink",)
UNIXTIMESTAMP_SYNC_THRESHOLD = 10
ATTRIBUTES_VALUE_MAX_LENGTH = 255
NAME_MIN_LENGTH = 5
NAME_MAX_LENGTH = 64

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1

SUPPORTED_ATTRIBUTES: dict[str, Pattern[str]] = {
    "bio": re.compile(r"\A[a-zA-Z0-9@:/._\-?&=+ ]+\Z"),
}

_DOMAIN_FORMAT = re.compile(r"\A[a-zA-Z0-9.-]+\Z")


class Eip155SupportedChains(IntEnum):
    """Supported Ethereum chains as ENSIP-11 coin types."""

    ETHEREUM_MAINNET = 60


def is_supported_coin_type(coin_type: int) -> bool:
    return coin_type in Eip155SupportedChains._value2member_map_


def _field(data: Mapping, key: str, limit: int) -> int:
    return _unsigned(_required(data, key), key, limit=limit)


def _attributes(value: Any, key: str = "attributes") -> dict[str, str]:
    if not isinstance(value, dict) or not all(
        isinstance(v, str) for v in value.values()
    ):
        raise ValueError(f"field `{key}` must be a map of strings")
    return dict(value)


@dataclass
class RegisterPayload:
    """Signed payload for registering a name."""

    name: str
    timestamp: int
    attributes: dict[str, str] | None = None

    @classmethod
    def from_json(cls, text: str | bytes) -> "RegisterPayload":
        data = _object(json.loads(text))
        raw_attributes = data.get("attributes")
        return cls(
            name=_string(data, "name"),
            timestamp=_field(data, "timestamp", _U64_MAX),
            attributes=None if raw_attributes is None else _attributes(raw_attributes),
        )


@dataclass
class UpdateAttributesPayload:
    """Signed payload for replacing a name's attributes."""

    attributes: dict[str, str]
    timestamp: int

    @classmethod
    def from_json(cls, text: str | bytes) -> "UpdateAttributesPayload":
        data = _object(json.loads(text))
        return cls(
            attributes=_attributes(_required(data, "attributes")),
            timestamp=_field(data, "timestamp", _U64_MAX),
        )


@dataclass
class UpdateAddressPayload:
    """Signed payload for changing the address of a name."""

    coin_type: int
    address: str
    timestamp: int

    @classmethod
    def from_json(cls, text: str | bytes) -> "UpdateAddressPayload":
        data = _object(json.loads(text))
        return cls(
            coin_type=_field(data, "coin_type", _U32_MAX),
            address=_string(data, "address"),
            timestamp=_field(data, "timestamp", _U64_MAX),
        )


@dataclass(frozen=True)
class RegisterRequest:
    """A signed message together with the signer's address and coin type."""

    message: str
    signature: str
    coin_type: int
    address: str

    @classmethod
    def from_dict(cls, data: Mapping) -> "RegisterRequest":
        data = _object(data)
        return cls(
            message=_string(data, "message"),
            signature=_string(data, "signature"),
            coin_type=_field(data, "coin_type", _U32_MAX),
            address=_string(data, "address"),
        )


def is_timestamp_within_interval(unix_timestamp: int, threshold_interval: int) -> bool:
    """Check the timestamp lies within the threshold around the current time."""
    now = int(time.time())
    return now - threshold_interval <= unix_timestamp <= now + threshold_interval


def check_attributes(
    attributes_map: Mapping[str, str],
    keys_allowed: Mapping[str, Pattern[str] | str],
    max_length: int,
) -> bool:
    """Check every attribute is allowed, non-empty, short enough and well formed."""
    for key, value in attributes_map.items():
        pattern = keys_allowed.get(key)
        if pattern is None:
            return False
        length = len(value.encode("utf-8"))
        if length == 0 or length > max_length:
            return False
        if not re.search(pattern, value):
            return False
    return True


def _name_parts(name: str) -> list[str] | None:
    parts = name.split(".")
    return parts if len(parts) == 3 else None


def is_name_in_allowed_zones(name: str, allowed_zones: tuple[str, ...] | list[str]) -> bool:
    parts = _name_parts(name)
    return parts is not None and f"{parts[1]}.{parts[2]}" in allowed_zones


def is_name_format_correct(name: str) -> bool:
    return _DOMAIN_FORMAT.search(name) is not None


def is_name_length_correct(name: str) -> bool:
    parts = _name_parts(name)
    return parts is not None and (
        NAME_MIN_LENGTH <= len(parts[0].encode("utf-8")) <= NAME_MAX_LENGTH
    )