"""Account balance, transaction history and portfolio types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping


def _object(data: Any) -> Mapping:
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    return data


def _required(data: Mapping, key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return data[key]


def _string(data: Mapping, key: str) -> str:
    value = _required(data, key)
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _optional_string(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field `{key}` must be a number")
    return float(value)


def _optional_number(data: Mapping, key: str) -> float | None:
    value = data.get(key)
    return None if value is None else _number(value, key)


def _bool(data: Mapping, key: str) -> bool:
    value = _required(data, key)
    if not isinstance(value, bool):
        raise ValueError(f"field `{key}` must be a boolean")
    return value


def _unsigned(data: Mapping, key: str) -> int:
    value = _required(data, key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"field `{key}` must be a non-negative integer")
    return value


def _optional_nested(data: Mapping, key: str, kind: Any) -> Any:
    value = data.get(key)
    return None if value is None else kind.from_dict(value)


def _nested_dict(value: Any) -> Any:
    return None if value is None else value.to_dict()


@dataclass(frozen=True)
class RpcQueryParams:
    """Query parameters shared by the RPC endpoints."""

    chain_id: str
    project_id: str
    provider_id: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "RpcQueryParams":
        data = _object(data)
        return cls(
            chain_id=_string(data, "chainId"),
            project_id=_string(data, "projectId"),
            provider_id=_optional_string(data, "providerId"),
        )


class BalanceCurrency(str, Enum):
    """Currencies in which balances can be valued."""

    BTC = "btc"
    ETH = "eth"
    USD = "usd"
    EUR = "eur"
    GBP = "gbp"
    AUD = "aud"
    CAD = "cad"
    INR = "inr"
    JPY = "jpy"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BalanceQueryParams:
    """Query parameters of the balance endpoint."""

    project_id: str
    currency: BalanceCurrency
    chain_id: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "BalanceQueryParams":
        data = _object(data)
        raw_currency = _string(data, "currency")
        try:
            currency = BalanceCurrency(raw_currency)
        except ValueError as exc:
            raise ValueError(f"unknown currency: {raw_currency!r}") from exc
        return cls(
            project_id=_string(data, "projectId"),
            currency=currency,
            chain_id=_optional_string(data, "chainId"),
        )


@dataclass(frozen=True)
class BalanceQuantity:
    """A token quantity with its decimals."""

    decimals: str
    numeric: str

    @classmethod
    def from_dict(cls, data: Any) -> "BalanceQuantity":
        data = _object(data)
        return cls(decimals=_string(data, "decimals"), numeric=_string(data, "numeric"))

    def to_dict(self) -> dict:
        return {"decimals": self.decimals, "numeric": self.numeric}


@dataclass(frozen=True)
class BalanceItem:
    """The balance of one token."""

    name: str
    symbol: str
    price: float
    quantity: BalanceQuantity
    icon_url: str
    chain_id: str | None = None
    value: float | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "BalanceItem":
        data = _object(data)
        return cls(
            name=_string(data, "name"),
            symbol=_string(data, "symbol"),
            chain_id=_optional_string(data, "chainId"),
            value=_optional_number(data, "value"),
            price=_number(_required(data, "price"), "price"),
            quantity=BalanceQuantity.from_dict(_required(data, "quantity")),
            icon_url=_string(data, "iconUrl"),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "chainId": self.chain_id,
            "value": self.value,
            "price": self.price,
            "quantity": self.quantity.to_dict(),
            "iconUrl": self.icon_url,
        }


@dataclass(frozen=True)
class HistoryQueryParams:
    """Query parameters of the transaction history endpoint."""

    project_id: str
    currency: str | None = None
    cursor: str | None = None
    onramp: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryQueryParams":
        data = _object(data)
        return cls(
            project_id=_string(data, "projectId"),
            currency=_optional_string(data, "currency"),
            cursor=_optional_string(data, "cursor"),
            onramp=_optional_string(data, "onramp"),
        )


@dataclass(frozen=True)
class HistoryTransactionMetadataApplication:
    """The application a transaction was made through."""

    name: str | None = None
    icon_url: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionMetadataApplication":
        data = _object(data)
        return cls(
            name=_optional_string(data, "name"),
            icon_url=_optional_string(data, "iconUrl"),
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "iconUrl": self.icon_url}


@dataclass(frozen=True)
class HistoryTransactionMetadata:
    """Descriptive fields of a transaction."""

    operation_type: str
    hash: str
    mined_at: str
    sent_from: str
    sent_to: str
    status: str
    nonce: int
    application: HistoryTransactionMetadataApplication | None = None
    chain: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionMetadata":
        data = _object(data)
        return cls(
            operation_type=_string(data, "operationType"),
            hash=_string(data, "hash"),
            mined_at=_string(data, "minedAt"),
            sent_from=_string(data, "sentFrom"),
            sent_to=_string(data, "sentTo"),
            status=_string(data, "status"),
            nonce=_unsigned(data, "nonce"),
            application=_optional_nested(
                data, "application", HistoryTransactionMetadataApplication
            ),
            chain=_optional_string(data, "chain"),
        )

    def to_dict(self) -> dict:
        return {
            "operationType": self.operation_type,
            "hash": self.hash,
            "minedAt": self.mined_at,
            "sentFrom": self.sent_from,
            "sentTo": self.sent_to,
            "status": self.status,
            "nonce": self.nonce,
            "application": _nested_dict(self.application),
            "chain": self.chain,
        }


@dataclass(frozen=True)
class HistoryTransactionURLItem:
    """A link to an image."""

    url: str

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionURLItem":
        return cls(url=_string(_object(data), "url"))

    def to_dict(self) -> dict:
        return {"url": self.url}


@dataclass(frozen=True)
class HistoryTransactionURLandContentTypeItem:
    """A link to content with its media type."""

    url: str
    content_type: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionURLandContentTypeItem":
        data = _object(data)
        return cls(
            url=_string(data, "url"),
            content_type=_optional_string(data, "content_type"),
        )

    def to_dict(self) -> dict:
        return {"url": self.url, "content_type": self.content_type}


@dataclass(frozen=True)
class HistoryTransactionFungibleInfo:
    """Details of a fungible token transfer."""

    name: str | None = None
    symbol: str | None = None
    icon: HistoryTransactionURLItem | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionFungibleInfo":
        data = _object(data)
        return cls(
            name=_optional_string(data, "name"),
            symbol=_optional_string(data, "symbol"),
            icon=_optional_nested(data, "icon", HistoryTransactionURLItem),
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "symbol": self.symbol, "icon": _nested_dict(self.icon)}


@dataclass(frozen=True)
class HistoryTransactionNFTContent:
    """Preview and detail content of an NFT."""

    preview: HistoryTransactionURLandContentTypeItem | None = None
    detail: HistoryTransactionURLandContentTypeItem | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionNFTContent":
        data = _object(data)
        return cls(
            preview=_optional_nested(data, "preview", HistoryTransactionURLandContentTypeItem),
            detail=_optional_nested(data, "detail", HistoryTransactionURLandContentTypeItem),
        )

    def to_dict(self) -> dict:
        return {"preview": _nested_dict(self.preview), "detail": _nested_dict(self.detail)}


@dataclass(frozen=True)
class HistoryTransactionNFTInfoFlags:
    """Flags attached to an NFT."""

    is_spam: bool

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionNFTInfoFlags":
        return cls(is_spam=_bool(_object(data), "is_spam"))

    def to_dict(self) -> dict:
        return {"is_spam": self.is_spam}


@dataclass(frozen=True)
class HistoryTransactionNFTInfo:
    """Details of an NFT transfer."""

    flags: HistoryTransactionNFTInfoFlags
    name: str | None = None
    content: HistoryTransactionNFTContent | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionNFTInfo":
        data = _object(data)
        return cls(
            name=_optional_string(data, "name"),
            content=_optional_nested(data, "content", HistoryTransactionNFTContent),
            flags=HistoryTransactionNFTInfoFlags.from_dict(_required(data, "flags")),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "content": _nested_dict(self.content),
            "flags": self.flags.to_dict(),
        }


@dataclass(frozen=True)
class HistoryTransactionTransferQuantity:
    """The amount moved by a transfer."""

    numeric: str

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionTransferQuantity":
        return cls(numeric=_string(_object(data), "numeric"))

    def to_dict(self) -> dict:
        return {"numeric": self.numeric}


@dataclass(frozen=True)
class HistoryTransactionTransfer:
    """One asset movement within a transaction."""

    direction: str
    quantity: HistoryTransactionTransferQuantity
    fungible_info: HistoryTransactionFungibleInfo | None = None
    nft_info: HistoryTransactionNFTInfo | None = None
    value: float | None = None
    price: float | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransactionTransfer":
        data = _object(data)
        return cls(
            fungible_info=_optional_nested(data, "fungible_info", HistoryTransactionFungibleInfo),
            nft_info=_optional_nested(data, "nft_info", HistoryTransactionNFTInfo),
            direction=_string(data, "direction"),
            quantity=HistoryTransactionTransferQuantity.from_dict(_required(data, "quantity")),
            value=_optional_number(data, "value"),
            price=_optional_number(data, "price"),
        )

    def to_dict(self) -> dict:
        return {
            "fungible_info": _nested_dict(self.fungible_info),
            "nft_info": _nested_dict(self.nft_info),
            "direction": self.direction,
            "quantity": self.quantity.to_dict(),
            "value": self.value,
            "price": self.price,
        }


@dataclass(frozen=True)
class HistoryTransaction:
    """A transaction in an account's history."""

    id: str
    metadata: HistoryTransactionMetadata
    transfers: tuple[HistoryTransactionTransfer, ...] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryTransaction":
        data = _object(data)
        raw_transfers = data.get("transfers")
        if raw_transfers is None:
            transfers = None
        elif isinstance(raw_transfers, list):
            transfers = tuple(HistoryTransactionTransfer.from_dict(t) for t in raw_transfers)
        else:
            raise ValueError("field `transfers` must be a list")
        return cls(
            id=_string(data, "id"),
            metadata=HistoryTransactionMetadata.from_dict(_required(data, "metadata")),
            transfers=transfers,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "metadata": self.metadata.to_dict(),
            "transfers": None
            if self.transfers is None
            else [transfer.to_dict() for transfer in self.transfers],
        }


@dataclass(frozen=True)
class HistoryResponseBody:
    """A page of transactions and the cursor of the next page."""

    data: tuple[HistoryTransaction, ...]
    next: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryResponseBody":
        data = _object(data)
        items = _required(data, "data")
        if not isinstance(items, list):
            raise ValueError("field `data` must be a list")
        return cls(
            data=tuple(HistoryTransaction.from_dict(item) for item in items),
            next=_optional_string(data, "next"),
        )

    def to_dict(self) -> dict:
        return {"data": [item.to_dict() for item in self.data], "next": self.next}


@dataclass(frozen=True)
class PortfolioPosition:
    """One position in an account's portfolio."""

    id: str
    name: str
    symbol: str

    @classmethod
    def from_dict(cls, data: Any) -> "PortfolioPosition":
        data = _object(data)
        return cls(
            id=_string(data, "id"),
            name=_string(data, "name"),
            symbol=_string(data, "symbol"),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "symbol": self.symbol}


def _transfers(transactions: Iterable[HistoryTransaction]):
    for transaction in transactions:
        yield from transaction.transfers or ()


def count_transfers(transactions: Iterable[HistoryTransaction]) -> int:
    """Count all transfers across the transactions."""
    return sum(1 for _ in _transfers(transactions))


def count_fungible_transfers(transactions: Iterable[HistoryTransaction]) -> int:
    """Count the transfers that carry fungible token details."""
    return sum(1 for t in _transfers(transactions) if t.fungible_info is not None)


def count_nft_transfers(transactions: Iterable[HistoryTransaction]) -> int:
    """Count the transfers that carry NFT details."""
    return sum(1 for t in _transfers(transactions) if t.nft_info is not None)