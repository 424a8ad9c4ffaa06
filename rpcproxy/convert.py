"""Token conversion request and response types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .jsonrpc import _object, _optional_string, _required, _string, _unsigned


def _swap_fields(data: Any) -> dict:
    """Read the fields shared by the approve and quote query parameters."""
    data = _object(data)
    return {
        "project_id": _string(data, "projectId"),
        "amount": _unsigned(_required(data, "amount"), "amount", from_text=True),
        "from_": _string(data, "from"),
        "to": _string(data, "to"),
    }


@dataclass(frozen=True)
class ConvertApproveQueryParams:
    """Query parameters for building an approval transaction."""

    project_id: str
    amount: int
    from_: str
    to: str

    @classmethod
    def from_dict(cls, data: Any) -> "ConvertApproveQueryParams":
        return cls(**_swap_fields(data))


@dataclass(frozen=True)
class ConvertQuoteQueryParams:
    """Query parameters for conversion quotes."""

    project_id: str
    amount: int
    from_: str
    to: str

    @classmethod
    def from_dict(cls, data: Any) -> "ConvertQuoteQueryParams":
        return cls(**_swap_fields(data))


@dataclass(frozen=True)
class TokensListQueryParams:
    """Query parameters for the convertible tokens list."""

    project_id: str
    chain_id: str

    @classmethod
    def from_dict(cls, data: Any) -> "TokensListQueryParams":
        data = _object(data)
        return cls(project_id=_string(data, "projectId"), chain_id=_string(data, "chainId"))


@dataclass(frozen=True)
class ConvertTransactionQueryEip155:
    """EIP-155 options of a conversion transaction request."""

    slippage: int
    permit: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "ConvertTransactionQueryEip155":
        data = _object(data)
        return cls(
            slippage=_unsigned(_required(data, "slippage"), "slippage"),
            permit=_optional_string(data, "permit"),
        )

    def to_dict(self) -> dict:
        return {"slippage": self.slippage, "permit": self.permit}


@dataclass(frozen=True)
class ConvertTransactionQueryParams:
    """JSON body for building a conversion transaction."""

    project_id: str
    amount: int
    from_: str
    to: str
    user_address: str
    eip155: ConvertTransactionQueryEip155 | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "ConvertTransactionQueryParams":
        data = _object(data)
        eip155 = data.get("eip155")
        return cls(
            project_id=_string(data, "projectId"),
            amount=_unsigned(_required(data, "amount"), "amount"),
            from_=_string(data, "from"),
            to=_string(data, "to"),
            user_address=_string(data, "userAddress"),
            eip155=None if eip155 is None else ConvertTransactionQueryEip155.from_dict(eip155),
        )


@dataclass(frozen=True)
class TokenItem:
    """A token available for conversion."""

    name: str
    symbol: str
    address: str
    decimals: int
    logo_uri: str | None = None
    eip2612: bool | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "TokenItem":
        data = _object(data)
        eip2612 = data.get("eip2612")
        if eip2612 is not None and not isinstance(eip2612, bool):
            raise ValueError("field `eip2612` must be a boolean")
        return cls(
            name=_string(data, "name"),
            symbol=_string(data, "symbol"),
            address=_string(data, "address"),
            decimals=_unsigned(_required(data, "decimals"), "decimals", limit=255),
            logo_uri=_optional_string(data, "logoUri"),
            eip2612=eip2612,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "decimals": self.decimals,
            "logoUri": self.logo_uri,
            "eip2612": self.eip2612,
        }


@dataclass(frozen=True)
class QuoteItem:
    """One conversion quote."""

    from_amount: str
    from_account: str
    to_amount: str
    to_account: str
    id: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "QuoteItem":
        data = _object(data)
        return cls(
            id=_optional_string(data, "id"),
            from_amount=_string(data, "fromAmount"),
            from_account=_string(data, "fromAccount"),
            to_amount=_string(data, "toAmount"),
            to_account=_string(data, "toAccount"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fromAmount": self.from_amount,
            "fromAccount": self.from_account,
            "toAmount": self.to_amount,
            "toAccount": self.to_account,
        }


@dataclass(frozen=True)
class ConvertTxEip155:
    """EIP-155 gas details of a conversion transaction."""

    gas: str
    gas_price: str

    @classmethod
    def from_dict(cls, data: Any) -> "ConvertTxEip155":
        data = _object(data)
        return cls(gas=_string(data, "gas"), gas_price=_string(data, "gasPrice"))

    def to_dict(self) -> dict:
        return {"gas": self.gas, "gasPrice": self.gas_price}


@dataclass(frozen=True)
class ConvertTx:
    """A built conversion transaction."""

    from_: str
    to: str
    data: str
    amount: str
    eip155: ConvertTxEip155 | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "ConvertTx":
        data = _object(data)
        eip155 = data.get("eip155")
        return cls(
            from_=_string(data, "from"),
            to=_string(data, "to"),
            data=_string(data, "data"),
            amount=_string(data, "amount"),
            eip155=None if eip155 is None else ConvertTxEip155.from_dict(eip155),
        )

    def to_dict(self) -> dict:
        return {
            "from": self.from_,
            "to": self.to,
            "data": self.data,
            "amount": self.amount,
            "eip155": None if self.eip155 is None else self.eip155.to_dict(),
        }