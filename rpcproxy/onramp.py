"""On-ramp request and response types and the pay URL generator."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping
from urllib.parse import quote, quote_plus, urlsplit, urlunsplit

CB_PAY_HOST = "https://pay.coinbase.com"
CB_PAY_PATH = "/buy/select-asset"

_PATH_SAFE = "/:@!$&'()*+,;=%-._~"


class ValidationError(ValueError):
    """Raised when request parameters break their length constraints."""


class ExperienceType(str, Enum):
    """The default experience offered by the pay widget."""

    SEND = "send"
    BUY = "buy"

    def __str__(self) -> str:
        return self.value


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


def _optional_usize(data: Mapping, key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"field `{key}` must be a non-negative integer")
    return value


def _optional_bool(data: Mapping, key: str) -> bool | None:
    value = data.get(key)
    if value is not None and not isinstance(value, bool):
        raise ValueError(f"field `{key}` must be a boolean")
    return value


def _optional_strings(data: Mapping, key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"field `{key}` must be a list of strings")
    return list(value)


def _check_length(
    errors: list[str],
    name: str,
    value: str | None,
    *,
    equal: int | None = None,
    minimum: int | None = None,
    maximum: int | None = None,
) -> None:
    if value is None:
        return
    length = len(value)
    if equal is not None and length != equal:
        errors.append(f"{name}: length must be {equal}")
    if minimum is not None and length < minimum:
        errors.append(f"{name}: length must be at least {minimum}")
    if maximum is not None and length > maximum:
        errors.append(f"{name}: length must be at most {maximum}")


def _raise_if(errors: list[str]) -> None:
    if errors:
        raise ValidationError("; ".join(errors))


@dataclass
class DestinationWallet:
    """A wallet that receives the purchased assets."""

    address: str
    blockchains: list[str] | None = None
    assets: list[str] | None = None
    supported_networks: list[str] | None = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"address": self.address}
        for key in ("blockchains", "assets", "supported_networks"):
            value = getattr(self, key)
            if value is not None:
                result[key] = list(value)
        return result

    @classmethod
    def from_dict(cls, data: Any) -> "DestinationWallet":
        data = _object(data)
        return cls(
            address=_string(data, "address"),
            blockchains=_optional_strings(data, "blockchains"),
            assets=_optional_strings(data, "assets"),
            supported_networks=_optional_strings(data, "supported_networks"),
        )


@dataclass
class OnRampURLRequest:
    """Parameters of the pay SDK URL generator."""

    destination_wallets: list[DestinationWallet]
    partner_user_id: str
    app_id: str = ""
    default_network: str | None = None
    preset_crypto_amount: int | None = None
    preset_fiat_amount: int | None = None
    default_experience: ExperienceType | None = None
    handling_requested_urls: bool | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "OnRampURLRequest":
        """Decode a request body; any `appId` given by the client is ignored."""
        data = _object(data)
        wallets = _required(data, "destinationWallets")
        if not isinstance(wallets, list):
            raise ValueError("field `destinationWallets` must be a list")
        experience = data.get("defaultExperience")
        if experience is not None:
            try:
                experience = ExperienceType(experience)
            except ValueError as exc:
                raise ValueError(f"unknown experience type: {experience!r}") from exc
        return cls(
            destination_wallets=[DestinationWallet.from_dict(w) for w in wallets],
            partner_user_id=_string(data, "partnerUserId"),
            default_network=_optional_string(data, "defaultNetwork"),
            preset_crypto_amount=_optional_usize(data, "presetCryptoAmount"),
            preset_fiat_amount=_optional_usize(data, "presetFiatAmount"),
            default_experience=experience,
            handling_requested_urls=_optional_bool(data, "handlingRequestedUrls"),
        )

    def validate(self) -> "OnRampURLRequest":
        """Check the constraints and return the request unchanged."""
        errors: list[str] = []
        if len(self.destination_wallets) < 1:
            errors.append("destination_wallets: length must be at least 1")
        _check_length(errors, "partner_user_id", self.partner_user_id, minimum=32, maximum=50)
        _raise_if(errors)
        return self


@dataclass
class OnRampBuyOptionsParams:
    """Query parameters of the buy options endpoint."""

    project_id: str
    country: str
    subdivision: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "OnRampBuyOptionsParams":
        data = _object(data)
        return cls(
            project_id=_string(data, "projectId"),
            country=_string(data, "country"),
            subdivision=_optional_string(data, "subdivision"),
        )

    def validate(self) -> "OnRampBuyOptionsParams":
        """Check the constraints and return the parameters unchanged."""
        errors: list[str] = []
        _check_length(errors, "country", self.country, equal=2)
        _check_length(errors, "subdivision", self.subdivision, equal=2)
        _raise_if(errors)
        return self


@dataclass
class OnRampBuyQuotesParams:
    """Query parameters of the buy quotes endpoint."""

    project_id: str
    purchase_currency: str
    payment_amount: str
    payment_currency: str
    payment_method: str
    country: str
    purchase_network: str | None = None
    subdivision: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "OnRampBuyQuotesParams":
        data = _object(data)
        return cls(
            project_id=_string(data, "projectId"),
            purchase_currency=_string(data, "purchaseCurrency"),
            purchase_network=_optional_string(data, "purchaseNetwork"),
            payment_amount=_string(data, "paymentAmount"),
            payment_currency=_string(data, "paymentCurrency"),
            payment_method=_string(data, "paymentMethod"),
            country=_string(data, "country"),
            subdivision=_optional_string(data, "subdivision"),
        )

    def validate(self) -> "OnRampBuyQuotesParams":
        """Check the constraints and return the parameters unchanged."""
        errors: list[str] = []
        _check_length(errors, "purchase_currency", self.purchase_currency, maximum=4)
        _check_length(errors, "payment_currency", self.payment_currency, maximum=4)
        _check_length(errors, "country", self.country, equal=2)
        _check_length(errors, "subdivision", self.subdivision, equal=2)
        _raise_if(errors)
        return self


@dataclass
class PayOptionValue:
    """An amount in a currency."""

    value: str
    currency: str

    def to_dict(self) -> dict:
        return {"value": self.value, "currency": self.currency}

    @classmethod
    def from_dict(cls, data: Any) -> "PayOptionValue":
        data = _object(data)
        return cls(value=_string(data, "value"), currency=_string(data, "currency"))


@dataclass
class OnRampBuyQuotesResponse:
    """A buy quote with its totals and fees."""

    payment_total: PayOptionValue
    payment_subtotal: PayOptionValue
    purchase_amount: PayOptionValue
    coinbase_fee: PayOptionValue
    network_fee: PayOptionValue
    quote_id: str

    def to_dict(self) -> dict:
        return {
            "paymentTotal": self.payment_total.to_dict(),
            "paymentSubTotal": self.payment_subtotal.to_dict(),
            "purchaseAmount": self.purchase_amount.to_dict(),
            "coinbaseFee": self.coinbase_fee.to_dict(),
            "networkFee": self.network_fee.to_dict(),
            "quoteId": self.quote_id,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "OnRampBuyQuotesResponse":
        """Decode the upstream quote, whose keys are in snake case."""
        data = _object(data)
        return cls(
            payment_total=PayOptionValue.from_dict(_required(data, "payment_total")),
            payment_subtotal=PayOptionValue.from_dict(_required(data, "payment_subtotal")),
            purchase_amount=PayOptionValue.from_dict(_required(data, "purchase_amount")),
            coinbase_fee=PayOptionValue.from_dict(_required(data, "coinbase_fee")),
            network_fee=PayOptionValue.from_dict(_required(data, "network_fee")),
            quote_id=_string(data, "quote_id"),
        )


def _form_encode(text: str) -> str:
    return quote_plus(text, safe="*").replace("~", "%7E")


def generate_on_ramp_url(host: str, path: str, parameters: OnRampURLRequest) -> str:
    """Build the pay URL for the given host, path and request parameters."""
    parts = urlsplit(host)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"invalid host URL: {host!r}")
    if not path.startswith("/"):
        path = "/" + path

    wallets = json.dumps(
        [wallet.to_dict() for wallet in parameters.destination_wallets],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    pairs: list[tuple[str, str]] = [
        ("appId", parameters.app_id),
        ("destinationWallets", wallets),
        ("partnerUserId", parameters.partner_user_id),
    ]
    if parameters.default_network is not None:
        pairs.append(("defaultNetwork", parameters.default_network))
    if parameters.preset_crypto_amount is not None:
        pairs.append(("presetCryptoAmount", str(parameters.preset_crypto_amount)))
    if parameters.preset_fiat_amount is not None:
        pairs.append(("presetFiatAmount", str(parameters.preset_fiat_amount)))
    if parameters.default_experience is not None:
        pairs.append(("defaultExperience", str(parameters.default_experience)))
    if parameters.handling_requested_urls is not None:
        pairs.append(
            ("handlingRequestedUrls", "true" if parameters.handling_requested_urls else "false")
        )

    query = "&".join(f"{_form_encode(key)}={_form_encode(value)}" for key, value in pairs)
    return urlunsplit(
        (parts.scheme, parts.netloc.lower(), quote(path, safe=_PATH_SAFE), query, "")
    )