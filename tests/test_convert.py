import pytest

from rpcproxy.convert import (
    ConvertApproveQueryParams,
    ConvertQuoteQueryParams,
    ConvertTransactionQueryParams,
    ConvertTx,
    ConvertTxEip155,
    QuoteItem,
    TokenItem,
    TokensListQueryParams,
)

FROM = "eip155:1:0x0000000000000000000000000000000000000001"
TO = "eip155:1:0x0000000000000000000000000000000000000002"


@pytest.mark.parametrize("cls", [ConvertApproveQueryParams, ConvertQuoteQueryParams])
def test_query_params_accept_amount_as_text(cls):
    params = cls.from_dict({"projectId": "project", "amount": "100", "from": FROM, "to": TO})
    assert params.amount == 100
    assert params.from_ == FROM
    assert params.to == TO
    assert params.project_id == "project"


@pytest.mark.parametrize("cls", [ConvertApproveQueryParams, ConvertQuoteQueryParams])
@pytest.mark.parametrize("amount", ["-1", "1.5", "many", -3])
def test_query_params_reject_bad_amount(cls, amount):
    with pytest.raises(ValueError):
        cls.from_dict({"projectId": "project", "amount": amount, "from": FROM, "to": TO})


def test_query_params_require_fields():
    with pytest.raises(ValueError):
        ConvertQuoteQueryParams.from_dict({"projectId": "project", "amount": "1", "from": FROM})


def test_tokens_list_params_read_chain_id():
    params = TokensListQueryParams.from_dict({"projectId": "project", "chainId": "eip155:1"})
    assert params.chain_id == "eip155:1"
    with pytest.raises(ValueError):
        TokensListQueryParams.from_dict({"projectId": "project"})


def test_transaction_params_with_eip155():
    params = ConvertTransactionQueryParams.from_dict(
        {
            "projectId": "project",
            "amount": 5,
            "from": FROM,
            "to": TO,
            "userAddress": FROM,
            "eip155": {"slippage": 1},
        }
    )
    assert params.user_address == FROM
    assert params.eip155.slippage == 1
    assert params.eip155.permit is None


def test_transaction_params_without_eip155():
    params = ConvertTransactionQueryParams.from_dict(
        {"projectId": "project", "amount": 5, "from": FROM, "to": TO, "userAddress": FROM}
    )
    assert params.eip155 is None
    assert params.amount == 5


def test_transaction_params_require_user_address():
    with pytest.raises(ValueError):
        ConvertTransactionQueryParams.from_dict(
            {"projectId": "project", "amount": 5, "from": FROM, "to": TO}
        )


def test_token_item_round_trip_and_keys():
    item = TokenItem(name="Tether", symbol="USDT", address=FROM, decimals=6)
    data = item.to_dict()
    assert set(data) == {"name", "symbol", "address", "decimals", "logoUri", "eip2612"}
    assert data["logoUri"] is None
    assert TokenItem.from_dict(data) == item


@pytest.mark.parametrize("decimals", [256, -1, "6", True])
def test_token_item_rejects_bad_decimals(decimals):
    with pytest.raises(ValueError):
        TokenItem.from_dict({"name": "T", "symbol": "T", "address": FROM, "decimals": decimals})


def test_token_item_rejects_non_bool_eip2612():
    with pytest.raises(ValueError):
        TokenItem.from_dict(
            {"name": "T", "symbol": "T", "address": FROM, "decimals": 18, "eip2612": "yes"}
        )


def test_quote_item_round_trip():
    quote = QuoteItem(
        id="q", from_amount="100", from_account=FROM, to_amount="99", to_account=TO
    )
    data = quote.to_dict()
    assert set(data) == {"id", "fromAmount", "fromAccount", "toAmount", "toAccount"}
    assert data["toAccount"] == TO
    assert QuoteItem.from_dict(data) == quote


def test_convert_tx_round_trip_with_gas():
    tx = ConvertTx(
        from_=FROM,
        to=TO,
        data="0x",
        amount="10",
        eip155=ConvertTxEip155(gas="21000", gas_price="1"),
    )
    data = tx.to_dict()
    assert data["from"] == FROM
    assert data["eip155"] == {"gas": "21000", "gasPrice": "1"}
    assert ConvertTx.from_dict(data) == tx


def test_convert_tx_without_eip155_serialises_null():
    tx = ConvertTx.from_dict({"from": FROM, "to": TO, "data": "0x", "amount": "1"})
    assert tx.eip155 is None
    assert tx.to_dict()["eip155"] is None
    with pytest.raises(ValueError):
        ConvertTx.from_dict({"from": FROM, "to": TO, "data": "0x"})