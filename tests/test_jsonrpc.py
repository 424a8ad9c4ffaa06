import pytest

from rpcproxy.jsonrpc import (
    JSON_RPC_VERSION,
    ErrorResponse,
    JsonRpcDecodeError,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResult,
    dumps,
    loads_payload,
    loads_response,
)


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (
            JsonRpcRequest(id=1, method="eth_chainId"),
            '{"id":1,"jsonrpc":"2.0","method":"eth_chainId"}',
        ),
        (
            JsonRpcResult(id=1, jsonrpc=JSON_RPC_VERSION, result="some result"),
            '{"id":1,"jsonrpc":"2.0","result":"some result"}',
        ),
        (
            JsonRpcError(
                id=1,
                jsonrpc=JSON_RPC_VERSION,
                error=ErrorResponse(code=32, message="some message", data=None),
            ),
            '{"id":1,"jsonrpc":"2.0","error":{"code":32,"message":"some message"}}',
        ),
        (
            JsonRpcError(id=9, error=ErrorResponse(code=-32000, message="m", data="d")),
            '{"id":9,"jsonrpc":"2.0","error":{"code":-32000,"message":"m","data":"d"}}',
        ),
    ],
    ids=["request", "response_result", "response_error", "error_with_data"],
)
def test_round_trip(payload, expected):
    serialized = dumps(payload)
    assert serialized == expected
    assert loads_payload(serialized) == payload


def test_deserialize_iridium_method():
    serialized = (
        '{"id":1,"jsonrpc":"2.0","method":"iridium_subscription","params"'
        ':{"id":"test_id","data":{"topic":"test_topic","message":"test_message"}}}'
    )
    payload = loads_payload(serialized)
    assert payload == JsonRpcRequest(id=1, method="iridium_subscription")


def test_id_from_numeric_string():
    payload = loads_payload('{"id":"42","jsonrpc":"2.0","method":"x"}')
    assert payload.id == 42


@pytest.mark.parametrize("bad_id", ['"abc"', "-1", "1.5", "true", '" 1"'])
def test_invalid_ids_rejected(bad_id):
    with pytest.raises(JsonRpcDecodeError):
        loads_payload('{"id":%s,"jsonrpc":"2.0","method":"x"}' % bad_id)


def test_null_result_is_a_result():
    payload = loads_response('{"id":3,"jsonrpc":"2.0","result":null}')
    assert payload == JsonRpcResult(id=3, result=None)


def test_loads_response_prefers_result_then_error():
    payload = loads_response(
        '{"id":3,"jsonrpc":"2.0","error":{"code":1,"message":"boom"}}'
    )
    assert isinstance(payload, JsonRpcError)
    assert payload.error.message == "boom"


@pytest.mark.parametrize(
    ("decode", "text"),
    [
        (loads_response, '{"id":1,"jsonrpc":"2.0","method":"eth_chainId"}'),
        (loads_payload, "{not json"),
        (loads_payload, '{"id":1,"jsonrpc":"2.0"}'),
    ],
    ids=["request_as_response", "invalid_json", "missing_fields"],
)
def test_rejected_documents(decode, text):
    with pytest.raises(JsonRpcDecodeError):
        decode(text)


def test_error_code_out_of_range():
    with pytest.raises(JsonRpcDecodeError):
        ErrorResponse.from_dict({"code": 2**31, "message": "x"})