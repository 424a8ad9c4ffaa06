from http import HTTPStatus

import pytest

from rpcproxy.identity import (
    IdentityLookupSource,
    IdentityResponse,
    LookupError,
    SelfProviderError,
    check_rpc_result,
    classify_lookup_error,
)
from rpcproxy.jsonrpc import ErrorResponse, JsonRpcError, JsonRpcResult
from rpcproxy.project import ProjectDataError


def test_identity_response_round_trip():
    response = IdentityResponse(name="vitalik.eth", avatar="https://example.com/a.png")
    assert IdentityResponse.from_dict(response.to_dict()) == response


def test_identity_response_empty():
    response = IdentityResponse.from_dict({})
    assert response.to_dict() == {"name": None, "avatar": None}


def test_identity_response_rejects_non_string():
    with pytest.raises(ValueError):
        IdentityResponse.from_dict({"name": 5})


@pytest.mark.parametrize(
    "text, member",
    [("cache", IdentityLookupSource.CACHE), ("rpc", IdentityLookupSource.RPC)],
)
def test_lookup_source_from_value(text, member):
    assert IdentityLookupSource(text) is member


def test_lookup_source_rejects_unknown_value():
    with pytest.raises(ValueError):
        IdentityLookupSource("registry")


def test_check_rpc_result_returns_value():
    assert check_rpc_result(JsonRpcResult(id=1, result="0xabcd")) == "0xabcd"


def test_check_rpc_result_empty_result():
    with pytest.raises(SelfProviderError) as info:
        check_rpc_result(JsonRpcResult(id=1, result="0x"))
    assert info.value.status == HTTPStatus.METHOD_NOT_ALLOWED
    assert info.value.body == "JSON-RPC result is 0x"
    assert str(info.value).startswith("proxy_handler status code not OK:")


def test_check_rpc_result_error_response():
    error = JsonRpcError(id=1, error=ErrorResponse(code=32, message="some message"))
    with pytest.raises(SelfProviderError) as info:
        check_rpc_result(error)
    assert str(info.value).startswith("JsonRpcError: ")


def test_classify_project_not_found():
    with pytest.raises(ProjectDataError) as info:
        classify_lookup_error(
            "SelfProviderError: RpcError: ProjectDataError(NotFound)", "name"
        )
    assert info.value.kind == ProjectDataError.NOT_FOUND


def test_classify_self_provider_error():
    with pytest.raises(LookupError) as info:
        classify_lookup_error("SelfProviderError: something broke", "avatar")
    assert info.value.kind == "avatar"
    assert info.value.detail == "something broke"


def test_classify_other_error_means_absent():
    assert classify_lookup_error("ens name not found", "name") is None


def test_classify_unknown_kind():
    with pytest.raises(ValueError):
        classify_lookup_error("anything", "email")