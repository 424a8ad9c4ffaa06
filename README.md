# rpcproxy

Building blocks for a blockchain RPC proxy service: JSON-RPC message
models, Ethereum personal-message signature verification, profile name
rules, on-ramp URL generation, conversion and wallet data models, project
registry configuration, identity lookup helpers and in-process metrics
with a Prometheus-style text export.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

| Module | What it holds |
| --- | --- |
| `rpcproxy.jsonrpc` | `JsonRpcRequest`, `JsonRpcResult`, `JsonRpcError`, `ErrorResponse`, `dumps`, `loads_payload`, `loads_response`, `JsonRpcDecodeError` |
| `rpcproxy.signature` | `keccak256`, `parse_address`, `is_valid_address`, `hash_message`, `recover_address`, `verify_message_signature`, `SignatureError` |
| `rpcproxy.profile` | name and attribute checks, `RegisterPayload`, `UpdateAttributesPayload`, `UpdateAddressPayload`, `RegisterRequest`, `Eip155SupportedChains` |
| `rpcproxy.onramp` | `OnRampURLRequest`, `DestinationWallet`, `ExperienceType`, buy options and quotes parameters, `generate_on_ramp_url`, `ValidationError` |
| `rpcproxy.convert` | query parameters and response items for token conversion |
| `rpcproxy.wallet` | balance, transaction history and portfolio models, transfer counters |
| `rpcproxy.project` | `RegistryConfig`, `StorageConfig`, `ProjectDataError`, `ResponseSource`, `build_cache_key` |
| `rpcproxy.identity` | `IdentityResponse`, `IdentityLookupSource`, `check_rpc_result`, `classify_lookup_error` |
| `rpcproxy.telemetry` | `Counter`, `Histogram`, `MetricsRegistry`, `Metrics`, `ProjectDataMetrics`, `export_metrics` |

## Usage

### JSON-RPC messages

```python
from rpcproxy.jsonrpc import JsonRpcRequest, dumps, loads_payload, loads_response

request = JsonRpcRequest(id=1, method="eth_chainId")
text = dumps(request)
# '{"id":1,"jsonrpc":"2.0","method":"eth_chainId"}'
assert loads_payload(text) == request

response = loads_response('{"id":"7","jsonrpc":"2.0","result":"0x1"}')
assert response.id == 7
```

`loads_payload` tries a request first, then a result, then an error.
Message ids are unsigned 64-bit integers and may also be given as decimal
text. Anything that does not fit raises `JsonRpcDecodeError` (a
`ValueError`). `ErrorResponse.data` is left out of the encoding when it is
`None`.

### Signed messages

```python
from rpcproxy.signature import hash_message, parse_address, verify_message_signature

owner = parse_address("0x0000000000000000000000000000000000000001")
digest = hash_message("some message")   # keccak256 of the prefixed message
ok = verify_message_signature("some message", signature_hex, owner)
```

`verify_message_signature` hashes the message with the
`"\x19Ethereum Signed Message:\n<length>"` prefix, recovers the signer and
compares it with `owner` (20 bytes, or a hex address string). It returns
`False` when the signature was made by someone else and raises
`SignatureError` when the signature is not 65 bytes of valid hex.
Recovery ids 0/1, 27/28 and EIP-155 style values are accepted.

### Profile names

```python
from rpcproxy.profile import (
    ALLOWED_ZONES,
    ATTRIBUTES_VALUE_MAX_LENGTH,
    SUPPORTED_ATTRIBUTES,
    check_attributes,
    is_name_format_correct,
    is_name_in_allowed_zones,
    is_name_length_correct,
)

name = "alice.wc.ink"
valid = (
    is_name_format_correct(name)
    and is_name_length_correct(name)        # first label 5 to 64 bytes
    and is_name_in_allowed_zones(name, ALLOWED_ZONES)
)
check_attributes({"bio": "Hello"}, SUPPORTED_ATTRIBUTES, ATTRIBUTES_VALUE_MAX_LENGTH)
```

`is_timestamp_within_interval(ts, threshold)` checks that a Unix timestamp
lies within `threshold` seconds of now; `is_supported_coin_type` accepts
the ENSIP-11 coin types of `Eip155SupportedChains` (60). The payload
classes decode signed JSON messages with `from_json`.

### On-ramp URLs

```python
from rpcproxy.onramp import (
    CB_PAY_HOST,
    CB_PAY_PATH,
    DestinationWallet,
    OnRampURLRequest,
    generate_on_ramp_url,
)

request = OnRampURLRequest(
    app_id="placeholder",
    destination_wallets=[DestinationWallet(address="0x0000000000000000000000000000000000000001")],
    partner_user_id="0123456789abcdef0123456789abcdef",
)
request.validate()
url = generate_on_ramp_url(CB_PAY_HOST, CB_PAY_PATH, request)
```

`OnRampURLRequest.from_dict` reads a camel-case request body and ignores
any `appId` in it. `validate()` requires at least one wallet and a
partner user id of 32 to 50 characters and raises `ValidationError`
otherwise; the buy options and quotes parameters check their country,
subdivision and currency lengths the same way.

### Wallet data

```python
from rpcproxy.wallet import HistoryResponseBody, count_transfers, count_nft_transfers

page = HistoryResponseBody.from_dict(upstream_json)
total = count_transfers(page.data)
nfts = count_nft_transfers(page.data)
```

### Project configuration

```python
from rpcproxy.project import RegistryConfig, StorageConfig, build_cache_key

RegistryConfig().cache_ttl()                 # timedelta(minutes=5)
StorageConfig(project_data_redis_addr_read="redis://localhost").project_data_redis_addr()
# ('redis://localhost', None)
build_cache_key("abc")                       # 'project-data/abc'
```

### Identity lookups

`check_rpc_result` returns the value of a `JsonRpcResult`, and raises
`SelfProviderError` for a `JsonRpcError` or an empty `"0x"` result.
`classify_lookup_error(message, "name" | "avatar")` raises
`ProjectDataError` for a missing project, `LookupError` for other errors
raised by the proxy itself, and returns `None` for anything else, which
means the name or avatar is absent.

### Metrics

```python
from rpcproxy.telemetry import Metrics, MetricsRegistry, export_metrics

registry = MetricsRegistry()
metrics = Metrics(registry)
metrics.add_rpc_call("eip155:1")
status, body = export_metrics(registry)
print(body)
```

Counters and histograms keep one series per attribute set. The export is
in the Prometheus text format, with histograms rendered as `_count` and
`_sum` lines. `Metrics.gather_system_metrics()` samples per-CPU usage over
about 0.2 seconds and records total and used memory.
`ProjectDataMetrics` records times in milliseconds.

## What this package does not do

It has no HTTP server, routes or command: it provides the models, checks
and metrics that request handlers would use, but does not serve requests.
It does not forward calls to RPC providers, talk to a project registry,
read or write Redis or a database, or resolve names and avatars on chain.