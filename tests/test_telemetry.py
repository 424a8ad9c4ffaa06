import time
from datetime import timedelta
from http import HTTPStatus

import pytest

from rpcproxy.identity import IdentityLookupSource
from rpcproxy.project import ProjectDataError, ResponseSource
from rpcproxy.telemetry import (
    Counter,
    Histogram,
    Metrics,
    MetricsRegistry,
    ProjectDataMetrics,
    export_metrics,
)


class _BrokenRegistry:
    def export(self):
        raise RuntimeError("exporter down")


def test_counter_keeps_series_per_attribute_set():
    counter = Counter("calls")
    calls = 3
    for _ in range(calls):
        counter.add(1, {"route": "proxy"})
    counter.add(1, {"route": "other"})
    assert counter.value({"route": "proxy"}) == calls
    assert counter.value({"route": "missing"}) == 0


def test_counter_attribute_order_does_not_matter():
    counter = Counter("calls")
    counter.add(2, {"a": "x", "b": "y"})
    assert counter.value({"b": "y", "a": "x"}) == 2


def test_counter_rejects_negative():
    with pytest.raises(ValueError):
        Counter("calls").add(-1)


def test_histogram_records_in_order():
    histogram = Histogram("latency")
    histogram.record(0.5, {"route": "proxy"})
    histogram.record(1.5, {"route": "proxy"})
    assert histogram.values({"route": "proxy"}) == [0.5, 1.5]
    assert histogram.values() == []


def test_histogram_rejects_non_number():
    with pytest.raises(ValueError):
        Histogram("latency").record("slow")


def test_registry_reuses_and_guards_names():
    registry = MetricsRegistry()
    first = registry.counter("rpc_call_counter", "The number of rpc calls served")
    assert registry.counter("rpc_call_counter") is first
    with pytest.raises(ValueError):
        registry.histogram("rpc_call_counter")


def test_export_contains_series_and_help():
    metrics = Metrics()
    metrics.add_rpc_call("eip155:1")
    text = metrics.registry.export()
    assert "# HELP rpc_call_counter The number of rpc calls served" in text
    assert "# TYPE rpc_call_counter counter" in text
    assert 'rpc_call_counter{chain.id="eip155:1"} 1' in text


def test_export_metrics_ok_and_failure():
    registry = MetricsRegistry()
    registry.counter("websocket_connection_counter").add(1)
    status, body = export_metrics(registry)
    assert status == HTTPStatus.OK
    assert body == registry.export()
    status, body = export_metrics(_BrokenRegistry())
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert body == "Failed to get metrics"


def test_http_call_and_latency():
    metrics = Metrics()
    metrics.add_http_call(200, "proxy")
    metrics.add_http_latency(200, "proxy", 0.25)
    assert metrics.http_call_counter.value({"code": 200, "route": "proxy"}) == 1
    assert metrics.http_latency_tracker.values({"code": 200, "route": "proxy"}) == [0.25]


def test_provider_status_code_is_text():
    metrics = Metrics()
    metrics.add_status_code_for_provider("Infura", HTTPStatus.SERVICE_UNAVAILABLE, "eip155:1")
    attrs = {"provider": "Infura", "status_code": "503", "chain_id": "eip155:1"}
    assert metrics.provider_status_code_counter.value(attrs) == 1


def test_rate_limited_uses_provider_kind_label():
    metrics = Metrics()
    metrics.add_rate_limited_call("Pokt", "project-a")
    attrs = {"provider_kind": "Pokt", "project_id": "project-a"}
    assert metrics.rate_limited_call_counter.value(attrs) == 1
    assert metrics.rate_limited_call_counter.name == "rate_limited_counter"


def test_provider_weight_recorded_and_validated():
    metrics = Metrics()
    metrics.record_provider_weight("Aurora", "eip155:1313161554", 7)
    assert metrics.weights_value_recorder.values(
        {"provider": "Aurora", "chain_id": "eip155:1313161554"}
    ) == [7]
    assert metrics.weights_value_recorder.name == "provider_weights"
    with pytest.raises(ValueError):
        metrics.record_provider_weight("Aurora", "eip155:1", -1)


def test_identity_lookup_success_and_latency():
    metrics = Metrics()
    metrics.add_identity_lookup_success(IdentityLookupSource.CACHE)
    metrics.add_identity_lookup_latency(timedelta(milliseconds=250), IdentityLookupSource.RPC)
    assert metrics.identity_lookup_success_counter.value({"source": "cache"}) == 1
    assert metrics.identity_lookup_latency_tracker.values({"source": "rpc"}) == [0.25]


def test_latency_from_future_start_is_zero():
    metrics = Metrics()
    metrics.add_identity_lookup_name_latency(time.time() + 3600)
    assert metrics.identity_lookup_name_latency_tracker.values() == [0.0]


def test_latency_from_past_start_is_positive():
    metrics = Metrics()
    start = time.time() - 5
    metrics.add_identity_lookup_avatar_latency(start)
    metrics.add_identity_lookup_cache_latency(start)
    (avatar,) = metrics.identity_lookup_avatar_latency_tracker.values()
    (cache,) = metrics.identity_lookup_cache_latency_tracker.values()
    assert avatar >= 5
    assert cache >= 5


def test_simple_counters_increment():
    metrics = Metrics()
    metrics.add_rejected_project()
    metrics.add_quota_limited_project()
    metrics.add_identity_lookup()
    metrics.add_identity_lookup_name()
    metrics.add_identity_lookup_name_success()
    metrics.add_identity_lookup_avatar()
    metrics.add_identity_lookup_avatar_success()
    metrics.add_identity_lookup_name_present()
    metrics.add_identity_lookup_avatar_present()
    counters = [
        metrics.rejected_project_counter,
        metrics.quota_limited_project_counter,
        metrics.identity_lookup_counter,
        metrics.identity_lookup_name_counter,
        metrics.identity_lookup_name_success_counter,
        metrics.identity_lookup_avatar_counter,
        metrics.identity_lookup_avatar_success_counter,
        metrics.identity_lookup_name_present_counter,
        metrics.identity_lookup_avatar_present_counter,
    ]
    assert all(counter.value() == 1 for counter in counters)


def test_provider_call_counters():
    metrics = Metrics()
    metrics.add_failed_provider_call("Quicknode")
    metrics.add_finished_provider_call("Quicknode")
    metrics.add_finished_provider_call("Quicknode")
    metrics.add_external_http_latency("Quicknode", 0.5)
    assert metrics.provider_failed_call_counter.value({"provider": "Quicknode"}) == 1
    assert metrics.provider_finished_call_counter.value({"provider": "Quicknode"}) == 2
    assert metrics.http_external_latency_tracker.values({"provider": "Quicknode"}) == [0.5]


def test_history_and_websocket():
    metrics = Metrics()
    metrics.add_history_lookup("Zerion")
    metrics.add_history_lookup_success("Zerion")
    metrics.add_history_lookup_latency("Zerion", timedelta(seconds=2))
    metrics.add_websocket_connection("eip155:1")
    assert metrics.history_lookup_counter.value({"provider": "Zerion"}) == 1
    assert metrics.history_lookup_success_counter.value({"provider": "Zerion"}) == 1
    assert metrics.history_lookup_latency_tracker.values({"provider": "Zerion"}) == [2.0]
    assert metrics.websocket_connection_counter.value({"chain_id": "eip155:1"}) == 1


def test_gather_system_metrics_records_memory_and_cpus():
    metrics = Metrics()
    metrics.gather_system_metrics()
    (total,) = metrics.memory_total.values()
    (used,) = metrics.memory_used.values()
    assert total > 0
    assert 0 <= used <= total
    assert len(metrics.cpu_usage.values({"cpu": 0.0})) == 1


def test_project_data_metrics_names_and_tags():
    registry = MetricsRegistry()
    project_metrics = ProjectDataMetrics(registry)
    project_metrics.request(timedelta(milliseconds=250), ResponseSource.CACHE)
    project_metrics.request(
        timedelta(milliseconds=250),
        ResponseSource.REGISTRY,
        ProjectDataError(ProjectDataError.NOT_FOUND),
    )
    project_metrics.request(
        timedelta(milliseconds=250),
        ResponseSource.REGISTRY,
        ProjectDataError(ProjectDataError.REGISTRY_CONFIG_ERROR),
    )
    requests = registry.counter("project_data_requests_total")
    assert requests.value({"source": "cache", "response": "ok"}) == 1
    assert requests.value({"source": "registry", "response": "not_found"}) == 1
    assert requests.value({"source": "registry", "response": "registry_config_error"}) == 1
    assert project_metrics.total_time.values() == [250.0, 250.0, 250.0]


def test_project_data_fetch_times_in_milliseconds():
    registry = MetricsRegistry()
    project_metrics = ProjectDataMetrics(registry)
    project_metrics.fetch_cache_time(timedelta(milliseconds=250))
    project_metrics.fetch_registry_time(timedelta(milliseconds=500))
    assert registry.histogram("project_data_local_cache_time").values() == [250.0]
    assert registry.histogram("project_data_registry_api_time").values() == [500.0]


def test_project_data_request_rejects_unknown_outcome():
    project_metrics = ProjectDataMetrics(MetricsRegistry())
    with pytest.raises(ValueError):
        project_metrics.request(timedelta(0), ResponseSource.CACHE, "broken")