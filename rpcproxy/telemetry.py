"""In-process counters and histograms for the proxy and their text export."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Any, Mapping

import psutil

from .identity import IdentityLookupSource
from .project import ProjectDataError, ResponseSource

logger = logging.getLogger(__name__)

MINIMUM_CPU_UPDATE_INTERVAL = 0.2
PROJECT_DATA_NAMESPACE = "project_data"

_SeriesKey = tuple


def _key(attributes: Mapping[str, Any] | None) -> _SeriesKey:
    if not attributes:
        return ()
    return tuple(sorted(attributes.items()))


def _seconds(value: timedelta | float | int) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _elapsed_since(start: datetime | float) -> float:
    """Seconds since start, or zero when start lies in the future."""
    if isinstance(start, datetime):
        now = datetime.now(start.tzinfo or None) if start.tzinfo else datetime.now()
        if start.tzinfo is not None:
            now = datetime.now(timezone.utc).astimezone(start.tzinfo)
        elapsed = (now - start).total_seconds()
    else:
        elapsed = time.time() - float(start)
    return max(0.0, elapsed)


def _escape(value: Any) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _labels(key: _SeriesKey) -> str:
    if not key:
        return ""
    inner = ",".join(f'{name}="{_escape(value)}"' for name, value in key)
    return "{" + inner + "}"


def _number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Counter:
    """A monotonically increasing count, kept per attribute set."""

    kind = "counter"

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description
        self._series: dict[_SeriesKey, int] = {}
        self._lock = threading.Lock()

    def add(self, value: int = 1, attributes: Mapping[str, Any] | None = None) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"counter increment must be a non-negative integer: {value!r}")
        key = _key(attributes)
        with self._lock:
            self._series[key] = self._series.get(key, 0) + value

    def value(self, attributes: Mapping[str, Any] | None = None) -> int:
        """The count recorded for exactly this attribute set."""
        with self._lock:
            return self._series.get(_key(attributes), 0)

    def _export_lines(self) -> list[str]:
        with self._lock:
            series = sorted(self._series.items(), key=lambda item: repr(item[0]))
        return [f"{self.name}{_labels(key)} {total}" for key, total in series]


class Histogram:
    """A record of observed values, kept per attribute set."""

    kind = "histogram"

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description
        self._series: dict[_SeriesKey, list[float]] = {}
        self._lock = threading.Lock()

    def record(self, value: float, attributes: Mapping[str, Any] | None = None) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"histogram value must be a number: {value!r}")
        key = _key(attributes)
        with self._lock:
            self._series.setdefault(key, []).append(value)

    def values(self, attributes: Mapping[str, Any] | None = None) -> list[float]:
        """The values recorded for exactly this attribute set, in order."""
        with self._lock:
            return list(self._series.get(_key(attributes), ()))

    def _export_lines(self) -> list[str]:
        with self._lock:
            series = sorted(
                ((key, list(values)) for key, values in self._series.items()),
                key=lambda item: repr(item[0]),
            )
        lines = []
        for key, values in series:
            labels = _labels(key)
            lines.append(f"{self.name}_count{labels} {len(values)}")
            lines.append(f"{self.name}_sum{labels} {_number(sum(values))}")
        return lines


class MetricsRegistry:
    """Creates named instruments and exports them as text."""

    def __init__(self) -> None:
        self._instruments: dict[str, Counter | Histogram] = {}
        self._lock = threading.Lock()

    def _instrument(self, kind: type, name: str, description: str) -> Any:
        with self._lock:
            existing = self._instruments.get(name)
            if existing is not None:
                if not isinstance(existing, kind):
                    raise ValueError(f"metric {name!r} is already registered as a {existing.kind}")
                return existing
            instrument = kind(name, description)
            self._instruments[name] = instrument
            return instrument

    def counter(self, name: str, description: str = "") -> Counter:
        return self._instrument(Counter, name, description)

    def histogram(self, name: str, description: str = "") -> Histogram:
        return self._instrument(Histogram, name, description)

    def export(self) -> str:
        """Render every instrument in the Prometheus text format."""
        with self._lock:
            instruments = sorted(self._instruments.values(), key=lambda i: i.name)
        lines: list[str] = []
        for instrument in instruments:
            if instrument.description:
                lines.append(f"# HELP {instrument.name} {instrument.description}")
            type_name = "summary" if instrument.kind == "histogram" else "counter"
            lines.append(f"# TYPE {instrument.name} {type_name}")
            lines.extend(instrument._export_lines())
        return "\n".join(lines) + ("\n" if lines else "")


def export_metrics(registry: MetricsRegistry) -> tuple[HTTPStatus, str]:
    """Serve the metrics export: a status and the body to send."""
    try:
        content = registry.export()
    except Exception:
        logger.exception("Failed to parse metrics")
        return HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to get metrics"
    return HTTPStatus.OK, content


class Metrics:
    """The proxy's service metrics."""

    def __init__(self, registry: MetricsRegistry | None = None) -> None:
        self.registry = registry if registry is not None else MetricsRegistry()
        r = self.registry
        self.rpc_call_counter = r.counter("rpc_call_counter", "The number of rpc calls served")
        self.http_call_counter = r.counter("http_call_counter", "The number of http calls served")
        self.http_latency_tracker = r.histogram("http_latency_tracker", "The http call latency")
        self.http_external_latency_tracker = r.histogram(
            "http_external_latency_tracker", "The http call latency for external providers"
        )
        self.rejected_project_counter = r.counter(
            "rejected_project_counter", "The number of calls for invalid project ids"
        )
        self.quota_limited_project_counter = r.counter(
            "quota_limited_project_counter", "The number of calls for quota limited project ids"
        )
        self.rate_limited_call_counter = r.counter(
            "rate_limited_counter", "The number of calls that got rate limited"
        )
        self.provider_finished_call_counter = r.counter(
            "provider_finished_call_counter",
            "The number of calls to provider that finished successfully",
        )
        self.provider_failed_call_counter = r.counter(
            "provider_failed_call_counter", "The number of calls to provider that failed"
        )
        self.provider_status_code_counter = r.counter(
            "provider_status_code_counter", "The count of status codes returned by providers"
        )
        self.weights_value_recorder = r.histogram(
            "provider_weights", "The weights of the providers"
        )
        self.identity_lookup_counter = r.counter(
            "identity_lookup_counter", "The number of identity lookups served"
        )
        self.identity_lookup_success_counter = r.counter(
            "identity_lookup_success_counter",
            "The number of identity lookups that were successful",
        )
        self.identity_lookup_latency_tracker = r.histogram(
            "identity_lookup_latency_tracker", "The latency to serve identity lookups"
        )
        self.identity_lookup_cache_latency_tracker = r.histogram(
            "identity_lookup_cache_latency_tracker",
            "The latency to lookup identity in the cache",
        )
        self.identity_lookup_name_counter = r.counter(
            "identity_lookup_name_counter", "The number of name lookups"
        )
        self.identity_lookup_name_success_counter = r.counter(
            "identity_lookup_name_success_counter",
            "The number of name lookups that were successfull",
        )
        self.identity_lookup_name_latency_tracker = r.histogram(
            "identity_lookup_name_latency_tracker", "The latency of performing the name lookup"
        )
        self.identity_lookup_avatar_counter = r.counter(
            "identity_lookup_avatar_counter", "The number of avatar lookups"
        )
        self.identity_lookup_avatar_success_counter = r.counter(
            "identity_lookup_avatar_success_counter",
            "The number of avatar lookups that were successfull",
        )
        self.identity_lookup_avatar_latency_tracker = r.histogram(
            "identity_lookup_avatar_latency_tracker",
            "The latency of performing the avatar lookup",
        )
        self.identity_lookup_name_present_counter = r.counter(
            "identity_lookup_name_present_counter",
            "The number of identity lookups that returned a name",
        )
        self.identity_lookup_avatar_present_counter = r.counter(
            "identity_lookup_avatar_present_counter",
            "The number of identity lookups that returned an avatar",
        )
        self.websocket_connection_counter = r.counter(
            "websocket_connection_counter", "The number of websocket connections"
        )
        self.history_lookup_counter = r.counter(
            "history_lookup_counter", "The number of transaction history lookups"
        )
        self.history_lookup_success_counter = r.counter(
            "history_lookup_success_counter",
            "The number of transaction history that were successfull",
        )
        self.history_lookup_latency_tracker = r.histogram(
            "history_lookup_latency_tracker",
            "The latency to serve transactions history lookups",
        )
        self.cpu_usage = r.histogram("cpu_usage", "The cpu(s) usage")
        self.memory_total = r.histogram("memory_total", "Total system memory")
        self.memory_used = r.histogram("memory_used", "Used system memory")

    def add_rpc_call(self, chain_id: str) -> None:
        self.rpc_call_counter.add(1, {"chain.id": chain_id})

    def add_http_call(self, code: int, route: str) -> None:
        self.http_call_counter.add(1, {"code": int(code), "route": route})

    def add_http_latency(self, code: int, route: str, latency: float) -> None:
        self.http_latency_tracker.record(float(latency), {"code": int(code), "route": route})

    def add_external_http_latency(self, provider_kind: Any, latency: float) -> None:
        self.http_external_latency_tracker.record(float(latency), {"provider": str(provider_kind)})

    def add_rejected_project(self) -> None:
        self.rejected_project_counter.add(1)

    def add_quota_limited_project(self) -> None:
        self.quota_limited_project_counter.add(1)

    def add_rate_limited_call(self, provider_kind: Any, project_id: str) -> None:
        self.rate_limited_call_counter.add(
            1, {"provider_kind": str(provider_kind), "project_id": project_id}
        )

    def add_failed_provider_call(self, provider_kind: Any) -> None:
        self.provider_failed_call_counter.add(1, {"provider": str(provider_kind)})

    def add_finished_provider_call(self, provider_kind: Any) -> None:
        self.provider_finished_call_counter.add(1, {"provider": str(provider_kind)})

    def add_status_code_for_provider(self, provider_kind: Any, status: int, chain_id: str) -> None:
        self.provider_status_code_counter.add(
            1,
            {
                "provider": str(provider_kind),
                "status_code": str(int(status)),
                "chain_id": chain_id,
            },
        )

    def record_provider_weight(self, provider_kind: Any, chain_id: str, weight: int) -> None:
        if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
            raise ValueError(f"weight must be a non-negative integer: {weight!r}")
        self.weights_value_recorder.record(
            weight, {"provider": str(provider_kind), "chain_id": chain_id}
        )

    def add_identity_lookup(self) -> None:
        self.identity_lookup_counter.add(1)

    def add_identity_lookup_success(self, source: IdentityLookupSource) -> None:
        self.identity_lookup_success_counter.add(1, {"source": source.value})

    def add_identity_lookup_latency(
        self, latency: timedelta | float, source: IdentityLookupSource
    ) -> None:
        self.identity_lookup_latency_tracker.record(_seconds(latency), {"source": source.value})

    def add_identity_lookup_cache_latency(self, start: datetime | float) -> None:
        self.identity_lookup_cache_latency_tracker.record(_elapsed_since(start))

    def add_identity_lookup_name(self) -> None:
        self.identity_lookup_name_counter.add(1)

    def add_identity_lookup_name_success(self) -> None:
        self.identity_lookup_name_success_counter.add(1)

    def add_identity_lookup_name_latency(self, start: datetime | float) -> None:
        self.identity_lookup_name_latency_tracker.record(_elapsed_since(start))

    def add_identity_lookup_avatar(self) -> None:
        self.identity_lookup_avatar_counter.add(1)

    def add_identity_lookup_avatar_success(self) -> None:
        self.identity_lookup_avatar_success_counter.add(1)

    def add_identity_lookup_avatar_latency(self, start: datetime | float) -> None:
        self.identity_lookup_avatar_latency_tracker.record(_elapsed_since(start))

    def add_identity_lookup_name_present(self) -> None:
        self.identity_lookup_name_present_counter.add(1)

    def add_identity_lookup_avatar_present(self) -> None:
        self.identity_lookup_avatar_present_counter.add(1)

    def add_websocket_connection(self, chain_id: str) -> None:
        self.websocket_connection_counter.add(1, {"chain_id": chain_id})

    def add_history_lookup(self, provider_kind: Any) -> None:
        self.history_lookup_counter.add(1, {"provider": str(provider_kind)})

    def add_history_lookup_success(self, provider_kind: Any) -> None:
        self.history_lookup_success_counter.add(1, {"provider": str(provider_kind)})

    def add_history_lookup_latency(self, provider_kind: Any, latency: timedelta | float) -> None:
        self.history_lookup_latency_tracker.record(
            _seconds(latency), {"provider": str(provider_kind)}
        )

    def gather_system_metrics(self) -> None:
        """Record per-CPU usage and system memory totals."""
        # CPU usage is a difference between two samples, so wait between them.
        usages = psutil.cpu_percent(interval=MINIMUM_CPU_UPDATE_INTERVAL, percpu=True)
        for index, usage in enumerate(usages):
            self.cpu_usage.record(float(usage), {"cpu": float(index)})
        memory = psutil.virtual_memory()
        self.memory_total.record(float(memory.total))
        self.memory_used.record(float(memory.used))


_RESPONSE_TAGS = {
    ProjectDataError.NOT_FOUND: "not_found",
    ProjectDataError.REGISTRY_CONFIG_ERROR: "registry_config_error",
}


def _response_tag(error: ProjectDataError | None) -> str:
    if error is None:
        return "ok"
    if isinstance(error, ProjectDataError):
        return _RESPONSE_TAGS[error.kind]
    raise ValueError(f"unexpected project data outcome: {error!r}")


class ProjectDataMetrics:
    """Metrics of project data fetching, with times in milliseconds."""

    def __init__(self, registry: MetricsRegistry) -> None:
        def name(suffix: str) -> str:
            return f"{PROJECT_DATA_NAMESPACE}_{suffix}"

        self.requests_total = registry.counter(
            name("requests_total"), "Total number of project data requests"
        )
        self.registry_api_time = registry.histogram(
            name("registry_api_time"), "Average latency of the registry API fetching"
        )
        self.local_cache_time = registry.histogram(
            name("local_cache_time"), "Average latency of the local cache fetching"
        )
        self.total_time = registry.histogram(
            name("total_time"), "Average total latency for project data fetching"
        )

    def fetch_cache_time(self, time: timedelta | float) -> None:
        self.local_cache_time.record(_seconds(time) * 1000.0)

    def fetch_registry_time(self, time: timedelta | float) -> None:
        self.registry_api_time.record(_seconds(time) * 1000.0)

    def request(
        self,
        time: timedelta | float,
        source: ResponseSource,
        error: ProjectDataError | None = None,
    ) -> None:
        """Count one request by source and outcome; error None means success."""
        self.requests_total.add(1, {"source": source.value, "response": _response_tag(error)})
        self.total_time.record(_seconds(time) * 1000.0)