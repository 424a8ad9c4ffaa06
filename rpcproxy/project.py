"""Project registry configuration, errors and cache keys."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

DEFAULT_PROJECT_DATA_CACHE_TTL = 60 * 5
DEFAULT_REDIS_MAX_CONNECTIONS = 64

RedisAddr = tuple  # (read address, write address); either may be None


class ProjectDataError(Exception):
    """A project lookup outcome that is cached like a result."""

    NOT_FOUND = "NotFound"
    REGISTRY_CONFIG_ERROR = "RegistryConfigError"

    _MESSAGES = {
        NOT_FOUND: "Project not found in registry",
        REGISTRY_CONFIG_ERROR: "Registry configuration error",
    }

    def __init__(self, kind: str) -> None:
        if kind not in self._MESSAGES:
            raise ValueError(f"unknown project data error: {kind!r}")
        self.kind = kind
        super().__init__(self._MESSAGES[kind])

    def __repr__(self) -> str:
        return f"ProjectDataError({self.kind})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectDataError):
            return NotImplemented
        return self.kind == other.kind

    def __hash__(self) -> int:
        return hash(self.kind)


class ResponseSource(Enum):
    """Where project data was served from."""

    CACHE = "cache"
    REGISTRY = "registry"


@dataclass(frozen=True)
class RegistryConfig:
    """Settings for the project registry client."""

    api_url: str | None = None
    api_auth_token: str | None = None
    project_data_cache_ttl: int = DEFAULT_PROJECT_DATA_CACHE_TTL

    def cache_ttl(self) -> timedelta:
        """How long project data stays cached."""
        return timedelta(seconds=self.project_data_cache_ttl)


def _addr(read: str | None, write: str | None) -> tuple[str | None, str | None] | None:
    if read is None and write is None:
        return None
    return (read, write)


@dataclass(frozen=True)
class StorageConfig:
    """Settings for the Redis caches."""

    redis_max_connections: int = DEFAULT_REDIS_MAX_CONNECTIONS
    project_data_redis_addr_read: str | None = None
    project_data_redis_addr_write: str | None = None
    identity_cache_redis_addr_read: str | None = None
    identity_cache_redis_addr_write: str | None = None

    def project_data_redis_addr(self) -> tuple[str | None, str | None] | None:
        """The (read, write) addresses of the project data cache, or None."""
        return _addr(self.project_data_redis_addr_read, self.project_data_redis_addr_write)

    def identity_cache_redis_addr(self) -> tuple[str | None, str | None] | None:
        """The (read, write) addresses of the identity cache, or None."""
        return _addr(self.identity_cache_redis_addr_read, self.identity_cache_redis_addr_write)


def build_cache_key(id: str) -> str:
    """The cache key under which a project's data is stored."""
    return f"project-data/{id}"