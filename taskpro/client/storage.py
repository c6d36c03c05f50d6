"""
Key-value storage media for the client's cache and queue.

All media are synchronous and namespaced: every key is prefixed with the
namespace so several clients can share one medium without seeing each
other's data. Faults surface as StorageError; callers decide whether to
absorb them.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

from redis import Redis, RedisError

from taskpro.client.errors import StorageError, StorageQuotaExceeded
from taskpro.core.config import Settings

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    def __init__(self, namespace: str = ""):
        self.namespace = namespace

    def _key(self, key: str) -> str:
        """Build namespaced storage key."""
        return f"{self.namespace}{key}"

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...


class MemoryStorage(KeyValueStorage):
    """
    Process-local storage, optionally capacity-bounded.

    The quota counts UTF-8 bytes of keys and values together, the way a
    browser's localStorage quota does.
    """

    def __init__(self, namespace: str = "", quota_bytes: int | None = None):
        super().__init__(namespace)
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    def _size(self, data: dict[str, str]) -> int:
        return sum(len(k.encode()) + len(v.encode()) for k, v in data.items())

    def get(self, key: str) -> str | None:
        return self._data.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        full_key = self._key(key)
        if self.quota_bytes is not None:
            candidate = {**self._data, full_key: value}
            if self._size(candidate) > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing {full_key!r} exceeds quota of {self.quota_bytes} bytes"
                )
        self._data[full_key] = value

    def remove(self, key: str) -> None:
        self._data.pop(self._key(key), None)


class FileStorage(KeyValueStorage):
    """One file per key inside a directory; survives process restarts."""

    def __init__(self, directory: str | Path, namespace: str = ""):
        super().__init__(namespace)
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / quote(self._key(key), safe="")

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot remove {path}: {e}") from e


class RedisStorage(KeyValueStorage):
    """Shared storage on a Redis server, for clients running on several hosts."""

    def __init__(self, redis: Redis, namespace: str = ""):
        super().__init__(namespace)
        self._redis = redis

    @classmethod
    def from_url(cls, dsn: str, namespace: str = "") -> "RedisStorage":
        redis = Redis.from_url(
            dsn,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )
        return cls(redis, namespace)

    def get(self, key: str) -> str | None:
        try:
            return self._redis.get(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis GET error: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            self._redis.set(self._key(key), value)
        except RedisError as e:
            raise StorageError(f"Redis SET error: {e}") from e

    def remove(self, key: str) -> None:
        try:
            self._redis.delete(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis DELETE error: {e}") from e

    def close(self) -> None:
        try:
            self._redis.close()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.error(f"Error closing Redis: {e}")


def create_storage(settings: Settings) -> KeyValueStorage:
    backend = settings.storage_backend.lower()
    namespace = settings.storage_namespace
    if backend == "memory":
        return MemoryStorage(namespace, quota_bytes=settings.storage_quota_bytes)
    if backend == "file":
        return FileStorage(settings.storage_dir, namespace)
    if backend == "redis":
        return RedisStorage.from_url(settings.redis_dsn, namespace)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")
