"""Read-through cache and its storage backends.

The module-level functions operate on a process-wide ``DataCache`` that starts
disabled. Reconfiguring it with ``initialize`` swaps the instance under a lock;
callers that need isolation should hold their own ``DataCache`` instead.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Mapping, TypeVar

from .base import CacheBackend, CacheLookup, backend_names, create_backend, register_backend
from .datacache import DEFAULT_OPTIONS, DataCache
from .memcached import MemcachedBackend
from .memory import MemoryBackend
from .valkey_backend import ValkeyBackend

T = TypeVar("T")

register_backend("memory", MemoryBackend)
register_backend("memcached", MemcachedBackend)
register_backend("valkey", ValkeyBackend)
register_backend("redis", ValkeyBackend)

_default_cache = DataCache()
_default_lock = threading.Lock()


def default_cache() -> DataCache:
    with _default_lock:
        return _default_cache


def initialize(backend: str | CacheBackend | None, options: Mapping[str, Any] | None = None) -> DataCache:
    """Replace the process-wide cache; ``None`` disables caching."""

    global _default_cache
    cache = DataCache(backend, options)
    with _default_lock:
        _default_cache = cache
    return cache


def has_cache() -> bool:
    return default_cache().has_cache()


def get(key: str, compute: Callable[[], T], expire: int | None = None) -> T:
    return default_cache().get(key, compute, expire)


def set(key: str, value: Any, expire: int | None = None) -> None:  # noqa: A001
    default_cache().set(key, value, expire)


def delete(key: str) -> None:
    default_cache().delete(key)


def flush() -> None:
    default_cache().flush()


__all__ = [
    "CacheBackend",
    "CacheLookup",
    "DEFAULT_OPTIONS",
    "DataCache",
    "MemcachedBackend",
    "MemoryBackend",
    "ValkeyBackend",
    "backend_names",
    "create_backend",
    "default_cache",
    "delete",
    "flush",
    "get",
    "has_cache",
    "initialize",
    "register_backend",
    "set",
]
