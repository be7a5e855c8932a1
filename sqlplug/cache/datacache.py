"""Read-through cache over a pluggable backend."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, TypeVar

from .base import MISS, CacheBackend, CacheLookup, create_backend

LOG = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_OPTIONS: Mapping[str, Any] = {"expire": 30, "namespace": ""}


class DataCache:
    """Memoizes computations behind string keys.

    With no backend the cache is disabled: ``get`` always calls ``compute``
    and ``set``/``delete``/``flush`` do nothing. Backend failures during
    ``read``/``write``/``delete`` are logged and treated as a miss, so a broken
    cache never fails a computation that would otherwise succeed.
    """

    def __init__(
        self,
        backend: str | CacheBackend | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self.backend: CacheBackend | None = None
        self.expire: int = DEFAULT_OPTIONS["expire"]
        self.namespace: str = DEFAULT_OPTIONS["namespace"]
        self.initialize(backend, options)

    def initialize(
        self,
        backend: str | CacheBackend | None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """(Re)configure the cache.

        ``backend`` is a registered backend name, a ready backend instance or
        ``None`` to disable caching. ``expire`` and ``namespace`` are taken from
        ``options``; the remaining options are passed to the backend.
        Construction failures raise ``CacheConfigurationError``.
        """

        merged = {**DEFAULT_OPTIONS, **(options or {})}
        expire = int(merged.pop("expire"))
        namespace = str(merged.pop("namespace") or "")
        if backend is None or backend == "":
            instance = None
        elif isinstance(backend, str):
            instance = create_backend(backend, merged)
        else:
            instance = backend
        with self._lock:
            self.backend = instance
            self.expire = expire
            self.namespace = namespace
        LOG.debug(
            "Cache initialized",
            extra={"backend": type(instance).__name__ if instance else None, "namespace": namespace},
        )

    def has_cache(self) -> bool:
        return self.backend is not None

    def key(self, key: str) -> str:
        """Storage key for ``key`` under the configured namespace."""

        return f"{self.namespace}/{key}"

    def get(self, key: str, compute: Callable[[], T], expire: int | None = None) -> T:
        """Return the cached value for ``key``, computing and storing it on a miss."""

        backend = self.backend
        if backend is None:
            return compute()
        full_key = self.key(key)
        lookup = self._read(backend, full_key)
        if lookup.found:
            return lookup.value
        value = compute()
        self._write(backend, full_key, value, self.expire if expire is None else expire)
        return value

    def set(self, key: str, value: Any, expire: int | None = None) -> None:
        backend = self.backend
        if backend is None:
            return
        self._write(backend, self.key(key), value, self.expire if expire is None else expire)

    def delete(self, key: str) -> None:
        backend = self.backend
        if backend is None:
            return
        full_key = self.key(key)
        try:
            backend.delete(full_key)
        except Exception:
            LOG.warning("Cache delete failed", exc_info=True, extra={"key": full_key})

    def flush(self) -> None:
        """Clear every entry in the active backend."""

        backend = self.backend
        if backend is not None:
            backend.flush()

    def _read(self, backend: CacheBackend, key: str) -> CacheLookup:
        try:
            return backend.read(key)
        except Exception:
            LOG.warning("Cache read failed; treating as miss", exc_info=True, extra={"key": key})
            return MISS

    def _write(self, backend: CacheBackend, key: str, value: Any, expire: int) -> None:
        try:
            backend.write(key, value, expire)
        except Exception:
            LOG.warning("Cache write failed", exc_info=True, extra={"key": key})


__all__ = ["DEFAULT_OPTIONS", "DataCache"]
