"""In-process cache backend backed by ``cachetools.TLRUCache``."""

from __future__ import annotations

import logging
import math
import time
from threading import Lock
from typing import Any, Callable, Mapping

from cachetools import TLRUCache

from ..errors import CacheConfigurationError
from .base import MISS, CacheLookup

LOG = logging.getLogger(__name__)

DEFAULT_MAXSIZE = 1024


def _time_to_use(_key: str, item: tuple[Any, int], now: float) -> float:
    expire = item[1]
    return now + expire if expire > 0 else math.inf


class MemoryBackend:
    """Per-process cache with a per-entry expiry and LRU eviction past ``maxsize``.

    Options: ``maxsize`` (default 1024) and ``timer`` (a zero-argument clock
    returning seconds, ``time.monotonic`` by default). Safe to share between
    threads; reads reorder and expire entries, so every access holds the lock.
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        options = options or {}
        maxsize = options.get("maxsize", DEFAULT_MAXSIZE)
        if isinstance(maxsize, bool) or not isinstance(maxsize, int) or maxsize <= 0:
            raise CacheConfigurationError(f"Invalid memory cache maxsize: {maxsize!r}")
        timer: Callable[[], float] = options.get("timer") or time.monotonic
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = Lock()
        LOG.debug("Initialized memory cache", extra={"maxsize": maxsize})

    def read(self, key: str) -> CacheLookup:
        with self._lock:
            try:
                value, _expire = self._cache[key]
            except KeyError:
                return MISS
        return CacheLookup.hit(value)

    def write(self, key: str, value: Any, expire: int) -> None:
        with self._lock:
            self._cache[key] = (value, int(expire))

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def flush(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


__all__ = ["DEFAULT_MAXSIZE", "MemoryBackend"]
