"""memcached backend using pymemcache."""

from __future__ import annotations

import logging
import pickle
from typing import Any, Mapping

from pymemcache.client import base

from ..errors import CacheConfigurationError
from .base import MISS, CacheLookup

LOG = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 11211


class MemcachedBackend:
    """Values are pickled so that any picklable result round-trips, ``None`` included."""

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        options = options or {}
        host = options.get("host") or DEFAULT_HOST
        port = int(options.get("port") or DEFAULT_PORT)
        timeout = options.get("timeout", 2.0)
        self.client = base.Client((host, port), connect_timeout=timeout, timeout=timeout)
        try:
            self.client.version()
        except Exception as exc:
            self.client.close()
            raise CacheConfigurationError(f"memcached unavailable at {host}:{port}: {exc}") from exc
        LOG.debug("Connected to memcached", extra={"host": host, "port": port})

    def read(self, key: str) -> CacheLookup:
        payload = self.client.get(key)
        if payload is None:
            return MISS
        return CacheLookup.hit(pickle.loads(payload))

    def write(self, key: str, value: Any, expire: int) -> None:
        self.client.set(key, pickle.dumps(value), expire=max(int(expire), 0), noreply=False)

    def delete(self, key: str) -> None:
        self.client.delete(key, noreply=False)

    def flush(self) -> None:
        self.client.flush_all(noreply=False)

    def close(self) -> None:
        self.client.close()


__all__ = ["MemcachedBackend"]
