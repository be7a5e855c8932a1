"""Valkey (and Redis protocol compatible) backend."""

from __future__ import annotations

import logging
import pickle
from typing import Any, Mapping

import valkey

from ..errors import CacheConfigurationError
from .base import MISS, CacheLookup

LOG = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379


class ValkeyBackend:
    """Options: ``host``, ``port`` (6379), ``db`` (0), ``password``."""

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        options = options or {}
        host = options.get("host") or DEFAULT_HOST
        port = int(options.get("port") or DEFAULT_PORT)
        self.client = valkey.Valkey(
            host=host,
            port=port,
            db=int(options.get("db", 0)),
            password=options.get("password"),
            socket_connect_timeout=options.get("timeout", 2.0),
        )
        try:
            self.client.ping()
        except valkey.exceptions.ValkeyError as exc:
            self.client.close()
            raise CacheConfigurationError(f"Valkey unavailable at {host}:{port}: {exc}") from exc
        LOG.debug("Connected to valkey", extra={"host": host, "port": port})

    def read(self, key: str) -> CacheLookup:
        payload = self.client.get(key)
        if payload is None:
            return MISS
        return CacheLookup.hit(pickle.loads(payload))

    def write(self, key: str, value: Any, expire: int) -> None:
        payload = pickle.dumps(value)
        if expire > 0:
            self.client.setex(key, int(expire), payload)
        else:
            self.client.set(key, payload)

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def flush(self) -> None:
        self.client.flushdb()

    def close(self) -> None:
        self.client.close()


__all__ = ["ValkeyBackend"]
