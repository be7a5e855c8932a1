"""Configuration loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import tomllib

from pydantic import BaseModel, Field, ValidationError

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "sqlplug" / "config.toml"


class ConnectionSettings(BaseModel):
    """Structured connection entry (the alternative to a connection URL)."""

    adapter: str
    host: str | None = None
    port: int | None = None
    dbname: str | None = None
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    charset: str | None = None


class CacheSettings(BaseModel):
    """Read-through cache settings."""

    backend: str | None = None
    expire: int = 30
    namespace: str = ""
    options: dict[str, Any] = Field(default_factory=dict)

    def initialize_options(self) -> dict[str, Any]:
        """Options in the shape ``DataCache.initialize`` expects."""

        return {**self.options, "expire": self.expire, "namespace": self.namespace}


class DataConfig(BaseModel):
    """Shape of the configuration file."""

    connections: dict[str, str | ConnectionSettings] = Field(default_factory=dict)
    default_connection: str | None = None
    logging: bool = False
    cache: CacheSettings = Field(default_factory=CacheSettings)

    def get_connection(self, name: str) -> str | ConnectionSettings | None:
        """Connection URL or settings registered under ``name``."""

        return self.connections.get(name)

    def get_default_connection(self) -> str | ConnectionSettings | None:
        if self.default_connection:
            return self.get_connection(self.default_connection)
        return None

    def with_connection(self, name: str, connection: str | ConnectionSettings) -> DataConfig:
        """Return a copy with ``name`` registered."""

        connections = dict(self.connections)
        connections[name] = connection
        return self.model_copy(update={"connections": connections})

    def with_default_connection(self, name: str) -> DataConfig:
        return self.model_copy(update={"default_connection": name})


def load_config(path: Path | None = None) -> DataConfig:
    """Load configuration from disk; fall back to defaults if missing or invalid."""

    config_path = path or CONFIG_FILE
    try:
        with config_path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        return DataConfig()
    except (tomllib.TOMLDecodeError, OSError):
        LOG.warning("Ignoring unreadable config file", extra={"path": str(config_path)})
        return DataConfig()

    try:
        return DataConfig.model_validate(raw)
    except ValidationError as exc:
        LOG.warning("Ignoring invalid config file", extra={"path": str(config_path), "errors": exc.error_count()})
        return DataConfig()


def configure_cache(config: DataConfig) -> None:
    """Initialize the process-wide read-through cache from ``config.cache``."""

    from . import cache

    cache.initialize(config.cache.backend, config.cache.initialize_options())


__all__ = [
    "CONFIG_FILE",
    "CacheSettings",
    "ConnectionSettings",
    "DataConfig",
    "configure_cache",
    "load_config",
]
