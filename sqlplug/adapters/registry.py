"""Protocol name -> dialect adapter resolution."""

from __future__ import annotations

import importlib.metadata as metadata
import logging
import threading
from typing import Callable, Mapping

from ..connection import Connection
from ..errors import AdapterNotFound
from .mysql import MysqlConnection
from .pgsql import PgsqlConnection
from .sqlite import SqliteConnection

LOG = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "sqlplug.adapters"

AdapterFactory = Callable[..., Connection]

BUILTIN_ADAPTERS: Mapping[str, AdapterFactory] = {
    "mysql": MysqlConnection,
    "pgsql": PgsqlConnection,
    "sqlite": SqliteConnection,
}

ALIASES: Mapping[str, str] = {
    "mariadb": "mysql",
    "postgres": "pgsql",
    "postgresql": "pgsql",
    "sqlite3": "sqlite",
}


def normalize_protocol(protocol: str) -> str:
    name = protocol.strip().lower()
    return ALIASES.get(name, name)


class AdapterRegistry:
    """Maps protocol identifiers to adapter constructors.

    Built-in adapters are registered statically. Third-party adapters are
    contributed through the ``sqlplug.adapters`` entry-point group and are
    discovered lazily on the first lookup miss; built-ins win on name clashes.
    """

    def __init__(
        self,
        adapters: Mapping[str, AdapterFactory] | None = None,
        *,
        entry_point_group: str | None = ENTRY_POINT_GROUP,
    ) -> None:
        self._adapters: dict[str, AdapterFactory] = dict(BUILTIN_ADAPTERS if adapters is None else adapters)
        self._entry_point_group = entry_point_group
        self._discovered = entry_point_group is None

    def register(self, protocol: str, factory: AdapterFactory) -> None:
        """Register (or replace) the adapter for ``protocol``."""

        if not callable(factory):
            raise TypeError(f"Adapter for '{protocol}' must be callable")
        self._adapters[normalize_protocol(protocol)] = factory

    def resolve(self, protocol: str) -> AdapterFactory:
        """Return the adapter constructor for ``protocol``."""

        name = normalize_protocol(protocol)
        factory = self._adapters.get(name)
        if factory is None and not self._discovered:
            self.discover()
            factory = self._adapters.get(name)
        if factory is None:
            raise AdapterNotFound(name.capitalize())
        return factory

    def discover(self) -> list[str]:
        """Load adapters exposed via entry points; returns the names added."""

        self._discovered = True
        if self._entry_point_group is None:
            return []
        added: list[str] = []
        group = metadata.entry_points().select(group=self._entry_point_group)
        for entry_point in sorted(group, key=lambda ep: ep.name):
            name = normalize_protocol(entry_point.name)
            if name in self._adapters:
                LOG.debug("Skipping adapter shadowed by an existing registration", extra={"adapter": name})
                continue
            try:
                factory = entry_point.load()
            except Exception:
                LOG.exception("Adapter entry point failed to load", extra={"adapter": name})
                continue
            if not callable(factory):
                LOG.warning("Adapter entry point is not callable", extra={"adapter": name})
                continue
            self._adapters[name] = factory
            added.append(name)
        return added

    @property
    def protocols(self) -> tuple[str, ...]:
        return tuple(sorted(self._adapters))

    def __contains__(self, protocol: object) -> bool:
        return isinstance(protocol, str) and normalize_protocol(protocol) in self._adapters


_default_registry: AdapterRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> AdapterRegistry:
    """Process-wide registry, created on first use."""

    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = AdapterRegistry()
        return _default_registry


def resolve(protocol: str) -> AdapterFactory:
    return default_registry().resolve(protocol)


__all__ = [
    "ALIASES",
    "AdapterFactory",
    "AdapterRegistry",
    "BUILTIN_ADAPTERS",
    "ENTRY_POINT_GROUP",
    "default_registry",
    "normalize_protocol",
    "resolve",
]
