"""Cache backend contract and the backend-name registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from ..errors import CacheConfigurationError


@dataclass(frozen=True, slots=True)
class CacheLookup:
    """Outcome of a backend read; ``found`` separates a miss from a stored falsy value."""

    found: bool
    value: Any = None

    @classmethod
    def hit(cls, value: Any) -> CacheLookup:
        return cls(True, value)

    @classmethod
    def miss(cls) -> CacheLookup:
        return cls(False)


MISS = CacheLookup.miss()


@runtime_checkable
class CacheBackend(Protocol):
    """Storage used by ``DataCache``.

    Constructors receive the backend options mapping and raise
    ``CacheConfigurationError`` when the facility they need is unavailable.
    ``expire`` is in seconds; ``0`` or less stores without expiry.
    """

    def read(self, key: str) -> CacheLookup: ...

    def write(self, key: str, value: Any, expire: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def flush(self) -> None: ...


BackendFactory = Callable[[Mapping[str, Any]], CacheBackend]

_BACKENDS: dict[str, BackendFactory] = {}


def register_backend(name: str, factory: BackendFactory) -> None:
    """Register (or replace) the backend constructor for ``name``."""

    if not callable(factory):
        raise TypeError(f"Cache backend '{name}' must be callable")
    _BACKENDS[name.strip().lower()] = factory


def create_backend(name: str, options: Mapping[str, Any] | None = None) -> CacheBackend:
    """Construct the backend registered as ``name`` with ``options``."""

    factory = _BACKENDS.get(name.strip().lower())
    if factory is None:
        raise CacheConfigurationError(f"Unknown cache backend: {name}")
    return factory(dict(options or {}))


def backend_names() -> tuple[str, ...]:
    return tuple(sorted(_BACKENDS))


__all__ = [
    "BackendFactory",
    "CacheBackend",
    "CacheLookup",
    "MISS",
    "backend_names",
    "create_backend",
    "register_backend",
]
