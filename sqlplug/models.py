"""Shared dataclasses used across descriptor/connection modules."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Sequence

RawRow = Mapping[str, Any]

FILE_PROTOCOLS = frozenset({"sqlite", "sqlite3"})


@dataclass(frozen=True, slots=True)
class ConnectionDescriptor:
    """Normalized connection parameters for a single Connection."""

    protocol: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    database: str | None = None
    charset: str | None = None

    @property
    def is_file_based(self) -> bool:
        return self.protocol in FILE_PROTOCOLS

    @property
    def is_unix_socket(self) -> bool:
        return bool(self.host) and self.host.startswith("/")

    def redacted(self) -> ConnectionDescriptor:
        """Return a copy with the password cleared."""

        return replace(self, password=None)


class BindType(str, Enum):
    """Explicit bind types accepted by ``Connection.query``."""

    INT = "int"
    STR = "str"
    BOOL = "bool"
    NULL = "null"
    LOB = "lob"

    def coerce(self, value: Any) -> Any:
        if self is BindType.NULL or value is None:
            return None
        if self is BindType.INT:
            return int(value)
        if self is BindType.BOOL:
            return bool(value)
        if self is BindType.LOB:
            return value if isinstance(value, (bytes, bytearray)) else str(value).encode()
        return value if isinstance(value, str) else str(value)


@dataclass(frozen=True, slots=True)
class Positional:
    """Parameters bound by position, in ``?`` order."""

    values: tuple[Any, ...] = ()

    def __init__(self, values: Sequence[Any] = ()) -> None:
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True, slots=True)
class Named:
    """Parameters bound by ``:name``."""

    values: Mapping[str, Any] = field(default_factory=dict)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        object.__setattr__(self, "values", dict(values or {}))


Params = Positional | Named


def as_params(params: Params | Sequence[Any] | Mapping[str, Any] | None) -> Params:
    """Normalize caller-supplied parameters into a ``Positional`` or ``Named`` variant.

    A mapping binds by name and must only use string keys; a mapping keyed by
    integers (or a mix of both) is a caller error and is rejected rather than
    coerced into either form.
    """

    if params is None:
        return Positional()
    if isinstance(params, (Positional, Named)):
        return params
    if isinstance(params, Mapping):
        bad = [key for key in params if not isinstance(key, str)]
        if bad:
            raise TypeError(
                f"Named parameters must use string keys; got {bad!r}. "
                "Pass a sequence for positional binding."
            )
        return Named(params)
    if isinstance(params, (str, bytes, bytearray)):
        raise TypeError("Parameters must be a sequence or mapping, not a string")
    if isinstance(params, Sequence):
        return Positional(params)
    raise TypeError(f"Unsupported parameter container: {type(params).__name__}")


__all__ = [
    "BindType",
    "ConnectionDescriptor",
    "FILE_PROTOCOLS",
    "Named",
    "Params",
    "Positional",
    "RawRow",
    "as_params",
]
