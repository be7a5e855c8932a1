"""Dialect adapters and the protocol registry."""

from .mysql import MysqlConnection
from .pgsql import PgsqlConnection
from .registry import (
    AdapterFactory,
    AdapterRegistry,
    default_registry,
    normalize_protocol,
    resolve,
)
from .sqlite import SqliteConnection

__all__ = [
    "AdapterFactory",
    "AdapterRegistry",
    "MysqlConnection",
    "PgsqlConnection",
    "SqliteConnection",
    "default_registry",
    "normalize_protocol",
    "resolve",
]
