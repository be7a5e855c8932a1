"""Error taxonomy shared by the connection and cache layers."""

from __future__ import annotations


class DatabaseError(RuntimeError):
    """Base error for connection, adapter and query failures."""


class MalformedConnectionString(DatabaseError, ValueError):
    """Raised when a connection string lacks a required host or protocol component."""


class AdapterNotFound(DatabaseError, LookupError):
    """Raised when no dialect adapter is registered for a protocol."""

    def __init__(self, adapter: str) -> None:
        super().__init__(f"Plug adapter not found: {adapter}")
        self.adapter = adapter


class DatabaseConnectionError(DatabaseError):
    """Raised when the driver cannot establish a link to the database."""


class QueryError(DatabaseError):
    """Raised when a statement fails to prepare or execute."""

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql


class TransactionError(DatabaseError):
    """Raised when begin/commit/rollback fails or is issued out of order."""


class CacheError(RuntimeError):
    """Base error for cache layer failures."""


class CacheConfigurationError(CacheError):
    """Raised when a cache backend cannot be constructed."""


__all__ = [
    "AdapterNotFound",
    "CacheConfigurationError",
    "CacheError",
    "DatabaseConnectionError",
    "DatabaseError",
    "MalformedConnectionString",
    "QueryError",
    "TransactionError",
]
