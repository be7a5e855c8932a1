"""Pluggable SQL connections with URL configuration and a read-through cache."""

from .connection import Connection
from .descriptor import descriptor_from_mapping, parse_connection_url
from .errors import (
    AdapterNotFound,
    CacheConfigurationError,
    CacheError,
    DatabaseConnectionError,
    DatabaseError,
    MalformedConnectionString,
    QueryError,
    TransactionError,
)
from .models import BindType, ConnectionDescriptor, Named, Positional
from .session import connect, open_connection

__version__ = "0.1.0"

__all__ = [
    "AdapterNotFound",
    "BindType",
    "CacheConfigurationError",
    "CacheError",
    "Connection",
    "ConnectionDescriptor",
    "DatabaseConnectionError",
    "DatabaseError",
    "MalformedConnectionString",
    "Named",
    "Positional",
    "QueryError",
    "TransactionError",
    "connect",
    "descriptor_from_mapping",
    "open_connection",
    "parse_connection_url",
]
