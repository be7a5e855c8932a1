"""Connection factory wiring descriptor parsing, adapter resolution and setup."""

from __future__ import annotations

import logging

from .adapters.registry import AdapterRegistry, default_registry
from .config import ConnectionSettings, DataConfig, load_config
from .connection import Connection
from .descriptor import descriptor_from_mapping, parse_connection_url
from .errors import DatabaseError
from .models import ConnectionDescriptor

LOG = logging.getLogger(__name__)


def connect(
    descriptor: ConnectionDescriptor,
    *,
    registry: AdapterRegistry | None = None,
    logger: logging.Logger | None = None,
    logging_enabled: bool = False,
) -> Connection:
    """Open a connection for ``descriptor`` using the adapter for its protocol.

    The returned connection keeps a copy of the descriptor with the password
    cleared.
    """

    factory = (registry or default_registry()).resolve(descriptor.protocol)
    connection = factory(descriptor, logger=logger, logging_enabled=logging_enabled)
    try:
        if descriptor.charset:
            connection.set_encoding(descriptor.charset)
        connection.after_connect()
    except Exception:
        connection.close()
        raise
    connection.descriptor = descriptor.redacted()
    LOG.debug(
        "Opened connection",
        extra={"protocol": connection.protocol, "host": descriptor.host, "database": descriptor.database},
    )
    return connection


def open_connection(
    name_or_url: str | None = None,
    *,
    config: DataConfig | None = None,
    registry: AdapterRegistry | None = None,
    logger: logging.Logger | None = None,
) -> Connection:
    """Open a connection from a URL or from a named entry in the config.

    ``name_or_url`` containing ``://`` is parsed as a connection URL; any other
    value names an entry in ``config.connections``. ``None`` selects the
    configured default connection.
    """

    cfg = config or load_config()
    if name_or_url and "://" in name_or_url:
        data: str | ConnectionSettings | None = name_or_url
    elif name_or_url:
        data = cfg.get_connection(name_or_url)
    else:
        data = cfg.get_default_connection()
    if not data:
        raise DatabaseError("Empty connection data")
    return connect(
        to_descriptor(data),
        registry=registry,
        logger=logger,
        logging_enabled=cfg.logging,
    )


def to_descriptor(data: str | ConnectionSettings) -> ConnectionDescriptor:
    if isinstance(data, str):
        return parse_connection_url(data)
    return descriptor_from_mapping(data.model_dump())


__all__ = ["connect", "open_connection", "to_descriptor"]
