"""Adapter for SQLite via the standard library driver."""

from __future__ import annotations

import re
import sqlite3
from typing import Any, Mapping, Sequence

from ..column import Column
from ..connection import Connection
from ..errors import DatabaseError
from ..models import ConnectionDescriptor, RawRow
from ..placeholders import ParamStyle
from ..results import Cursor

_TYPE_PATTERN = re.compile(r"^([A-Za-z0-9_ ]+?)\s*(\(([0-9]+)(,\s*[0-9]+)?\))?$")

NATIVE_DATABASE_TYPES: Mapping[str, Any] = {
    "primary_key": "integer not null primary key",
    "string": {"name": "varchar", "length": 255},
    "text": {"name": "text"},
    "integer": {"name": "integer"},
    "float": {"name": "float"},
    "decimal": {"name": "decimal"},
    "datetime": {"name": "datetime"},
    "timestamp": {"name": "datetime"},
    "time": {"name": "time"},
    "date": {"name": "date"},
    "binary": {"name": "blob"},
    "boolean": {"name": "boolean"},
}


class SqliteConnection(Connection):
    """SQLite dialect; the descriptor host is the database file path."""

    PARAM_STYLE = ParamStyle.QMARK

    def _open(self, descriptor: ConnectionDescriptor) -> Any:
        if not descriptor.host:
            raise DatabaseError("SQLite connections need a database file path")
        # Autocommit mode: transactions are opened explicitly by begin().
        return sqlite3.connect(descriptor.host, isolation_level=None)

    def _execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] | None) -> Cursor:
        return self.connection.execute(sql, params if params is not None else ())

    def _commit(self) -> None:
        self.connection.execute("COMMIT")

    def _rollback(self) -> None:
        self.connection.execute("ROLLBACK")

    def insert_id(self, sequence: str | None = None) -> Any:
        return self.query_scalar("SELECT last_insert_rowid()")

    def limit(self, sql: str, offset: int | None, limit: int) -> str:
        prefix = "" if offset is None else f"{int(offset)},"
        return f"{sql} LIMIT {prefix}{int(limit)}"

    def query_column_info(self, table: str) -> list[RawRow]:
        return self.query(f"PRAGMA table_info({table})").fetch_all()

    def query_for_tables(self) -> list[str]:
        sql = "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        return [str(name) for name in self.query(sql).fetch_column()]

    def create_column(self, row: RawRow) -> Column:
        declared = str(row.get("type") or "").strip()
        match = _TYPE_PATTERN.match(declared)
        raw_type = match.group(1).lower() if match else (declared.lower() or "text")
        length = int(match.group(3)) if match and match.group(3) else None
        pk = bool(row.get("pk"))
        default = row.get("dflt_value")
        if isinstance(default, str) and len(default) >= 2 and default[0] == default[-1] == "'":
            default = default[1:-1].replace("''", "'")
        elif isinstance(default, str) and default.upper() == "NULL":
            default = None
        return Column.build(
            str(row["name"]),
            raw_type,
            length=length,
            nullable=not row.get("notnull"),
            pk=pk,
            auto_increment=pk and raw_type == "integer",
            default=default,
            connection=self,
        )

    def set_encoding(self, charset: str) -> None:
        raise DatabaseError("SqliteConnection.set_encoding is not supported")

    def native_database_types(self) -> Mapping[str, Any]:
        return NATIVE_DATABASE_TYPES


__all__ = ["NATIVE_DATABASE_TYPES", "SqliteConnection"]
