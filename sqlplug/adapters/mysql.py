"""Adapter for MySQL (and MariaDB) via PyMySQL."""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

import pymysql
import pymysql.cursors

from ..column import Column
from ..connection import Connection
from ..models import ConnectionDescriptor, RawRow
from ..placeholders import ParamStyle
from ..results import ColumnCase, Cursor

_TYPE_PATTERN = re.compile(r"^([A-Za-z0-9_]+)(\(([0-9]+(,[0-9]+)?)\))?")

# exact raw types -> (raw_type, length)
_FIXED_TYPES = {
    "timestamp": ("datetime", 19),
    "datetime": ("datetime", 19),
    "date": ("date", 10),
    "time": ("time", 8),
}

NATIVE_DATABASE_TYPES: Mapping[str, Any] = {
    "primary_key": "int(11) UNSIGNED DEFAULT NULL auto_increment PRIMARY KEY",
    "string": {"name": "varchar", "length": 255},
    "text": {"name": "text"},
    "integer": {"name": "int", "length": 11},
    "float": {"name": "float"},
    "datetime": {"name": "datetime"},
    "timestamp": {"name": "datetime"},
    "time": {"name": "time"},
    "date": {"name": "date"},
    "binary": {"name": "blob"},
    "boolean": {"name": "tinyint", "length": 1},
}


class MysqlConnection(Connection):
    """MySQL dialect: backtick quoting, ``LIMIT offset,limit``, SHOW-based introspection."""

    DEFAULT_PORT = 3306
    PARAM_STYLE = ParamStyle.FORMAT

    def __init__(self, descriptor: ConnectionDescriptor, **kwargs: Any) -> None:
        self.cursor_class: type[pymysql.cursors.Cursor] = pymysql.cursors.Cursor
        super().__init__(descriptor, **kwargs)

    def _open(self, descriptor: ConnectionDescriptor) -> Any:
        return pymysql.connect(**self._connect_kwargs(descriptor))

    def _connect_kwargs(self, descriptor: ConnectionDescriptor) -> dict[str, object]:
        kwargs: dict[str, object] = {"autocommit": True}
        if descriptor.is_unix_socket:
            kwargs["unix_socket"] = descriptor.host
        else:
            kwargs["host"] = descriptor.host or "localhost"
            kwargs["port"] = descriptor.port or self.DEFAULT_PORT
        if descriptor.user is not None:
            kwargs["user"] = descriptor.user
        if descriptor.password is not None:
            kwargs["password"] = descriptor.password
        if descriptor.database:
            kwargs["database"] = descriptor.database
        return kwargs

    def after_connect(self) -> None:
        # Regular queries keep the server's column names; introspection
        # switches to lower case per call. No session statements are needed.
        self.column_case = ColumnCase.NATURAL

    def _execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] | None) -> Cursor:
        cursor = self.connection.cursor(self.cursor_class)
        try:
            cursor.execute(sql, params)
        except Exception:
            cursor.close()
            raise
        return cursor

    def _begin(self) -> None:
        self.connection.begin()

    def escape(self, value: Any) -> str:
        return self.connection.escape(value)

    def insert_id(self, sequence: str | None = None) -> Any:
        return self.connection.insert_id()

    def limit(self, sql: str, offset: int | None, limit: int) -> str:
        prefix = "" if offset is None else f"{int(offset)},"
        return f"{sql} LIMIT {prefix}{int(limit)}"

    def query_column_info(self, table: str) -> list[RawRow]:
        with self._column_case(ColumnCase.LOWER):
            return self.query(f"SHOW COLUMNS FROM {table}").fetch_all()

    def query_for_tables(self) -> list[str]:
        with self._column_case(ColumnCase.LOWER):
            return [str(name) for name in self.query("SHOW TABLES").fetch_column()]

    def create_column(self, row: RawRow) -> Column:
        raw = str(row["type"])
        fixed = _FIXED_TYPES.get(raw)
        length: int | None
        if fixed is not None:
            raw_type, length = fixed
        else:
            match = _TYPE_PATTERN.match(raw)
            raw_type = match.group(1) if match else raw
            length = int(match.group(3).split(",")[0]) if match and match.group(3) else None
        return Column.build(
            str(row["field"]),
            raw_type,
            length=length,
            nullable=row.get("null") == "YES",
            pk=row.get("key") == "PRI",
            auto_increment=row.get("extra") == "auto_increment",
            default=row.get("default"),
            connection=self,
        )

    def set_encoding(self, charset: str) -> None:
        self.query("SET NAMES ?", [charset])

    def accepts_limit_and_order_for_update_and_delete(self) -> bool:
        return True

    def native_database_types(self) -> Mapping[str, Any]:
        return NATIVE_DATABASE_TYPES


__all__ = ["MysqlConnection", "NATIVE_DATABASE_TYPES"]
