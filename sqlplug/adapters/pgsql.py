"""Adapter for PostgreSQL via asyncpg.

asyncpg is coroutine based; the adapter owns a private event loop running on
a daemon thread and blocks the caller on each driver call, so the public
contract stays synchronous like every other adapter.
"""

from __future__ import annotations

import asyncio
import re
import threading
from typing import Any, Coroutine, Mapping, Sequence

import asyncpg

from ..column import Column
from ..connection import Connection
from ..models import ConnectionDescriptor, RawRow
from ..placeholders import ParamStyle
from ..results import ColumnCase, Cursor

_TYPE_ALIASES = {
    "character varying": "varchar",
    "character": "char",
    "timestamp without time zone": "timestamp",
    "timestamp with time zone": "timestamp",
    "time without time zone": "time",
    "time with time zone": "time",
}

_CAST_DEFAULT = re.compile(r"^'(.*)'::[\w\s\"\.\[\]]+$", re.DOTALL)
_STATUS_COUNT = re.compile(r"(\d+)$")

NATIVE_DATABASE_TYPES: Mapping[str, Any] = {
    "primary_key": "serial primary key",
    "string": {"name": "character varying", "length": 255},
    "text": {"name": "text"},
    "integer": {"name": "integer"},
    "float": {"name": "float"},
    "datetime": {"name": "timestamp"},
    "timestamp": {"name": "timestamp"},
    "time": {"name": "time"},
    "date": {"name": "date"},
    "binary": {"name": "bytea"},
    "boolean": {"name": "boolean"},
}


class _RecordCursor:
    """DB-API style cursor over a fully fetched asyncpg result."""

    def __init__(
        self,
        records: Sequence[Any] | None,
        status: str | None = None,
        columns: Sequence[str] = (),
    ) -> None:
        self._rows: list[tuple[Any, ...]] = []
        self.description: tuple[tuple[str, ...], ...] | None = None
        if records is not None:
            self._rows = [tuple(record.values()) for record in records]
            self.description = tuple((str(name),) for name in columns)
            self.rowcount = len(self._rows)
        else:
            match = _STATUS_COUNT.search(status or "")
            self.rowcount = int(match.group(1)) if match else -1
        self._index = 0

    def fetchone(self) -> tuple[Any, ...] | None:
        if self._index >= len(self._rows):
            return None
        row = self._rows[self._index]
        self._index += 1
        return row

    def fetchall(self) -> list[tuple[Any, ...]]:
        rows = self._rows[self._index :]
        self._index = len(self._rows)
        return rows

    def close(self) -> None:
        self._rows = []


class PgsqlConnection(Connection):
    """PostgreSQL dialect: double-quote identifiers, sequences, ``LIMIT n OFFSET m``."""

    QUOTE_CHARACTER = '"'
    DEFAULT_PORT = 5432
    PARAM_STYLE = ParamStyle.NUMERIC

    _COLUMN_INFO_QUERY = """
        SELECT
            c.column_name AS field,
            c.data_type AS type,
            COALESCE(c.character_maximum_length, c.numeric_precision, c.datetime_precision) AS length,
            c.is_nullable AS nullable,
            c.column_default AS "default",
            EXISTS (
                SELECT 1
                FROM information_schema.table_constraints tc
                JOIN information_schema.key_column_usage kcu
                  ON tc.constraint_name = kcu.constraint_name
                 AND tc.table_schema = kcu.table_schema
                WHERE tc.constraint_type = 'PRIMARY KEY'
                  AND tc.table_schema = c.table_schema
                  AND tc.table_name = c.table_name
                  AND kcu.column_name = c.column_name
            ) AS pk
        FROM information_schema.columns c
        WHERE c.table_name = ? AND c.table_schema = current_schema()
        ORDER BY c.ordinal_position
    """

    _TABLES_QUERY = """
        SELECT tablename
        FROM pg_tables
        WHERE schemaname NOT IN ('information_schema', 'pg_catalog')
        ORDER BY tablename
    """

    def __init__(self, descriptor: ConnectionDescriptor, *, connect_timeout: float = 5.0, **kwargs: Any) -> None:
        self._connect_timeout = connect_timeout
        self._transaction: Any = None
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="sqlplug-asyncpg",
            daemon=True,
        )
        self._loop_thread.start()
        try:
            super().__init__(descriptor, **kwargs)
        except Exception:
            self._stop_loop()
            raise

    def _run(self, coro: Coroutine[Any, Any, Any]) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    def _open(self, descriptor: ConnectionDescriptor) -> Any:
        return self._run(asyncpg.connect(**self._connect_kwargs(descriptor)))

    def _connect_kwargs(self, descriptor: ConnectionDescriptor) -> dict[str, object]:
        kwargs: dict[str, object] = {"host": descriptor.host or "localhost"}
        if not descriptor.is_unix_socket:
            kwargs["port"] = descriptor.port or self.DEFAULT_PORT
        if descriptor.user is not None:
            kwargs["user"] = descriptor.user
        if descriptor.password is not None:
            kwargs["password"] = descriptor.password
        if descriptor.database:
            kwargs["database"] = descriptor.database
        kwargs["timeout"] = self._connect_timeout
        return kwargs

    def _close(self) -> None:
        try:
            self._run(self.connection.close())
        finally:
            self._stop_loop()

    def _stop_loop(self) -> None:
        if not self._loop.is_running():  # pragma: no cover - already stopped
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join(timeout=1)

    def _execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] | None) -> Cursor:
        return self._run(self._statement(sql, tuple(params or ())))

    async def _statement(self, sql: str, args: tuple[Any, ...]) -> _RecordCursor:
        # The server describes the result shape at prepare time; statements
        # without result attributes report their row count in the status.
        statement = await self.connection.prepare(sql)
        records = await statement.fetch(*args)
        attributes = statement.get_attributes()
        if attributes:
            return _RecordCursor(records, columns=[attribute.name for attribute in attributes])
        return _RecordCursor(None, statement.get_statusmsg())

    def _begin(self) -> None:
        transaction = self.connection.transaction()
        self._run(transaction.start())
        self._transaction = transaction

    def _commit(self) -> None:
        transaction, self._transaction = self._transaction, None
        self._run(transaction.commit())

    def _rollback(self) -> None:
        transaction, self._transaction = self._transaction, None
        self._run(transaction.rollback())

    def insert_id(self, sequence: str | None = None) -> Any:
        if sequence:
            return self.query_scalar("SELECT currval(?)", [sequence])
        return self.query_scalar("SELECT lastval()")

    def supports_sequences(self) -> bool:
        return True

    def get_sequence_name(self, table: str, column_name: str) -> str | None:
        return f"{table}_{column_name}_seq"

    def next_sequence_value(self, sequence_name: str) -> str | None:
        return f"nextval({self.escape(sequence_name)})"

    def limit(self, sql: str, offset: int | None, limit: int) -> str:
        clause = f"{sql} LIMIT {int(limit)}"
        if offset is not None:
            clause += f" OFFSET {int(offset)}"
        return clause

    def query_column_info(self, table: str) -> list[RawRow]:
        with self._column_case(ColumnCase.LOWER):
            return self.query(self._COLUMN_INFO_QUERY, [table]).fetch_all()

    def query_for_tables(self) -> list[str]:
        return [str(name) for name in self.query(self._TABLES_QUERY).fetch_column()]

    def create_column(self, row: RawRow) -> Column:
        data_type = str(row["type"]).lower()
        raw_type = _TYPE_ALIASES.get(data_type, data_type)
        default = row.get("default")
        auto_increment = isinstance(default, str) and default.startswith("nextval(")
        if auto_increment:
            default = None
        elif isinstance(default, str):
            match = _CAST_DEFAULT.match(default)
            if match:
                default = match.group(1).replace("''", "'")
            elif default.upper() == "NULL":
                default = None
        length = row.get("length")
        return Column.build(
            str(row["field"]),
            raw_type,
            length=int(length) if length is not None else None,
            nullable=row.get("nullable") == "YES",
            pk=bool(row.get("pk")),
            auto_increment=auto_increment,
            default=default,
            connection=self,
        )

    def set_encoding(self, charset: str) -> None:
        self.query(f"SET client_encoding TO {self.escape(charset)}")

    def native_database_types(self) -> Mapping[str, Any]:
        return NATIVE_DATABASE_TYPES


__all__ = ["NATIVE_DATABASE_TYPES", "PgsqlConnection"]
