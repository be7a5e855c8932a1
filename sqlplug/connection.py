"""Base class for database connection adapters.

A ``Connection`` owns one live driver handle and exposes the uniform query,
transaction and schema-introspection contract. Dialect adapters subclass it
and implement the abstract hooks (``limit``, ``query_column_info``,
``query_for_tables``, ``set_encoding``, ``native_database_types``,
``create_column``) plus ``_open``/``_execute`` for their driver.

Connections are not thread-safe: issue calls from one task at a time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, ClassVar, Iterator, Mapping, Sequence

from .column import Column
from .errors import DatabaseConnectionError, QueryError, TransactionError
from .models import BindType, ConnectionDescriptor, Params, RawRow, as_params
from .placeholders import ParamStyle, rewrite
from .results import ColumnCase, Cursor, ResultSet

LOG = logging.getLogger(__name__)

ParamsLike = Params | Sequence[Any] | Mapping[str, Any] | None
RowHandler = Callable[[dict[str, Any]], Any]


class Connection(ABC):
    """Uniform contract every dialect adapter satisfies."""

    # Must not include a timezone: the parsed value is re-read through this
    # format and keeps the tzinfo it was parsed with.
    DATETIME_TRANSLATE_FORMAT: ClassVar[str] = "%Y-%m-%dT%H:%M:%S"

    date_format: ClassVar[str] = "%Y-%m-%d"
    datetime_format: ClassVar[str] = "%Y-%m-%d %H:%M:%S"
    QUOTE_CHARACTER: ClassVar[str] = "`"
    DEFAULT_PORT: ClassVar[int] = 0
    PARAM_STYLE: ClassVar[ParamStyle] = ParamStyle.QMARK
    DEFAULT_COLUMN_CASE: ClassVar[ColumnCase] = ColumnCase.LOWER

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        *,
        logger: logging.Logger | None = None,
        logging_enabled: bool = False,
    ) -> None:
        self.protocol = descriptor.protocol
        self.descriptor = descriptor
        self.logger = logger or LOG
        self.logging_enabled = logging_enabled
        self.last_query: str | None = None
        self.column_case = self.DEFAULT_COLUMN_CASE
        self._in_transaction = False
        try:
            self.connection: Any = self._open(descriptor)
        except DatabaseConnectionError:
            raise
        except Exception as exc:
            message = f"{type(exc).__name__}: {exc}"
            raise DatabaseConnectionError(_scrub(message, descriptor.password)) from None

    # -- lifecycle -----------------------------------------------------

    @abstractmethod
    def _open(self, descriptor: ConnectionDescriptor) -> Any:
        """Open and return the driver handle for ``descriptor``."""

    @abstractmethod
    def _execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] | None) -> Cursor:
        """Run a driver-ready statement and return a DB-API style cursor."""

    def _close(self) -> None:
        self.connection.close()

    def after_connect(self) -> None:
        """Hook for adapter-specific session settings after connecting."""

    def close(self) -> None:
        """Release the driver handle."""

        if self.connection is None:
            return
        try:
            self._close()
        finally:
            self.connection = None
            self._in_transaction = False

    def has_connection(self) -> bool:
        return self.connection is not None

    @property
    def schema(self) -> str:
        return self.descriptor.database or ""

    @property
    def type(self) -> str:
        """Adapter type: mysql, pgsql, sqlite."""

        return self.protocol

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    # -- querying ------------------------------------------------------

    def query(
        self,
        sql: str,
        params: ParamsLike = None,
        bind_types: Mapping[str, BindType] | None = None,
    ) -> ResultSet:
        """Execute a raw SQL statement.

        ``params`` is either a sequence bound to ``?`` placeholders in order,
        or a mapping bound to ``:name`` placeholders. ``bind_types`` coerces
        named values explicitly; otherwise the driver adapts the Python type.
        Passing a mapping keyed by integers is a caller error (``TypeError``).
        """

        bound = as_params(params)
        if self.logging_enabled:
            self.logger.info("%s", sql)
            if bound.values:
                self.logger.info("%r", bound.values)
        self.last_query = sql

        statement = rewrite(sql, bound, self.PARAM_STYLE, bind_types)
        try:
            cursor = self._execute(statement.sql, statement.params)
        except QueryError:
            raise
        except Exception as exc:
            raise QueryError(f"{exc} [SQL: {sql}]", sql=sql) from exc
        return ResultSet(cursor, column_case=self.column_case)

    def query_scalar(self, sql: str, params: ParamsLike = None) -> Any:
        """Execute a query returning one row with one field and return that field."""

        row = self.query(sql, params).fetch_row()
        if row is None:
            raise QueryError(f"Query returned no rows [SQL: {sql}]", sql=sql)
        return row[0]

    def query_each(self, sql: str, handler: RowHandler, params: ParamsLike = None) -> None:
        """Execute a query and pass every fetched row to ``handler``."""

        for row in self.query(sql, params):
            handler(row)

    def execute(
        self,
        sql: str,
        params: ParamsLike = None,
        bind_types: Mapping[str, BindType] | None = None,
    ) -> int:
        """Execute a statement and return the affected row count."""

        return self.query(sql, params, bind_types).row_count

    @abstractmethod
    def insert_id(self, sequence: str | None = None) -> Any:
        """Retrieve the id generated by the last insert."""

    # -- schema --------------------------------------------------------

    def columns(self, table: str) -> dict[str, Column]:
        """Column metadata for ``table`` keyed by column name."""

        columns: dict[str, Column] = {}
        for row in self.query_column_info(table):
            column = self.create_column(row)
            columns[column.name] = column
        return columns

    def tables(self) -> list[str]:
        """All tables in the current database."""

        return self.query_for_tables()

    @contextmanager
    def _column_case(self, case: ColumnCase) -> Iterator[None]:
        previous = self.column_case
        self.column_case = case
        try:
            yield
        finally:
            self.column_case = previous

    # -- transactions --------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def begin(self) -> None:
        """Alias for ``transaction``."""

        self.transaction()

    def transaction(self) -> None:
        """Start a transaction."""

        if self._in_transaction:
            raise TransactionError("There is already an active transaction")
        self._transaction_call("begin", self._begin)
        self._in_transaction = True

    def commit(self) -> None:
        """Commit the current transaction."""

        if not self._in_transaction:
            raise TransactionError("There is no active transaction")
        try:
            self._transaction_call("commit", self._commit)
        finally:
            self._in_transaction = False

    def rollback(self) -> None:
        """Roll back the current transaction."""

        if not self._in_transaction:
            raise TransactionError("There is no active transaction")
        try:
            self._transaction_call("rollback", self._rollback)
        finally:
            self._in_transaction = False

    def _transaction_call(self, action: str, call: Callable[[], Any]) -> None:
        if self.logging_enabled:
            self.logger.info(action.upper())
        try:
            call()
        except Exception as exc:
            raise TransactionError(f"Failed to {action} transaction: {exc}") from exc

    def _begin(self) -> None:
        self._execute("BEGIN", None)

    def _commit(self) -> None:
        self.connection.commit()

    def _rollback(self) -> None:
        self.connection.rollback()

    # -- quoting -------------------------------------------------------

    def quote_name(self, name: str) -> str:
        """Quote a table or column name unless it is already quoted."""

        quote = self.QUOTE_CHARACTER
        if name and (name[0] == quote or name[-1] == quote):
            return name
        return f"{quote}{name}{quote}"

    def escape(self, value: Any) -> str:
        """Return ``value`` as a quoted SQL literal."""

        if value is None:
            return "NULL"
        text = value if isinstance(value, str) else str(value)
        return "'" + text.replace("'", "''") + "'"

    # -- date/time translation -----------------------------------------

    def date_to_string(self, value: date) -> str:
        return value.strftime(self.date_format)

    def datetime_to_string(self, value: datetime) -> str:
        return value.strftime(self.datetime_format)

    def string_to_datetime(self, value: str) -> datetime | None:
        """Parse a date/time string; malformed input yields ``None``."""

        try:
            parsed = datetime.fromisoformat(value.strip())
        except (ValueError, AttributeError):
            return None
        canonical = parsed.strftime(self.DATETIME_TRANSLATE_FORMAT)
        return datetime.strptime(canonical, self.DATETIME_TRANSLATE_FORMAT).replace(
            microsecond=parsed.microsecond,
            tzinfo=parsed.tzinfo,
        )

    # -- sequences and capabilities ------------------------------------

    def supports_sequences(self) -> bool:
        return False

    def get_sequence_name(self, table: str, column_name: str) -> str | None:
        return f"{table}_seq"

    def next_sequence_value(self, sequence_name: str) -> str | None:
        return None

    def accepts_limit_and_order_for_update_and_delete(self) -> bool:
        """Whether UPDATE/DELETE statements may carry LIMIT and ORDER BY."""

        return False

    # -- dialect hooks -------------------------------------------------

    @abstractmethod
    def limit(self, sql: str, offset: int | None, limit: int) -> str:
        """Append a limit clause to ``sql``."""

    @abstractmethod
    def query_column_info(self, table: str) -> list[RawRow]:
        """Raw column metadata rows for ``table``."""

    @abstractmethod
    def query_for_tables(self) -> list[str]:
        """Names of all tables in the current database."""

    @abstractmethod
    def set_encoding(self, charset: str) -> None:
        """Set the character set for this session."""

    @abstractmethod
    def native_database_types(self) -> Mapping[str, Any]:
        """Semantic type -> native DDL fragment mapping."""

    @abstractmethod
    def create_column(self, row: RawRow) -> Column:
        """Decode one raw metadata row into a ``Column``."""


def _scrub(message: str, secret: str | None) -> str:
    if secret:
        return message.replace(secret, "***")
    return message


__all__ = ["Connection", "ParamsLike", "RowHandler"]
