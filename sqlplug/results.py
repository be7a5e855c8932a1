"""Uniform result handle over DB-API style driver cursors."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Protocol, Sequence


class ColumnCase(str, Enum):
    """Case folding applied to result column names."""

    NATURAL = "natural"
    LOWER = "lower"
    UPPER = "upper"

    def apply(self, name: str) -> str:
        if self is ColumnCase.LOWER:
            return name.lower()
        if self is ColumnCase.UPPER:
            return name.upper()
        return name


class Cursor(Protocol):
    """Subset of the DB-API cursor interface consumed by ``ResultSet``."""

    description: Sequence[Sequence[Any]] | None
    rowcount: int

    def fetchone(self) -> Sequence[Any] | None: ...

    def fetchall(self) -> Sequence[Sequence[Any]]: ...

    def close(self) -> None: ...


class ResultSet:
    """Rows returned by ``Connection.query``.

    Rows are produced lazily from the driver cursor; iteration yields dicts
    keyed by (case-folded) column name in the order the driver returns them.
    """

    def __init__(self, cursor: Cursor, *, column_case: ColumnCase = ColumnCase.NATURAL) -> None:
        self._cursor = cursor
        description = cursor.description or ()
        self._columns = tuple(column_case.apply(str(entry[0])) for entry in description)

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def row_count(self) -> int:
        """Rows affected (writes) or returned (buffered reads); ``-1`` when unknown."""

        return self._cursor.rowcount

    def fetch_row(self) -> tuple[Any, ...] | None:
        row = self._cursor.fetchone()
        return tuple(row) if row is not None else None

    def fetch_one(self) -> dict[str, Any] | None:
        row = self.fetch_row()
        return self._as_dict(row) if row is not None else None

    def fetch_all(self) -> list[dict[str, Any]]:
        if not self._columns:
            return []
        return [self._as_dict(row) for row in self._cursor.fetchall()]

    def fetch_column(self, index: int = 0) -> list[Any]:
        if not self._columns:
            return []
        return [row[index] for row in self._cursor.fetchall()]

    def close(self) -> None:
        self._cursor.close()

    def __iter__(self) -> Iterator[dict[str, Any]]:
        if not self._columns:
            return
        while (row := self._cursor.fetchone()) is not None:
            yield self._as_dict(row)

    def _as_dict(self, row: Sequence[Any]) -> dict[str, Any]:
        return dict(zip(self._columns, row))


__all__ = ["ColumnCase", "Cursor", "ResultSet"]
