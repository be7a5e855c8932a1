"""Table column metadata produced by adapter introspection."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .connection import Connection


class ColumnType(str, Enum):
    """Semantic column types that raw dialect types map onto."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"


TYPE_MAPPING: dict[str, ColumnType] = {
    "datetime": ColumnType.DATETIME,
    "timestamp": ColumnType.DATETIME,
    "date": ColumnType.DATE,
    "time": ColumnType.TIME,
    "tinyint": ColumnType.INTEGER,
    "smallint": ColumnType.INTEGER,
    "mediumint": ColumnType.INTEGER,
    "int": ColumnType.INTEGER,
    "bigint": ColumnType.INTEGER,
    "serial": ColumnType.INTEGER,
    "bigserial": ColumnType.INTEGER,
    "float": ColumnType.DECIMAL,
    "double": ColumnType.DECIMAL,
    "real": ColumnType.DECIMAL,
    "numeric": ColumnType.DECIMAL,
    "decimal": ColumnType.DECIMAL,
    "dec": ColumnType.DECIMAL,
}

# raw type spellings folded before lookup
_RAW_ALIASES = {
    "integer": "int",
    "int2": "smallint",
    "int4": "int",
    "int8": "bigint",
    "float4": "float",
    "float8": "double",
    "double precision": "double",
}

_INFLECT_SEPARATORS = re.compile(r"[-\s]+")


def variablize(name: str) -> str:
    """Turn a raw column name into a programmatic identifier (``First Name`` -> ``first_name``)."""

    return _INFLECT_SEPARATORS.sub("_", name.strip()).lower()


@dataclass(frozen=True, slots=True)
class Column:
    """Describes one table column."""

    name: str
    raw_type: str
    inflected_name: str = ""
    type: ColumnType = ColumnType.STRING
    length: int | None = None
    nullable: bool = True
    pk: bool = False
    auto_increment: bool = False
    default: Any = field(default=None, compare=False)

    @classmethod
    def build(
        cls,
        name: str,
        raw_type: str,
        *,
        length: int | None = None,
        nullable: bool = True,
        pk: bool = False,
        auto_increment: bool = False,
        default: Any = None,
        connection: Connection | None = None,
    ) -> Column:
        """Map the raw type onto a ``ColumnType`` and cast the default accordingly."""

        column_type = map_raw_type(raw_type)
        return cls(
            name=name,
            raw_type=raw_type,
            inflected_name=variablize(name),
            type=column_type,
            length=length,
            nullable=nullable,
            pk=pk,
            auto_increment=auto_increment,
            default=cast_value(column_type, default, connection),
        )

    def cast(self, value: Any, connection: Connection | None = None) -> Any:
        """Cast a raw value to this column's semantic type."""

        return cast_value(self.type, value, connection)


def map_raw_type(raw_type: str) -> ColumnType:
    key = raw_type.lower()
    key = _RAW_ALIASES.get(key, key)
    return TYPE_MAPPING.get(key, ColumnType.STRING)


def cast_value(column_type: ColumnType, value: Any, connection: Connection | None = None) -> Any:
    if value is None:
        return None
    if column_type is ColumnType.STRING:
        return value if isinstance(value, str) else str(value)
    if column_type is ColumnType.INTEGER:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            try:
                return int(Decimal(str(value).strip()))
            except (InvalidOperation, ValueError):
                return None
    if column_type is ColumnType.DECIMAL:
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return float(value)
        try:
            return float(str(value).strip())
        except ValueError:
            return None
    if column_type is ColumnType.TIME:
        if isinstance(value, time):
            return value
        try:
            return time.fromisoformat(str(value).strip())
        except ValueError:
            return None
    # DATETIME / DATE
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if value == "":
        return None
    if connection is not None:
        return connection.string_to_datetime(str(value))
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


__all__ = ["Column", "ColumnType", "TYPE_MAPPING", "cast_value", "map_raw_type", "variablize"]
