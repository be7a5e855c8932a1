"""Translate ``?`` / ``:name`` placeholders into a driver paramstyle.

Every adapter accepts the same placeholder syntax: ``?`` for positional
parameters and ``:name`` for named ones. Adapters whose driver speaks a
different paramstyle rewrite the statement before execution. Quoted strings,
quoted identifiers, comments and PostgreSQL ``::`` casts are left untouched.
In a positional statement ``:name`` tokens are not placeholders, and in a
named statement ``?`` is not (so PostgreSQL's jsonb ``?`` operator survives).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, NamedTuple, Sequence

from .errors import QueryError
from .models import BindType, Named, Params, Positional


class ParamStyle(str, Enum):
    """Driver paramstyles the rewriter can target."""

    QMARK = "qmark"  # ? and :name, passed through unchanged (sqlite3)
    FORMAT = "format"  # %s and %(name)s (PyMySQL)
    NUMERIC = "numeric"  # $1, $2 ... (asyncpg)


class Rewritten(NamedTuple):
    sql: str
    params: Sequence[Any] | Mapping[str, Any] | None


_QUOTES = {"'", '"', "`"}


def rewrite(
    sql: str,
    params: Params,
    style: ParamStyle,
    bind_types: Mapping[str, BindType] | None = None,
) -> Rewritten:
    """Rewrite ``sql`` for ``style`` and shape ``params`` for the driver."""

    if isinstance(params, Named):
        values = _bind_named(params.values, bind_types)
        return _rewrite_named(sql, values, style)
    return _rewrite_positional(sql, params, style)


def _bind_named(values: Mapping[str, Any], bind_types: Mapping[str, BindType] | None) -> dict[str, Any]:
    bound: dict[str, Any] = {}
    types = {key.lstrip(":"): value for key, value in (bind_types or {}).items()}
    for key, value in values.items():
        name = key.lstrip(":")
        bind_type = types.get(name)
        bound[name] = bind_type.coerce(value) if bind_type is not None else value
    return bound


def _rewrite_positional(sql: str, params: Positional, style: ParamStyle) -> Rewritten:
    values = params.values
    if style is ParamStyle.QMARK:
        return Rewritten(sql, values)
    if style is ParamStyle.FORMAT and not values:
        # PyMySQL only interpolates (and needs %% escapes) when args are given.
        count = sum(1 for kind, _ in _scan(sql) if kind == "?")
        if count:
            raise QueryError(f"Expected {count} positional parameter(s), got 0", sql=sql)
        return Rewritten(sql, None)

    out: list[str] = []
    index = 0
    for kind, text in _scan(sql, backslash_escapes=style is not ParamStyle.NUMERIC):
        if kind == "?":
            index += 1
            out.append("%s" if style is ParamStyle.FORMAT else f"${index}")
        elif kind == "text" and style is ParamStyle.FORMAT:
            out.append(text.replace("%", "%%"))
        else:
            out.append(text)
    if index != len(values):
        raise QueryError(f"Expected {index} positional parameter(s), got {len(values)}", sql=sql)
    return Rewritten("".join(out), tuple(values))


def _rewrite_named(sql: str, values: dict[str, Any], style: ParamStyle) -> Rewritten:
    out: list[str] = []
    order: list[str] = []
    for kind, text in _scan(sql, named=True, backslash_escapes=style is not ParamStyle.NUMERIC):
        if kind == ":":
            if text not in values:
                raise QueryError(f"No value bound for named parameter ':{text}'", sql=sql)
            if style is ParamStyle.QMARK:
                out.append(f":{text}")
            elif style is ParamStyle.FORMAT:
                out.append(f"%({text})s")
            else:
                if text not in order:
                    order.append(text)
                out.append(f"${order.index(text) + 1}")
        elif kind == "text" and style is ParamStyle.FORMAT:
            out.append(text.replace("%", "%%"))
        else:
            out.append(text)
    rewritten = "".join(out)
    if style is ParamStyle.NUMERIC:
        return Rewritten(rewritten, tuple(values[name] for name in order))
    return Rewritten(rewritten, values)


def _scan(sql: str, *, named: bool = False, backslash_escapes: bool = True) -> list[tuple[str, str]]:
    """Split ``sql`` into ``("text", chunk)``, ``("?", "?")`` and ``(":", name)`` tokens.

    Quoted sections and comments are emitted whole as text chunks, so no
    placeholder is ever recognized inside them. With ``backslash_escapes``
    off (standard-conforming PostgreSQL strings) a backslash is an ordinary
    character, except inside ``E'...'`` escape strings.
    """

    tokens: list[tuple[str, str]] = []
    buf: list[str] = []
    i = 0
    length = len(sql)

    def flush() -> None:
        if buf:
            tokens.append(("text", "".join(buf)))
            buf.clear()

    while i < length:
        char = sql[i]
        if char in _QUOTES:
            escapes = backslash_escapes or (char == "'" and _is_escape_string_prefix(sql, i))
            end = _closing_quote(sql, i, char, backslash_escapes=escapes)
            flush()
            tokens.append(("text", sql[i:end]))
            i = end
            continue
        if char == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            end = length if end == -1 else end
            flush()
            tokens.append(("text", sql[i:end]))
            i = end
            continue
        if char == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = length if end == -1 else end + 2
            flush()
            tokens.append(("text", sql[i:end]))
            i = end
            continue
        if char == "?" and not named:
            flush()
            tokens.append(("?", "?"))
            i += 1
            continue
        if char == ":" and named:
            if sql.startswith("::", i):
                buf.append("::")
                i += 2
                continue
            j = i + 1
            if j < length and (sql[j].isalpha() or sql[j] == "_"):
                while j < length and (sql[j].isalnum() or sql[j] == "_"):
                    j += 1
                flush()
                tokens.append((":", sql[i + 1 : j]))
                i = j
                continue
        buf.append(char)
        i += 1
    flush()
    return tokens


def _is_escape_string_prefix(sql: str, quote_at: int) -> bool:
    """True when the quote at ``quote_at`` opens a PostgreSQL ``E'...'`` literal."""

    if quote_at == 0 or sql[quote_at - 1] not in "eE":
        return False
    before = sql[quote_at - 2] if quote_at >= 2 else ""
    return not (before.isalnum() or before == "_")


def _closing_quote(sql: str, start: int, quote: str, *, backslash_escapes: bool = True) -> int:
    i = start + 1
    length = len(sql)
    while i < length:
        char = sql[i]
        if char == "\\" and backslash_escapes and quote != "`":
            i += 2
            continue
        if char == quote:
            if i + 1 < length and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return length


__all__ = ["ParamStyle", "Rewritten", "rewrite"]
