"""Tests for the PostgreSQL adapter against a fake asyncpg driver."""

from __future__ import annotations

from collections.abc import Iterator
from types import SimpleNamespace
from typing import Any

import pytest

from sqlplug.adapters.pgsql import PgsqlConnection
from sqlplug.column import ColumnType
from sqlplug.descriptor import parse_connection_url
from sqlplug.errors import DatabaseConnectionError, QueryError
from sqlplug.session import connect


class _FakeTransaction:
    def __init__(self, log: list[str]) -> None:
        self._log = log

    async def start(self) -> None:
        self._log.append("start")

    async def commit(self) -> None:
        self._log.append("commit")

    async def rollback(self) -> None:
        self._log.append("rollback")


class _FakeStatement:
    def __init__(self, owner: _FakePg, sql: str) -> None:
        self._owner = owner
        self._sql = sql

    def get_attributes(self) -> tuple[SimpleNamespace, ...]:
        names = self._owner.columns
        if not names and self._owner.records:
            names = tuple(self._owner.records[0])
        return tuple(SimpleNamespace(name=name) for name in names)

    async def fetch(self, *args: Any) -> list[dict[str, Any]]:
        self._owner.statements.append((self._sql, args))
        if self._owner.error is not None:
            raise self._owner.error
        return self._owner.records

    def get_statusmsg(self) -> str:
        return self._owner.status


class _FakePg:
    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []
        self.columns: tuple[str, ...] = ()
        self.status = "UPDATE 2"
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.log: list[str] = []
        self.error: Exception | None = None
        self.closed = False

    async def prepare(self, sql: str) -> _FakeStatement:
        return _FakeStatement(self, sql)

    def transaction(self) -> _FakeTransaction:
        return _FakeTransaction(self.log)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_pg(monkeypatch: pytest.MonkeyPatch) -> tuple[_FakePg, list[dict[str, Any]]]:
    fake = _FakePg()
    calls: list[dict[str, Any]] = []

    async def _fake_connect(**kwargs: Any) -> _FakePg:
        calls.append(kwargs)
        return fake

    monkeypatch.setattr("sqlplug.adapters.pgsql.asyncpg.connect", _fake_connect)
    return fake, calls


@pytest.fixture()
def conn(fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> Iterator[PgsqlConnection]:
    connection = connect(parse_connection_url("pgsql://app:secret@db/shop"))
    assert isinstance(connection, PgsqlConnection)
    try:
        yield connection
    finally:
        connection.close()


def test_connect_kwargs(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    _fake, calls = fake_pg

    assert calls == [
        {
            "host": "db",
            "port": 5432,
            "user": "app",
            "password": "secret",
            "database": "shop",
            "timeout": 5.0,
        }
    ]
    assert conn.descriptor.password is None


def test_postgres_alias(fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    connection = connect(parse_connection_url("postgresql://db/shop"))
    try:
        assert isinstance(connection, PgsqlConnection)
    finally:
        connection.close()


def test_select_fetches_records(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.records = [{"id": 1, "name": "ada"}, {"id": 2, "name": "bob"}]

    rows = conn.query("SELECT id, name FROM people WHERE id > :min", {"min": 0}).fetch_all()

    assert fake.statements[-1] == ("SELECT id, name FROM people WHERE id > $1", (0,))
    assert rows == [{"id": 1, "name": "ada"}, {"id": 2, "name": "bob"}]


def test_empty_select_has_no_rows(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.columns = ("id",)

    result = conn.query("SELECT id FROM people WHERE id = ?", [99])

    assert result.columns == ("id",)
    assert result.fetch_all() == []
    with pytest.raises(QueryError):
        conn.query_scalar("SELECT id FROM people WHERE id = ?", [99])


def test_select_after_leading_comment_returns_rows(
    conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]
) -> None:
    fake, _calls = fake_pg
    fake.records = [{"n": 1}]

    assert conn.query_scalar("-- count\nSELECT 1 AS n") == 1
    assert conn.query_scalar("/* hint */ SELECT 1 AS n") == 1
    assert conn.query("(SELECT 1 AS n) UNION (SELECT 2)").fetch_column() == [1]


def test_explain_returns_plan_rows(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.records = [{"QUERY PLAN": "Seq Scan"}]

    assert conn.query("EXPLAIN SELECT * FROM t").fetch_all() == [{"query plan": "Seq Scan"}]


def test_write_returns_status_count(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg

    affected = conn.execute("UPDATE people SET name = ? WHERE id = ?", ["x", 1])

    assert affected == 2
    assert fake.statements[-1] == ("UPDATE people SET name = $1 WHERE id = $2", ("x", 1))


def test_returning_statements_fetch(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.records = [{"id": 9}]

    assert conn.query_scalar("INSERT INTO people (name) VALUES (?) RETURNING id", ["ada"]) == 9


def test_driver_error_becomes_query_error(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.error = RuntimeError("relation does not exist")

    with pytest.raises(QueryError, match="relation does not exist"):
        conn.query("SELECT * FROM missing")


def test_insert_id(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.records = [{"currval": 7}]

    assert conn.insert_id("orders_id_seq") == 7
    assert fake.statements[-1] == ("SELECT currval($1)", ("orders_id_seq",))

    fake.records = [{"lastval": 8}]
    assert conn.insert_id() == 8


def test_sequences(conn: PgsqlConnection) -> None:
    assert conn.supports_sequences()
    assert conn.get_sequence_name("orders", "id") == "orders_id_seq"
    assert conn.next_sequence_value("orders_id_seq") == "nextval('orders_id_seq')"


def test_dialect_helpers(conn: PgsqlConnection) -> None:
    assert conn.quote_name("orders") == '"orders"'
    assert conn.quote_name('"orders"') == '"orders"'
    assert conn.limit("SELECT 1", None, 10) == "SELECT 1 LIMIT 10"
    assert conn.limit("SELECT 1", 5, 10) == "SELECT 1 LIMIT 10 OFFSET 5"
    assert not conn.accepts_limit_and_order_for_update_and_delete()
    assert conn.native_database_types()["binary"] == {"name": "bytea"}


def test_columns(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.records = [
        {
            "field": "id",
            "type": "integer",
            "length": 32,
            "nullable": "NO",
            "default": "nextval('orders_id_seq'::regclass)",
            "pk": True,
        },
        {
            "field": "status",
            "type": "character varying",
            "length": 20,
            "nullable": "YES",
            "default": "'new'::character varying",
            "pk": False,
        },
        {
            "field": "placed_at",
            "type": "timestamp without time zone",
            "length": 6,
            "nullable": "YES",
            "default": None,
            "pk": False,
        },
    ]

    columns = conn.columns("orders")

    sql, args = fake.statements[-1]
    assert "information_schema.columns" in sql
    assert args == ("orders",)
    assert list(columns) == ["id", "status", "placed_at"]
    assert columns["id"].auto_increment and columns["id"].pk
    assert columns["id"].default is None
    assert columns["id"].type is ColumnType.INTEGER
    assert columns["status"].raw_type == "varchar"
    assert columns["status"].default == "new"
    assert columns["status"].length == 20
    assert columns["placed_at"].raw_type == "timestamp"
    assert columns["placed_at"].type is ColumnType.DATETIME


def test_tables(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    fake.records = [{"tablename": "orders"}, {"tablename": "people"}]

    assert conn.tables() == ["orders", "people"]


def test_transactions(conn: PgsqlConnection, fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg

    conn.begin()
    conn.commit()
    conn.begin()
    conn.rollback()

    assert fake.log == ["start", "commit", "start", "rollback"]


def test_charset_sets_client_encoding(fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg

    connection = connect(parse_connection_url("pgsql://db/shop?charset=UTF8"))
    try:
        assert fake.statements[0] == ("SET client_encoding TO 'UTF8'", ())
    finally:
        connection.close()


def test_close_closes_driver(fake_pg: tuple[_FakePg, list[dict[str, Any]]]) -> None:
    fake, _calls = fake_pg
    connection = connect(parse_connection_url("pgsql://db/shop"))

    connection.close()

    assert fake.closed
    assert not connection.has_connection()


def test_connection_failure_hides_password(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _refuse(**kwargs: Any) -> None:
        raise OSError(f"could not connect with password {kwargs['password']}")

    monkeypatch.setattr("sqlplug.adapters.pgsql.asyncpg.connect", _refuse)

    with pytest.raises(DatabaseConnectionError) as excinfo:
        connect(parse_connection_url("pgsql://app:s3cr3t@db/shop"))

    assert "s3cr3t" not in str(excinfo.value)
