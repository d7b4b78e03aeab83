"""Tests for npm_switcher.utils.database module."""

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import BaseModel

from npm_switcher.utils.database import (
    fetch_all,
    open_connection,
    safe_identifier,
    update,
)

SCHEMA = """
CREATE TABLE upstream (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    host TEXT NOT NULL,
    port INTEGER NOT NULL,
    scheme TEXT NOT NULL DEFAULT 'http'
);
INSERT INTO upstream (host, port) VALUES ('a', 1);
INSERT INTO upstream (host, port, scheme) VALUES ('c', 3, 'https');
"""


class Upstream(BaseModel):
    id: int | None = None
    host: str
    port: int
    scheme: str | None = None


@pytest.fixture
def conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    connection = open_connection(tmp_path / "test.sqlite")
    _ = connection.executescript(SCHEMA)
    yield connection
    connection.close()


class TestOpenConnection:
    def test_rows_are_sqlite_rows(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("SELECT 1 AS one").fetchone()
        assert isinstance(row, sqlite3.Row)
        assert row["one"] == 1

    def test_read_write_uri_refuses_missing_file(self, tmp_path: Path) -> None:
        uri = f"{(tmp_path / 'missing.sqlite').as_uri()}?mode=rw"
        with pytest.raises(sqlite3.OperationalError):
            _ = open_connection(uri, uri=True)


class TestFetchAll:
    def test_returns_models(self, conn: sqlite3.Connection) -> None:
        rows = fetch_all(conn, Upstream, "SELECT * FROM upstream ORDER BY id")
        assert [(r.host, r.port, r.scheme) for r in rows] == [
            ("a", 1, "http"),
            ("c", 3, "https"),
        ]

    def test_no_rows(self, conn: sqlite3.Connection) -> None:
        sql = "SELECT * FROM upstream WHERE host = ?"
        assert fetch_all(conn, Upstream, sql, ("zzz",)) == []


class TestUpdate:
    def test_returns_affected_rows(self, conn: sqlite3.Connection) -> None:
        affected = update(
            conn, "upstream", Upstream(id=1, host="b", port=2, scheme="https")
        )

        rows = fetch_all(conn, Upstream, "SELECT * FROM upstream WHERE id = 1")
        assert affected == 1
        assert (rows[0].host, rows[0].port, rows[0].scheme) == ("b", 2, "https")

    def test_leaves_none_columns_untouched(self, conn: sqlite3.Connection) -> None:
        _ = update(conn, "upstream", Upstream(id=2, host="d", port=4))

        rows = fetch_all(conn, Upstream, "SELECT * FROM upstream WHERE id = 2")
        assert rows[0].scheme == "https"

    def test_missing_row_affects_nothing(self, conn: sqlite3.Connection) -> None:
        assert update(conn, "upstream", Upstream(id=42, host="b", port=2)) == 0

    def test_without_commit_can_be_rolled_back(
        self, conn: sqlite3.Connection
    ) -> None:
        _ = update(conn, "upstream", Upstream(id=1, host="b", port=2), commit=False)
        conn.rollback()

        rows = fetch_all(conn, Upstream, "SELECT * FROM upstream WHERE id = 1")
        assert rows[0].host == "a"


class TestSafeIdentifier:
    def test_quotes_valid_identifier(self) -> None:
        assert safe_identifier("proxy_host") == '"proxy_host"'

    @pytest.mark.parametrize("name", ["", "1abc", "proxy-host", 'a"; DROP'])
    def test_rejects_invalid_identifier(self, name: str) -> None:
        with pytest.raises(ValueError, match="Invalid SQL identifier"):
            _ = safe_identifier(name)
