from __future__ import annotations

from typing import Any, Dict, List, Optional

import psycopg
import pytest

from sales_engine.errors import SourceLoadError
from sales_engine.store import sources
from sales_engine.store.record_store import RecordStore
from sales_engine.store.sources import PostgresRecordSource
from tests.factories import SAMPLE_ROWS


class _FakeCursor:
    def __init__(self, conn: "_FakeConnection", name: Optional[str]) -> None:
        self.conn = conn
        self.name = name
        self._pending: List[Dict[str, Any]] = list(conn.rows)

    def __enter__(self) -> "_FakeCursor":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def execute(self, sql: str) -> None:
        self.conn.executed.append((self.name, sql))

    def fetchmany(self, size: int) -> List[Dict[str, Any]]:
        if self.conn.fail_after is not None and self.conn.fetches >= self.conn.fail_after:
            raise psycopg.OperationalError("server closed the connection unexpectedly")
        self.conn.fetches += 1
        self.conn.fetch_sizes.append(size)
        batch, self._pending = self._pending[:size], self._pending[size:]
        return batch


class _FakeConnection:
    def __init__(self, rows: List[Dict[str, Any]], fail_after: Optional[int] = None) -> None:
        self.rows = rows
        self.fail_after = fail_after
        self.fetches = 0
        self.fetch_sizes: List[int] = []
        self.executed: List[tuple] = []
        self.cursor_names: List[Optional[str]] = []
        self.closed = False

    def cursor(self, name: Optional[str] = None, row_factory: Any = None) -> _FakeCursor:
        self.cursor_names.append(name)
        return _FakeCursor(self, name)

    def close(self) -> None:
        self.closed = True


def _patch_connection(monkeypatch, conn: _FakeConnection) -> None:
    monkeypatch.setattr(sources, "get_sync_connection", lambda dsn=None: conn)


def test_streams_rows_in_batches_through_a_named_cursor(monkeypatch) -> None:
    conn = _FakeConnection(list(SAMPLE_ROWS))
    _patch_connection(monkeypatch, conn)

    rows = list(PostgresRecordSource(batch_size=3).load())

    assert [row["id"] for row in rows] == [row["id"] for row in SAMPLE_ROWS]
    assert "sales_source" in conn.cursor_names
    assert conn.fetch_sizes == [3, 3, 3, 3]
    named_sql = [sql for name, sql in conn.executed if name == "sales_source"]
    assert named_sql[0].startswith("SELECT id, date, customer_id")
    assert named_sql[0].endswith("FROM public.sales ORDER BY id;")
    assert conn.closed


def test_record_store_loads_from_postgres(monkeypatch) -> None:
    _patch_connection(monkeypatch, _FakeConnection(list(SAMPLE_ROWS)))

    store = RecordStore(PostgresRecordSource(batch_size=2))
    collection = store.load()

    assert len(collection) == len(SAMPLE_ROWS)
    assert store.get_by_id(3).customer_name == "Priya Sharma"


def test_driver_errors_become_source_load_errors(monkeypatch) -> None:
    conn = _FakeConnection(list(SAMPLE_ROWS), fail_after=1)
    _patch_connection(monkeypatch, conn)

    with pytest.raises(SourceLoadError) as excinfo:
        list(PostgresRecordSource(batch_size=2).load())

    assert excinfo.value.source == "postgres:public.sales"
    assert "server closed" in excinfo.value.reason
    assert conn.closed


def test_connection_failure_is_a_source_load_error(monkeypatch) -> None:
    def refuse(dsn=None):
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(sources, "get_sync_connection", refuse)

    with pytest.raises(SourceLoadError, match="connection refused"):
        list(PostgresRecordSource().load())
