"""
Load the record store from a real PostgreSQL ``public.sales`` table.

Generated rows are written to CSV and copied into the table with the data
generation script, then streamed back through ``PostgresRecordSource``.
The table's previous contents are replaced.

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import datetime as dt
import os
from pathlib import Path

import psycopg
import pytest

from sales_engine.domain.queries import FilterSpec, PageSpec
from sales_engine.orchestrator import QueryEngine
from sales_engine.sample_data import write_csv
from sales_engine.store.record_store import RecordStore
from sales_engine.store.sources import PostgresRecordSource
from scripts import generate_data

DEFAULT_ROWS = 500
DEFAULT_BATCH_SIZE = 64
DEFAULT_SEED = 123

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


@pytest.fixture(scope="module")
def loaded_table(tmp_path_factory, test_dsn: str, db_connection: psycopg.Connection) -> str:
    csv_path = Path(tmp_path_factory.mktemp("pg")) / "sales.csv"
    write_csv(csv_path, rows=DEFAULT_ROWS, seed=DEFAULT_SEED, end_date=dt.date(2024, 6, 30))
    generate_data._copy_into_db(test_dsn, csv_path, truncate=True)
    return test_dsn


def test_table_row_count_matches_generated_rows(loaded_table: str, db_connection: psycopg.Connection) -> None:
    with db_connection.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM public.sales;")
        (count,) = cur.fetchone()
    db_connection.rollback()

    assert count == DEFAULT_ROWS


def test_store_loads_every_row_from_postgres(loaded_table: str) -> None:
    store = RecordStore(PostgresRecordSource(batch_size=DEFAULT_BATCH_SIZE, dsn_override=loaded_table))

    collection = store.load()

    assert len(collection) == DEFAULT_ROWS
    assert store.get_by_id(1) is not None
    dates = [record.date for record in collection.records]
    assert dates == sorted(dates, reverse=True)


def test_engine_queries_postgres_backed_store(loaded_table: str) -> None:
    store = RecordStore(PostgresRecordSource(batch_size=DEFAULT_BATCH_SIZE, dsn_override=loaded_table))
    engine = QueryEngine(store)
    engine.start(wait=True)
    try:
        first = store.get_by_id(1)
        result = engine.execute_query(
            FilterSpec(query=first.customer_name.split()[0]),
            pagination=PageSpec(page=1, page_size=DEFAULT_ROWS),
        )

        assert result.search_strategy == "index"
        assert 1 in {record.id for record in result.records}
    finally:
        engine.shutdown()
