"""
Pytest configuration for the sales query engine.

Provides fixtures for:
- Settings with test-specific overrides
- Small hand-written record sets with known answers
- Generated record sets and fully started engines
- Database connection management for integration tests
"""

from __future__ import annotations

import os
from typing import Dict, Generator, List

import psycopg
import pytest

from sales_engine.config import Settings
from sales_engine.orchestrator import QueryEngine
from sales_engine.sample_data import generate_rows
from sales_engine.store.record_store import RecordCollection, RecordStore
from sales_engine.store.sources import InMemoryRecordSource
from tests.factories import SAMPLE_ROWS

GENERATED_ROWS = 2_000


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Small cancel-check interval so cancellation is observed quickly on tiny
    collections.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "sales"),
        log_level="DEBUG",
        cancel_check_interval=2,
        max_page_size=1_000,
    )


@pytest.fixture
def sample_store() -> RecordStore:
    store = RecordStore(InMemoryRecordSource(SAMPLE_ROWS, name="sample"))
    store.load()
    return store


@pytest.fixture
def sample_collection(sample_store: RecordStore) -> RecordCollection:
    return sample_store.collection


@pytest.fixture
def sample_engine(sample_store: RecordStore, test_settings: Settings) -> Generator[QueryEngine, None, None]:
    engine = QueryEngine(sample_store, settings=test_settings)
    engine.aggregates.compute_on_load(sample_store.collection)
    engine.index.build(sample_store.collection)
    yield engine
    engine.shutdown()


@pytest.fixture(scope="session")
def generated_rows() -> List[Dict[str, str]]:
    return list(generate_rows(GENERATED_ROWS, seed=7))


@pytest.fixture
def generated_engine(
    generated_rows: List[Dict[str, str]], test_settings: Settings
) -> Generator[QueryEngine, None, None]:
    settings = test_settings.model_copy(update={"max_page_size": 1_000_000})
    engine = QueryEngine(
        RecordStore(InMemoryRecordSource(generated_rows, name="generated")),
        settings=settings,
    )
    engine.start(wait=True)
    yield engine
    engine.shutdown()


@pytest.fixture(scope="session")
def test_dsn() -> str:
    """
    Database connection string for integration tests.
    """
    return (
        f"postgresql://{os.getenv('DB_USER', 'postgres')}:{os.getenv('DB_PASSWORD', 'postgres')}"
        f"@{os.getenv('DB_HOST', 'localhost')}:{os.getenv('DB_PORT', '5432')}"
        f"/{os.getenv('DB_NAME', 'sales')}"
    )


@pytest.fixture(scope="session")
def db_connection(test_dsn: str) -> Generator[psycopg.Connection, None, None]:
    """
    Session-scoped database connection; skips when Postgres is unreachable.
    """
    try:
        conn = psycopg.connect(test_dsn, connect_timeout=5)
    except psycopg.OperationalError:
        pytest.skip("Database not available for integration tests")

    try:
        yield conn
    finally:
        conn.close()
