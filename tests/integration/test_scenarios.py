"""
End-to-end scenarios over a full-size generated collection.

Loads one million generated records in memory, builds the search index and
checks the headline behaviours at that scale.

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/ -m slow
"""

from __future__ import annotations

import os
import time
from typing import Generator

import pytest

from sales_engine.config import Settings
from sales_engine.domain.queries import FilterField, FilterSpec, PageSpec, SortDirection, SortKey, SortSpec
from sales_engine.orchestrator import QueryEngine
from sales_engine.sample_data import generate_rows
from sales_engine.store.record_store import RecordStore
from sales_engine.store.sources import InMemoryRecordSource

FULL_SIZE = 1_000_000
TARGET_ID = FULL_SIZE
SEARCH_BUDGET_SECONDS = 2.0

pytestmark = [
    pytest.mark.slow,
    pytest.mark.skipif(
        os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
        reason="Full-size scenarios require RUN_INTEGRATION_TESTS=1",
    ),
]


def _rows():
    yield from generate_rows(FULL_SIZE - 1, seed=2024)
    target = next(generate_rows(1, seed=99, start_id=TARGET_ID))
    target["Customer Name"] = "Nishant Rao"
    yield target


@pytest.fixture(scope="module")
def full_engine() -> Generator[QueryEngine, None, None]:
    engine = QueryEngine(
        RecordStore(InMemoryRecordSource(_rows(), name="generated-1m")),
        settings=Settings(max_page_size=FULL_SIZE),
    )
    engine.start(wait=True)
    yield engine
    engine.shutdown()


def test_name_prefix_search_is_served_by_the_index(full_engine: QueryEngine) -> None:
    position = full_engine.store.collection.position_of(TARGET_ID)

    started = time.perf_counter()
    result = full_engine.index.search("nish")
    elapsed = time.perf_counter() - started

    assert result.strategy == "index"
    assert position in result
    assert elapsed < SEARCH_BUDGET_SECONDS


def test_default_query_returns_most_recent_page(full_engine: QueryEngine) -> None:
    result = full_engine.execute_query(
        FilterSpec(),
        SortSpec(key=SortKey.DATE, direction=SortDirection.DESC),
        PageSpec(page=1, page_size=10),
    )

    assert result.total_items == FULL_SIZE
    assert result.has_prev_page is False
    assert result.has_next_page is True
    assert result.records == full_engine.store.collection.records[:10]
    dates = [record.date for record in result.records]
    assert dates == sorted(dates, reverse=True)


def test_page_beyond_filtered_total_is_empty(full_engine: QueryEngine) -> None:
    filters = FilterSpec(by_field={FilterField.REGION: {"North"}})
    first = full_engine.execute_query(filters, pagination=PageSpec(page=1, page_size=100))

    beyond = full_engine.execute_query(filters, pagination=PageSpec(page=first.total_pages + 1, page_size=100))

    assert 0 < first.total_items < FULL_SIZE
    assert beyond.records == []
    assert beyond.has_next_page is False
    assert beyond.total_items == first.total_items


def test_region_and_age_filters_hold_at_scale(full_engine: QueryEngine) -> None:
    filters = FilterSpec(by_field={FilterField.REGION: {"North"}}, min_age=30, max_age=40)

    result = full_engine.execute_query(filters, pagination=PageSpec(page=1, page_size=FULL_SIZE))

    assert result.total_items > 0
    assert all(
        record.customer_region == "North" and 30 <= record.age <= 40 for record in result.records
    )
