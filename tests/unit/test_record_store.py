from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Iterator

import pytest

from sales_engine.errors import SourceLoadError, StoreNotLoadedError
from sales_engine.sample_data import write_csv
from sales_engine.store.record_store import RecordStore
from sales_engine.store.sources import CsvRecordSource, InMemoryRecordSource, RecordSource
from tests.factories import NATURAL_ORDER_IDS, SAMPLE_ROWS, make_row

CSV_ROWS = 25


class _ExplodingSource:
    name = "exploding"

    def load(self) -> Iterator[dict]:
        yield make_row(1)
        raise SourceLoadError(self.name, "connection reset")


def test_load_sorts_by_date_descending_with_undated_last(sample_store: RecordStore) -> None:
    ids = [record.id for record in sample_store.collection.records]

    assert ids == NATURAL_ORDER_IDS
    assert sample_store.collection.records[-1].date is None


def test_collection_supports_position_and_id_lookup(sample_store: RecordStore) -> None:
    assert sample_store.get(0).id == NATURAL_ORDER_IDS[0]
    assert sample_store.get_by_id(4).customer_name == "nisha patel"
    assert sample_store.get_by_id(999) is None
    assert len(sample_store) == len(SAMPLE_ROWS)


def test_progress_is_replaced_as_load_advances(sample_store: RecordStore) -> None:
    progress = sample_store.progress

    assert progress.phase == "ready"
    assert progress.rows_read == len(SAMPLE_ROWS)
    assert progress.started_at is not None
    assert progress.finished_at is not None
    assert progress.finished_at >= progress.started_at


def test_collection_before_load_raises() -> None:
    store = RecordStore(InMemoryRecordSource(SAMPLE_ROWS))

    assert not store.is_loaded
    assert store.version == 0
    with pytest.raises(StoreNotLoadedError):
        _ = store.collection


def test_empty_source_is_a_fatal_load_error() -> None:
    store = RecordStore(InMemoryRecordSource([], name="empty"))

    with pytest.raises(SourceLoadError, match="no rows"):
        store.load()

    assert store.progress.phase == "failed"
    assert not store.is_loaded


def test_missing_csv_is_a_fatal_load_error(tmp_path: Path) -> None:
    store = RecordStore(CsvRecordSource(tmp_path / "missing.csv"))

    with pytest.raises(SourceLoadError) as excinfo:
        store.load()

    assert "missing.csv" in str(excinfo.value)


def test_failed_reload_keeps_previous_collection(sample_store: RecordStore) -> None:
    before = sample_store.collection

    with pytest.raises(SourceLoadError):
        sample_store.reload(_ExplodingSource())

    assert sample_store.collection is before
    assert sample_store.progress.error is not None


def test_reload_bumps_version_and_replaces_collection(sample_store: RecordStore) -> None:
    first_version = sample_store.version

    collection = sample_store.reload(InMemoryRecordSource([make_row(10), make_row(11)]))

    assert collection.version == first_version + 1
    assert len(sample_store) == 2


def test_prepare_does_not_publish(sample_store: RecordStore) -> None:
    served = sample_store.collection
    original = sample_store.source
    replacement = InMemoryRecordSource([make_row(10)], name="replacement")

    prepared = sample_store.prepare(replacement)

    assert sample_store.collection is served
    assert sample_store.source is original
    assert prepared.version > served.version
    assert [record.id for record in prepared.records] == [10]

    sample_store.publish(prepared, replacement)

    assert sample_store.collection is prepared
    assert sample_store.source is replacement


def test_every_prepared_collection_gets_a_new_version(sample_store: RecordStore) -> None:
    first = sample_store.prepare()
    second = sample_store.prepare()

    assert len({sample_store.version, first.version, second.version}) == 3


def test_duplicate_ids_resolve_to_first_occurrence(caplog: pytest.LogCaptureFixture) -> None:
    rows = [
        make_row(1, date="2024-01-02", customer_name="Newer"),
        make_row(1, date="2024-01-01", customer_name="Older"),
    ]
    store = RecordStore(InMemoryRecordSource(rows))

    with caplog.at_level("WARNING"):
        store.load()

    assert store.get_by_id(1).customer_name == "Newer"
    assert len(store) == 2
    assert any("Duplicate record ids" in message for message in caplog.messages)


def test_csv_source_round_trips_generated_file(tmp_path: Path) -> None:
    csv_path = tmp_path / "sales.csv"
    write_csv(csv_path, rows=CSV_ROWS, seed=3, end_date=dt.date(2024, 6, 30))

    source = CsvRecordSource(csv_path)
    assert isinstance(source, RecordSource)

    store = RecordStore(source)
    collection = store.load()

    assert len(collection) == CSV_ROWS
    dates = [record.date for record in collection.records]
    assert dates == sorted(dates, reverse=True)
    assert all(record.customer_name and record.phone_number for record in collection.records)


def test_csv_with_byte_order_mark_keeps_record_ids(tmp_path: Path) -> None:
    csv_path = tmp_path / "excel-export.csv"
    csv_path.write_text(
        "Transaction ID,Date,Customer Name,Phone Number\n"
        "501,2024-02-01,Nishant Rao,+91 98765 43210\n"
        "502,2024-01-01,Anish Kumar,+91 91234 56789\n",
        encoding="utf-8-sig",
    )

    store = RecordStore(CsvRecordSource(csv_path))
    store.load()

    assert [record.id for record in store.collection.records] == [501, 502]
    assert store.get_by_id(501).customer_name == "Nishant Rao"
