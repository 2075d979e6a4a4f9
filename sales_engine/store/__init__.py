"""
Record store package: sources, row normalization and the in-memory collection.
"""

from sales_engine.store.normalize import RowNormalizer, normalize_row
from sales_engine.store.record_store import LoadProgress, RecordCollection, RecordStore
from sales_engine.store.sources import (
    CsvRecordSource,
    InMemoryRecordSource,
    PostgresRecordSource,
    RecordSource,
)

__all__ = [
    "RowNormalizer",
    "normalize_row",
    "LoadProgress",
    "RecordCollection",
    "RecordStore",
    "CsvRecordSource",
    "InMemoryRecordSource",
    "PostgresRecordSource",
    "RecordSource",
]
