"""
In-memory record store.

Loads every row from a ``RecordSource``, normalizes it, sorts the result once by
date descending (the natural order) and publishes an immutable
``RecordCollection``. Publishing is a single reference swap, so readers see
either the previous collection or the new one in full.

Load progress is a single ``LoadProgress`` value owned by the store: it is
replaced (never mutated) as the load advances and read through ``progress``.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from sales_engine.domain.models import Record
from sales_engine.domain.queries import SortSpec
from sales_engine.errors import SourceLoadError, StoreNotLoadedError
from sales_engine.query.sorting import sort_records
from sales_engine.store.normalize import RowNormalizer
from sales_engine.store.sources import RecordSource
from sales_engine.utils.logging import get_logger
from sales_engine.utils.profiler import profile_block

log = get_logger(__name__)

PROGRESS_LOG_INTERVAL = 100_000


@dataclass(frozen=True)
class LoadProgress:
    phase: str = "idle"  # idle | loading | sorting | ready | failed
    rows_read: int = 0
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class RecordCollection:
    """
    Immutable, natural-ordered record sequence with an id -> position lookup.

    ``version`` increases on every (re)load; derived structures record the
    version they were built from so staleness is detectable.
    """

    records: Tuple[Record, ...]
    version: int
    positions_by_id: Dict[int, int] = field(repr=False)

    @classmethod
    def build(cls, records: Tuple[Record, ...], version: int) -> "RecordCollection":
        positions: Dict[int, int] = {}
        duplicates = 0
        for position, record in enumerate(records):
            if record.id in positions:
                duplicates += 1
                continue
            positions[record.id] = position
        if duplicates:
            log.warning(
                "Duplicate record ids found; lookups resolve to the first occurrence",
                extra={"duplicates": duplicates, "version": version},
            )
        return cls(records=records, version=version, positions_by_id=positions)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, position: int) -> Record:
        return self.records[position]

    def position_of(self, record_id: int) -> Optional[int]:
        return self.positions_by_id.get(record_id)


class RecordStore:
    """
    Owns the canonical record collection and its load lifecycle.

    Loads are serialized; request-path code only reads ``collection``. A
    reload can prepare the next collection while the current one keeps being
    served, then ``publish`` it with one reference swap.
    """

    def __init__(self, source: RecordSource) -> None:
        self._source = source
        self._collection: Optional[RecordCollection] = None
        self._progress = LoadProgress()
        self._load_lock = threading.Lock()
        self._last_version = 0

    @property
    def source(self) -> RecordSource:
        return self._source

    @property
    def progress(self) -> LoadProgress:
        return self._progress

    @property
    def is_loaded(self) -> bool:
        return self._collection is not None

    @property
    def collection(self) -> RecordCollection:
        collection = self._collection
        if collection is None:
            raise StoreNotLoadedError("Record store has not been loaded")
        return collection

    @property
    def version(self) -> int:
        collection = self._collection
        return collection.version if collection is not None else 0

    def __len__(self) -> int:
        collection = self._collection
        return len(collection) if collection is not None else 0

    def get(self, position: int) -> Record:
        return self.collection[position]

    def get_by_id(self, record_id: int) -> Optional[Record]:
        collection = self.collection
        position = collection.position_of(record_id)
        return collection[position] if position is not None else None

    def _read_all(self, source: RecordSource) -> List[Record]:
        normalizer = RowNormalizer()
        records: List[Record] = []
        for ordinal, row in enumerate(source.load(), start=1):
            records.append(normalizer.normalize(row, ordinal))
            if ordinal % PROGRESS_LOG_INTERVAL == 0:
                self._progress = replace(self._progress, rows_read=ordinal)
                log.debug("[LOAD PROGRESS]", extra={"source": source.name, "rows": ordinal})
        self._progress = replace(self._progress, rows_read=len(records))
        return records

    def prepare(self, source: Optional[RecordSource] = None) -> RecordCollection:
        """
        Read, normalize and natural-sort ``source`` (default: the current
        source) into a new collection without publishing it.

        Every prepared collection gets a fresh version, so structures built
        from it never match another collection.

        Raises
        ------
        SourceLoadError
            If the source cannot be read or yields no rows. The published
            collection (if any) is untouched.
        """
        source = source or self._source
        name = source.name
        with self._load_lock:
            self._progress = LoadProgress(phase="loading", started_at=time.time())
            log.info(f"[LOAD START] {name}", extra={"source": name})
            try:
                with profile_block(f"load:{name}") as stats:
                    records = self._read_all(source)
                    if not records:
                        raise SourceLoadError(name, "source produced no rows")
                    self._progress = replace(self._progress, phase="sorting")
                    ordered = tuple(sort_records(records, SortSpec()))
                    self._last_version += 1
                    collection = RecordCollection.build(ordered, version=self._last_version)
            except SourceLoadError as exc:
                self._progress = replace(
                    self._progress, phase="failed", finished_at=time.time(), error=str(exc)
                )
                log.error(f"[LOAD FAILED] {name}", extra={"source": name, "error": exc.reason})
                raise

            self._progress = replace(self._progress, phase="ready", finished_at=time.time())
            log.info(
                f"[LOAD COMPLETE] {name}",
                extra={
                    "source": name,
                    "rows": len(collection),
                    "version": collection.version,
                    "duration_seconds": round(stats.duration_seconds, 3),
                    "peak_rss_bytes": stats.peak_rss_bytes,
                },
            )
            return collection

    def publish(self, collection: RecordCollection, source: Optional[RecordSource] = None) -> None:
        """Make ``collection`` (read from ``source``, if it changed) the served one."""
        if source is not None:
            self._source = source
        self._collection = collection
        log.info("[COLLECTION PUBLISHED]", extra={"version": collection.version, "rows": len(collection)})

    def load(self) -> RecordCollection:
        """Prepare the current source and publish the result at once."""
        collection = self.prepare()
        self.publish(collection)
        return collection

    def reload(self, source: Optional[RecordSource] = None) -> RecordCollection:
        """
        Reload from the current source, or switch to ``source``.

        A failed reload keeps both the previous source and collection.
        """
        collection = self.prepare(source)
        self.publish(collection, source)
        return collection


__all__ = ["LoadProgress", "RecordCollection", "RecordStore"]
