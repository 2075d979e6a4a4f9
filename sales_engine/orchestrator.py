"""
Query engine: composes the record store, search index, filter evaluator,
sort/paginate stage and aggregates cache behind one request interface.

Usage (example from CLI):
    from sales_engine.orchestrator import QueryEngine

    engine = QueryEngine.from_settings()
    engine.start(wait=True)
    page = engine.execute_query(FilterSpec(query="nish"), SortSpec(), PageSpec())

Per request:
1. text query -> search index candidates (or every record when there is none)
2. structural filters in one pass
3. ``total_items`` captured before slicing
4. sort, unless the request is the natural order with no filters
5. slice the page

The collection and the published index snapshot are read-only shared state.
Request threads only read them; the single writer is ``start``/``reload`` plus
the background index build.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from sales_engine.aggregates import AggregatesCache, compute_stats
from sales_engine.config import Settings, get_settings
from sales_engine.domain.models import Record
from sales_engine.domain.queries import FilterSpec, PageSpec, SortSpec
from sales_engine.domain.results import (
    EngineStatus,
    FilterOptions,
    IndexNotReady,
    PageResult,
    SalesStats,
)
from sales_engine.errors import IndexNotReadyError, InvalidQueryError
from sales_engine.query.filtering import FilterEvaluator
from sales_engine.query.sorting import can_skip_sort, paginate, sort_records, total_pages
from sales_engine.search.index import SearchIndex
from sales_engine.search.strategies import ALL
from sales_engine.store.record_store import RecordCollection, RecordStore
from sales_engine.store.sources import CsvRecordSource, PostgresRecordSource, RecordSource
from sales_engine.utils.logging import get_logger

log = get_logger(__name__)


def _source_factories(settings: Settings) -> Dict[str, Callable[[], RecordSource]]:
    """Registry of record sources selectable through ``DATA_SOURCE``."""
    return {
        "csv": lambda: CsvRecordSource(settings.data_path),
        "postgres": lambda: PostgresRecordSource(batch_size=settings.db_fetch_batch_size),
    }


def available_sources() -> List[str]:
    return sorted(_source_factories(get_settings()).keys())


def resolve_source(settings: Optional[Settings] = None) -> RecordSource:
    settings = settings or get_settings()
    factories = _source_factories(settings)
    if settings.data_source not in factories:
        raise ValueError(
            f"Unknown data source '{settings.data_source}'. Available: {', '.join(factories)}"
        )
    return factories[settings.data_source]()


class QueryEngine:
    def __init__(
        self,
        store: RecordStore,
        index: Optional[SearchIndex] = None,
        aggregates: Optional[AggregatesCache] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store
        self._index = index or SearchIndex(self._settings)
        self._aggregates = aggregates or AggregatesCache()
        self._evaluator = FilterEvaluator()
        self._build_thread: Optional[threading.Thread] = None
        self._build_cancel = threading.Event()
        self._thread_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "QueryEngine":
        settings = settings or get_settings()
        return cls(RecordStore(resolve_source(settings)), settings=settings)

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def index(self) -> SearchIndex:
        return self._index

    @property
    def aggregates(self) -> AggregatesCache:
        return self._aggregates

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, build_index: bool = True, wait: bool = False) -> RecordCollection:
        """
        Load the store, compute aggregates and start the index build.

        ``SourceLoadError`` from the load propagates: an unreadable or empty
        source aborts startup.
        """
        collection = self._store.load()
        self._aggregates.compute_on_load(collection)
        if build_index:
            self.build_index_in_background()
            if wait:
                self.wait_until_ready()
        return collection

    def reload(self, source: Optional[RecordSource] = None, wait: bool = False) -> RecordCollection:
        """
        Replace the collection from the (optionally new) source and rebuild.

        The new collection is read before anything running is touched, so a
        ``SourceLoadError`` leaves the engine exactly as it was. Once the
        current collection has an index, it keeps being served (text queries
        included) while the new index builds; collection and index are then
        published together. Before that, the new collection is published at
        once and text queries report not-ready until its first build finishes.
        """
        collection = self._store.prepare(source)
        self._cancel_build()
        current = self._store.version
        if self._store.is_loaded and self._index.is_ready(current):
            self._start_build(collection, source=source, keep=current)
        else:
            self._publish(collection, source)
            self._start_build(collection)
        if wait:
            self.wait_until_ready()
        return collection

    def build_index_in_background(self) -> bool:
        """
        Start the index build for the current collection on a daemon thread.

        Returns False without doing anything when a build thread is already
        running.
        """
        return self._start_build(self._store.collection)

    def _start_build(
        self,
        collection: RecordCollection,
        source: Optional[RecordSource] = None,
        keep: Optional[int] = None,
    ) -> bool:
        with self._thread_lock:
            running = self._build_thread
            if running is not None and running.is_alive():
                log.info("[INDEX BUILD SKIPPED] background build already running")
                return False
            self._build_cancel = threading.Event()
            thread = threading.Thread(
                target=self._run_build,
                args=(collection, self._build_cancel, source, keep),
                name=f"index-build-v{collection.version}",
                daemon=True,
            )
            self._build_thread = thread
            thread.start()
            return True

    def _publish(self, collection: RecordCollection, source: Optional[RecordSource] = None) -> None:
        self._store.publish(collection, source)
        self._aggregates.compute_on_load(collection)

    def _run_build(
        self,
        collection: RecordCollection,
        cancel: threading.Event,
        source: Optional[RecordSource] = None,
        keep: Optional[int] = None,
    ) -> None:
        # ``keep`` set: the collection is published only after its index is.
        try:
            built = self._index.build(collection, cancel=cancel, keep=keep)
        except Exception:  # noqa: BLE001 - logged here, then surfaced to threading.excepthook
            log.exception("[INDEX BUILD FAILED]", extra={"version": collection.version})
            raise
        if keep is None:
            return
        if built and not cancel.is_set():
            self._publish(collection, source)
        else:
            log.warning(
                "[RELOAD ABANDONED] new collection not published",
                extra={"version": collection.version, "serving_version": self._store.version},
            )

    def _cancel_build(self) -> None:
        with self._thread_lock:
            thread = self._build_thread
            self._build_cancel.set()
        if thread is not None:
            thread.join()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the running build finishes; True if the index is current."""
        thread = self._build_thread
        if thread is not None:
            thread.join(timeout)
        return self._index.is_ready(self._store.version)

    def shutdown(self) -> None:
        """Cancel any running index build and wait for its thread."""
        self._cancel_build()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _not_ready(self) -> IndexNotReady:
        if not self._store.is_loaded:
            return IndexNotReady(message="Records are still loading; retry shortly.")
        return IndexNotReady(
            is_building=self._index.is_building,
            records_loaded=len(self._store),
        )

    def _validate(self, pagination: PageSpec) -> None:
        limit = self._settings.max_page_size
        if pagination.page_size > limit:
            raise InvalidQueryError(
                f"page size {pagination.page_size} exceeds the maximum of {limit}",
                field="pageSize",
            )

    def _match(
        self,
        collection: RecordCollection,
        filters: FilterSpec,
        cancel: Optional[threading.Event],
    ) -> Tuple[Sequence[Record], Optional[str]]:
        """
        Records matching ``filters`` in natural order, and the search strategy
        that produced the text candidates (None without a text query).

        Raises IndexNotReadyError for a text query before the index is current.
        """
        candidates = self._index.search(filters.text_query, version=collection.version, cancel=cancel)
        if candidates is ALL:
            base: Sequence[Record] = collection.records
            strategy = None
        else:
            records = collection.records
            base = [records[position] for position in candidates.ordered()]
            strategy = candidates.strategy
        return self._evaluator.apply(base, filters), strategy

    def execute_query(
        self,
        filters: Optional[FilterSpec] = None,
        sort: Optional[SortSpec] = None,
        pagination: Optional[PageSpec] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Union[PageResult, IndexNotReady]:
        """
        Run one query and return the requested page.

        Returns ``IndexNotReady`` instead of blocking when the store is still
        loading or a text query arrives before the index is built for the
        current collection. A query matching nothing is an ordinary empty page.

        Raises
        ------
        InvalidQueryError
            If the page size exceeds ``max_page_size``; raised before any scan.
        """
        filters = filters or FilterSpec()
        sort = sort or SortSpec()
        pagination = pagination or PageSpec(page_size=self._settings.default_page_size)
        self._validate(pagination)

        if not self._store.is_loaded:
            return self._not_ready()
        collection = self._store.collection

        try:
            matched, strategy = self._match(collection, filters, cancel)
        except IndexNotReadyError as exc:
            log.info("[QUERY NOT READY]", extra={"reason": str(exc)})
            return self._not_ready()

        total_items = len(matched)
        skipped = can_skip_sort(sort, filters)
        ordered = matched if skipped else sort_records(matched, sort)
        page_records = paginate(ordered, pagination.page, pagination.page_size)
        pages = total_pages(total_items, pagination.page_size)

        log.debug(
            "[QUERY]",
            extra={
                "query": filters.text_query,
                "strategy": strategy,
                "total_items": total_items,
                "page": pagination.page,
                "page_size": pagination.page_size,
                "sort_skipped": skipped,
            },
        )

        return PageResult(
            records=page_records,
            total_items=total_items,
            current_page=pagination.page,
            total_pages=pages,
            page_size=pagination.page_size,
            has_next_page=pagination.page < pages,
            has_prev_page=pagination.page > 1,
            sort_skipped=skipped,
            search_strategy=strategy,
        )

    def get_aggregates(self) -> Union[FilterOptions, IndexNotReady]:
        """Distinct filter values and ranges; not-ready until the first load publishes."""
        if not self._store.is_loaded:
            return self._not_ready()
        return self._aggregates.get(self._store.collection).options

    def get_stats(
        self,
        filters: Optional[FilterSpec] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Union[SalesStats, IndexNotReady]:
        """
        Global statistics from the cache, or statistics over the filtered set.

        Filtered statistics are computed per call and never cached. Before the
        first load publishes, returns ``IndexNotReady`` like ``execute_query``.
        """
        if not self._store.is_loaded:
            return self._not_ready()
        collection = self._store.collection
        if filters is None or filters.is_empty:
            return self._aggregates.get(collection).stats
        try:
            matched, _ = self._match(collection, filters, cancel)
        except IndexNotReadyError:
            return self._not_ready()
        return compute_stats(matched)

    def status(self) -> EngineStatus:
        progress = self._store.progress
        version = self._store.version
        return EngineStatus(
            load_phase=progress.phase,
            records_loaded=len(self._store) or progress.rows_read,
            collection_version=version,
            index_ready=self._store.is_loaded and self._index.is_ready(version),
            index_building=self._index.is_building,
        )


__all__ = [
    "QueryEngine",
    "available_sources",
    "resolve_source",
]
