"""
Search index lifecycle: build, atomic swap, readiness and lookup.

``SearchIndex`` is an explicitly constructed component owned by the query
engine. A build creates a new ``IndexSnapshot`` off to the side and publishes
it with a single reference assignment, so a concurrent reader sees the previous
snapshots or the new ones, never a partial one. Snapshots are keyed by the
collection version they were built from; a build may keep the snapshot of one
earlier version published next to the new one, so readers still holding that
collection keep searching it while a reload swaps collections. Only one build runs at a time; a build requested while another is
in flight returns immediately without doing anything.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence

from sales_engine.config import Settings, get_settings
from sales_engine.errors import IndexBuildCancelled, IndexNotReadyError
from sales_engine.search.snapshot import IndexSnapshot, build_snapshot
from sales_engine.search.strategies import (
    ALL,
    Candidates,
    NormalizedQuery,
    SearchResult,
    SearchStrategy,
    default_strategies,
    first_successful,
)
from sales_engine.store.record_store import RecordCollection
from sales_engine.utils.logging import get_logger
from sales_engine.utils.profiler import profile_block

log = get_logger(__name__)


class SearchIndex:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        strategies: Optional[Sequence[SearchStrategy]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._strategies: List[SearchStrategy] = list(
            strategies
            if strategies is not None
            else default_strategies(check_interval=self._settings.cancel_check_interval)
        )
        self._snapshots: Dict[int, IndexSnapshot] = {}
        self._build_lock = threading.Lock()
        self._building = False

    @property
    def strategies(self) -> List[SearchStrategy]:
        return list(self._strategies)

    @property
    def snapshot(self) -> Optional[IndexSnapshot]:
        """The snapshot of the newest published collection version."""
        snapshots = self._snapshots
        return snapshots[max(snapshots)] if snapshots else None

    @property
    def snapshot_version(self) -> Optional[int]:
        snapshot = self.snapshot
        return snapshot.version if snapshot is not None else None

    @property
    def is_building(self) -> bool:
        return self._building

    def is_ready(self, version: Optional[int] = None) -> bool:
        """
        True when a snapshot is published, and (if ``version`` is given) one
        was built from that collection version.
        """
        snapshots = self._snapshots
        return bool(snapshots) if version is None else version in snapshots

    def invalidate(self) -> None:
        """Drop every published snapshot; searches report not-ready until a rebuild."""
        self._snapshots = {}
        log.info("[INDEX INVALIDATED]")

    def build(
        self,
        collection: RecordCollection,
        cancel: Optional[threading.Event] = None,
        keep: Optional[int] = None,
    ) -> bool:
        """
        Build a snapshot of ``collection`` and publish it.

        Snapshots of other versions are dropped, except the one built for
        ``keep`` (if published), which stays searchable next to the new one.

        Returns
        -------
        bool
            True when a snapshot was published; False when another build was
            already running or this one was cancelled (the previous snapshots, if
            any, stay published).
        """
        if not self._build_lock.acquire(blocking=False):
            log.info(
                "[INDEX BUILD SKIPPED] build already in progress",
                extra={"version": collection.version},
            )
            return False

        try:
            self._building = True
            settings = self._settings
            log.info("[INDEX BUILD START]", extra={"version": collection.version, "rows": len(collection)})
            try:
                with profile_block(f"index:v{collection.version}") as stats:
                    snapshot = build_snapshot(
                        collection,
                        prefix_min=settings.phone_prefix_min_length,
                        prefix_max=settings.phone_prefix_max_length,
                        suffix_length=settings.phone_suffix_length,
                        cancel=cancel,
                        check_interval=settings.cancel_check_interval,
                    )
            except IndexBuildCancelled as exc:
                log.warning(f"[INDEX BUILD CANCELLED] {exc}", extra={"version": collection.version})
                return False

            published = {snapshot.version: snapshot}
            kept = self._snapshots.get(keep) if keep is not None else None
            if kept is not None and kept.version != snapshot.version:
                published[kept.version] = kept
            self._snapshots = published
            log.info(
                "[INDEX READY]",
                extra={
                    "version": snapshot.version,
                    "kept_version": kept.version if kept is not None else None,
                    "rows": snapshot.size,
                    "words": snapshot.word_count,
                    "phone_keys": snapshot.phone_key_count,
                    "duration_seconds": round(stats.duration_seconds, 3),
                    "peak_rss_bytes": stats.peak_rss_bytes,
                },
            )
            return True
        finally:
            self._building = False
            self._build_lock.release()

    def search(
        self,
        query: Optional[str],
        version: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> SearchResult:
        """
        Resolve a free-text query to candidate positions.

        A blank query returns ``ALL`` (no text filtering), which is distinct from
        an empty ``Candidates`` (no matches). There is no cap on the number of
        positions returned.

        Raises
        ------
        IndexNotReadyError
            If no snapshot is published, or none was built for collection
            version ``version``.
        """
        normalized = NormalizedQuery.from_raw(query)
        if normalized is None:
            return ALL

        snapshots = self._snapshots
        if not snapshots:
            raise IndexNotReadyError("Search index has not been built")
        if version is None:
            snapshot = snapshots[max(snapshots)]
        else:
            snapshot = snapshots.get(version)
            if snapshot is None:
                raise IndexNotReadyError(
                    f"Search index has no snapshot for collection version {version}"
                )

        positions, strategy = first_successful(self._strategies, snapshot, normalized, cancel)
        return Candidates(positions=positions, strategy=strategy)


__all__ = ["SearchIndex"]
