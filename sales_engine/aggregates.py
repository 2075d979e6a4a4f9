"""
Derived-aggregates cache: filter options and global sales statistics.

Both are computed together in one linear pass when the collection is loaded and
then served as a cached value. The cache recomputes lazily when the collection
it is asked about has a different size from the one it last saw; the engine
also invalidates it explicitly on reload.

Statistics under an active filter are never cached. ``compute_stats`` runs per
request over the already-filtered records.
"""

from __future__ import annotations

import datetime as dt
import threading
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Set

from sales_engine.domain.models import Record
from sales_engine.domain.results import DateRange, FilterOptions, NumericRange, SalesStats
from sales_engine.errors import StoreNotLoadedError
from sales_engine.store.normalize import split_tags
from sales_engine.store.record_store import RecordCollection
from sales_engine.utils.logging import get_logger

log = get_logger(__name__)

CENTS = Decimal("0.01")
DEFAULT_AGE_RANGE = (0, 100)


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DerivedAggregates:
    options: FilterOptions
    stats: SalesStats
    size: int
    version: int
    computed_at: float


class _StatsAccumulator:
    def __init__(self) -> None:
        self.count = 0
        self.amount = Decimal("0")
        self.quantity = 0
        self.discount = Decimal("0")

    def add(self, record: Record) -> None:
        self.count += 1
        self.amount += record.final_amount
        self.quantity += record.quantity
        self.discount += record.total_amount - record.final_amount

    def result(self) -> SalesStats:
        average = self.amount / self.count if self.count else Decimal("0")
        return SalesStats(
            total_records=self.count,
            total_amount=_money(self.amount),
            total_quantity=self.quantity,
            total_discount=_money(self.discount),
            average_order_value=_money(average),
        )


def compute_stats(records: Iterable[Record]) -> SalesStats:
    """Sum, count and average over ``records``; money rounded half-up to cents."""
    acc = _StatsAccumulator()
    for record in records:
        acc.add(record)
    return acc.result()


def _sorted_values(values: Set[str]) -> list:
    return sorted(v for v in values if v)


def compute_aggregates(collection: RecordCollection) -> DerivedAggregates:
    """Filter options and global statistics in a single pass."""
    regions: Set[str] = set()
    genders: Set[str] = set()
    categories: Set[str] = set()
    tags: Set[str] = set()
    payment_methods: Set[str] = set()
    order_statuses: Set[str] = set()
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    min_date: Optional[dt.date] = None
    max_date: Optional[dt.date] = None
    acc = _StatsAccumulator()

    for record in collection.records:
        regions.add(record.customer_region)
        genders.add(record.gender)
        categories.add(record.product_category)
        payment_methods.add(record.payment_method)
        order_statuses.add(record.order_status)
        if record.tags:
            tags.update(split_tags(record.tags))

        # Age 0 is the normalization default for a missing age, not a real one.
        age = record.age
        if age > 0:
            min_age = age if min_age is None or age < min_age else min_age
            max_age = age if max_age is None or age > max_age else max_age

        day = record.date
        if day is not None:
            min_date = day if min_date is None or day < min_date else min_date
            max_date = day if max_date is None or day > max_date else max_date

        acc.add(record)

    if min_age is None or max_age is None:
        min_age, max_age = DEFAULT_AGE_RANGE
    if min_date is None or max_date is None:
        max_date = dt.date.today()
        min_date = max_date - dt.timedelta(days=365)

    options = FilterOptions(
        regions=_sorted_values(regions),
        genders=_sorted_values(genders),
        categories=_sorted_values(categories),
        tags=_sorted_values(tags),
        payment_methods=_sorted_values(payment_methods),
        order_statuses=_sorted_values(order_statuses),
        age_range=NumericRange(min=min_age, max=max_age),
        date_range=DateRange(min=min_date, max=max_date),
    )
    return DerivedAggregates(
        options=options,
        stats=acc.result(),
        size=len(collection),
        version=collection.version,
        computed_at=time.time(),
    )


class AggregatesCache:
    """
    Holds the last computed ``DerivedAggregates``.

    Readers get the cached value in O(1). Recomputation replaces the value
    with a single reference assignment.
    """

    def __init__(self) -> None:
        self._cached: Optional[DerivedAggregates] = None
        self._lock = threading.Lock()

    @property
    def cached(self) -> Optional[DerivedAggregates]:
        return self._cached

    def compute_on_load(self, collection: RecordCollection) -> DerivedAggregates:
        with self._lock:
            aggregates = compute_aggregates(collection)
            self._cached = aggregates
        log.info(
            "[AGGREGATES READY]",
            extra={
                "version": aggregates.version,
                "rows": aggregates.size,
                "regions": len(aggregates.options.regions),
                "tags": len(aggregates.options.tags),
            },
        )
        return aggregates

    def is_stale(self, collection: RecordCollection) -> bool:
        cached = self._cached
        return cached is None or cached.size != len(collection)

    def invalidate_if_stale(self, collection: RecordCollection) -> bool:
        """Recompute when the collection size changed; True if it recomputed."""
        if not self.is_stale(collection):
            return False
        log.info(
            "[AGGREGATES STALE] recomputing",
            extra={"rows": len(collection), "version": collection.version},
        )
        self.compute_on_load(collection)
        return True

    def invalidate(self) -> None:
        self._cached = None

    def get(self, collection: Optional[RecordCollection] = None) -> DerivedAggregates:
        """
        Return the cached aggregates, recomputing first when ``collection`` is
        given and the cache is stale for it.

        Raises
        ------
        StoreNotLoadedError
            If nothing was computed yet and no collection was given.
        """
        if collection is not None:
            self.invalidate_if_stale(collection)
        cached = self._cached
        if cached is None:
            raise StoreNotLoadedError("Aggregates have not been computed")
        return cached


__all__ = [
    "AggregatesCache",
    "DerivedAggregates",
    "compute_aggregates",
    "compute_stats",
]
