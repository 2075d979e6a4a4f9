"""
Sort and paginate stage.

Sorting is stable for every key: records that compare equal keep their input
order, which on every request path is the collection's natural order. Python's
``sorted`` preserves stability with ``reverse=True`` as well, so descending
sorts tie-break the same way ascending ones do.

Undated records use ``date.min`` as their key: last in the natural
(date, descending) order, first in (date, ascending).
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from sales_engine.domain.models import Record
from sales_engine.domain.queries import FilterSpec, SortDirection, SortKey, SortSpec


def _date_key(record: Record) -> dt.date:
    return record.date or dt.date.min


def _quantity_key(record: Record) -> int:
    return record.quantity


def _name_key(record: Record) -> str:
    return record.customer_name.casefold()


def _amount_key(record: Record) -> Any:
    return record.final_amount


SORT_KEYS: Dict[SortKey, Callable[[Record], Any]] = {
    SortKey.DATE: _date_key,
    SortKey.QUANTITY: _quantity_key,
    SortKey.NAME: _name_key,
    SortKey.AMOUNT: _amount_key,
}


def sort_records(records: Iterable[Record], sort: SortSpec) -> List[Record]:
    """Return a new list ordered by ``sort``; ties keep input order."""
    return sorted(
        records,
        key=SORT_KEYS[sort.key],
        reverse=sort.direction is SortDirection.DESC,
    )


def can_skip_sort(sort: SortSpec, filters: Optional[FilterSpec]) -> bool:
    """
    True when the collection's natural order already satisfies the request:
    sort is (date, desc) and neither a text query nor a structural filter is
    active.
    """
    if not sort.is_natural_order:
        return False
    return filters is None or filters.is_empty


def paginate(records: Sequence[Record], page: int, page_size: int) -> List[Record]:
    """
    Slice out a 1-indexed page. A page past the end is empty, not an error.
    """
    start = (page - 1) * page_size
    if start >= len(records):
        return []
    return list(records[start : start + page_size])


def total_pages(total_items: int, page_size: int) -> int:
    return -(-total_items // page_size)


__all__ = [
    "SORT_KEYS",
    "sort_records",
    "can_skip_sort",
    "paginate",
    "total_pages",
]
