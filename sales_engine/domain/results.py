"""
Result contracts returned by the query engine.

Every model serializes with camelCase aliases (``totalItems``, ``hasNextPage``)
so the HTTP collaborator can emit them directly with ``model_dump(by_alias=True)``.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sales_engine.domain.models import Record

_RESULT_CONFIG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class PageResult(BaseModel):
    """
    One page of matching records plus exact pagination metadata.

    ``total_items`` is counted before slicing. ``total_is_exact`` is always True
    for the in-memory engine; a backend that estimates counts must set it False
    rather than silently substituting an estimate.
    """

    status: Literal["ok"] = "ok"
    records: List[Record]
    total_items: int = Field(..., ge=0)
    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)
    has_next_page: bool
    has_prev_page: bool
    total_is_exact: bool = True
    sort_skipped: bool = False
    search_strategy: Optional[str] = None

    model_config = _RESULT_CONFIG


class IndexNotReady(BaseModel):
    """
    Degraded-availability status: a text query arrived before the search index
    finished building for the current collection. Callers should retry.
    """

    status: Literal["index_not_ready"] = "index_not_ready"
    message: str = "Search index is still building; retry shortly."
    is_building: bool = False
    records_loaded: int = 0

    model_config = _RESULT_CONFIG


class NumericRange(BaseModel):
    min: int
    max: int

    model_config = _RESULT_CONFIG


class DateRange(BaseModel):
    min: dt.date
    max: dt.date

    model_config = _RESULT_CONFIG


class FilterOptions(BaseModel):
    """Distinct values per filterable field plus global age and date ranges."""

    regions: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    payment_methods: List[str] = Field(default_factory=list)
    order_statuses: List[str] = Field(default_factory=list)
    age_range: NumericRange
    date_range: DateRange

    model_config = _RESULT_CONFIG


class SalesStats(BaseModel):
    total_records: int = 0
    total_amount: Decimal = Decimal("0.00")
    total_quantity: int = 0
    total_discount: Decimal = Decimal("0.00")
    average_order_value: Decimal = Decimal("0.00")

    model_config = _RESULT_CONFIG


class EngineStatus(BaseModel):
    load_phase: str
    records_loaded: int
    collection_version: int
    index_ready: bool
    index_building: bool

    model_config = _RESULT_CONFIG


__all__ = [
    "PageResult",
    "IndexNotReady",
    "NumericRange",
    "DateRange",
    "FilterOptions",
    "SalesStats",
    "EngineStatus",
]
