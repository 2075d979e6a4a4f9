"""
Domain package for the sales query engine.

Exports the record model, the per-request query specifications and the result
contracts. Keep this package focused on data definitions and validation.
"""

from sales_engine.domain.models import Record
from sales_engine.domain.queries import (
    FilterField,
    FilterSpec,
    PageSpec,
    SortDirection,
    SortKey,
    SortSpec,
)
from sales_engine.domain.results import (
    DateRange,
    EngineStatus,
    FilterOptions,
    IndexNotReady,
    NumericRange,
    PageResult,
    SalesStats,
)

__all__ = [
    "Record",
    "FilterField",
    "FilterSpec",
    "PageSpec",
    "SortDirection",
    "SortKey",
    "SortSpec",
    "DateRange",
    "EngineStatus",
    "FilterOptions",
    "IndexNotReady",
    "NumericRange",
    "PageResult",
    "SalesStats",
]
