"""
Sales Engine - in-memory search and query engine for retail sales records.

Serves paginated, filtered, sorted and searched views over a flat table of
about a million sales transactions, without a database query planner:

- Record store with lenient row normalization and a one-time natural sort
- Search index: name-word inverted index plus phone prefix/suffix buckets,
  with a substring-scan fallback
- Single-pass structural filtering
- Sorting with a skip for the natural order, and exact pagination
- Cached filter options and global statistics

CSV files and a PostgreSQL table are both supported as record sources.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sales_engine.config import Settings, get_settings
from sales_engine.domain import (
    FilterField,
    FilterOptions,
    FilterSpec,
    IndexNotReady,
    PageResult,
    PageSpec,
    Record,
    SalesStats,
    SortDirection,
    SortKey,
    SortSpec,
)
from sales_engine.errors import (
    IndexNotReadyError,
    InvalidQueryError,
    SalesEngineError,
    SourceLoadError,
)
from sales_engine.orchestrator import QueryEngine
from sales_engine.query.request import parse_request
from sales_engine.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Engine
    "QueryEngine",
    "parse_request",
    # Domain
    "Record",
    "FilterField",
    "FilterSpec",
    "SortKey",
    "SortDirection",
    "SortSpec",
    "PageSpec",
    "PageResult",
    "IndexNotReady",
    "FilterOptions",
    "SalesStats",
    # Errors
    "SalesEngineError",
    "SourceLoadError",
    "InvalidQueryError",
    "IndexNotReadyError",
    # Logging
    "configure_logging",
    "get_logger",
]
