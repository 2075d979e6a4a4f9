"""
Error taxonomy for the sales query engine.

Categories:
1. Fatal load errors - the record source is unreadable or empty at startup.
2. Degraded availability - the search index has not finished building. The
   engine reports this to callers as an ``IndexNotReady`` status value; the
   exception only travels between the index and the engine.
3. Invalid input - bad page, page size, sort key or filter bounds. Raised
   before any scan work begins.
4. Cancellation - cooperative stop of an index build or fallback scan.

Empty results are not errors.
"""

from __future__ import annotations

from typing import Optional


class SalesEngineError(Exception):
    """Base class for all engine errors."""


class SourceLoadError(SalesEngineError):
    """The record source could not be read, or produced no rows."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load records from {source}: {reason}")


class StoreNotLoadedError(SalesEngineError):
    """The record collection was accessed before the first load completed."""


class InvalidQueryError(SalesEngineError, ValueError):
    """A request parameter is outside its documented bounds."""

    def __init__(self, reason: str, field: Optional[str] = None) -> None:
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field else reason
        super().__init__(message)


class IndexNotReadyError(SalesEngineError):
    """No search snapshot exists for the current record collection."""


class IndexBuildCancelled(SalesEngineError):
    """An index build observed its cancellation event and stopped."""


class QueryCancelledError(SalesEngineError):
    """A query observed its cancellation event during a linear scan."""


__all__ = [
    "SalesEngineError",
    "SourceLoadError",
    "StoreNotLoadedError",
    "InvalidQueryError",
    "IndexNotReadyError",
    "IndexBuildCancelled",
    "QueryCancelledError",
]
