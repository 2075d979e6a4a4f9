"""
Text search over the record collection: snapshot builder, strategies and the
index lifecycle.
"""

from sales_engine.search.index import SearchIndex
from sales_engine.search.snapshot import IndexSnapshot, build_snapshot
from sales_engine.search.strategies import (
    ALL,
    UNAVAILABLE,
    Candidates,
    NormalizedQuery,
    PhoneDigitLookup,
    SearchStrategy,
    SubstringScan,
    UnionOf,
    WordPrefixLookup,
    default_strategies,
    first_successful,
)

__all__ = [
    "ALL",
    "UNAVAILABLE",
    "Candidates",
    "IndexSnapshot",
    "NormalizedQuery",
    "PhoneDigitLookup",
    "SearchIndex",
    "SearchStrategy",
    "SubstringScan",
    "UnionOf",
    "WordPrefixLookup",
    "build_snapshot",
    "default_strategies",
    "first_successful",
]
