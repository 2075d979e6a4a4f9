"""
Query pipeline stages: structural filtering, sorting and pagination, plus
request parsing for flat query-string style parameters.
"""

from sales_engine.query.filtering import FilterEvaluator, compile_predicates
from sales_engine.query.request import parse_request
from sales_engine.query.sorting import can_skip_sort, paginate, sort_records, total_pages

__all__ = [
    "FilterEvaluator",
    "compile_predicates",
    "parse_request",
    "can_skip_sort",
    "paginate",
    "sort_records",
    "total_pages",
]
