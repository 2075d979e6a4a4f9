"""
Build filter, sort and page specifications from flat request parameters.

The HTTP collaborator hands over query-string style values: every value is a
string, and multi-value filters are comma-separated
(``regions=North,East&minAge=30&sortBy=date&sortOrder=desc&page=2&limit=50``).
Unlike the lenient row normalization at load time, request parsing is strict:
anything out of bounds is rejected with ``InvalidQueryError`` so no scan work
starts for a malformed request.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from pydantic import ValidationError

from sales_engine.domain.queries import (
    FilterField,
    FilterSpec,
    PageSpec,
    SortDirection,
    SortKey,
    SortSpec,
)
from sales_engine.errors import InvalidQueryError

TEXT_KEYS = ("search", "query", "q")
PAGE_SIZE_KEYS = ("limit", "pageSize", "page_size")
NON_FILTER_KEYS = frozenset(
    TEXT_KEYS
    + PAGE_SIZE_KEYS
    + (
        "page",
        "sortBy",
        "sort_by",
        "sortOrder",
        "sort_order",
        "minAge",
        "min_age",
        "maxAge",
        "max_age",
        "startDate",
        "start_date",
        "endDate",
        "end_date",
    )
)


def _first(params: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = params.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _split_values(raw: Any) -> FrozenSet[str]:
    if isinstance(raw, (list, tuple, set, frozenset)):
        parts = [str(item) for item in raw]
    else:
        parts = str(raw).split(",")
    return frozenset(part.strip() for part in parts if part.strip())


def _parse_int(raw: Optional[str], field: str) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidQueryError(f"expected an integer, got {raw!r}", field=field) from None


def _wrap_validation(exc: ValidationError) -> InvalidQueryError:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ())) or None
    return InvalidQueryError(error.get("msg", str(exc)), field=location)


def parse_request(
    params: Mapping[str, Any],
    default_page_size: int = 10,
) -> Tuple[FilterSpec, SortSpec, PageSpec]:
    """
    Parse a flat parameter mapping into ``(FilterSpec, SortSpec, PageSpec)``.

    Unknown parameter names are ignored. Raises ``InvalidQueryError`` for a
    non-numeric or negative age, an unparseable date, an unknown sort key or
    direction, or a page / page size below 1.
    """
    by_field: Dict[FilterField, FrozenSet[str]] = {}
    for key, raw in params.items():
        if key in NON_FILTER_KEYS or raw is None:
            continue
        try:
            field = FilterField(key)
        except ValueError:
            continue
        values = _split_values(raw)
        if values:
            by_field[field] = by_field.get(field, frozenset()) | values

    sort_by = _first(params, "sortBy", "sort_by")
    sort_order = _first(params, "sortOrder", "sort_order")
    try:
        sort = SortSpec(
            key=SortKey(sort_by) if sort_by else SortKey.DATE,
            direction=SortDirection(sort_order) if sort_order else SortDirection.DESC,
        )
    except ValueError as exc:
        field = "sortBy" if sort_by and not _is_sort_key(sort_by) else "sortOrder"
        raise InvalidQueryError(str(exc), field=field) from None

    try:
        filters = FilterSpec(
            query=_first(params, *TEXT_KEYS),
            by_field=by_field,
            min_age=_parse_int(_first(params, "minAge", "min_age"), "minAge"),
            max_age=_parse_int(_first(params, "maxAge", "max_age"), "maxAge"),
            start_date=_first(params, "startDate", "start_date"),
            end_date=_first(params, "endDate", "end_date"),
        )
        page = _parse_int(_first(params, "page"), "page")
        page_size = _parse_int(_first(params, *PAGE_SIZE_KEYS), "pageSize")
        pagination = PageSpec(
            page=1 if page is None else page,
            page_size=default_page_size if page_size is None else page_size,
        )
    except ValidationError as exc:
        raise _wrap_validation(exc) from None

    return filters, sort, pagination


def _is_sort_key(value: str) -> bool:
    try:
        SortKey(value)
    except ValueError:
        return False
    return True


__all__ = ["parse_request"]
