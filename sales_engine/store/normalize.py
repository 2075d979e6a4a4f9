"""
Row normalization for the record store.

Every source row is coerced into the canonical ``Record`` shape. Normalization
is deliberately lenient: a malformed row is defaulted, never rejected.

- missing or unparseable integers and decimals become 0; negatives clamp to 0
- missing strings become ""
- unparseable dates become None (such records fail any active date filter)
- a missing total is recomputed as quantity x unit price
- a missing final amount is recomputed as total x (1 - discount / 100)

Column names are matched against the original dataset's Title Case headers
("Customer Name"), camelCase ("customerName") and snake_case ("customer_name").
"""
from __future__ import annotations

import datetime as dt
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic.alias_generators import to_camel

from sales_engine.domain.models import Record

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")
_NON_DIGITS = re.compile(r"[^0-9]")

# canonical field -> Title Case header used by the source CSV
_TITLE_HEADERS: Dict[str, Tuple[str, ...]] = {
    "id": ("Transaction ID", "ID"),
    "date": ("Date",),
    "customer_id": ("Customer ID",),
    "customer_name": ("Customer Name",),
    "phone_number": ("Phone Number",),
    "gender": ("Gender",),
    "age": ("Age",),
    "customer_region": ("Customer Region", "Region"),
    "customer_type": ("Customer Type",),
    "product_id": ("Product ID",),
    "product_name": ("Product Name",),
    "brand": ("Brand",),
    "product_category": ("Product Category",),
    "tags": ("Tags",),
    "quantity": ("Quantity",),
    "price_per_unit": ("Price per Unit", "Price Per Unit"),
    "discount_percentage": ("Discount Percentage",),
    "total_amount": ("Total Amount",),
    "final_amount": ("Final Amount",),
    "payment_method": ("Payment Method",),
    "order_status": ("Order Status",),
    "delivery_type": ("Delivery Type",),
    "store_id": ("Store ID",),
    "store_location": ("Store Location",),
    "salesperson_id": ("Salesperson ID",),
    "employee_name": ("Employee Name",),
}

_TEXT_FIELDS = (
    "customer_id",
    "customer_name",
    "phone_number",
    "gender",
    "customer_region",
    "customer_type",
    "product_id",
    "product_name",
    "brand",
    "product_category",
    "payment_method",
    "order_status",
    "delivery_type",
    "store_id",
    "store_location",
    "salesperson_id",
    "employee_name",
)


def _candidate_columns(field: str) -> Tuple[str, ...]:
    return (*_TITLE_HEADERS[field], to_camel(field), field)


COLUMN_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    field: _candidate_columns(field) for field in _TITLE_HEADERS
}


def parse_int(value: Any, default: int = 0) -> int:
    """Parse an integer leniently; "12.7" parses as 12."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        pass
    try:
        parsed = float(text)
    except ValueError:
        return default
    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        return default
    return int(parsed)


def parse_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Parse a decimal leniently; NaN and infinities fall back to the default."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return default
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return default
    if not parsed.is_finite():
        return default
    return parsed


def parse_date(value: Any) -> Optional[dt.date]:
    """Parse an ISO date or datetime; anything else yields None."""
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    text = str(value).strip()
    if len(text) < 10:
        return None
    try:
        return dt.date.fromisoformat(text[:10])
    except ValueError:
        return None


def split_tags(raw: str) -> List[str]:
    """Split a comma-delimited tag string into trimmed, non-empty tags."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def phone_digits(phone: str) -> str:
    """ASCII digits of ``phone`` in order; "+91 98-7654" -> "91987654"."""
    return _NON_DIGITS.sub("", phone)


def _non_negative(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO


class RowNormalizer:
    """
    Converts raw source rows into ``Record`` instances.

    The column lookup is resolved once per distinct header set, so a CSV with a
    single header row costs one resolution for the whole load.
    """

    def __init__(self) -> None:
        self._resolved_for: Optional[frozenset] = None
        self._columns: Dict[str, Optional[str]] = {}

    def _resolve(self, keys: Iterable[str]) -> None:
        key_set = frozenset(keys)
        self._columns = {
            field: next((c for c in candidates if c in key_set), None)
            for field, candidates in COLUMN_CANDIDATES.items()
        }
        self._resolved_for = key_set

    def _value(self, row: Mapping[str, Any], field: str) -> Any:
        column = self._columns[field]
        if column is None:
            return None
        value = row.get(column)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def normalize(self, row: Mapping[str, Any], ordinal: int) -> Record:
        """
        Normalize one row. ``ordinal`` is the 1-based source position and
        becomes the id when the row carries none.
        """
        if self._resolved_for is None or row.keys() != self._resolved_for:
            self._resolve(row.keys())

        fields: Dict[str, Any] = {}
        for field in _TEXT_FIELDS:
            value = self._value(row, field)
            fields[field] = "" if value is None else str(value).strip()

        raw_tags = self._value(row, "tags")
        tags = "" if raw_tags is None else str(raw_tags).strip()
        fields["tags"] = tags
        fields["tag_set"] = frozenset(tag.lower() for tag in split_tags(tags))

        record_id = parse_int(self._value(row, "id"), default=-1)
        fields["id"] = record_id if record_id >= 0 else ordinal
        fields["date"] = parse_date(self._value(row, "date"))
        fields["age"] = max(parse_int(self._value(row, "age")), 0)

        quantity = max(parse_int(self._value(row, "quantity")), 0)
        price = _non_negative(parse_decimal(self._value(row, "price_per_unit")))
        discount = _non_negative(parse_decimal(self._value(row, "discount_percentage")))

        raw_total = self._value(row, "total_amount")
        if raw_total is None:
            total = (price * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)
        else:
            total = _non_negative(parse_decimal(raw_total))

        raw_final = self._value(row, "final_amount")
        if raw_final is None:
            final = (total * (HUNDRED - discount) / HUNDRED).quantize(CENTS, rounding=ROUND_HALF_UP)
            final = _non_negative(final)
        else:
            final = _non_negative(parse_decimal(raw_final))

        fields["quantity"] = quantity
        fields["price_per_unit"] = price
        fields["discount_percentage"] = discount
        fields["total_amount"] = total
        fields["final_amount"] = final

        # Fields are already coerced to their canonical types.
        return Record.model_construct(**fields)


def normalize_row(row: Mapping[str, Any], ordinal: int) -> Record:
    """Normalize a single row without reusing a resolved column lookup."""
    return RowNormalizer().normalize(row, ordinal)


__all__ = [
    "RowNormalizer",
    "normalize_row",
    "parse_int",
    "parse_decimal",
    "parse_date",
    "split_tags",
    "phone_digits",
]
