from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from sales_engine.store.normalize import (
    RowNormalizer,
    normalize_row,
    parse_date,
    parse_decimal,
    parse_int,
    phone_digits,
    split_tags,
)

ORDINAL = 17


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12", 12),
        (" 7 ", 7),
        ("12.7", 12),
        (5, 5),
        ("", 0),
        (None, 0),
        ("abc", 0),
        ("nan", 0),
    ],
)
def test_parse_int_is_lenient(raw, expected) -> None:
    assert parse_int(raw) == expected


def test_parse_decimal_strips_thousands_separators_and_rejects_non_finite() -> None:
    assert parse_decimal("1,234.50") == Decimal("1234.50")
    assert parse_decimal("Infinity") == Decimal("0")
    assert parse_decimal("oops") == Decimal("0")
    assert parse_decimal(None, default=Decimal("9")) == Decimal("9")


def test_parse_date_accepts_dates_datetimes_and_iso_prefixes() -> None:
    assert parse_date("2024-03-01") == dt.date(2024, 3, 1)
    assert parse_date("2024-03-01T10:11:12Z") == dt.date(2024, 3, 1)
    assert parse_date(dt.datetime(2024, 3, 1, 9, 30)) == dt.date(2024, 3, 1)
    assert parse_date(dt.date(2024, 3, 1)) == dt.date(2024, 3, 1)
    assert parse_date("01/03/2024") is None
    assert parse_date("2024-13-01") is None
    assert parse_date("") is None


def test_split_tags_and_phone_digits() -> None:
    assert split_tags("Sale, Trending ,, Budget") == ["Sale", "Trending", "Budget"]
    assert split_tags("") == []
    assert phone_digits("+91 98-765 (43210)") == "919876543210"


def test_title_case_headers_are_recognized() -> None:
    record = normalize_row(
        {
            "Transaction ID": "42",
            "Date": "2024-05-06",
            "Customer Name": "  Nishant Rao ",
            "Phone Number": "+91 98765 43210",
            "Age": "33",
            "Customer Region": "North",
            "Tags": "Sale, Trending",
            "Quantity": "2",
            "Price per Unit": "100",
            "Discount Percentage": "10",
            "Total Amount": "200",
            "Final Amount": "180",
        },
        ORDINAL,
    )

    assert record.id == 42
    assert record.date == dt.date(2024, 5, 6)
    assert record.customer_name == "Nishant Rao"
    assert record.customer_region == "North"
    assert record.tag_set == frozenset({"sale", "trending"})
    assert record.final_amount == Decimal("180")


def test_camel_case_headers_are_recognized() -> None:
    record = normalize_row(
        {"id": "3", "customerName": "Priya", "customerRegion": "East", "paymentMethod": "UPI"},
        ORDINAL,
    )

    assert record.customer_name == "Priya"
    assert record.customer_region == "East"
    assert record.payment_method == "UPI"


def test_malformed_row_is_defaulted_not_rejected() -> None:
    record = normalize_row(
        {"id": "x", "date": "yesterday", "age": "-4", "quantity": "lots", "final_amount": "-10"},
        ORDINAL,
    )

    assert record.id == ORDINAL
    assert record.date is None
    assert record.age == 0
    assert record.quantity == 0
    assert record.final_amount == Decimal("0")
    assert record.customer_name == ""
    assert record.tags == ""
    assert record.tag_set == frozenset()


def test_missing_amounts_are_recomputed() -> None:
    record = normalize_row(
        {"id": 1, "quantity": "3", "price_per_unit": "19.99", "discount_percentage": "12.5"},
        ORDINAL,
    )

    assert record.total_amount == Decimal("59.97")
    # 59.97 * 0.875 = 52.47375
    assert record.final_amount == Decimal("52.47")
    assert record.discount_amount == Decimal("7.50")


def test_normalizer_resolves_columns_again_when_headers_change() -> None:
    normalizer = RowNormalizer()

    first = normalizer.normalize({"Customer Name": "A"}, 1)
    second = normalizer.normalize({"customer_name": "B"}, 2)

    assert first.customer_name == "A"
    assert second.customer_name == "B"
