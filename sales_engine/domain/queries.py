"""
Per-request value objects: filter, sort and page specifications.

These are constructed fresh for every request and never persisted. Field-level
bounds that do not depend on configuration (page >= 1, ages >= 0, known sort
keys) are enforced here by pydantic; the configured page-size ceiling is
enforced by the engine before any scan work begins.
"""
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FilterField(str, Enum):
    """Enumerated record fields that accept multi-value filters."""

    REGION = "region"
    GENDER = "gender"
    PRODUCT_CATEGORY = "product_category"
    PAYMENT_METHOD = "payment_method"
    ORDER_STATUS = "order_status"
    TAGS = "tags"

    @property
    def record_attribute(self) -> str:
        return _RECORD_ATTRIBUTES[self]

    @classmethod
    def _missing_(cls, value: object) -> Optional["FilterField"]:
        if isinstance(value, str):
            return _FILTER_FIELD_ALIASES.get(value.strip().lower())
        return None


_RECORD_ATTRIBUTES: Dict[FilterField, str] = {
    FilterField.REGION: "customer_region",
    FilterField.GENDER: "gender",
    FilterField.PRODUCT_CATEGORY: "product_category",
    FilterField.PAYMENT_METHOD: "payment_method",
    FilterField.ORDER_STATUS: "order_status",
    FilterField.TAGS: "tags",
}

# Plural / camelCase names used by the HTTP collaborator's query string.
_FILTER_FIELD_ALIASES: Dict[str, FilterField] = {
    "region": FilterField.REGION,
    "regions": FilterField.REGION,
    "customer_region": FilterField.REGION,
    "customerregion": FilterField.REGION,
    "gender": FilterField.GENDER,
    "genders": FilterField.GENDER,
    "category": FilterField.PRODUCT_CATEGORY,
    "categories": FilterField.PRODUCT_CATEGORY,
    "product_category": FilterField.PRODUCT_CATEGORY,
    "productcategory": FilterField.PRODUCT_CATEGORY,
    "productcategories": FilterField.PRODUCT_CATEGORY,
    "payment_method": FilterField.PAYMENT_METHOD,
    "payment_methods": FilterField.PAYMENT_METHOD,
    "paymentmethod": FilterField.PAYMENT_METHOD,
    "paymentmethods": FilterField.PAYMENT_METHOD,
    "order_status": FilterField.ORDER_STATUS,
    "order_statuses": FilterField.ORDER_STATUS,
    "orderstatus": FilterField.ORDER_STATUS,
    "orderstatuses": FilterField.ORDER_STATUS,
    "tag": FilterField.TAGS,
    "tags": FilterField.TAGS,
}


class SortKey(str, Enum):
    DATE = "date"
    QUANTITY = "quantity"
    NAME = "name"
    AMOUNT = "amount"

    @classmethod
    def _missing_(cls, value: object) -> Optional["SortKey"]:
        if isinstance(value, str):
            return _SORT_KEY_ALIASES.get(value.strip().lower())
        return None


_SORT_KEY_ALIASES: Dict[str, SortKey] = {
    "date": SortKey.DATE,
    "quantity": SortKey.QUANTITY,
    "name": SortKey.NAME,
    "customer": SortKey.NAME,
    "customername": SortKey.NAME,
    "customer_name": SortKey.NAME,
    "amount": SortKey.AMOUNT,
    "finalamount": SortKey.AMOUNT,
    "final_amount": SortKey.AMOUNT,
}


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def _missing_(cls, value: object) -> Optional["SortDirection"]:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class FilterSpec(BaseModel):
    """
    Free-text query plus structural filters.

    Values within one field are OR-ed; fields are AND-ed. A field mapped to an
    empty set is dropped, so it never constrains the result.
    """

    query: Optional[str] = None
    by_field: Dict[FilterField, FrozenSet[str]] = Field(default_factory=dict)
    min_age: Optional[int] = Field(None, ge=0)
    max_age: Optional[int] = Field(None, ge=0)
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("by_field", mode="before")
    @classmethod
    def _drop_empty_values(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        cleaned: Dict[object, FrozenSet[str]] = {}
        for field, values in value.items():
            if isinstance(values, str):
                values = [values]
            kept = frozenset(v.strip() for v in values or () if v and v.strip())
            if kept:
                cleaned[field] = kept
        return cleaned

    @property
    def text_query(self) -> Optional[str]:
        """The trimmed query, or None when there is no text to search for."""
        if self.query is None:
            return None
        stripped = self.query.strip()
        return stripped or None

    @property
    def has_structural_filters(self) -> bool:
        return bool(
            self.by_field
            or self.min_age is not None
            or self.max_age is not None
            or self.start_date is not None
            or self.end_date is not None
        )

    @property
    def is_empty(self) -> bool:
        return self.text_query is None and not self.has_structural_filters


class SortSpec(BaseModel):
    key: SortKey = SortKey.DATE
    direction: SortDirection = SortDirection.DESC

    model_config = ConfigDict(frozen=True)

    @property
    def is_natural_order(self) -> bool:
        """True when this is the record store's at-load order (date, descending)."""
        return self.key is SortKey.DATE and self.direction is SortDirection.DESC


class PageSpec(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)

    model_config = ConfigDict(frozen=True)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


__all__ = [
    "FilterField",
    "FilterSpec",
    "SortKey",
    "SortDirection",
    "SortSpec",
    "PageSpec",
]
