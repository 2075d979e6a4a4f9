"""
Domain models for the sales query engine.

Defines the immutable sales ``Record`` held by the record store. Records are
built by ``sales_engine.store.normalize`` which has already coerced every field
to its canonical shape, so the hot load path constructs them without running
validation again.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """
    Representation of a single sales transaction.
    """

    id: int = Field(..., description="Stable unique identifier.")
    date: Optional[dt.date] = Field(None, description="Transaction date; None when unparseable.")

    # Customer
    customer_id: str = Field("", description="Source customer identifier.")
    customer_name: str = Field("", description="Customer full name (searchable).")
    phone_number: str = Field("", description="Phone number, arbitrary formatting (searchable).")
    gender: str = Field("", description="Customer gender.")
    age: int = Field(0, ge=0, description="Customer age in years.")
    customer_region: str = Field("", description="Customer region.")
    customer_type: str = Field("", description="Customer segment.")

    # Product
    product_id: str = Field("", description="Source product identifier.")
    product_name: str = Field("", description="Product name.")
    brand: str = Field("", description="Product brand.")
    product_category: str = Field("", description="Product category.")
    tags: str = Field("", description="Comma-delimited product tags.")
    tag_set: frozenset[str] = Field(
        default_factory=frozenset,
        exclude=True,
        description="Lowercase parsed tags used for filtering.",
    )

    # Sale
    quantity: int = Field(0, ge=0, description="Units sold.")
    price_per_unit: Decimal = Field(Decimal("0"), ge=0, description="Unit price.")
    discount_percentage: Decimal = Field(Decimal("0"), ge=0, description="Discount percent.")
    total_amount: Decimal = Field(Decimal("0"), ge=0, description="Amount before discount.")
    final_amount: Decimal = Field(Decimal("0"), ge=0, description="Amount after discount.")

    # Operations
    payment_method: str = Field("", description="Payment method.")
    order_status: str = Field("", description="Order status.")
    delivery_type: str = Field("", description="Delivery type.")
    store_id: str = Field("", description="Store identifier.")
    store_location: str = Field("", description="Store city.")
    salesperson_id: str = Field("", description="Salesperson identifier.")
    employee_name: str = Field("", description="Salesperson name.")

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        arbitrary_types_allowed=False,
    )

    @property
    def discount_amount(self) -> Decimal:
        return self.total_amount - self.final_amount


__all__ = ["Record"]
