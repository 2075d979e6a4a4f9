"""
Deterministic synthetic sales rows.

Rows use the original dataset's Title Case headers and keep the accounting
invariant ``Final Amount = Total Amount x (1 - Discount Percentage / 100)``.
Used by ``scripts/generate_data.py`` and by tests that need a realistic
collection.
"""

from __future__ import annotations

import csv
import datetime as dt
import random
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Dict, Iterator, List, Optional

FIRST_NAMES = [
    "John", "Jane", "Michael", "Emily", "David", "Sarah", "Robert", "Lisa", "William",
    "Jessica", "James", "Amanda", "Daniel", "Jennifer", "Christopher", "Ashley", "Matthew",
    "Nicole", "Andrew", "Stephanie", "Rajesh", "Priya", "Amit", "Sunita", "Vikram",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Rodriguez", "Martinez", "Wilson", "Anderson", "Taylor", "Thomas", "Moore", "Jackson",
    "Martin", "Lee", "Sharma", "Patel", "Kumar", "Singh", "Gupta",
]
REGIONS = ["North", "South", "East", "West", "Central"]
GENDERS = ["Male", "Female"]
CUSTOMER_TYPES = ["Regular", "Premium", "New", "VIP"]
BRANDS = ["Samsung", "Nike", "Sony", "Adidas", "Apple", "LG", "Philips", "Puma", "Dell", "HP", "Lenovo", "Boat"]
PRODUCTS_BY_CATEGORY: Dict[str, List[str]] = {
    "Electronics": ["Smartphone", "Laptop", "Tablet", "Headphones", "Smart Watch", "Camera", "Speaker"],
    "Clothing": ["T-Shirt", "Jeans", "Jacket", "Dress", "Shoes", "Shorts", "Sweater"],
    "Home & Kitchen": ["Blender", "Toaster", "Microwave", "Cookware Set", "Knife Set", "Coffee Maker"],
    "Sports": ["Football", "Cricket Bat", "Tennis Racket", "Yoga Mat", "Dumbbells", "Running Shoes"],
    "Books": ["Fiction Novel", "Self-Help Book", "Technical Manual", "Biography", "Cookbook"],
    "Beauty": ["Perfume", "Face Cream", "Lipstick", "Shampoo", "Sunscreen", "Hair Oil"],
    "Toys": ["Action Figure", "Board Game", "Puzzle", "Doll", "Building Blocks", "RC Car"],
    "Grocery": ["Rice", "Flour", "Cooking Oil", "Sugar", "Tea", "Coffee", "Snacks"],
}
CATEGORIES = list(PRODUCTS_BY_CATEGORY)
TAGS = ["Bestseller", "New Arrival", "Sale", "Premium", "Eco-Friendly", "Limited Edition", "Trending", "Budget"]
PAYMENT_METHODS = ["Credit Card", "Debit Card", "UPI", "Cash", "Net Banking", "Wallet"]
ORDER_STATUSES = ["Completed", "Pending", "Processing", "Shipped", "Delivered", "Cancelled"]
DELIVERY_TYPES = ["Standard", "Express", "Same Day", "Store Pickup"]
STORE_LOCATIONS = ["Mumbai", "Delhi", "Bangalore", "Chennai", "Kolkata", "Hyderabad", "Pune", "Ahmedabad"]

CSV_HEADERS = [
    "Transaction ID",
    "Date",
    "Customer ID",
    "Customer Name",
    "Phone Number",
    "Gender",
    "Age",
    "Customer Region",
    "Customer Type",
    "Product ID",
    "Product Name",
    "Brand",
    "Product Category",
    "Tags",
    "Quantity",
    "Price per Unit",
    "Discount Percentage",
    "Total Amount",
    "Final Amount",
    "Payment Method",
    "Order Status",
    "Delivery Type",
    "Store ID",
    "Store Location",
    "Salesperson ID",
    "Employee Name",
]

CENTS = Decimal("0.01")
DATE_SPAN_DAYS = 730


def generate_rows(
    count: int,
    seed: int = 42,
    end_date: Optional[dt.date] = None,
    start_id: int = 1,
) -> Iterator[Dict[str, str]]:
    """
    Yield ``count`` CSV-shaped rows (all values as strings).

    Dates fall in the two years up to ``end_date`` (default: 2025-01-01, so
    output does not depend on the day it runs).
    """
    rng = random.Random(seed)
    end = end_date or dt.date(2025, 1, 1)

    for offset in range(count):
        category = rng.choice(CATEGORIES)
        quantity = rng.randint(1, 10)
        price = rng.randint(100, 50_000)
        discount = rng.randint(0, 30)
        total = Decimal(quantity * price)
        final = (total * (100 - discount) / 100).quantize(CENTS, rounding=ROUND_HALF_UP)

        yield {
            "Transaction ID": str(start_id + offset),
            "Date": (end - dt.timedelta(days=rng.randint(0, DATE_SPAN_DAYS))).isoformat(),
            "Customer ID": f"CUST{rng.randint(1, 200):04d}",
            "Customer Name": f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            "Phone Number": f"+91{rng.randint(7_000_000_000, 9_999_999_999)}",
            "Gender": rng.choice(GENDERS),
            "Age": str(rng.randint(18, 70)),
            "Customer Region": rng.choice(REGIONS),
            "Customer Type": rng.choice(CUSTOMER_TYPES),
            "Product ID": f"PROD{rng.randint(1, 500):04d}",
            "Product Name": rng.choice(PRODUCTS_BY_CATEGORY[category]),
            "Brand": rng.choice(BRANDS),
            "Product Category": category,
            "Tags": ", ".join(rng.sample(TAGS, rng.randint(1, 3))),
            "Quantity": str(quantity),
            "Price per Unit": str(price),
            "Discount Percentage": str(discount),
            "Total Amount": str(total),
            "Final Amount": str(final),
            "Payment Method": rng.choice(PAYMENT_METHODS),
            "Order Status": rng.choice(ORDER_STATUSES),
            "Delivery Type": rng.choice(DELIVERY_TYPES),
            "Store ID": f"STR{rng.randint(1, 20):03d}",
            "Store Location": rng.choice(STORE_LOCATIONS),
            "Salesperson ID": f"EMP{rng.randint(1, 50):03d}",
            "Employee Name": f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
        }


def write_csv(
    path: Path,
    rows: int,
    seed: int = 42,
    batch_size: int = 10_000,
    end_date: Optional[dt.date] = None,
) -> int:
    """Write ``rows`` generated rows to ``path`` with a header; returns the row count."""
    written = 0
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_HEADERS)
        writer.writeheader()

        buffer: List[Dict[str, str]] = []
        for row in generate_rows(rows, seed=seed, end_date=end_date):
            buffer.append(row)
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                written += len(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)
            written += len(buffer)
    return written


__all__ = ["CSV_HEADERS", "generate_rows", "write_csv"]
