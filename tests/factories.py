"""
Hand-written source rows with known answers, shared by the unit tests.
"""

from __future__ import annotations

from typing import Any, Dict, List


def make_row(record_id: int, **overrides: Any) -> Dict[str, Any]:
    """One snake_case source row with sensible defaults."""
    row: Dict[str, Any] = {
        "id": record_id,
        "date": "2024-01-01",
        "customer_name": f"Customer {record_id}",
        "phone_number": f"+91 90000 {record_id:05d}",
        "gender": "Male",
        "age": 30,
        "customer_region": "North",
        "product_category": "Electronics",
        "tags": "Sale",
        "quantity": 1,
        "price_per_unit": "100.00",
        "discount_percentage": "0",
        "total_amount": "100.00",
        "final_amount": "100.00",
        "payment_method": "UPI",
        "order_status": "Completed",
    }
    row.update(overrides)
    if "final_amount" in overrides and "total_amount" not in overrides:
        row["total_amount"] = row["final_amount"]
    return row


SAMPLE_ROWS: List[Dict[str, Any]] = [
    make_row(1, date="2024-03-01", customer_name="Nishant Rao", phone_number="+91 98765 43210",
             age=34, customer_region="North", gender="Male", tags="Sale, Trending",
             quantity=3, final_amount="450.00"),
    make_row(2, date="2024-02-15", customer_name="Anish Kumar", phone_number="+91 91234 56789",
             age=41, customer_region="South", gender="Male", tags="Budget",
             quantity=1, final_amount="99.50"),
    make_row(3, date="2024-04-10", customer_name="Priya Sharma", phone_number="+91 99887 76655",
             age=29, customer_region="North", gender="Female", tags="Premium",
             product_category="Beauty", quantity=5, total_amount="1500.00",
             discount_percentage="20", final_amount="1200.00"),
    make_row(4, date="2023-12-31", customer_name="nisha patel", phone_number="+91-80012-34567",
             age=38, customer_region="East", gender="Female", tags="Sale",
             product_category="Clothing", quantity=2, final_amount="300.00"),
    make_row(5, date="not a date", customer_name="Danish Ali", phone_number="9000012345",
             age=52, customer_region="North", gender="Male", tags="",
             payment_method="Cash", quantity=4, final_amount="80.00"),
    make_row(6, date="2024-03-01", customer_name="Amit Singh", phone_number="+91 70000 11111",
             age=30, customer_region="West", gender="Male", tags="Eco-Friendly, Sale",
             order_status="Pending", quantity=2, final_amount="450.00"),
    make_row(7, date="2024-01-20", customer_name="Sunita Gupta", phone_number="+91 98765 00000",
             age=40, customer_region="North", gender="Female", tags="Trending",
             payment_method="Credit Card", quantity=1, final_amount="2500.00"),
]


# Ids in natural (date descending) order after load; 1 and 6 share a date.
NATURAL_ORDER_IDS = [3, 1, 6, 2, 7, 4, 5]
