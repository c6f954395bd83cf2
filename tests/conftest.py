import pytest

from pos_analytics.config import load_analytics_config
from pos_analytics.domains.sales.transform import build_snapshot


def make_raw() -> dict[str, list[dict]]:
    """Two branches, two brands, four products (one linked to a missing branch-brand)."""
    return {
        "branches": [
            {"id": 1, "name": "Makati"},
            {"id": 2, "name": "BGC"},
        ],
        "brands": [
            {"id": 1, "name": "Kape"},
            {"id": 2, "name": "Bake"},
        ],
        "branch_brands": [
            {"id": 1, "branch_id": 1, "brand_id": 1},
            {"id": 2, "branch_id": 1, "brand_id": 2},
            {"id": 3, "branch_id": 2, "brand_id": 1},
        ],
        "products": [
            {"id": 1, "name": "Cappuccino", "price": 120, "stock": 50, "alert_at": 10,
             "branch_brand_id": 1, "category": "Coffee"},
            {"id": 2, "name": "Croissant", "price": 80, "stock": 3, "alert_at": 5,
             "branch_brand_id": 2, "category": "Pastries"},
            {"id": 3, "name": "Iced Latte", "price": 150, "stock": 5, "alert_at": 5,
             "branch_brand_id": 3, "category": "Coffee"},
            {"id": 4, "name": "Chicken Sandwich", "price": 100, "stock": 20, "alert_at": 5,
             "branch_brand_id": 99, "category": "Food"},
        ],
        "transactions": [
            {"id": 1, "created_at": "2025-01-14T09:30:00", "status": "Completed",
             "payment_method": "Cash", "net_amount": 320},
            {"id": 2, "created_at": "2025-01-13T15:10:00", "status": "Completed",
             "payment_method": "E-Wallet", "net_amount": 150},
            {"id": 3, "created_at": "2025-01-10T11:00:00", "status": "Completed",
             "payment_method": "Cash", "net_amount": 360},
            {"id": 4, "created_at": "2025-01-12T12:00:00", "status": "Cancelled",
             "payment_method": "Cash", "net_amount": 999},
            {"id": 5, "created_at": "2025-01-05T10:00:00", "status": "Completed",
             "payment_method": "Cash", "net_amount": 200},
            {"id": 6, "created_at": "2025-01-14T13:45:00", "status": "Completed",
             "payment_method": None, "net_amount": 100},
            {"id": 7, "created_at": "2025-01-14T20:00:00", "status": "Pending",
             "payment_method": "E-Wallet", "net_amount": 50},
        ],
        "line_items": [
            {"transaction_id": 1, "product_id": 1, "quantity": 2, "price": 120, "subtotal": 240},
            {"transaction_id": 1, "product_id": 2, "quantity": 1, "price": 80, "subtotal": 80},
            {"transaction_id": 2, "product_id": 3, "quantity": 1, "price": 150, "subtotal": 150},
            {"transaction_id": 3, "product_id": 1, "quantity": 3, "price": 120, "subtotal": 360},
            {"transaction_id": 4, "product_id": 1, "quantity": 5, "price": 120, "subtotal": 600},
            {"transaction_id": 5, "product_id": 4, "quantity": 2, "price": 100, "subtotal": 200},
            {"transaction_id": 6, "product_id": 4, "quantity": 1, "price": 100, "subtotal": None},
            {"transaction_id": 7, "product_id": 2, "quantity": 1, "price": 80, "subtotal": 50},
        ],
    }


@pytest.fixture
def raw():
    return make_raw()


@pytest.fixture
def snapshot():
    return build_snapshot(make_raw())


@pytest.fixture
def completed(snapshot):
    txns = snapshot.transactions
    return txns[txns["status"] == "Completed"]


@pytest.fixture
def config():
    return load_analytics_config("development")
