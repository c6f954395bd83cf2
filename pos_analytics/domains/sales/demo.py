"""Generate a mock dataset shaped like the POS backend's collections.

Three branches, three brands, twenty products, and a year of daily trading
between 10 AM and 10 PM. Useful for running the dashboard without a backend.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path

import numpy as np

from pos_analytics.domains.sales.ingest import MOCK_FILES
from pos_analytics.utils.io import write_json
from pos_analytics.utils.types import RawCollections, TransactionStatus

logger = logging.getLogger(__name__)

NUM_BRANCHES = 3
NUM_BRANDS = 3
NUM_PRODUCTS = 20
START_HOUR = 10
END_HOUR = 22
CATEGORIES = ["Coffee", "Food", "Pastries"]
PAYMENT_METHODS = ["Cash", "E-Wallet"]
STATUS_WEIGHTS = {
    TransactionStatus.COMPLETED: 0.90,
    TransactionStatus.PENDING: 0.03,
    TransactionStatus.CANCELLED: 0.04,
    TransactionStatus.REFUNDED: 0.03,
}


def generate_demo_data(
    seed: int = 7,
    days: int = 365,
    reference: datetime | None = None,
) -> RawCollections:
    """Build the six collections as record lists, ending on ``reference``'s day."""
    rng = np.random.default_rng(seed)
    today = (reference or datetime.now()).replace(hour=0, minute=0, second=0, microsecond=0)

    branches = [{"id": i, "name": f"Branch {i}"} for i in range(1, NUM_BRANCHES + 1)]
    brands = [{"id": i, "name": f"Brand {i}"} for i in range(1, NUM_BRANDS + 1)]
    branch_brands = [
        {"id": (b - 1) * NUM_BRANDS + r, "branch_id": b, "brand_id": r}
        for b in range(1, NUM_BRANCHES + 1)
        for r in range(1, NUM_BRANDS + 1)
    ]

    products = []
    for i in range(1, NUM_PRODUCTS + 1):
        products.append({
            "id": i,
            "name": f"Product {i}",
            "branch_brand_id": int(rng.integers(1, len(branch_brands) + 1)),
            "category": CATEGORIES[int(rng.integers(len(CATEGORIES)))],
            "price": int(rng.integers(50, 250)),
            "stock": int(rng.integers(0, 120)),
            "alert_at": 5,
            "is_active": True,
        })

    statuses = [s.value for s in STATUS_WEIGHTS]
    weights = list(STATUS_WEIGHTS.values())

    transactions = []
    line_items = []
    txn_id = 1
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        for _ in range(int(rng.integers(15, 31))):
            created = day + timedelta(
                hours=int(rng.integers(START_HOUR, END_HOUR)),
                minutes=int(rng.integers(60)),
            )
            chosen = rng.choice(NUM_PRODUCTS, size=int(rng.integers(1, 6)), replace=False)
            total = 0.0
            for idx in chosen:
                product = products[int(idx)]
                quantity = int(rng.integers(1, 6))
                subtotal = float(quantity * product["price"])
                total += subtotal
                line_items.append({
                    "transaction_id": txn_id,
                    "product_id": product["id"],
                    "quantity": quantity,
                    "price": product["price"],
                    "subtotal": subtotal,
                })

            transactions.append({
                "id": txn_id,
                "created_at": created.isoformat(),
                "status": str(rng.choice(statuses, p=weights)),
                "payment_method": PAYMENT_METHODS[int(rng.integers(len(PAYMENT_METHODS)))],
                "total_amount": total,
                "discount_amount": 0.0,
                "net_amount": total,
                "promotion_id": None,
            })
            txn_id += 1

    logger.info("Generated %d demo transactions over %d days", len(transactions), days)
    return {
        "branches": branches,
        "brands": brands,
        "branch_brands": branch_brands,
        "products": products,
        "transactions": transactions,
        "line_items": line_items,
    }


def write_demo_data(directory: str | Path, **kwargs) -> Path:
    """Generate the demo dataset and write it as the mock JSON files."""
    directory = Path(directory)
    data = generate_demo_data(**kwargs)
    for collection, filename in MOCK_FILES.items():
        write_json(data[collection], directory / filename)
    return directory
