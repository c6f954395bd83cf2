from datetime import datetime

from pos_analytics.domains.sales.demo import END_HOUR, START_HOUR, generate_demo_data

REFERENCE = datetime(2025, 1, 14, 18, 0)


def test_shape_and_volume():
    data = generate_demo_data(seed=1, days=5, reference=REFERENCE)
    assert len(data["branches"]) == 3
    assert len(data["brands"]) == 3
    assert len(data["products"]) == 20
    assert 5 * 15 <= len(data["transactions"]) <= 5 * 30


def test_trading_hours_and_days():
    data = generate_demo_data(seed=1, days=5, reference=REFERENCE)
    stamps = [datetime.fromisoformat(t["created_at"]) for t in data["transactions"]]
    assert all(START_HOUR <= ts.hour < END_HOUR for ts in stamps)
    assert min(stamps).date() == datetime(2025, 1, 10).date()
    assert max(stamps).date() == REFERENCE.date()


def test_line_items_match_transaction_totals():
    data = generate_demo_data(seed=2, days=2, reference=REFERENCE)
    totals = {}
    for line in data["line_items"]:
        assert 1 <= line["quantity"] <= 5
        assert line["subtotal"] == line["quantity"] * line["price"]
        totals[line["transaction_id"]] = totals.get(line["transaction_id"], 0) + line["subtotal"]
    for txn in data["transactions"]:
        assert txn["net_amount"] == totals[txn["id"]]


def test_same_seed_same_data():
    assert generate_demo_data(seed=4, days=3, reference=REFERENCE) == generate_demo_data(
        seed=4, days=3, reference=REFERENCE
    )
