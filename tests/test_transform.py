import pandas as pd
import pytest

from pos_analytics.domains.sales.transform import build_snapshot, line_revenue, to_local_timestamps


def test_canonical_columns(snapshot):
    assert list(snapshot.transactions.columns) == [
        "id", "created_at", "status", "payment_method", "net_amount",
        "total_amount", "discount_amount", "promotion_id",
    ]
    assert pd.api.types.is_datetime64_any_dtype(snapshot.transactions["created_at"])
    assert snapshot.transactions.set_index("id").loc[6, "payment_method"] == "Unknown"


def test_line_revenue_prefers_subtotal():
    lines = pd.DataFrame({
        "quantity": [2, 3],
        "price": [100.0, 10.0],
        "subtotal": [150.0, None],
    })
    assert line_revenue(lines).tolist() == [150.0, 30.0]


def test_line_revenue_without_subtotal_column():
    lines = pd.DataFrame({"quantity": [2], "price": [12.5]})
    assert line_revenue(lines).tolist() == [25.0]


def test_offset_timestamps_convert_to_local_time():
    parsed = to_local_timestamps(pd.Series(["2025-01-14T02:30:00Z", "2025-01-14T10:30:00"]), "Asia/Manila")
    assert parsed.iloc[0] == pd.Timestamp("2025-01-14 10:30")
    assert parsed.iloc[1] == pd.Timestamp("2025-01-14 10:30")


def test_legacy_mock_shape_is_migrated():
    snapshot = build_snapshot({
        "branches": [{"id": 1, "branch_name": "Branch 1"}],
        "brands": [{"id": 1, "brand_name": "Brand 1"}, {"id": 2, "brand_name": "Brand 2"}],
        "products": [
            {"id": 1, "product_name": "Product 1", "branch_id": 1, "brand_id": 1, "price": 50,
             "stock_quantity": 4, "low_stock_threshold": 10},
            {"id": 2, "product_name": "Product 2", "branch_id": 1, "brand_id": 2, "price": 70, "stock": 30},
            {"id": 3, "product_name": "Product 3", "branch_id": 1, "brand_id": 1, "price": 20, "stock": 30},
        ],
        "transactions": [
            {"id": 1, "branch_id": 1, "date": "2025-01-10T03:00:00.000Z", "pay_method": "E-Wallet"},
        ],
        "transaction_products": [
            {"transaction_id": 1, "product_id": 1, "quantity": 2, "price": 50},
            {"transaction_id": 1, "product_id": 2, "quantity": 1, "price": 70},
        ],
    })

    assert snapshot.branches["name"].tolist() == ["Branch 1"]
    assert snapshot.brands["name"].tolist() == ["Brand 1", "Brand 2"]

    txn = snapshot.transactions.iloc[0]
    assert txn["status"] == "Completed"
    assert txn["payment_method"] == "E-Wallet"
    assert txn["net_amount"] == 170.0
    assert txn["created_at"] == pd.Timestamp("2025-01-10 11:00")

    assert len(snapshot.branch_brands) == 2
    links = snapshot.products.set_index("id")["branch_brand_id"]
    assert links[1] == links[3]
    assert links[1] != links[2]

    product = snapshot.products.set_index("id").loc[1]
    assert product["name"] == "Product 1"
    assert product["stock"] == 4
    assert product["alert_at"] == 10
    assert snapshot.products.set_index("id").loc[2, "alert_at"] == 5
    assert snapshot.products["category"].unique().tolist() == ["Uncategorized"]


def test_existing_links_are_reused():
    snapshot = build_snapshot({
        "branch_brands": [{"id": 7, "branch_id": 1, "brand_id": 1}],
        "products": [{"id": 1, "name": "P", "branch_id": 1, "brand_id": 1, "price": 10}],
    })
    assert snapshot.products["branch_brand_id"].tolist() == [7]
    assert len(snapshot.branch_brands) == 1


def test_links_with_non_numeric_ids():
    snapshot = build_snapshot({
        "branch_brands": [{"id": "bb-7f3a", "branch_id": 1, "brand_id": 1}],
        "products": [
            {"id": 1, "name": "P", "branch_id": 1, "brand_id": 1, "price": 10},
            {"id": 2, "name": "Q", "branch_id": 1, "brand_id": 2, "price": 10},
        ],
    })
    links = snapshot.products.set_index("id")["branch_brand_id"]
    assert links[1] == "bb-7f3a"
    assert links[2] == 2
    assert snapshot.branch_brands["id"].tolist() == ["bb-7f3a", 2]


def test_missing_collections_are_empty():
    snapshot = build_snapshot({})
    for name, frame in snapshot.collections().items():
        assert frame.empty, name


def test_unknown_collection_is_rejected():
    with pytest.raises(ValueError):
        build_snapshot({"customers": []})
