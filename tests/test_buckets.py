"""
Tests for the bucketizer: bucket policy, gaplessness and sum conservation.
"""

import pandas as pd
import pytest

from pos_analytics.domains.sales.buckets import bucketize, bucketize_hourly, hour_label
from pos_analytics.domains.sales.filters import select_in_range
from pos_analytics.domains.sales.transform import line_revenue

REFERENCE = pd.Timestamp("2025-01-14")


def _completed_in(snapshot, window_days):
    return select_in_range(snapshot.transactions, window_days, REFERENCE, status="Completed")


class TestHourLabels:
    @pytest.mark.parametrize(
        "hour, label",
        [(0, "12 AM"), (1, "1 AM"), (11, "11 AM"), (12, "12 PM"), (13, "1 PM"), (22, "10 PM")],
    )
    def test_twelve_hour_labels(self, hour, label):
        assert hour_label(hour) == label


class TestDailyBuckets:
    def test_seven_days_one_bucket_per_day(self, snapshot):
        series = bucketize(_completed_in(snapshot, 7), snapshot.line_items, 7, REFERENCE)
        assert list(series.columns) == ["key", "sales", "orders"]
        assert list(series["key"]) == [f"2025-01-{d:02d}" for d in range(8, 15)]

        by_day = series.set_index("key")
        assert by_day.loc["2025-01-14", "sales"] == 420.0
        assert by_day.loc["2025-01-14", "orders"] == 2
        assert by_day.loc["2025-01-13", "sales"] == 150.0
        assert by_day.loc["2025-01-10", "sales"] == 360.0
        assert by_day.loc["2025-01-09", "orders"] == 0

    def test_thirty_days_folds_into_six_points(self, snapshot):
        series = bucketize(_completed_in(snapshot, 30), snapshot.line_items, 30, REFERENCE)
        assert list(series["key"]) == [
            "2024-12-16", "2024-12-21", "2024-12-26", "2024-12-31", "2025-01-05", "2025-01-10",
        ]
        by_key = series.set_index("key")
        assert by_key.loc["2025-01-05", "sales"] == 200.0
        assert by_key.loc["2025-01-10", "sales"] == 930.0
        assert by_key.loc["2025-01-10", "orders"] == 4

    def test_ninety_days_has_six_points(self, snapshot):
        series = bucketize(_completed_in(snapshot, 90), snapshot.line_items, 90, REFERENCE)
        assert len(series) == 6
        assert series["key"].iloc[0] == (REFERENCE - pd.Timedelta(days=89)).strftime("%Y-%m-%d")

    def test_sales_are_conserved(self, snapshot):
        txns = _completed_in(snapshot, 30)
        series = bucketize(txns, snapshot.line_items, 30, REFERENCE)

        lines = snapshot.line_items[snapshot.line_items["transaction_id"].isin(txns["id"])]
        assert series["sales"].sum() == pytest.approx(line_revenue(lines).sum())
        assert series["orders"].sum() == len(txns)

    @pytest.mark.parametrize("window_days", [7, 30, 90])
    def test_earliest_window_day_lands_in_first_bucket(self, snapshot, window_days):
        edge = REFERENCE - pd.Timedelta(days=window_days) + pd.Timedelta(hours=12)
        txns = pd.concat([
            snapshot.transactions,
            pd.DataFrame({"id": [50], "created_at": [edge], "status": ["Completed"]}),
        ], ignore_index=True)
        lines = pd.concat([
            snapshot.line_items,
            pd.DataFrame({"transaction_id": [50], "product_id": [1], "quantity": [1],
                          "price": [500.0], "subtotal": [500.0]}),
        ], ignore_index=True)

        selected = select_in_range(txns, window_days, REFERENCE, status="Completed")
        assert 50 in set(selected["id"])

        series = bucketize(selected, lines, window_days, REFERENCE)
        window_lines = lines[lines["transaction_id"].isin(selected["id"])]
        assert series["sales"].sum() == pytest.approx(line_revenue(window_lines).sum())
        assert series["orders"].sum() == len(selected)
        assert series["sales"].iloc[0] >= 500.0


class TestBimonthlyBuckets:
    def test_year_uses_two_month_buckets(self, snapshot):
        series = bucketize(_completed_in(snapshot, 365), snapshot.line_items, 365, REFERENCE)
        assert list(series["key"]) == [
            "2024-03-01", "2024-05-01", "2024-07-01", "2024-09-01", "2024-11-01", "2025-01-01",
        ]
        assert series.set_index("key").loc["2025-01-01", "sales"] == 1130.0

    def test_december_falls_into_november_bucket(self, snapshot):
        txns = pd.DataFrame({"id": [100], "created_at": [pd.Timestamp("2024-12-20 12:00")]})
        lines = pd.DataFrame({"transaction_id": [100], "product_id": [1], "quantity": [1],
                              "price": [75.0], "subtotal": [75.0]})
        series = bucketize(txns, lines, 365, REFERENCE).set_index("key")
        assert series.loc["2024-11-01", "sales"] == 75.0
        assert series.loc["2024-11-01", "orders"] == 1


class TestHourlyBuckets:
    def test_full_day(self, snapshot):
        txns = select_in_range(snapshot.transactions, 1, day=REFERENCE, status="Completed")
        series = bucketize_hourly(txns, snapshot.line_items, REFERENCE)
        assert len(series) == 24
        by_hour = series.set_index("key")
        assert by_hour.loc["9 AM", "sales"] == 320.0
        assert by_hour.loc["1 PM", "sales"] == 100.0
        assert by_hour.loc["12 AM", "orders"] == 0

    def test_business_hours_only(self, snapshot):
        txns = select_in_range(snapshot.transactions, 1, day=REFERENCE, status="Completed")
        series = bucketize_hourly(txns, snapshot.line_items, REFERENCE, hours=tuple(range(10, 23)))
        assert series["key"].iloc[0] == "10 AM"
        assert series["key"].iloc[-1] == "10 PM"
        assert series["sales"].sum() == 100.0

    def test_one_day_window_is_hourly(self, snapshot):
        series = bucketize(snapshot.transactions.iloc[0:0], snapshot.line_items, 1, REFERENCE)
        assert len(series) == 24


class TestEdgeCases:
    @pytest.mark.parametrize("window_days", [7, 30, 90, 365])
    def test_empty_input_is_still_gapless(self, snapshot, window_days):
        empty = snapshot.transactions.iloc[0:0]
        series = bucketize(empty, snapshot.line_items, window_days, REFERENCE)
        assert len(series) == (7 if window_days == 7 else 6)
        assert series["sales"].sum() == 0
        assert series["orders"].sum() == 0

    def test_non_positive_window(self, snapshot):
        assert bucketize(snapshot.transactions, snapshot.line_items, 0, REFERENCE).empty

    def test_idempotent(self, snapshot):
        txns = _completed_in(snapshot, 30)
        first = bucketize(txns, snapshot.line_items, 30, REFERENCE)
        second = bucketize(txns, snapshot.line_items, 30, REFERENCE)
        pd.testing.assert_frame_equal(first, second)
