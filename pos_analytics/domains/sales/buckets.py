"""Group transactions into gapless chart buckets.

Bucket policy for the dashboard charts:

* 365+ day windows: two-calendar-month buckets (Jan-Feb, Mar-Apr, ...),
  keyed by the first day of the starting month, the 6 most recent ending
  with the bucket that holds the reference date.
* 8 to 364 day windows: the last ``window_days`` days, folded into runs of
  ``ceil(window_days / 6)`` days (5 for 30, 15 for 90), keyed by the first
  day of each run, at most 6 points.
* up to 7 day windows: one bucket per day.
* single day: one bucket per hour, labelled "12 AM" .. "11 PM".

The range filter window also includes the day ``window_days`` before the
reference; that day is folded into the first daily bucket.
Buckets with no activity are kept with zero sales and orders.
"""

import math

import pandas as pd

from pos_analytics.config import FULL_DAY_HOURS
from pos_analytics.domains.sales.filters import (
    as_timestamp,
    check_window_days,
    day_bounds,
    filter_between,
    window_bounds,
)
from pos_analytics.domains.sales.transform import line_revenue
from pos_analytics.utils.types import Granularity, Instant

MAX_POINTS = 6
DAILY_LIMIT = 7
YEAR_DAYS = 365
BUCKET_COLUMNS = ["key", "sales", "orders"]


def hour_label(hour: int) -> str:
    """Format an hour of day as a 12-hour label ("12 AM", "1 PM", ...)."""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12} {suffix}"


def granularity_for(window_days: int) -> Granularity:
    if window_days >= YEAR_DAYS:
        return Granularity.BIMONTH
    if window_days <= 1:
        return Granularity.HOUR
    return Granularity.DAY


def day_stride(window_days: int) -> int:
    if window_days <= DAILY_LIMIT:
        return 1
    return math.ceil(window_days / MAX_POINTS)


def bimonth_start(ts: pd.Timestamp) -> pd.Timestamp:
    return pd.Timestamp(year=ts.year, month=((ts.month - 1) // 2) * 2 + 1, day=1)


def _transaction_revenue(transactions: pd.DataFrame, line_items: pd.DataFrame) -> pd.DataFrame:
    """Attach each transaction's summed line-item revenue as ``revenue``."""
    per_txn = (
        line_items.assign(_revenue=line_revenue(line_items))
        .groupby("transaction_id")["_revenue"].sum()
    )
    txns = transactions[["id", "created_at"]].copy()
    txns["revenue"] = txns["id"].map(per_txn).fillna(0.0).astype(float)
    return txns


def _roll_up(txns: pd.DataFrame, keys: list) -> pd.DataFrame:
    """Sum revenue and count distinct transactions per bucket, over all ``keys``."""
    grouped = txns.groupby("bucket").agg(
        sales=("revenue", "sum"),
        orders=("id", "nunique"),
    )
    result = grouped.reindex(keys, fill_value=0)
    result.index.name = "key"
    result = result.reset_index()
    result["sales"] = result["sales"].astype(float)
    result["orders"] = result["orders"].astype(int)
    return result


def _daily_buckets(txns: pd.DataFrame, window_days: int, reference: pd.Timestamp) -> pd.DataFrame:
    days = pd.date_range(end=reference.normalize(), periods=window_days, freq="D")
    stride = day_stride(window_days)
    starts = list(days[::stride])
    if stride > 1:
        starts = starts[-MAX_POINTS:]

    first = starts[0]
    txns = filter_between(txns, window_bounds(window_days, reference)).copy()

    offsets = (txns["created_at"].dt.normalize() - first).dt.days
    txns["bucket"] = [starts[min(max(o // stride, 0), len(starts) - 1)] for o in offsets]

    result = _roll_up(txns, starts)
    result["key"] = [ts.strftime("%Y-%m-%d") for ts in starts]
    return result


def _bimonthly_buckets(txns: pd.DataFrame, reference: pd.Timestamp) -> pd.DataFrame:
    latest = bimonth_start(reference)
    starts = [latest - pd.DateOffset(months=2 * i) for i in reversed(range(MAX_POINTS))]

    _, last_end = day_bounds(reference)
    txns = filter_between(txns, (starts[0], last_end)).copy()
    txns["bucket"] = [bimonth_start(ts) for ts in txns["created_at"]]

    result = _roll_up(txns, starts)
    result["key"] = [ts.strftime("%Y-%m-%d") for ts in starts]
    return result


def bucketize_hourly(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    day: Instant,
    hours: tuple[int, ...] = FULL_DAY_HOURS,
) -> pd.DataFrame:
    """One bucket per hour of ``day``, restricted to ``hours``."""
    txns = _transaction_revenue(transactions, line_items)
    txns = filter_between(txns, day_bounds(day)).copy()
    txns["bucket"] = txns["created_at"].dt.hour

    result = _roll_up(txns, list(hours)).rename(columns={"key": "hour"})
    result["key"] = [hour_label(h) for h in result["hour"]]
    return result[["key", "hour", "sales", "orders"]]


def bucketize(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
) -> pd.DataFrame:
    """Build the sales/orders series for a window ending at ``reference``.

    Returns a frame with ``key``, ``sales`` and ``orders`` in ascending
    chronological order. ``sales`` is the sum of line-item revenue of the
    transactions in a bucket; ``orders`` counts those transactions.
    Transactions outside the series span are ignored. A one-day window
    produces the full-day hourly series.
    """
    check_window_days(window_days)
    if window_days <= 0:
        return pd.DataFrame({"key": pd.Series(dtype=str), "sales": pd.Series(dtype=float),
                             "orders": pd.Series(dtype=int)})

    reference = as_timestamp(reference)
    match granularity_for(window_days):
        case Granularity.HOUR:
            return bucketize_hourly(transactions, line_items, reference)
        case Granularity.BIMONTH:
            result = _bimonthly_buckets(_transaction_revenue(transactions, line_items), reference)
        case Granularity.DAY:
            result = _daily_buckets(_transaction_revenue(transactions, line_items), window_days, reference)
    return result[BUCKET_COLUMNS]
