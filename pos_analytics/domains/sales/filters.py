"""Select transactions that fall inside a lookback window."""

import logging
from datetime import date, datetime

import pandas as pd

from pos_analytics.utils.types import DateRange, Instant

logger = logging.getLogger(__name__)

RANGE_OPTIONS = {"1d": 1, "7d": 7, "30d": 30, "90d": 90, "1y": 365}


def parse_range_option(option: str) -> int:
    """Map a dashboard range selector value ("7d", "1y", ...) to window days."""
    match option.strip().lower():
        case opt if opt in RANGE_OPTIONS:
            return RANGE_OPTIONS[opt]
        case opt if opt.endswith("d") and opt[:-1].isdigit():
            return int(opt[:-1])
        case opt if opt.endswith("y") and opt[:-1].isdigit():
            return 365 * int(opt[:-1])
        case other:
            raise ValueError(f"Unsupported range option: {other!r}")


def check_window_days(window_days: int) -> None:
    if isinstance(window_days, bool) or not isinstance(window_days, int):
        raise TypeError(f"window_days must be an int, got {type(window_days).__name__}")


def as_timestamp(reference: Instant | None) -> pd.Timestamp:
    """Coerce a reference instant to a naive local Timestamp (now if None)."""
    match reference:
        case None:
            return pd.Timestamp.now()
        case pd.Timestamp() | datetime() | date() | str():
            ts = pd.Timestamp(reference)
        case other:
            raise TypeError(f"Unsupported reference type: {type(other).__name__}")
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def day_bounds(day: Instant) -> DateRange:
    """Start and end (inclusive) of one local calendar day."""
    start = as_timestamp(day).normalize()
    return start, start + pd.Timedelta(days=1) - pd.Timedelta(1, "ns")


def window_bounds(window_days: int, reference: Instant | None = None) -> DateRange:
    """The window ``[reference - window_days, reference]`` on local day boundaries."""
    check_window_days(window_days)
    _, end = day_bounds(as_timestamp(reference))
    start = as_timestamp(reference).normalize() - pd.Timedelta(days=window_days)
    return start, end


def previous_window(window_days: int, reference: Instant | None = None) -> DateRange:
    """The window_days-long period ending the day before the current window starts."""
    current_start, _ = window_bounds(window_days, reference)
    end = current_start - pd.Timedelta(1, "ns")
    start = current_start - pd.Timedelta(days=window_days)
    return start, end


def transactions_in_scope(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    products: pd.DataFrame,
    scope_id,
) -> pd.Series:
    """Boolean mask of transactions with a line item sold under ``scope_id``."""
    scoped_products = products.loc[products["branch_brand_id"] == scope_id, "id"]
    scoped_txns = line_items.loc[line_items["product_id"].isin(scoped_products), "transaction_id"]
    return transactions["id"].isin(scoped_txns)


def filter_between(transactions: pd.DataFrame, bounds: DateRange) -> pd.DataFrame:
    start, end = bounds
    created = transactions["created_at"]
    return transactions[(created >= start) & (created <= end)]


def select_in_range(
    transactions: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
    status: str | None = None,
    scope_id=None,
    *,
    line_items: pd.DataFrame | None = None,
    products: pd.DataFrame | None = None,
    day: Instant | None = None,
) -> pd.DataFrame:
    """Return the transactions inside the requested window.

    When ``day`` is given the window collapses to that single calendar day
    (the hour-level view) and ``window_days`` only has to be positive.
    ``scope_id`` keeps transactions with at least one line item whose product
    belongs to that branch-brand, so it needs ``line_items`` and ``products``.
    The input frame is never modified; a filtered copy is returned.
    """
    check_window_days(window_days)
    if window_days <= 0:
        return transactions.iloc[0:0].copy()

    bounds = day_bounds(day) if day is not None else window_bounds(window_days, reference)
    selected = filter_between(transactions, bounds)

    if status is not None:
        selected = selected[selected["status"] == status]

    if scope_id is not None:
        if line_items is None or products is None:
            raise TypeError("scope_id filtering requires line_items and products")
        selected = selected[transactions_in_scope(selected, line_items, products, scope_id)]

    logger.debug(
        "Selected %d of %d transactions in [%s, %s]",
        len(selected), len(transactions), bounds[0], bounds[1],
    )
    return selected.copy()
