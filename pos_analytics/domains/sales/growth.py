"""Window totals and period-over-period growth."""

import logging
from dataclasses import asdict, dataclass

import pandas as pd

from pos_analytics.domains.sales.filters import (
    as_timestamp,
    check_window_days,
    day_bounds,
    filter_between,
    previous_window,
    transactions_in_scope,
    window_bounds,
)
from pos_analytics.utils.types import DateRange, Instant, TransactionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowTotals:
    sales: float
    transactions: int
    units: float
    customers: int
    average_order_value: float


@dataclass(frozen=True)
class GrowthSummary:
    current: WindowTotals
    previous: WindowTotals
    sales_growth: float
    units_growth: float
    transactions_growth: float

    def to_dict(self) -> dict:
        return asdict(self)


def growth_percent(current: float, previous: float) -> float:
    """Percentage change from ``previous`` to ``current``.

    With no previous activity the result is 100 when there is current
    activity and 0 otherwise.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def totals_for(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    bounds: DateRange,
    *,
    products: pd.DataFrame | None = None,
    scope_id=None,
) -> WindowTotals:
    """Totals over Completed transactions inside ``bounds``.

    Sales is the sum of ``net_amount``; units is the summed line-item quantity.
    """
    selected = filter_between(transactions, bounds)
    selected = selected[selected["status"] == TransactionStatus.COMPLETED.value]
    if scope_id is not None:
        if products is None:
            raise TypeError("scope_id filtering requires products")
        selected = selected[transactions_in_scope(selected, line_items, products, scope_id)]

    sales = float(selected["net_amount"].sum())
    count = int(selected["id"].nunique())
    units = float(line_items.loc[line_items["transaction_id"].isin(selected["id"]), "quantity"].sum())
    return WindowTotals(
        sales=sales,
        transactions=count,
        units=units,
        customers=count,
        average_order_value=sales / count if count else 0.0,
    )


def window_summary(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
    *,
    products: pd.DataFrame | None = None,
    scope_id=None,
) -> WindowTotals:
    """Headline totals for the current window."""
    check_window_days(window_days)
    if window_days <= 0:
        return WindowTotals(0.0, 0, 0.0, 0, 0.0)
    return totals_for(
        transactions, line_items, window_bounds(window_days, reference),
        products=products, scope_id=scope_id,
    )


def compare_periods(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
    *,
    products: pd.DataFrame | None = None,
    scope_id=None,
) -> GrowthSummary:
    """Compare the current window against the equal-length window before it."""
    current = window_summary(
        transactions, line_items, window_days, reference, products=products, scope_id=scope_id,
    )
    if window_days <= 0:
        previous = current
    else:
        previous = totals_for(
            transactions, line_items, previous_window(window_days, reference),
            products=products, scope_id=scope_id,
        )

    summary = _summarize(current, previous)
    logger.debug(
        "Growth over %d days: sales %.1f%%, units %.1f%%, transactions %.1f%%",
        window_days, summary.sales_growth, summary.units_growth, summary.transactions_growth,
    )
    return summary


def compare_days(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    day: Instant | None = None,
    *,
    products: pd.DataFrame | None = None,
    scope_id=None,
) -> GrowthSummary:
    """Compare one local calendar day against the day before it (the hourly view)."""
    day = as_timestamp(day)
    current = totals_for(transactions, line_items, day_bounds(day), products=products, scope_id=scope_id)
    previous = totals_for(
        transactions, line_items, day_bounds(day - pd.Timedelta(days=1)),
        products=products, scope_id=scope_id,
    )
    return _summarize(current, previous)


def _summarize(current: WindowTotals, previous: WindowTotals) -> GrowthSummary:
    return GrowthSummary(
        current=current,
        previous=previous,
        sales_growth=growth_percent(current.sales, previous.sales),
        units_growth=growth_percent(current.units, previous.units),
        transactions_growth=growth_percent(current.transactions, previous.transactions),
    )
