"""Assemble dashboard data from a snapshot and render it as rich tables."""

import logging
from dataclasses import dataclass

import pandas as pd
from rich.console import Console
from rich.table import Table

from pos_analytics.config import AnalyticsConfig, load_analytics_config
from pos_analytics.domains.inventory import low_stock_products
from pos_analytics.domains.sales.buckets import bucketize, bucketize_hourly
from pos_analytics.domains.sales.filters import (
    as_timestamp,
    parse_range_option,
    select_in_range,
    transactions_in_scope,
)
from pos_analytics.domains.sales.growth import GrowthSummary, compare_days, compare_periods
from pos_analytics.domains.sales.rankings import (
    branch_brand_performance,
    category_breakdown,
    payment_method_breakdown,
    top_products,
)
from pos_analytics.utils.io import frame_to_records
from pos_analytics.utils.types import EntitySnapshot, Instant, TransactionStatus

logger = logging.getLogger(__name__)

console = Console()


@dataclass(frozen=True)
class DashboardData:
    range_option: str
    window_days: int
    reference: pd.Timestamp
    scope_id: int | None
    growth: GrowthSummary
    sales_series: pd.DataFrame
    top_products: pd.DataFrame
    payment_methods: pd.DataFrame
    branch_performance: pd.DataFrame
    categories: pd.DataFrame
    low_stock: pd.DataFrame

    def to_dict(self) -> dict:
        return {
            "range": self.range_option,
            "window_days": self.window_days,
            "reference": self.reference.isoformat(),
            "scope_id": self.scope_id,
            "growth": self.growth.to_dict(),
            "sales_series": frame_to_records(self.sales_series),
            "top_products": frame_to_records(self.top_products),
            "payment_methods": frame_to_records(self.payment_methods),
            "branch_performance": frame_to_records(self.branch_performance),
            "categories": frame_to_records(self.categories),
            "low_stock": frame_to_records(self.low_stock),
        }


def _scoped(snapshot: EntitySnapshot, scope_id) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Transactions and line items restricted to one branch-brand."""
    if scope_id is None:
        return snapshot.transactions, snapshot.line_items
    mask = transactions_in_scope(snapshot.transactions, snapshot.line_items, snapshot.products, scope_id)
    scoped_products = snapshot.products.loc[snapshot.products["branch_brand_id"] == scope_id, "id"]
    lines = snapshot.line_items[snapshot.line_items["product_id"].isin(scoped_products)]
    return snapshot.transactions[mask], lines


def build_dashboard(
    snapshot: EntitySnapshot,
    range_option: str = "30d",
    reference: Instant | None = None,
    scope_id=None,
    config: AnalyticsConfig | None = None,
) -> DashboardData:
    """Compute every dashboard panel for one range selection.

    ``range_option`` is a selector value ("1d", "7d", "30d", "90d", "1y").
    "1d" renders the reference day hour by hour; its totals and rankings
    cover that calendar day and compare it with the day before.
    """
    config = config or load_analytics_config()
    window_days = parse_range_option(range_option)
    reference = as_timestamp(reference)
    transactions, line_items = _scoped(snapshot, scope_id)

    if window_days == 1:
        # the hourly view covers the reference day only, every panel included
        growth = compare_days(transactions, line_items, reference)
        transactions = select_in_range(transactions, window_days, day=reference)
        completed = transactions[transactions["status"] == TransactionStatus.COMPLETED.value]
        series = bucketize_hourly(completed, line_items, reference, hours=config.hourly_hours)
    else:
        growth = compare_periods(transactions, line_items, window_days, reference)
        completed = select_in_range(
            transactions, window_days, reference, status=TransactionStatus.COMPLETED.value,
        )
        series = bucketize(completed, line_items, window_days, reference)

    dashboard = DashboardData(
        range_option=range_option,
        window_days=window_days,
        reference=reference,
        scope_id=scope_id,
        growth=growth,
        sales_series=series,
        top_products=top_products(
            transactions, line_items, snapshot.products, window_days, reference,
            limit=config.top_products_limit,
        ),
        payment_methods=payment_method_breakdown(transactions, window_days, reference),
        branch_performance=branch_brand_performance(
            transactions, line_items, snapshot.products, snapshot.branch_brands,
            window_days, reference, branches=snapshot.branches, brands=snapshot.brands,
        ),
        categories=category_breakdown(transactions, line_items, snapshot.products, window_days, reference),
        low_stock=low_stock_products(snapshot.products, scope_id),
    )
    logger.info(
        "Built %s dashboard at %s: %d completed transactions",
        range_option, reference.date(), dashboard.growth.current.transactions,
    )
    return dashboard


def _money(value: float, symbol: str) -> str:
    return f"{symbol}{value:,.2f}"


def _growth(value: float) -> str:
    color = "green" if value >= 0 else "red"
    sign = "+" if value > 0 else ""
    return f"[{color}]{sign}{value:.1f}%[/{color}]"


def _frame_table(title: str, df: pd.DataFrame, money_cols: set[str], symbol: str) -> Table:
    table = Table(title=title)
    for col in df.columns:
        table.add_column(col, justify="right" if pd.api.types.is_numeric_dtype(df[col]) else "left")
    for row in df.itertuples(index=False):
        cells = []
        for col, value in zip(df.columns, row):
            match value:
                case float() if col in money_cols:
                    cells.append(_money(value, symbol))
                case float():
                    cells.append(f"{value:,.1f}")
                case _:
                    cells.append(str(value))
        table.add_row(*cells)
    return table


def render_dashboard(dashboard: DashboardData, config: AnalyticsConfig | None = None) -> None:
    """Print the dashboard panels to the console."""
    config = config or load_analytics_config()
    symbol = config.currency_symbol
    current = dashboard.growth.current
    growth = dashboard.growth

    scope = f" (branch-brand {dashboard.scope_id})" if dashboard.scope_id is not None else ""
    console.print(f"\n[bold]Dashboard: last {dashboard.range_option} to {dashboard.reference:%Y-%m-%d}{scope}[/bold]")

    kpis = Table(title="Summary")
    kpis.add_column("Metric")
    kpis.add_column("Value", justify="right")
    kpis.add_column("Growth", justify="right")
    kpis.add_row("Total Sales", _money(current.sales, symbol), _growth(growth.sales_growth))
    kpis.add_row("Total Orders", f"{current.transactions:,}", _growth(growth.transactions_growth))
    kpis.add_row("Units Sold", f"{current.units:,.0f}", _growth(growth.units_growth))
    kpis.add_row("Avg Order Value", _money(current.average_order_value, symbol), "")
    kpis.add_row("Low Stock Items", str(len(dashboard.low_stock)), "")
    console.print(kpis)

    money = {"sales", "revenue", "amount"}
    console.print(_frame_table("Sales Trend", dashboard.sales_series, money, symbol))
    console.print(_frame_table("Top Products", dashboard.top_products, money, symbol))
    console.print(_frame_table("Payment Methods", dashboard.payment_methods, money, symbol))
    console.print(_frame_table("Branch Performance", dashboard.branch_performance, money, symbol))
    console.print(_frame_table("Categories", dashboard.categories, money, symbol))
