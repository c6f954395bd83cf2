"""Ranked views over a window: top products, payment mix, branch-brand leaderboard."""

import logging

import pandas as pd

from pos_analytics.domains.sales.filters import select_in_range
from pos_analytics.domains.sales.transform import UNCATEGORIZED, UNKNOWN_PAYMENT_METHOD, line_revenue
from pos_analytics.utils.types import Instant, TransactionStatus

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_BRANCH = "Unknown Branch"
UNKNOWN_BRAND = "Unknown Brand"

TOP_PRODUCT_COLUMNS = ["id", "name", "quantity", "revenue"]
PAYMENT_COLUMNS = ["method", "count", "amount", "amount_share"]
PERFORMANCE_COLUMNS = ["branch_brand_id", "branch_id", "brand_id", "label", "sales", "orders", "customers"]
CATEGORY_COLUMNS = ["category", "quantity", "revenue", "share"]


def _completed_in_window(
    transactions: pd.DataFrame,
    window_days: int,
    reference: Instant | None,
) -> pd.DataFrame:
    return select_in_range(
        transactions, window_days, reference, status=TransactionStatus.COMPLETED.value,
    )


def _window_lines(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    window_days: int,
    reference: Instant | None,
) -> pd.DataFrame:
    """Line items of Completed in-window transactions, with a ``revenue`` column."""
    selected = _completed_in_window(transactions, window_days, reference)
    lines = line_items[line_items["transaction_id"].isin(selected["id"])]
    return lines.assign(revenue=line_revenue(lines))


def _with_product_attribute(lines: pd.DataFrame, products: pd.DataFrame, column: str) -> pd.DataFrame:
    """Attach a product column to line items, dropping lines whose product is gone."""
    known = lines["product_id"].isin(products["id"])
    lookup = dict(zip(products["id"], products[column]))
    return lines[known].assign(**{column: lines.loc[known, "product_id"].map(lookup)})


def _stable_desc(df: pd.DataFrame, column: str) -> pd.DataFrame:
    return df.sort_values(column, ascending=False, kind="stable").reset_index(drop=True)


def top_products(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    products: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
    limit: int = 8,
) -> pd.DataFrame:
    """Best sellers by units sold in the window.

    Revenue is the recorded line revenue (subtotal, else quantity times the
    price at sale), not the product's current price. Line items whose product
    no longer exists are skipped. Ties keep the product collection's order.
    """
    lines = _window_lines(transactions, line_items, window_days, reference)
    per_product = lines.groupby("product_id").agg(quantity=("quantity", "sum"), revenue=("revenue", "sum"))

    ranked = products[["id", "name"]].assign(
        quantity=products["id"].map(per_product["quantity"]),
        revenue=products["id"].map(per_product["revenue"]),
    )
    ranked = ranked[ranked["quantity"].fillna(0) > 0].assign(name=lambda d: d["name"].fillna(UNKNOWN_PRODUCT))

    orphans = set(per_product.index) - set(products["id"])
    if orphans:
        logger.warning("Skipped %d line-item products with no product record", len(orphans))

    return _stable_desc(ranked, "quantity").head(limit)[TOP_PRODUCT_COLUMNS]


def payment_method_breakdown(
    transactions: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
) -> pd.DataFrame:
    """Transaction count per payment method with its percentage of all transactions.

    ``amount_share`` is the share of the transaction *count*; ``amount`` is the
    summed net amount for reference.
    """
    selected = _completed_in_window(transactions, window_days, reference)
    if selected.empty:
        return pd.DataFrame(columns=PAYMENT_COLUMNS)

    methods = selected["payment_method"].fillna(UNKNOWN_PAYMENT_METHOD).replace("", UNKNOWN_PAYMENT_METHOD)
    grouped = (
        selected.assign(method=methods)
        .groupby("method", sort=False)
        .agg(count=("id", "nunique"), amount=("net_amount", "sum"))
        .reset_index()
    )
    grouped["amount_share"] = grouped["count"] / grouped["count"].sum() * 100
    return _stable_desc(grouped, "count")[PAYMENT_COLUMNS]


def _performance_labels(
    keys: pd.DataFrame,
    branches: pd.DataFrame | None,
    brands: pd.DataFrame | None,
) -> list[str]:
    branch_names = dict(zip(branches["id"], branches["name"])) if branches is not None else {}
    brand_names = dict(zip(brands["id"], brands["name"])) if brands is not None else {}
    labels = []
    for branch_id, brand_id in zip(keys["branch_id"], keys["brand_id"]):
        branch = branch_names.get(branch_id) or UNKNOWN_BRANCH
        brand = brand_names.get(brand_id) or UNKNOWN_BRAND
        labels.append(f"{branch} - {brand}")
    return labels


def branch_brand_performance(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    products: pd.DataFrame,
    branch_brands: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
    *,
    branches: pd.DataFrame | None = None,
    brands: pd.DataFrame | None = None,
) -> pd.DataFrame:
    """Sales leaderboard per branch-brand.

    Each branch-brand gets the revenue of its own line items, and the number
    of distinct transactions containing one of its products as both
    ``orders`` and ``customers``. Every known branch-brand appears, with zeros
    when idle. Products pointing at a missing branch-brand still count, under
    an "Unknown Branch - Unknown Brand" row for that id.
    """
    lines = _window_lines(transactions, line_items, window_days, reference)
    lines = _with_product_attribute(lines, products, "branch_brand_id")
    lines = lines[lines["branch_brand_id"].notna()]

    per_scope = lines.groupby("branch_brand_id").agg(
        sales=("revenue", "sum"),
        orders=("transaction_id", "nunique"),
    )

    known = branch_brands[["id", "branch_id", "brand_id"]].rename(columns={"id": "branch_brand_id"})
    known_ids = set(known["branch_brand_id"])
    missing_ids = [scope for scope in per_scope.index if scope not in known_ids]
    if missing_ids:
        logger.warning("Products reference %d missing branch-brand rows: %s", len(missing_ids), missing_ids[:5])
        missing = pd.DataFrame({"branch_brand_id": missing_ids, "branch_id": None, "brand_id": None})
        known = pd.concat([known, missing], ignore_index=True) if len(known) else missing

    result = known.copy()
    result["sales"] = result["branch_brand_id"].map(per_scope["sales"]).fillna(0.0).astype(float)
    result["orders"] = result["branch_brand_id"].map(per_scope["orders"]).fillna(0).astype(int)
    result["customers"] = result["orders"]
    result["label"] = _performance_labels(result, branches, brands)
    return _stable_desc(result, "sales")[PERFORMANCE_COLUMNS]


def category_breakdown(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    products: pd.DataFrame,
    window_days: int,
    reference: Instant | None = None,
) -> pd.DataFrame:
    """Revenue per product category with its percentage share of the total."""
    lines = _window_lines(transactions, line_items, window_days, reference)
    lines = _with_product_attribute(lines, products, "category")
    if lines.empty:
        return pd.DataFrame(columns=CATEGORY_COLUMNS)

    lines["category"] = lines["category"].fillna(UNCATEGORIZED)
    grouped = (
        lines.groupby("category", sort=False)
        .agg(quantity=("quantity", "sum"), revenue=("revenue", "sum"))
        .reset_index()
    )
    total = grouped["revenue"].sum()
    grouped["share"] = grouped["revenue"] / total * 100 if total else 0.0
    return _stable_desc(grouped, "revenue")[CATEGORY_COLUMNS]
