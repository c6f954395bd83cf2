"""Normalize raw entity collections into the canonical snapshot schema.

Older exports of the POS backend use different field names for the same
concept (``date`` vs ``created_at``, ``pay_method`` vs ``payment_method``,
flat ``branch_id``/``brand_id`` on products instead of a branch-brand link).
Those shapes are migrated here, once, so the aggregation code only ever sees
one schema.
"""

import logging
from datetime import datetime

import numpy as np
import pandas as pd

from pos_analytics.utils.transforms import empty_frame, ensure_columns, rename_legacy_columns
from pos_analytics.utils.types import EntitySnapshot, RawCollections, TransactionStatus

logger = logging.getLogger(__name__)

UNKNOWN_PAYMENT_METHOD = "Unknown"
UNCATEGORIZED = "Uncategorized"

COLUMNS = {
    "branches": ["id", "name"],
    "brands": ["id", "name"],
    "branch_brands": ["id", "branch_id", "brand_id"],
    "products": ["id", "name", "price", "stock", "alert_at", "branch_brand_id", "category", "is_active"],
    "transactions": [
        "id", "created_at", "status", "payment_method", "net_amount",
        "total_amount", "discount_amount", "promotion_id",
    ],
    "line_items": ["transaction_id", "product_id", "quantity", "price", "subtotal"],
}

LEGACY_NAMES = {
    "branches": {"branch_name": "name"},
    "brands": {"brand_name": "name"},
    "products": {
        "product_name": "name",
        "stock_quantity": "stock",
        "low_stock_threshold": "alert_at",
    },
    "transactions": {"date": "created_at", "pay_method": "payment_method"},
    "line_items": {},
    "branch_brands": {},
}

# Accepted collection keys, including the REST endpoint and mock file names
COLLECTION_ALIASES = {
    "branch-brand": "branch_brands",
    "branch_brand": "branch_brands",
    "transaction_products": "line_items",
    "transaction-products": "line_items",
}


def to_local_timestamps(values: pd.Series, timezone: str) -> pd.Series:
    """Parse timestamps into naive local time.

    Values carrying a UTC offset are converted to ``timezone``; naive values
    are taken to already be local.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        if getattr(values.dt, "tz", None) is not None:
            return values.dt.tz_convert(timezone).dt.tz_localize(None)
        return values

    def _convert(value):
        if value is None or (isinstance(value, float) and np.isnan(value)):
            return pd.NaT
        ts = pd.Timestamp(value)
        if ts.tzinfo is not None:
            ts = ts.tz_convert(timezone).tz_localize(None)
        return ts

    return pd.to_datetime(values.map(_convert))


def _frame(records, collection: str) -> pd.DataFrame:
    match records:
        case pd.DataFrame():
            df = records.copy()
        case None | []:
            return empty_frame(COLUMNS[collection])
        case _:
            df = pd.DataFrame(list(records))
    if df.empty and not len(df.columns):
        return empty_frame(COLUMNS[collection])
    df = rename_legacy_columns(df, LEGACY_NAMES[collection])
    if "id" not in df.columns and "id" in COLUMNS[collection]:
        raise ValueError(f"Collection '{collection}' has no id column")
    return df


def _link_products_to_branch_brands(
    products: pd.DataFrame,
    branch_brands: pd.DataFrame,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Resolve flat branch_id/brand_id on products to a branch_brand_id.

    Missing link rows are synthesized with fresh ids after the existing ones.
    """
    legacy = {"branch_id", "brand_id"}.issubset(products.columns)
    if not legacy:
        return products, branch_brands

    products = products.copy()
    if "branch_brand_id" not in products.columns:
        products["branch_brand_id"] = np.nan

    needs_link = products["branch_brand_id"].isna()
    pairs = (
        products.loc[needs_link, ["branch_id", "brand_id"]]
        .dropna()
        .drop_duplicates()
        .itertuples(index=False)
    )
    lookup = {
        (row.branch_id, row.brand_id): row.id
        for row in branch_brands.itertuples(index=False)
    }

    max_id = pd.to_numeric(branch_brands["id"], errors="coerce").max() if len(branch_brands) else 0
    # non-numeric link ids (uuids) leave no max to count from
    next_id = int(max_id) + 1 if pd.notna(max_id) else len(branch_brands) + 1
    created = []
    for branch_id, brand_id in sorted(pairs):
        if (branch_id, brand_id) in lookup:
            continue
        lookup[(branch_id, brand_id)] = next_id
        created.append({"id": next_id, "branch_id": branch_id, "brand_id": brand_id})
        next_id += 1

    if created:
        logger.info("Synthesized %d branch-brand links from legacy product rows", len(created))
        new_links = pd.DataFrame(created)
        branch_brands = pd.concat([branch_brands, new_links], ignore_index=True) if len(branch_brands) else new_links

    resolved = pd.Series(
        [
            lookup.get((branch, brand), np.nan)
            for branch, brand in zip(products.loc[needs_link, "branch_id"], products.loc[needs_link, "brand_id"])
        ],
        index=products.index[needs_link],
        dtype=object,
    )
    products["branch_brand_id"] = (
        products["branch_brand_id"].astype(object).where(~needs_link, resolved).infer_objects()
    )
    products = products.drop(columns=["branch_id", "brand_id"])
    return products, branch_brands


def _normalize_line_items(line_items: pd.DataFrame) -> pd.DataFrame:
    df = ensure_columns(line_items, {"quantity": 0, "price": 0.0, "subtotal": None})
    df["quantity"] = pd.to_numeric(df["quantity"], errors="coerce").fillna(0)
    df["price"] = pd.to_numeric(df["price"], errors="coerce").fillna(0.0)
    df["subtotal"] = pd.to_numeric(df["subtotal"], errors="coerce")
    return df[COLUMNS["line_items"]]


def _normalize_transactions(
    transactions: pd.DataFrame,
    line_items: pd.DataFrame,
    timezone: str,
) -> pd.DataFrame:
    df = ensure_columns(transactions, {
        "status": TransactionStatus.COMPLETED.value,
        "payment_method": UNKNOWN_PAYMENT_METHOD,
        "net_amount": None,
        "total_amount": None,
        "discount_amount": 0.0,
        "promotion_id": None,
    })
    df["created_at"] = to_local_timestamps(df["created_at"], timezone)

    missing_net = pd.to_numeric(df["net_amount"], errors="coerce").isna()
    if missing_net.any():
        derived = (
            line_items.assign(_revenue=line_revenue(line_items))
            .groupby("transaction_id")["_revenue"].sum()
        )
        df.loc[missing_net, "net_amount"] = df.loc[missing_net, "id"].map(derived).fillna(0.0)
        logger.info("Derived net_amount from line items for %d transactions", int(missing_net.sum()))

    df["net_amount"] = pd.to_numeric(df["net_amount"], errors="coerce").fillna(0.0)
    df["total_amount"] = pd.to_numeric(df["total_amount"], errors="coerce").fillna(df["net_amount"])
    df["discount_amount"] = pd.to_numeric(df["discount_amount"], errors="coerce").fillna(0.0)
    return df[COLUMNS["transactions"]]


def _normalize_products(products: pd.DataFrame, default_alert_at: int) -> pd.DataFrame:
    df = ensure_columns(products, {
        "name": None,
        "price": 0.0,
        "stock": 0,
        "alert_at": default_alert_at,
        "branch_brand_id": None,
        "category": UNCATEGORIZED,
        "is_active": True,
    })
    df["price"] = pd.to_numeric(df["price"], errors="coerce").fillna(0.0)
    df["stock"] = pd.to_numeric(df["stock"], errors="coerce").fillna(0)
    df["alert_at"] = pd.to_numeric(df["alert_at"], errors="coerce").fillna(default_alert_at)
    df["is_active"] = df["is_active"].astype(bool)
    return df[COLUMNS["products"]]


def line_revenue(line_items: pd.DataFrame) -> pd.Series:
    """Per-line revenue: the stored subtotal, else quantity * price-at-sale."""
    computed = line_items["quantity"] * line_items["price"]
    if "subtotal" not in line_items.columns:
        return computed.astype(float)
    return pd.to_numeric(line_items["subtotal"], errors="coerce").fillna(computed).astype(float)


def build_snapshot(
    raw: RawCollections,
    timezone: str = "Asia/Manila",
    default_alert_at: int = 5,
    fetched_at: datetime | None = None,
) -> EntitySnapshot:
    """Build a canonical EntitySnapshot from raw collections.

    ``raw`` maps collection names (canonical, REST endpoint or mock file
    names) to record lists or DataFrames. Missing collections become empty.
    """
    canonical = {COLLECTION_ALIASES.get(name, name): records for name, records in raw.items()}
    unknown = set(canonical) - set(COLUMNS)
    if unknown:
        raise ValueError(f"Unknown collections: {sorted(unknown)}")

    frames = {name: _frame(canonical.get(name), name) for name in COLUMNS}

    products, branch_brands = _link_products_to_branch_brands(frames["products"], frames["branch_brands"])
    line_items = _normalize_line_items(frames["line_items"])
    transactions = _normalize_transactions(frames["transactions"], line_items, timezone)

    snapshot = EntitySnapshot(
        branches=ensure_columns(frames["branches"], {"name": None})[COLUMNS["branches"]],
        brands=ensure_columns(frames["brands"], {"name": None})[COLUMNS["brands"]],
        branch_brands=ensure_columns(branch_brands, {"branch_id": None, "brand_id": None})[COLUMNS["branch_brands"]],
        products=_normalize_products(products, default_alert_at),
        transactions=transactions,
        line_items=line_items,
        fetched_at=fetched_at or datetime.now(),
    )
    logger.info(
        "Built snapshot: %d transactions, %d line items, %d products",
        len(snapshot.transactions), len(snapshot.line_items), len(snapshot.products),
    )
    return snapshot
