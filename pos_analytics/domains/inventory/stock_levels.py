"""Flag products whose stock has fallen to their alert threshold."""

import logging

import pandas as pd

logger = logging.getLogger(__name__)

LOW_STOCK_COLUMNS = ["id", "name", "branch_brand_id", "stock", "alert_at", "shortfall"]


def low_stock_products(products: pd.DataFrame, scope_id=None) -> pd.DataFrame:
    """Active products with ``stock <= alert_at``, most depleted first.

    ``shortfall`` is how far stock sits below the threshold (0 when exactly at it).
    """
    candidates = products
    if "is_active" in candidates.columns:
        candidates = candidates[candidates["is_active"].astype(bool)]
    if scope_id is not None:
        candidates = candidates[candidates["branch_brand_id"] == scope_id]

    low = candidates[candidates["stock"] <= candidates["alert_at"]].copy()
    low["shortfall"] = low["alert_at"] - low["stock"]
    low = low.sort_values("shortfall", ascending=False, kind="stable").reset_index(drop=True)

    if len(low):
        logger.info("%d products at or below their stock alert level", len(low))
    return low[LOW_STOCK_COLUMNS]


def low_stock_count(products: pd.DataFrame, scope_id=None) -> int:
    return len(low_stock_products(products, scope_id))
