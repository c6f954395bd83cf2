"""Inventory domain: stock alerts over the product collection."""

from pos_analytics.domains.inventory.stock_levels import low_stock_products, low_stock_count
