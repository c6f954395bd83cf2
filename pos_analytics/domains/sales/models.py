"""Pandera schemas for the canonical snapshot collections."""

import pandera as pa
from pandera import Column, Check, DataFrameSchema

from pos_analytics.utils.types import EntitySnapshot, TransactionStatus, ValidationOutcome
from pos_analytics.utils.validators import (
    validate_dataframe,
    validate_referential_integrity,
    validate_unique,
)

BRANCH_SCHEMA = DataFrameSchema(
    columns={
        "id": Column(int, unique=True),
        "name": Column(str, nullable=True),
    },
    strict=False,
    coerce=True,
)

BRAND_SCHEMA = BRANCH_SCHEMA

BRANCH_BRAND_SCHEMA = DataFrameSchema(
    columns={
        "id": Column(int, unique=True),
        "branch_id": Column(int),
        "brand_id": Column(int),
    },
    strict=False,
    coerce=True,
)

PRODUCT_SCHEMA = DataFrameSchema(
    columns={
        "id": Column(int, unique=True),
        "name": Column(str, nullable=True),
        "price": Column(float, Check.ge(0)),
        "stock": Column(float),
        "alert_at": Column(float, Check.ge(0)),
        # missing links are tolerated, see validate_snapshot
        "branch_brand_id": Column(float, nullable=True),
        "category": Column(str),
        "is_active": Column(bool),
    },
    strict=False,
    coerce=True,
)

TRANSACTION_SCHEMA = DataFrameSchema(
    columns={
        "id": Column(int, unique=True),
        "created_at": Column(pa.DateTime),
        "status": Column(str, Check.isin([s.value for s in TransactionStatus])),
        "payment_method": Column(str),
        "net_amount": Column(float),
        "discount_amount": Column(float, Check.ge(0)),
    },
    strict=False,
    coerce=True,
)

LINE_ITEM_SCHEMA = DataFrameSchema(
    columns={
        "transaction_id": Column(int),
        "product_id": Column(int),
        "quantity": Column(float, Check.ge(0)),
        "price": Column(float, Check.ge(0)),
        "subtotal": Column(float, Check.ge(0), nullable=True),
    },
    strict=False,
    coerce=True,
)

SCHEMAS = {
    "branches": BRANCH_SCHEMA,
    "brands": BRAND_SCHEMA,
    "branch_brands": BRANCH_BRAND_SCHEMA,
    "products": PRODUCT_SCHEMA,
    "transactions": TRANSACTION_SCHEMA,
    "line_items": LINE_ITEM_SCHEMA,
}

# (child collection, child key, parent collection)
REFERENCES = [
    ("line_items", "transaction_id", "transactions"),
    ("line_items", "product_id", "products"),
    ("products", "branch_brand_id", "branch_brands"),
    ("branch_brands", "branch_id", "branches"),
    ("branch_brands", "brand_id", "brands"),
]


def validate_snapshot(snapshot: EntitySnapshot) -> list[ValidationOutcome]:
    """Check every collection against its schema, then the foreign keys.

    Returns one outcome per check, each tagged with a ``check`` name.
    Orphaned references come back as warnings.
    """
    frames = snapshot.collections()
    results: list[ValidationOutcome] = []

    for name, schema in SCHEMAS.items():
        outcome = validate_dataframe(frames[name], schema)
        results.append({"check": f"{name} schema", **outcome})

    # the same product may be rung up on separate lines of one sale
    results.append({
        "check": "line_items unique",
        **validate_unique(frames["line_items"], ["transaction_id", "product_id"], severity="warning"),
    })

    for child, key, parent in REFERENCES:
        outcome = validate_referential_integrity(frames[child], frames[parent], key)
        results.append({"check": f"{child}.{key} -> {parent}", **outcome})

    return results


def snapshot_is_valid(results: list[ValidationOutcome]) -> bool:
    return all(r["valid"] for r in results)
