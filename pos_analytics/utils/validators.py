"""Data validation utilities using pandera."""

import pandera as pa
import pandas as pd
from pandera import DataFrameSchema

from pos_analytics.utils.types import ValidationOutcome


def validate_dataframe(df: pd.DataFrame, schema: DataFrameSchema) -> ValidationOutcome:
    """Validate a DataFrame against a pandera schema."""
    try:
        schema.validate(df, lazy=True)
        return {"valid": True, "status": "ok", "errors": []}
    except pa.errors.SchemaErrors as e:
        errors = []
        for _, row in e.failure_cases.iterrows():
            match row.to_dict():
                case {"column": col, "check": check, "failure_case": val}:
                    errors.append(f"Column '{col}' failed check '{check}': {val}")
                case failure:
                    errors.append(f"Validation failure: {failure}")
        return {"valid": False, "status": "error", "errors": errors}


def validate_unique(df: pd.DataFrame, columns: list[str], severity: str = "error") -> ValidationOutcome:
    """Check that specified columns form a unique key.

    With ``severity="warning"`` duplicates are reported but the outcome stays valid.
    """
    dup_count = int(df.duplicated(subset=columns, keep=False).sum())

    match dup_count:
        case 0:
            return {"valid": True, "status": "ok", "errors": []}
        case n:
            return {
                "valid": severity != "error",
                "status": severity,
                "errors": [f"Found {n} duplicate rows on columns {columns}"],
            }


def validate_referential_integrity(
    child: pd.DataFrame,
    parent: pd.DataFrame,
    child_key: str,
    parent_key: str = "id",
) -> ValidationOutcome:
    """Report child keys with no matching parent row.

    Orphans are tolerated by the aggregation code, so they come back with a
    ``warning`` status rather than ``error``.
    """
    child_keys = set(child[child_key].dropna().unique()) if child_key in child.columns else set()
    parent_keys = set(parent[parent_key].dropna().unique()) if parent_key in parent.columns else set()
    orphans = child_keys - parent_keys

    match len(orphans):
        case 0:
            return {"valid": True, "status": "ok", "errors": []}
        case n:
            sample = sorted(orphans, key=str)[:5]
            return {
                "valid": True,
                "status": "warning",
                "errors": [f"Found {n} orphan {child_key} values. Sample: {sample}"],
            }
