"""Common frame transformation helpers."""

import pandas as pd

type ColumnMapping = dict[str, str]


def rename_legacy_columns(df: pd.DataFrame, mapping: ColumnMapping) -> pd.DataFrame:
    """Rename old field names to canonical ones.

    When a frame carries both names (records from mixed exports), canonical
    values win and the legacy column only fills their gaps.
    """
    result = df
    for old, new in mapping.items():
        if old not in result.columns:
            continue
        if new in result.columns:
            result = result.assign(**{new: result[new].fillna(result[old])}).drop(columns=[old])
        else:
            result = result.rename(columns={old: new})
    return result


def ensure_columns(df: pd.DataFrame, defaults: dict[str, object]) -> pd.DataFrame:
    """Add any missing columns with a default value, filling nulls in existing ones."""
    result = df.copy()
    for col, default in defaults.items():
        if col not in result.columns:
            result[col] = default
        elif default is not None:
            result[col] = result[col].fillna(default)
    return result


def empty_frame(columns: list[str]) -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype="object") for col in columns})
