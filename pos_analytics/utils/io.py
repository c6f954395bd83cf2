"""File I/O utilities for reading snapshot collections and writing output."""

import json
import tomllib
from pathlib import Path

import pandas as pd

from pos_analytics.utils.types import Records

type FilePath = str | Path


def read_json_records(path: FilePath) -> Records:
    """Read a JSON file holding a list of records."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    match data:
        case list():
            return data
        case {"data": list() as rows}:
            return rows
        case other:
            raise ValueError(f"Expected a list of records in {path.name}, got {type(other).__name__}")


def write_json(records: Records | dict, path: FilePath) -> None:
    """Write records as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(records, f, indent=2, default=str)


def frame_to_records(df: pd.DataFrame) -> Records:
    """Convert a result frame to JSON-safe records (timestamps as ISO strings)."""
    if df.empty:
        return []
    return json.loads(df.to_json(orient="records", date_format="iso"))


def load_toml_config(path: FilePath) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)
