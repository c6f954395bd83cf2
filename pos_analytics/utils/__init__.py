"""Shared utilities for the analytics package."""

from pos_analytics.utils.io import read_json_records, write_json
from pos_analytics.utils.transforms import ensure_columns, rename_legacy_columns
from pos_analytics.utils.validators import validate_dataframe
from pos_analytics.utils.types import DateRange, TransactionStatus
