"""Shared type definitions for the analytics package."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

import pandas as pd


type RecordID = int | str
type Records = list[dict]
type RawCollections = dict[str, Records]
type DateRange = tuple[pd.Timestamp, pd.Timestamp]
type Instant = datetime | date | pd.Timestamp | str
type MetricValue = int | float
type ValidationOutcome = dict[str, bool | str | list[str]]


class TransactionStatus(StrEnum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class Granularity(StrEnum):
    HOUR = "hour"
    DAY = "day"
    BIMONTH = "bimonth"


@dataclass(frozen=True)
class EntitySnapshot:
    """One complete, read-only fetch of every entity collection."""

    branches: pd.DataFrame
    brands: pd.DataFrame
    branch_brands: pd.DataFrame
    products: pd.DataFrame
    transactions: pd.DataFrame
    line_items: pd.DataFrame
    fetched_at: datetime

    def collections(self) -> dict[str, pd.DataFrame]:
        return {
            "branches": self.branches,
            "brands": self.brands,
            "branch_brands": self.branch_brands,
            "products": self.products,
            "transactions": self.transactions,
            "line_items": self.line_items,
        }
