"""Sales domain: entity fetching, windowed aggregation and dashboard reporting."""

from pos_analytics.domains.sales.ingest import (
    LocalJsonSource,
    RestEntitySource,
    SnapshotFetchError,
    SnapshotStore,
)
from pos_analytics.domains.sales.transform import build_snapshot, line_revenue
from pos_analytics.domains.sales.filters import (
    parse_range_option,
    previous_window,
    select_in_range,
    window_bounds,
)
from pos_analytics.domains.sales.buckets import bucketize, bucketize_hourly, hour_label
from pos_analytics.domains.sales.growth import compare_days, compare_periods, growth_percent, window_summary
from pos_analytics.domains.sales.rankings import (
    branch_brand_performance,
    category_breakdown,
    payment_method_breakdown,
    top_products,
)
from pos_analytics.domains.sales.models import snapshot_is_valid, validate_snapshot
from pos_analytics.domains.sales.report import DashboardData, build_dashboard, render_dashboard
from pos_analytics.utils.types import EntitySnapshot


def validate(snapshot: EntitySnapshot) -> dict:
    """Summarize snapshot validation as a status dict for the CLI."""
    results = validate_snapshot(snapshot)
    errors = [err for r in results if not r["valid"] for err in r["errors"]]
    warnings = [err for r in results if r["status"] == "warning" for err in r["errors"]]

    match errors:
        case []:
            return {"status": "ok", "checks": len(results), "warnings": warnings, "results": results}
        case _:
            return {"status": "error", "message": "; ".join(errors[:3]), "results": results}


def run(
    snapshot: EntitySnapshot,
    range_option: str = "30d",
    reference=None,
    scope_id=None,
    config=None,
) -> DashboardData:
    """Build and print the dashboard for one snapshot."""
    dashboard = build_dashboard(snapshot, range_option, reference, scope_id, config)
    render_dashboard(dashboard, config)
    return dashboard
