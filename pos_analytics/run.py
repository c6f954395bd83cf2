"""Command-line entry point: load a snapshot and print the sales dashboard."""

import argparse
import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pos_analytics.config import AnalyticsConfig, load_analytics_config
from pos_analytics.domains import sales
from pos_analytics.domains.sales.demo import write_demo_data
from pos_analytics.domains.sales.ingest import LocalJsonSource, RestEntitySource, SnapshotFetchError
from pos_analytics.utils.store import JsonFileStore
from pos_analytics.utils.types import EntitySnapshot

console = Console()


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def build_source(args: argparse.Namespace, config: AnalyticsConfig):
    if args.api_url:
        cache = JsonFileStore(config.api.cache_dir) if config.api.cache_dir else None
        return RestEntitySource(
            args.api_url,
            timeout=config.api.timeout,
            cache=cache,
            timezone=config.timezone,
            default_alert_at=config.default_alert_at,
        )
    return LocalJsonSource(
        args.data_dir or config.data_dir,
        timezone=config.timezone,
        default_alert_at=config.default_alert_at,
    )


def load_snapshot(args: argparse.Namespace, config: AnalyticsConfig) -> EntitySnapshot:
    source = build_source(args, config)
    return asyncio.run(source.fetch())


def print_validation(result: dict) -> None:
    table = Table(title="Snapshot Validation")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")

    for r in result["results"]:
        match r["status"]:
            case "ok":
                status = "[green]✓[/green]"
            case "warning":
                status = "[yellow]![/yellow]"
            case _:
                status = "[red]✗[/red]"
        detail = "; ".join(r["errors"][:2]) or "OK"
        table.add_row(r["check"], status, detail)

    console.print(table)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="POS sales analytics dashboard")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--data-dir", type=str, help="Directory of mock JSON collections")
    source.add_argument("--api-url", type=str, help="Base URL of the POS REST API")
    parser.add_argument("--env", type=str, default="development", help="Configuration environment")
    parser.add_argument("--range", dest="range_option", type=str, help="1d, 7d, 30d, 90d or 1y")
    parser.add_argument("--reference", type=str, help="Reference date (YYYY-MM-DD), defaults to now")
    parser.add_argument("--scope", type=int, help="Restrict to one branch-brand id")
    parser.add_argument("--validate", action="store_true", help="Only validate the snapshot")
    parser.add_argument("--generate-demo", type=str, metavar="DIR", help="Write a demo dataset and exit")
    parser.add_argument("--seed", type=int, default=7, help="Seed for --generate-demo")
    parser.add_argument("--json", action="store_true", help="Print dashboard data as JSON")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    try:
        config = load_analytics_config(args.env)

        if args.generate_demo:
            path = write_demo_data(args.generate_demo, seed=args.seed)
            console.print(f"[green]Demo data written to {path}[/green]")
            return

        snapshot = load_snapshot(args, config)

        if args.validate:
            result = sales.validate(snapshot)
            print_validation(result)
            if result["status"] != "ok":
                sys.exit(1)
            return

        range_option = args.range_option or config.default_range
        if args.json:
            dashboard = sales.build_dashboard(snapshot, range_option, args.reference, args.scope, config)
            print(json.dumps(dashboard.to_dict(), indent=2, default=str))
        else:
            sales.run(snapshot, range_option, args.reference, args.scope, config)
    except (SnapshotFetchError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
