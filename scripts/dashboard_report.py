#!/usr/bin/env python3
"""
Print the dashboard numbers straight from the ads backend.

Handy for checking what the charts should show without opening the UI.

Usage:
    python scripts/dashboard_report.py
    python scripts/dashboard_report.py --window 30d
    python scripts/dashboard_report.py --window 7d --json
    python scripts/dashboard_report.py --url http://localhost:4000 --limit 500
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.ads_client import AdsApiClient
from core.config import config, validate_config
from core.exceptions import RowSourceError, ValidationError
from core.filters import WindowSpec
from core.observability import get_logger, setup_logging, timed
from core.resilience import CircuitOpenError
from core.validators import validate_limit, validate_window
from web.services.dashboard_service import DashboardService

logger = get_logger(__name__)


@timed("dashboard_report")
async def build_report(url: str, limit: int, window: WindowSpec) -> dict:
    """Fetch once and build every view from the same snapshot."""
    async with AdsApiClient(base_url=url) as client:
        healthy = await client.health()
        total_rows = await client.count_rows()
        service = DashboardService(client, fetch_limit=limit)
        await service.refresh()
        return {
            "backend": {
                "healthy": healthy,
                "total_rows": total_rows,
                "circuit": client.circuit_breaker.status(),
            },
            "rows": len(service.snapshot.rows),
            "totals": await service.get_totals(),
            "platforms": (await service.get_platform_summary())["platforms"],
            "series": await service.get_daily_series(window),
        }


def print_table(report: dict) -> None:
    """Plain-text rendering of the report."""
    totals = report["totals"]
    backend = report["backend"]
    print(f"\nBackend: {'up' if backend['healthy'] else 'DOWN'} (circuit {backend['circuit']['state']})")
    print(f"Rows fetched: {report['rows']} of {backend['total_rows']}")
    print("\n=== TOTALS ===")
    for key in ("impressions", "clicks", "conversions", "spend", "ctr", "cvr", "roas"):
        print(f"  {key:<12} {totals[key]:>14,}")

    print("\n=== PLATFORMS ===")
    print(f"  {'Platform':<12} {'Impr':>10} {'Clicks':>8} {'Conv':>6} {'Spend':>10} {'CTR%':>6} {'Camp':>5}")
    for p in report["platforms"]:
        print(
            f"  {p['platform']:<12} {p['impressions']:>10,} {p['clicks']:>8,} "
            f"{p['conversions']:>6,} {p['spend']:>10,.2f} {p['ctr']:>6.2f} {p['campaigns']:>5}"
        )

    series = report["series"]
    print(f"\n=== DAILY ({series['window']}) ===")
    print(f"  {'Date':<12} {'Impr':>10} {'Clicks':>8} {'Conv':>6} {'RunRate':>8} {'CTR%':>6}")
    for point in series["points"]:
        print(
            f"  {point['date']:<12} {point['impressions']:>10,} {point['clicks']:>8,} "
            f"{point['conversions']:>6,} {point['runRate']:>8.2f} {point['ctr']:>6.2f}"
        )


def main() -> int:
    parser = argparse.ArgumentParser(description="Ads dashboard report")
    parser.add_argument("--url", default=config.backend.base_url, help="Ads backend URL")
    parser.add_argument("--limit", type=int, default=config.backend.fetch_limit, help="Rows to fetch")
    windows = ", ".join(f"{days}d" for days in config.dashboard.window_options)
    parser.add_argument("--window", default=config.dashboard.default_window, help=f"all, {windows}")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of tables")
    args = parser.parse_args()

    setup_logging(level=config.logging.level, json_format=config.logging.json_format)
    validate_config()

    try:
        window = validate_window(args.window)
        limit = validate_limit(args.limit)
    except ValidationError as e:
        print(f"Invalid argument: {e}", file=sys.stderr)
        return 2

    try:
        report = asyncio.run(build_report(args.url, limit, window))
    except (RowSourceError, CircuitOpenError) as e:
        logger.error(f"Report failed: {e}")
        return 1

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print_table(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
