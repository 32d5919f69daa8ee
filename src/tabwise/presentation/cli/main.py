"""
CLI entry point.

Runs the detectors against the configured database and prints the same
payload the API returns under ``data``.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from tabwise import __version__
from tabwise.application.services.detection_config import load_detection_config
from tabwise.application.services.research_session_clusterer import ClusteringCriteria
from tabwise.application.workflows.hoarder_detection import (
    SORT_OPTIONS,
    HoarderDetectionWorkflow,
    HoarderFilters,
)
from tabwise.application.workflows.research_session_detection import (
    ResearchSessionDetectionWorkflow,
)
from tabwise.application.workflows.serial_opener_insights import SerialOpenerInsightsWorkflow
from tabwise.infrastructure.stores.browsing_store import SqlAlchemyBrowsingStore

load_dotenv(find_dotenv(usecwd=True), override=False)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabwise",
        description="Tabwise - browsing pattern detection",
    )
    parser.add_argument("--version", "-v", action="store_true", help="Show version")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--user-id", "-u", default="default", help="User to analyze")
    common.add_argument("--db-url", help="SQLAlchemy URL (default: TABWISE_DB_URL)")
    common.add_argument("--config", "-c", help="Detection policy YAML")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    hoarders = subparsers.add_parser("hoarders", parents=[common], help="Detect hoarder tabs")
    hoarders.add_argument("--lookback-days", type=int, default=30)
    hoarders.add_argument("--min-score", type=int)
    hoarders.add_argument("--age-min", type=float)
    hoarders.add_argument("--domain")
    hoarders.add_argument("--exclude-domain", action="append", dest="exclude_domains", default=[])
    hoarders.add_argument("--limit", type=int, default=1000)
    hoarders.add_argument("--sort-by", choices=SORT_OPTIONS, default="value_rank")

    serial = subparsers.add_parser("serial-openers", parents=[common], help="Detect serial openers")
    serial.add_argument("--period", choices=["today", "week", "month"], default="week")
    serial.add_argument("--start-date", help="YYYY-MM-DD (needs --end-date)")
    serial.add_argument("--end-date", help="YYYY-MM-DD (needs --start-date)")
    serial.add_argument("--compare", action="store_true", help="Compare with the previous period")

    sessions = subparsers.add_parser(
        "research-sessions", parents=[common], help="Detect research sessions"
    )
    sessions.add_argument("--min-tabs", type=int, default=5)
    sessions.add_argument("--time-window", type=float, default=10.0, help="Split gap in minutes")
    sessions.add_argument("--min-duration", type=float, default=1.0, help="Minutes")
    sessions.add_argument("--lookback-days", type=int, default=7)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _run_detection(parsed: argparse.Namespace, now: datetime) -> Dict[str, Any]:
    store = SqlAlchemyBrowsingStore(parsed.db_url)
    config = load_detection_config(parsed.config)
    try:
        if parsed.command == "hoarders":
            filters = HoarderFilters(
                min_score=parsed.min_score,
                age_min=parsed.age_min,
                domain=parsed.domain,
                exclude_domains=parsed.exclude_domains,
                limit=parsed.limit,
                sort_by=parsed.sort_by,
            )
            return HoarderDetectionWorkflow(store, config=config).run(
                parsed.user_id, now=now, filters=filters, lookback_days=parsed.lookback_days
            )

        if parsed.command == "serial-openers":
            return SerialOpenerInsightsWorkflow(store, config=config).run(
                parsed.user_id,
                now=now,
                period=parsed.period,
                start_date=parsed.start_date,
                end_date=parsed.end_date,
                include_comparison=parsed.compare,
            )

        criteria = ClusteringCriteria(
            min_tabs=parsed.min_tabs,
            split_gap=timedelta(minutes=parsed.time_window),
            min_duration=timedelta(minutes=parsed.min_duration),
        )
        return ResearchSessionDetectionWorkflow(store).run(
            parsed.user_id, now=now, criteria=criteria, lookback_days=parsed.lookback_days
        )
    finally:
        store.close()


def run_cli(args: Optional[list] = None, *, now: Optional[datetime] = None) -> int:
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"Tabwise v{__version__}")
        return 0

    if not parsed.command:
        parser.print_help()
        return 0

    if parsed.command == "serve":
        import uvicorn

        uvicorn.run("tabwise.api.main:app", host=parsed.host, port=parsed.port)
        return 0

    try:
        data = _run_detection(parsed, now or datetime.now(timezone.utc))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(data, ensure_ascii=False, indent=2))
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
