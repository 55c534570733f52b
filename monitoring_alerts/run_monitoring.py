"""Command-line entry point for a monitoring run.

Evaluates every registered rule for all active patients on one target day,
creates deduplicated alerts and prints a summary of the alerts created today.
Data comes from a database (``--database-url``, default from
``MONITORING_DATABASE_URL``) or, for dry runs, from a JSON fixture loaded into
an in-memory store (``--fixture``; see :mod:`monitoring_alerts.fixtures`).
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

from monitoring_alerts import config
import monitoring_alerts.rules  # noqa: F401 - ensure rule registration side-effects
from monitoring_alerts.alert_catalog import seed_alert_types
from monitoring_alerts.engine import MonitoringEngine
from monitoring_alerts.fixtures import load_fixture_file
from monitoring_alerts.memory_store import InMemoryMonitoringStore
from monitoring_alerts.registry import registry
from monitoring_alerts.report import build_alert_report, format_report_table
from monitoring_alerts.sql_store import SqlMonitoringStore

logger = logging.getLogger("monitoring_alerts")


def build_rule_filter(allowed_rules: list[str] | None):
    if not allowed_rules:
        return None
    allowed = {rule_id.lower() for rule_id in allowed_rules}

    def _filter(rule):
        return rule.id.lower() in allowed

    return _filter


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}; expected YYYY-MM-DD") from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run patient monitoring rules and create alerts")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--database-url", default=None, help="SQLAlchemy database URL")
    source.add_argument("--fixture", type=Path, help="JSON fixture to run against an in-memory store")
    parser.add_argument("--date", type=_parse_day, default=None, help="Target day (YYYY-MM-DD); defaults to today")
    parser.add_argument("--rule", action="append", help="Rule id to run (may be repeated); defaults to all")
    parser.add_argument(
        "--directory",
        choices=("db", "api"),
        default="db",
        help="Where to read patients and doctor assignments from",
    )
    parser.add_argument("--create-schema", action="store_true", help="Create missing tables before running")
    parser.add_argument("--seed-catalog", action="store_true", help="Insert missing alert types before running")
    parser.add_argument("--report", choices=("table", "json", "none"), default="table", help="Report format")
    parser.add_argument("--output", type=Path, help="Optional report output file")
    parser.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with the given indent")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")
    return parser.parse_args(argv)


def _build_store(args: argparse.Namespace):
    if args.fixture:
        store = InMemoryMonitoringStore()
        load_fixture_file(store, args.fixture)
        seed_alert_types(store)
        return store
    store = SqlMonitoringStore(args.database_url or config.DATABASE_URL)
    try:
        if args.create_schema:
            store.create_schema()
        if args.seed_catalog:
            seed_alert_types(store)
            store.persist()
    except Exception:
        store.close()
        raise
    return store


def _build_directory(args: argparse.Namespace, store):
    if args.directory == "api":
        from api_clients.directory_client import DirectoryApiClient

        return DirectoryApiClient()
    return store


def run(args: argparse.Namespace) -> dict[str, Any]:
    store = _build_store(args)
    directory = store
    try:
        directory = _build_directory(args, store)
        engine = MonitoringEngine(
            store,
            registry,
            directory=directory,
            default_thresholds=config.default_thresholds(),
        )
        engine.run(args.date or date.today(), rule_filter=build_rule_filter(args.rule))
        return build_alert_report(store, directory, date.today())
    finally:
        if directory is not store:
            directory.close()
        if isinstance(store, SqlMonitoringStore):
            store.close()


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - CLI entry point
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        report = run(args)
    except Exception:
        logger.exception("Monitoring run aborted")
        return 1

    if args.report == "none":
        return 0
    if args.report == "json":
        output_text = json.dumps(report, indent=args.indent)
    else:
        output_text = format_report_table(report)
    if args.output:
        args.output.write_text(output_text)
    else:
        print(output_text, file=sys.stdout)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
