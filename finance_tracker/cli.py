"""Command-line interface for the finance tracker.

Usage:
  python -m finance_tracker.cli summary --month 7 --year 2025 --json out/summary.json
  python -m finance_tracker.cli serve --port 5000
  python -m finance_tracker.cli check
  python -m finance_tracker.cli watch --url http://127.0.0.1:5000 --interval 5

Without Google Sheets credentials every command runs against demo data.
"""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import threading
from typing import List, Optional

from . import analytics as an
from .checks import CheckRunner, api_checks, data_validation_checks
from .config import AppConfig
from .formatting import format_currency, format_percentage, get_month_name
from .reports import build_summary, export_summary_csv, format_text_report, save_json
from .sheets import SheetsService
from .sources import ApiClient, LocalSource
from .store import AutoRefresher, FinanceStore


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", help="Path to JSON config with ranges/settings")
    common.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    p = argparse.ArgumentParser(description="Personal Finance Tracker")
    sub = p.add_subparsers(dest="command", required=True)

    summary = sub.add_parser("summary", parents=[common], help="Print the monthly summary")
    summary.add_argument("--month", type=int, help="Month (1-12), default current")
    summary.add_argument("--year", type=int, help="Year, default current")
    summary.add_argument("--json", dest="json_out", help="Write summary JSON to path")
    summary.add_argument("--csv", dest="csv_out", help="Write summary CSV to path")

    serve = sub.add_parser("serve", parents=[common], help="Run the web application")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--debug", action="store_true")

    sub.add_parser("check", parents=[common], help="Run data and API checks")

    watch = sub.add_parser("watch", parents=[common], help="Reload data periodically and print the totals")
    watch.add_argument("--url", help="Base URL of a running web app; reads the sheet directly if omitted")
    watch.add_argument("--interval", type=float, help="Minutes between reloads, default AUTO_REFRESH_MINUTES")
    watch.add_argument("--count", type=int, default=0, help="Stop after this many reports (0 = until interrupted)")
    return p.parse_args(argv)


def _summary(args: argparse.Namespace, cfg: AppConfig) -> int:
    service = SheetsService(cfg)
    today = dt.date.today()
    month = args.month or today.month
    year = args.year or today.year
    if not 1 <= month <= 12:
        print(f"Invalid month: {month}")
        return 2
    prev_month, prev_year = an.previous_period(month, year)
    settings = service.get_settings()
    summary = build_summary(
        month,
        year,
        service.get_monthly_income(month, year),
        service.get_budget_categories(month, year),
        service.get_expenses(month, year),
        service.get_assets(),
        service.generate_historical_data(6),
        service.get_expenses(prev_month, prev_year),
        service.get_monthly_income(prev_month, prev_year),
    )
    print(format_text_report(summary, currency=settings.currency))

    if args.json_out:
        save_json(summary, args.json_out)
        print(f"\nSaved JSON summary to: {args.json_out}")
    if args.csv_out:
        export_summary_csv(summary, args.csv_out)
        print(f"\nSaved CSV summary to: {args.csv_out}")
    return 0


def _serve(args: argparse.Namespace, cfg: AppConfig) -> int:
    from .webapp import create_app

    app = create_app(cfg)
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def _check(args: argparse.Namespace, cfg: AppConfig) -> int:
    source = LocalSource(SheetsService(cfg))
    store = FinanceStore(source)
    store.load_data()
    runner = CheckRunner()
    suites = [
        runner.run_suite("data-validation", data_validation_checks(store)),
        runner.run_suite("api", api_checks(source, store.current_month, store.current_year)),
    ]
    for suite in suites:
        print(f"== {suite.name}: {suite.passed}/{suite.total} passed")
        for result in suite.results:
            mark = "PASS" if result.passed else "FAIL"
            print(f"  [{mark}] {result.name} ({result.duration_ms:.1f} ms) {result.message}")
    return 0 if all(s.failed == 0 for s in suites) else 1


def _status_line(store: FinanceStore) -> str:
    if store.error:
        return f"[{store.last_updated}] {store.error}"
    report = store.refresh_dashboard()["monthlyReport"]
    currency = store.settings.currency
    income = format_currency(report["totalIncome"], currency)
    spending = format_currency(report["totalSpending"], currency)
    rate = format_percentage(report["savingsRate"], 1)
    period = f"{get_month_name(store.current_month)} {store.current_year}"
    return f"[{store.last_updated}] {period}: income {income}, spending {spending}, savings rate {rate}"


def _watch(args: argparse.Namespace, cfg: AppConfig) -> int:
    interval = cfg.auto_refresh_minutes if args.interval is None else args.interval
    if interval <= 0:
        print(f"Invalid interval: {interval}")
        return 2
    source = ApiClient(args.url) if args.url else LocalSource(SheetsService(cfg))
    store = FinanceStore(source)
    done = threading.Event()
    printed = [0]

    def report(s: FinanceStore) -> None:
        print(_status_line(s), flush=True)
        printed[0] += 1
        if args.count and printed[0] >= args.count:
            done.set()

    store.load_data()
    report(store)
    refresher = AutoRefresher(store, interval, on_refresh=report)
    refresher.start()
    try:
        done.wait()
    except KeyboardInterrupt:
        pass
    finally:
        refresher.stop()
    return 0


COMMANDS = {"summary": _summary, "serve": _serve, "check": _check, "watch": _watch}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = AppConfig.load(args.config)
    return COMMANDS[args.command](args, cfg)


if __name__ == "__main__":
    raise SystemExit(main())
