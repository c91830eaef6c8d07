import csv
import datetime as dt
import io
import json
import random

import pytest

from finance_tracker import cli
from finance_tracker.demo import demo_assets, demo_budget, demo_expenses, demo_income, generate_historical_data
from finance_tracker.records import MonthlyIncome
from finance_tracker.reports import (
    build_dashboard,
    build_summary,
    export_payload,
    export_summary_csv,
    export_summary_json,
    format_text_report,
)


@pytest.fixture
def summary():
    return build_summary(
        7, 2025, demo_income(7, 2025), demo_budget(7, 2025), demo_expenses(7, 2025), demo_assets(),
        generate_historical_data(6, dt.date(2025, 7, 15), random.Random(0)),
    )


def test_summary_sections(summary):
    assert summary["monthlyReport"]["totalIncome"] == 32_500_000
    assert len(summary["budgetVariance"]) == 7
    assert summary["spentDrift"]
    assert summary["recommendations"]


def test_text_report_uses_configured_symbol(summary):
    text = format_text_report(summary, currency="$")
    assert text.startswith("=== Finance Summary: Juli 2025 ===")
    assert "$ 32.500.000" in text
    assert "Rp " not in text


def test_csv_and_json_exports(summary):
    buffer = io.StringIO()
    export_summary_csv(summary, buffer)
    rows = list(csv.reader(io.StringIO(buffer.getvalue())))
    assert rows[0] == ["Section", "Item", "Metric", "Value"]
    assert ["Totals", "", "Income", "32500000.00"] in rows

    out = io.StringIO()
    export_summary_json(summary, out)
    assert json.loads(out.getvalue())["monthlyReport"]["month"] == 7


def test_export_payload_windows():
    historical = generate_historical_data(6, dt.date(2025, 7, 15), random.Random(0))
    args = (demo_income(7, 2025), demo_expenses(7, 2025), demo_budget(7, 2025))
    month = export_payload("month", 7, 2025, *args, historical=historical)
    quarter = export_payload("quarter", 7, 2025, *args, historical=historical)
    assert len(month["income"]) == 3
    assert len(quarter["income"]) == 9
    assert {(b["month"], b["year"]) for b in quarter["budget"]} == {(5, 2025), (6, 2025), (7, 2025)}
    with pytest.raises(ValueError):
        export_payload("decade", 7, 2025, *args)


def test_cli_summary_writes_files(tmp_path, monkeypatch, capsys):
    for key in ("GOOGLE_SHEET_ID", "SPREADSHEET_ID", "GOOGLE_PRIVATE_KEY", "GOOGLE_CLIENT_EMAIL", "GOOGLE_PROJECT_ID"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    today = dt.date.today()
    json_path = tmp_path / "out" / "summary.json"
    csv_path = tmp_path / "out" / "summary.csv"
    code = cli.main([
        "summary", "--month", str(today.month), "--year", str(today.year),
        "--json", str(json_path), "--csv", str(csv_path),
    ])
    assert code == 0
    assert "Finance Summary" in capsys.readouterr().out
    assert json.loads(json_path.read_text(encoding="utf-8"))["monthlyReport"]["month"] == today.month
    assert csv_path.read_text(encoding="utf-8").startswith("Section,Item,Metric,Value")


def test_cli_rejects_bad_month():
    assert cli.main(["summary", "--month", "13"]) == 2


def test_cli_requires_command():
    with pytest.raises(SystemExit):
        cli.main([])


def test_cli_watch_reports_each_reload(tmp_path, monkeypatch, capsys):
    for key in ("GOOGLE_SHEET_ID", "SPREADSHEET_ID", "GOOGLE_PRIVATE_KEY", "GOOGLE_CLIENT_EMAIL", "GOOGLE_PROJECT_ID"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    assert cli.main(["watch", "--interval", "0.0005", "--count", "2"]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if "savings rate" in line]
    assert len(lines) >= 2
    assert "income Rp" in lines[0]


def test_cli_watch_uses_configured_interval(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in ("GOOGLE_SHEET_ID", "SPREADSHEET_ID", "GOOGLE_PRIVATE_KEY", "GOOGLE_CLIENT_EMAIL", "GOOGLE_PROJECT_ID"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AUTO_REFRESH_MINUTES", "0.0005")
    assert cli.parse_args(["watch"]).interval is None
    assert cli.main(["watch", "--count", "2"]) == 0


def test_cli_watch_rejects_bad_interval():
    assert cli.main(["watch", "--interval", "0"]) == 2


def test_dashboard_chart_rows_are_finite():
    historical = {"income": [MonthlyIncome("Bonus", float("inf"), 6, 2025)], "expenses": [], "budget": []}
    dashboard = build_dashboard(7, 2025, [], [], [], (), historical)
    june = next(row for row in dashboard["monthlyTrend"] if row["month"] == "6/2025")
    assert june["income"] == 0
    assert june["savings"] == 0
