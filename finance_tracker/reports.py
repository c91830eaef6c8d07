"""Reporting utilities.

Combines analytics into dashboard/summary dicts, formats them as text and
writes JSON or CSV exports.
"""

from __future__ import annotations

import csv
import datetime as dt
import json
from pathlib import Path
from typing import Dict, IO, Iterable, List, Mapping, Optional, Sequence

from . import analytics as an
from .formatting import format_currency, format_percentage, get_month_name
from .records import Asset, BudgetCategory, Expense, MonthlyIncome
from .recommendations import recommend
from .validation import sanitize_chart_data

PERIOD_MONTHS = {"month": 1, "quarter": 3, "year": 12}


def period_months(period: str) -> int:
    if period not in PERIOD_MONTHS:
        raise ValueError("Invalid period. Use: month, quarter, or year")
    return PERIOD_MONTHS[period]


def build_dashboard(
    month: int,
    year: int,
    income: Sequence[MonthlyIncome],
    categories: Sequence[BudgetCategory],
    expenses: Sequence[Expense],
    assets: Sequence[Asset] = (),
    historical: Optional[Mapping[str, Sequence]] = None,
) -> Dict:
    return {
        "monthlyReport": an.monthly_report(month, year, income, categories, expenses),
        "expensesByCategory": sanitize_chart_data(an.expenses_by_category(expenses, categories)),
        "monthlyTrend": sanitize_chart_data(an.monthly_trend(historical, month, year, months=6)),
        "assetsSummary": an.assets_summary(assets),
        "healthScores": an.health_scores(income, expenses, assets),
    }


def build_summary(
    month: int,
    year: int,
    income: Sequence[MonthlyIncome],
    categories: Sequence[BudgetCategory],
    expenses: Sequence[Expense],
    assets: Sequence[Asset] = (),
    historical: Optional[Mapping[str, Sequence]] = None,
    previous_expenses: Sequence[Expense] = (),
    previous_income: Sequence[MonthlyIncome] = (),
) -> Dict:
    summary = build_dashboard(month, year, income, categories, expenses, assets, historical)
    summary["categoryTotals"] = an.category_totals(expenses)
    summary["budgetVariance"] = an.budget_variances(categories, expenses)
    summary["spentDrift"] = [r for r in an.reconcile_spent(categories, expenses) if r["drift"]]
    summary["recommendations"] = [
        r.to_dict() for r in recommend(income, expenses, categories, assets, previous_expenses, previous_income)
    ]
    return summary


def format_text_report(summary: Dict, currency: str = "Rp") -> str:
    def money(value: float) -> str:
        return format_currency(value, currency)

    lines: List[str] = []
    r = summary["monthlyReport"]
    lines.append(f"=== Finance Summary: {get_month_name(r['month'])} {r['year']} ===")
    lines.append(f"Income:    {money(r['totalIncome'])}")
    lines.append(f"Spending:  {money(r['totalSpending'])}")
    lines.append(f"Remaining: {money(r['remainingBudget'])}")
    lines.append(f"Savings rate: {format_percentage(r['savingsRate'], 1)}")
    lines.append("")

    lines.append("-- Spend by Category --")
    for row in summary.get("categoryTotals", []):
        lines.append(f"{row['category'][:20]:20} {money(row['amount']):>16}  ({format_percentage(row['percentage'], 1)})")
    lines.append("")

    variance = summary.get("budgetVariance") or []
    if variance:
        lines.append("-- Budget Status --")
        for row in variance:
            flag = "  !" if row["warning"] else ""
            lines.append(
                f"{row['category'][:20]:20} Allocation {money(row['allocation'])}  "
                f"Spent {money(row['spent'])}  Remaining {money(row['remaining'])}{flag}"
            )
        lines.append("")

    assets = summary.get("assetsSummary")
    if assets and assets["totalValue"]:
        lines.append("-- Assets --")
        lines.append(f"Total {money(assets['totalValue'])}  Liquid {money(assets['liquid'])}")
        lines.append("")

    recs = summary.get("recommendations") or []
    if recs:
        lines.append("-- Recommendations --")
        for rec in recs:
            lines.append(f"[{rec['impact']}] {rec['title']}: {rec['message']}")
    return "\n".join(lines).rstrip()


def save_json(summary: Dict, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, ensure_ascii=False)


def _ensure_text_writer(target: str | Path | IO[str]):
    if hasattr(target, "write"):
        return target, None
    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = path.open("w", newline="", encoding="utf-8")
    return handle, handle


def _fmt_amount(value) -> str:
    if value is None:
        return ""
    return f"{float(value):.2f}"


def summary_rows(summary: Dict) -> List[List[str]]:
    rows: List[List[str]] = [["Section", "Item", "Metric", "Value"]]

    report = summary.get("monthlyReport") or {}
    for key, label in (
        ("totalIncome", "Income"),
        ("totalSpending", "Spending"),
        ("remainingBudget", "Remaining"),
        ("savingsRate", "Savings Rate"),
    ):
        if key in report:
            rows.append(["Totals", "", label, _fmt_amount(report[key])])

    for row in summary.get("categoryTotals") or []:
        rows.append(["Category Spend", row["category"] or "Uncategorized", "Amount", _fmt_amount(row["amount"])])

    for row in summary.get("monthlyTrend") or []:
        for key, label in (("income", "Income"), ("expenses", "Expenses"), ("savings", "Savings")):
            rows.append(["Monthly Trend", row["month"], label, _fmt_amount(row[key])])

    for row in summary.get("budgetVariance") or []:
        for key, label in (("allocation", "Allocation"), ("spent", "Spent"), ("remaining", "Remaining")):
            rows.append(["Budget Status", row["category"], label, _fmt_amount(row[key])])

    for rec in summary.get("recommendations") or []:
        rows.append(["Recommendations", rec["id"], rec["impact"], rec["title"]])
    return rows


def export_summary_csv(summary: Dict, path: str | Path | IO[str]) -> None:
    writer_target, to_close = _ensure_text_writer(path)
    try:
        writer = csv.writer(writer_target, lineterminator="\n")
        writer.writerows(summary_rows(summary))
    finally:
        if to_close is not None:
            to_close.close()


def export_summary_json(summary: Dict, path: str | Path | IO[str]) -> None:
    if hasattr(path, "write"):
        json.dump(summary, path, indent=2, ensure_ascii=False)
        path.write("\n")
        return
    save_json(summary, path)


def _in_window(item, month: int, year: int, months: int) -> bool:
    newest = year * 12 + month - 1
    index = item.year * 12 + item.month - 1
    return newest - months < index <= newest


def export_payload(
    period: str,
    month: int,
    year: int,
    income: Iterable[MonthlyIncome],
    expenses: Iterable[Expense],
    categories: Iterable[BudgetCategory],
    assets: Iterable[Asset] = (),
    historical: Optional[Mapping[str, Sequence]] = None,
    now: Optional[dt.datetime] = None,
) -> Dict:
    """Records and totals for the last month, quarter or year ending at month/year.

    Historical rows fill in the months before the current one.
    """
    months = period_months(period)
    income, expenses, categories = list(income), list(expenses), list(categories)
    if historical and months > 1:
        current = (month, year)
        income += [i for i in historical.get("income", []) if (i.month, i.year) != current]
        expenses += [e for e in historical.get("expenses", []) if (e.month, e.year) != current]
        categories += [b for b in historical.get("budget", []) if (b.month, b.year) != current]
    income = [i for i in income if _in_window(i, month, year, months)]
    expenses = [e for e in expenses if _in_window(e, month, year, months)]
    categories = [b for b in categories if _in_window(b, month, year, months)]
    assets = list(assets)

    inc = an.total_income(income)
    spend = an.total_expenses(expenses)
    return {
        "period": period,
        "month": month,
        "year": year,
        "exportedAt": (now or dt.datetime.now(dt.timezone.utc)).isoformat(),
        "totals": {
            "income": inc,
            "expenses": spend,
            "savings": inc - spend,
            "savingsRate": an.savings_rate(inc, spend),
        },
        "categoryTotals": an.category_totals(expenses),
        "income": [i.to_dict() for i in income],
        "expenses": [e.to_dict() for e in expenses],
        "budget": [b.to_dict() for b in categories],
        "assets": [a.to_dict() for a in assets],
    }


def export_payload_csv(payload: Dict, target: IO[str]) -> None:
    """Flat CSV of an export: one row per record plus the totals."""
    writer = csv.writer(target, lineterminator="\n")
    writer.writerow(["Kind", "Date", "Name", "Category", "Amount", "Month", "Year"])
    for row in payload["income"]:
        writer.writerow(["income", "", row["source"], row["account"], _fmt_amount(row["amount"]), row["month"], row["year"]])
    for row in payload["expenses"]:
        writer.writerow([
            "expense", row["date"], row["description"], row["category"],
            _fmt_amount(row["amount"]), row["month"], row["year"],
        ])
    for key, value in payload["totals"].items():
        writer.writerow(["total", "", key, "", _fmt_amount(value), payload["month"], payload["year"]])
