"""Analytics and trend calculations.

Pure functions over already-loaded records: category totals, savings rate,
budget variance, month-over-month trends, health scores and the dashboard
summaries. Expenses are matched to budget categories by exact,
case-sensitive name.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .formatting import calculate_budget_usage
from .records import Asset, BudgetCategory, Expense, MonthlyIncome
from .validation import aggregate

TREND_THRESHOLD = 5.0
OVERSPEND_WARNING = 0.15
DEBT_KEYWORDS = ("loan", "debt", "credit")

# Recommended share of income per category: (comfortable max, warning level).
CATEGORY_INCOME_LIMITS: Dict[str, Tuple[float, float]] = {
    "Makanan": (15, 20),
    "Food & Groceries": (15, 20),
    "Transportasi": (15, 20),
    "Transportation": (15, 20),
    "Hiburan": (10, 15),
    "Entertainment": (10, 15),
    "Belanja": (10, 15),
    "Shopping": (10, 15),
    "Kesehatan": (5, 10),
    "Health": (5, 10),
    "Utilitas": (10, 15),
    "Utilities": (10, 15),
}


def previous_period(month: int, year: int) -> Tuple[int, int]:
    return (12, year - 1) if month == 1 else (month - 1, year)


def total_income(income: Iterable[MonthlyIncome]) -> float:
    return sum(i.amount for i in income)


def total_expenses(expenses: Iterable[Expense]) -> float:
    return sum(e.amount for e in expenses)


def spending_by_category(expenses: Iterable[Expense]) -> Dict[str, float]:
    return aggregate(expenses, key=lambda e: e.category, reducer=lambda acc, e: acc + e.amount, initial=0.0)


def category_totals(expenses: Iterable[Expense]) -> List[Dict]:
    """Group by category name; percentages are of total spend."""
    expenses = list(expenses)
    total = total_expenses(expenses)
    totals = spending_by_category(expenses)
    rows = [
        {
            "category": cat,
            "amount": amount,
            "percentage": round(amount / total * 100, 2) if total > 0 else 0.0,
        }
        for cat, amount in totals.items()
    ]
    rows.sort(key=lambda r: r["amount"], reverse=True)
    return rows


def expenses_by_category(expenses: Iterable[Expense], categories: Iterable[BudgetCategory]) -> List[Dict]:
    """Chart rows for budget categories that have any spend."""
    expenses = list(expenses)
    total = total_expenses(expenses)
    per_cat = spending_by_category(expenses)
    rows = []
    for cat in categories:
        value = per_cat.get(cat.name, 0.0)
        if value <= 0:
            continue
        rows.append({
            "name": cat.name,
            "value": value,
            "color": cat.color,
            "percentage": value / total * 100 if total > 0 else 0.0,
        })
    return rows


def savings_rate(income: float, expenses: float) -> float:
    if income <= 0:
        return 0.0
    return (income - expenses) / income * 100


def budget_variance(category: BudgetCategory, spent: Optional[float] = None) -> Dict:
    """Compare spend against allocation.

    ``spent`` overrides the stored sheet value (e.g. the live total from
    expense records). ``warning`` flags overspend above 15 % of allocation.
    """
    actual = category.spent if spent is None else spent
    allocation = category.allocation
    variance = actual - allocation
    return {
        "category": category.name,
        "type": category.type,
        "allocation": allocation,
        "spent": actual,
        "variance": variance,
        "overspend": max(variance, 0.0),
        "remaining": max(-variance, 0.0),
        "usage": calculate_budget_usage(allocation, actual),
        "overspent": variance > 0,
        "warning": variance > allocation * OVERSPEND_WARNING,
    }


def budget_variances(categories: Iterable[BudgetCategory], expenses: Iterable[Expense]) -> List[Dict]:
    per_cat = spending_by_category(expenses)
    return [budget_variance(cat, per_cat.get(cat.name, 0.0)) for cat in categories]


def reconcile_spent(categories: Iterable[BudgetCategory], expenses: Iterable[Expense]) -> List[Dict]:
    """Stored sheet ``spent`` next to the total recomputed from expenses."""
    per_cat = spending_by_category(expenses)
    rows = []
    for cat in categories:
        live = per_cat.get(cat.name, 0.0)
        rows.append({
            "category": cat.name,
            "stored": cat.spent,
            "computed": live,
            "drift": cat.spent - live,
        })
    return rows


def _period_total(items: Iterable, month: int, year: int, category: Optional[str] = None) -> float:
    return sum(
        i.amount
        for i in items
        if i.month == month and i.year == year and (category is None or i.category == category)
    )


def category_trends(
    expenses: Sequence[Expense],
    categories: Iterable[BudgetCategory],
    month: int,
    year: int,
) -> List[Dict]:
    """Month-over-month change per budget category.

    A change above 5 % in either direction counts as a trend; for expenses an
    upward trend has negative impact.
    """
    prev_month, prev_year = previous_period(month, year)
    trends = []
    for cat in categories:
        current = _period_total(expenses, month, year, cat.name)
        previous = _period_total(expenses, prev_month, prev_year, cat.name)
        if previous > 0:
            change = (current - previous) / previous * 100
        else:
            change = 100.0 if current > 0 else 0.0
        trend, impact = "stable", "neutral"
        if abs(change) > TREND_THRESHOLD:
            trend = "up" if change > 0 else "down"
            impact = "negative" if change > 0 else "positive"
        trends.append({
            "category": cat.name,
            "currentMonth": current,
            "previousMonth": previous,
            "trend": trend,
            "percentage": abs(change),
            "impact": impact,
        })
    trends.sort(key=lambda t: t["percentage"], reverse=True)
    return trends


def trend_analysis(
    historical: Optional[Mapping[str, Sequence]],
    categories: Sequence[BudgetCategory],
    expenses: Sequence[Expense],
    month: int,
    year: int,
) -> Dict:
    if not historical:
        return {"trends": [], "overallSavingsRate": 0.0, "projectedSavings": 0.0, "riskScore": 0.0}

    hist_income = historical.get("income", [])
    hist_expenses = historical.get("expenses", [])
    prev_month, prev_year = previous_period(month, year)

    current_income = _period_total(hist_income, month, year)
    current_spend = _period_total(hist_expenses, month, year)
    previous_income = _period_total(hist_income, prev_month, prev_year)
    previous_spend = _period_total(hist_expenses, prev_month, prev_year)

    trends = category_trends(hist_expenses, categories, month, year)
    current_rate = savings_rate(current_income, current_spend)
    rate_delta = current_rate - savings_rate(previous_income, previous_spend)
    projected = current_income * ((current_rate + rate_delta) / 100)

    volatility = sum(t["percentage"] for t in trends) / len(trends) if trends else 0.0
    per_cat = spending_by_category(expenses)
    usages = [per_cat.get(c.name, 0.0) / c.allocation * 100 for c in categories if c.allocation > 0]
    utilization = sum(usages) / len(usages) if usages else 0.0
    risk = min(100.0, (volatility + abs(rate_delta) + max(0.0, utilization - 80)) / 3)

    return {
        "trends": trends,
        "overallSavingsRate": current_rate,
        "projectedSavings": projected,
        "riskScore": risk,
    }


def risk_label(score: float) -> str:
    if score < 30:
        return "Low Risk"
    if score < 60:
        return "Medium Risk"
    return "High Risk"


def monthly_trend(historical: Optional[Mapping[str, Sequence]], month: int, year: int, months: int = 12) -> List[Dict]:
    """Oldest-first per-month income, spend, savings and budget totals."""
    historical = historical or {}
    income = historical.get("income", [])
    expenses = historical.get("expenses", [])
    budget = historical.get("budget", [])
    rows = []
    for back in range(months - 1, -1, -1):
        index = year * 12 + (month - 1) - back
        y, m = index // 12, index % 12 + 1
        inc = _period_total(income, m, y)
        spend = _period_total(expenses, m, y)
        budget_rows = [b for b in budget if b.month == m and b.year == y]
        if not spend and budget_rows:
            spend = sum(b.spent for b in budget_rows)
        rows.append({
            "month": f"{m}/{y}",
            "income": inc,
            "expenses": spend,
            "savings": inc - spend,
            "amount": spend,
            "budget": sum(b.allocation for b in budget_rows),
        })
    return rows


def liquid_assets(assets: Iterable[Asset]) -> float:
    return sum(a.current_value for a in assets if a.type == "liquid")


def debt_payments(expenses: Iterable[Expense]) -> float:
    return sum(e.amount for e in expenses if any(k in e.category.lower() for k in DEBT_KEYWORDS))


def _tier(value: float, bounds: Sequence[Tuple[float, str]], fallback: str) -> str:
    for bound, label in bounds:
        if value >= bound:
            return label
    return fallback


def health_scores(
    income: Iterable[MonthlyIncome],
    expenses: Iterable[Expense],
    assets: Iterable[Asset],
) -> Dict:
    """Savings rate, emergency fund and debt-to-income scores plus an overall score."""
    expenses = list(expenses)
    inc = total_income(income)
    spend = total_expenses(expenses)
    rate = savings_rate(inc, spend)
    fund_months = liquid_assets(assets) / spend if spend > 0 else 0.0
    debt_ratio = debt_payments(expenses) / inc * 100 if inc > 0 else 0.0

    if debt_ratio <= 20:
        debt_status = "excellent"
    elif debt_ratio <= 36:
        debt_status = "good"
    elif debt_ratio <= 50:
        debt_status = "fair"
    else:
        debt_status = "poor"

    scores = [
        {
            "name": "Savings Rate",
            "score": max(0.0, min(rate, 30.0)),
            "maxScore": 30,
            "value": rate,
            "status": _tier(rate, ((20, "excellent"), (15, "good"), (8, "fair")), "poor"),
        },
        {
            "name": "Emergency Fund",
            "score": min(fund_months * 10, 60.0),
            "maxScore": 60,
            "value": fund_months,
            "status": _tier(fund_months, ((6, "excellent"), (3, "good"), (1, "fair")), "poor"),
        },
        {
            "name": "Debt-to-Income",
            "score": max(0.0, 100 - debt_ratio),
            "maxScore": 100,
            "value": debt_ratio,
            "status": debt_status,
        },
    ]
    total = sum(s["score"] for s in scores)
    max_total = sum(s["maxScore"] for s in scores)
    overall = total / max_total * 100 if max_total else 0.0
    return {
        "scores": scores,
        "overall": overall,
        "label": _tier(overall, ((80, "Excellent"), (60, "Good"), (40, "Fair")), "Needs Improvement"),
    }


def category_scores(
    income: Iterable[MonthlyIncome],
    expenses: Iterable[Expense],
    categories: Iterable[BudgetCategory],
) -> List[Dict]:
    inc = total_income(income)
    known = {c.name for c in categories}
    per_cat = {k: v for k, v in spending_by_category(expenses).items() if k in known}
    scores = []
    for cat, amount in per_cat.items():
        limits = CATEGORY_INCOME_LIMITS.get(cat)
        if not limits:
            continue
        comfortable, warning = limits
        share = amount / inc * 100 if inc > 0 else 0.0
        if share > warning:
            status = "danger"
        elif share > comfortable:
            status = "warning"
        else:
            status = "good"
        scores.append({"category": cat, "score": share, "maxScore": warning, "status": status})
    scores.sort(key=lambda s: s["score"], reverse=True)
    return scores


def monthly_report(
    month: int,
    year: int,
    income: Iterable[MonthlyIncome],
    categories: Sequence[BudgetCategory],
    expenses: Iterable[Expense],
) -> Dict:
    inc = total_income(income)
    spend = total_expenses(expenses)
    return {
        "month": month,
        "year": year,
        "totalIncome": inc,
        "totalSavings": sum(c.allocation for c in categories if c.type == "savings"),
        "totalSpending": spend,
        "remainingBudget": inc - spend,
        "savingsRate": savings_rate(inc, spend),
    }


def assets_summary(assets: Iterable[Asset]) -> Dict:
    assets = list(assets)
    total_value = sum(a.current_value for a in assets)
    liquid = liquid_assets(assets)
    total_cost = sum((a.shares or 1) * a.price for a in assets)
    profit = total_value - total_cost
    return {
        "totalValue": total_value,
        "liquid": liquid,
        "nonLiquid": total_value - liquid,
        "profit": profit,
        "profitPercentage": profit / total_cost * 100 if total_cost > 0 else 0.0,
    }
