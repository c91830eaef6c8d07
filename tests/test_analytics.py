import pytest

from finance_tracker import analytics as an
from finance_tracker.records import Asset, BudgetCategory, Expense, MonthlyIncome


def expense(amount, category="Food", month=7, year=2025, day=1, description="x"):
    return Expense(f"{year:04d}-{month:02d}-{day:02d}", description, amount, category, "BCA", month, year)


def category(name="Food", allocation=1_000_000, spent=0, kind="needs"):
    return BudgetCategory(name, kind, "#fff", allocation, spent, 7, 2025)


def test_savings_rate():
    assert an.savings_rate(10_000_000, 8_000_000) == pytest.approx(20.0)
    assert an.savings_rate(0, 8_000_000) == 0.0
    assert an.savings_rate(-5, 1) == 0.0


def test_budget_variance_overspend_warning():
    row = an.budget_variance(category(spent=1_200_000))
    assert row["overspend"] == 200_000
    assert row["warning"] is True
    assert row["remaining"] == 0


def test_budget_variance_within_tolerance():
    row = an.budget_variance(category(spent=1_100_000))
    assert row["overspent"] is True
    assert row["warning"] is False


def test_budget_variance_zero_allocation():
    row = an.budget_variance(category(allocation=0), spent=50)
    assert row["usage"] == 0.0
    assert row["warning"] is True


def test_live_spent_overrides_stored_value():
    cats = [category(spent=999)]
    (row,) = an.budget_variances(cats, [expense(300), expense(200)])
    assert row["spent"] == 500


def test_category_sum_equals_total():
    items = [expense(100.5, "Food"), expense(200, "Fun"), expense(49.5, "Food"), expense(0.25, "Misc")]
    rows = an.category_totals(items)
    assert sum(r["amount"] for r in rows) == pytest.approx(an.total_expenses(items))
    assert rows[0]["category"] == "Fun"
    assert sum(r["percentage"] for r in rows) == pytest.approx(100, abs=0.05)


def test_category_match_is_case_sensitive():
    rows = an.expenses_by_category([expense(100, "food")], [category("Food")])
    assert rows == []


def test_reconcile_spent_reports_drift():
    (row,) = an.reconcile_spent([category(spent=700)], [expense(500)])
    assert row == {"category": "Food", "stored": 700, "computed": 500, "drift": 200}


def test_category_trends_direction():
    items = [expense(100, month=6), expense(120, month=7), expense(50, "Fun", month=6), expense(49, "Fun", month=7)]
    trends = {t["category"]: t for t in an.category_trends(items, [category(), category("Fun")], 7, 2025)}
    assert trends["Food"]["trend"] == "up"
    assert trends["Food"]["impact"] == "negative"
    assert trends["Food"]["percentage"] == pytest.approx(20)
    assert trends["Fun"]["trend"] == "stable"


def test_category_trends_wrap_year():
    items = [expense(100, month=12, year=2024), expense(50, month=1, year=2025)]
    (trend,) = an.category_trends(items, [category()], 1, 2025)
    assert trend["previousMonth"] == 100
    assert trend["trend"] == "down"


def test_monthly_trend_oldest_first():
    historical = {
        "income": [MonthlyIncome("Salary", 10, 6, 2025), MonthlyIncome("Salary", 12, 7, 2025)],
        "expenses": [expense(4, month=7)],
        "budget": [BudgetCategory("Food", "needs", "#fff", 9, 3, 6, 2025)],
    }
    rows = an.monthly_trend(historical, 7, 2025, months=3)
    assert [r["month"] for r in rows] == ["5/2025", "6/2025", "7/2025"]
    assert rows[1]["expenses"] == 3
    assert rows[1]["budget"] == 9
    assert rows[2]["savings"] == 8


def test_health_scores_without_data():
    result = an.health_scores([], [], [])
    assert result["overall"] >= 0
    assert result["scores"][1]["value"] == 0.0


def test_health_scores_use_liquid_assets_and_debt():
    income = [MonthlyIncome("Salary", 10_000, 7, 2025)]
    expenses = [expense(1_000, "Credit Card"), expense(1_000, "Food")]
    assets = [Asset("Cash", "liquid", "cash", "", 0, 0, 12_000, 0, "t"),
              Asset("House", "non-liquid", "property", "", 0, 0, 99_000, 0, "t")]
    scores = {s["name"]: s for s in an.health_scores(income, expenses, assets)["scores"]}
    assert scores["Emergency Fund"]["value"] == pytest.approx(6.0)
    assert scores["Debt-to-Income"]["value"] == pytest.approx(10.0)
    assert scores["Savings Rate"]["status"] == "excellent"


def test_monthly_report_and_assets_summary():
    report = an.monthly_report(
        7, 2025, [MonthlyIncome("Salary", 10_000, 7, 2025)],
        [category("Stash", 2_000, kind="savings"), category()], [expense(4_000)],
    )
    assert report["totalSavings"] == 2_000
    assert report["remainingBudget"] == 6_000
    assert report["savingsRate"] == pytest.approx(60.0)

    summary = an.assets_summary([Asset("S", "liquid", "stocks", "S", 2, 100, 300, 0, "t")])
    assert summary["profit"] == 100
    assert summary["profitPercentage"] == pytest.approx(50.0)


def test_trend_analysis_without_history():
    assert an.trend_analysis(None, [], [], 7, 2025)["riskScore"] == 0.0
    assert an.risk_label(10) == "Low Risk"
    assert an.risk_label(45) == "Medium Risk"
    assert an.risk_label(90) == "High Risk"


def test_trend_analysis_with_two_months_of_history():
    june = [expense(2_000_000, month=6), expense(1_000_000, "Fun", month=6)]
    july = [expense(2_200_000), expense(1_000_000, "Fun")]
    historical = {
        "income": [MonthlyIncome("Salary", 10_000_000, 6, 2025), MonthlyIncome("Salary", 10_000_000, 7, 2025)],
        "expenses": june + july,
        "budget": [],
    }
    cats = [category("Food", 2_000_000), category("Fun", 1_250_000)]
    result = an.trend_analysis(historical, cats, july, 7, 2025)

    assert result["overallSavingsRate"] == pytest.approx(68.0)
    # Savings rate slipped from 70 % to 68 %, so the projection carries the drop forward.
    assert result["projectedSavings"] == pytest.approx(6_600_000)
    food, fun = result["trends"]
    assert (food["category"], food["trend"], food["impact"]) == ("Food", "up", "negative")
    assert food["percentage"] == pytest.approx(10.0)
    assert fun["trend"] == "stable"
    # volatility 5, |rate delta| 2, utilization 95 - 80 = 15
    assert result["riskScore"] == pytest.approx((5 + 2 + 15) / 3)
