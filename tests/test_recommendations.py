import pytest

from finance_tracker.recommendations import IMPACT_ORDER, Recommendation, recommend
from finance_tracker.records import Asset, BudgetCategory, Expense, MonthlyIncome


def expense(amount, category="Food", date="2025-07-02", description="x"):
    return Expense(date, description, amount, category, "BCA", 7, 2025)


INCOME = [MonthlyIncome("Salary", 10_000_000, 7, 2025)]


def ids(recs):
    return [r.id for r in recs]


def test_low_savings_rate_is_flagged():
    recs = recommend(INCOME, [expense(9_500_000)], [])
    low = next(r for r in recs if r.id == "low-savings-rate")
    assert low.type == "danger"
    assert low.impact == "high"


def test_good_savings_rate():
    recs = recommend(INCOME, [expense(1_000_000)], [])
    assert "good-savings-rate" in ids(recs)
    assert "low-savings-rate" not in ids(recs)


def test_sorted_by_impact():
    recs = recommend(INCOME, [expense(9_500_000)], [])
    ranks = [IMPACT_ORDER[r.impact] for r in recs]
    assert ranks == sorted(ranks, reverse=True)


def test_weekend_spending():
    # 2025-07-05 is a Saturday.
    recs = recommend(INCOME, [expense(500_000, date="2025-07-05")], [])
    assert "weekend-spending" in ids(recs)


def test_overspent_category():
    cat = BudgetCategory("Food", "needs", "#fff", 1_000_000, 0, 7, 2025, id="budget-food")
    recs = recommend(INCOME, [expense(1_200_000)], [cat])
    over = next(r for r in recs if r.id == "overspent-budget-food")
    assert over.value == 200_000


def test_emergency_fund_uses_liquid_assets():
    spend = [expense(1_000_000)]
    assert "emergency-fund-low" in ids(recommend(INCOME, spend, []))
    cash = [Asset("Cash", "liquid", "cash", "", 0, 0, 7_000_000, 0, "t")]
    assert "emergency-fund-excellent" in ids(recommend(INCOME, spend, [], cash))


def test_food_increase_against_previous_month():
    cat = BudgetCategory("Food", "needs", "#fff", 10_000_000, 0, 7, 2025)
    previous = [Expense("2025-06-02", "x", 100_000, "Food", "BCA", 6, 2025)]
    recs = recommend(INCOME, [expense(200_000)], [cat], previous_expenses=previous)
    assert any(r.id.startswith("food-increase") for r in recs)


def test_suppress_and_dedupe():
    def twice(ctx):
        yield Recommendation("dup", "info", "Test", "t", "m", "low")
        yield Recommendation("dup", "info", "Test", "t", "m", "low")
        yield Recommendation("hidden", "info", "Test", "t", "m", "high")

    recs = recommend(INCOME, [], [], suppress=["hidden"], rules=[twice])
    assert ids(recs) == ["dup"]


def test_zero_income_does_not_raise():
    recs = recommend([], [expense(100)], [BudgetCategory("Food", "needs", "#fff", 0, 0, 7, 2025)])
    assert all(isinstance(r.to_dict(), dict) for r in recs)


def test_income_growth_ignores_sources_within_one_month():
    income = [MonthlyIncome("Freelance", 1_000_000, 7, 2025), MonthlyIncome("Salary", 10_000_000, 7, 2025)]
    assert "income-growth" not in ids(recommend(income, [], []))


def test_income_growth_compares_monthly_totals():
    previous = [MonthlyIncome("Salary", 8_000_000, 6, 2025), MonthlyIncome("Freelance", 2_000_000, 6, 2025)]
    current = [MonthlyIncome("Salary", 10_000_000, 7, 2025), MonthlyIncome("Freelance", 2_000_000, 7, 2025)]
    growth = next(r for r in recommend(current, [], [], previous_income=previous) if r.id == "income-growth")
    assert growth.value == pytest.approx(20.0)
    flat = [MonthlyIncome("Salary", 10_500_000, 7, 2025)]
    assert "income-growth" not in ids(recommend(flat, [], [], previous_income=previous))
