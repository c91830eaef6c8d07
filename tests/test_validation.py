import threading

from finance_tracker.records import BudgetCategory, Expense, MonthlyIncome
from finance_tracker.validation import (
    aggregate,
    debounce,
    sanitize_chart_data,
    validate_analytics_data,
    validate_budget_category,
    validate_expense,
    validate_income,
)


def test_valid_expense_is_sanitized():
    raw = Expense("2025-07-01", "  Coffee ", 25_000, " Food", "BCA ", 7, 2025, id="e1")
    result = validate_expense(raw)
    assert result.is_valid
    assert result.sanitized.description == "Coffee"
    assert result.sanitized.category == "Food"
    assert result.sanitized.account == "BCA"


def test_invalid_expense_lists_every_problem():
    result = validate_expense(Expense("", "", -5, "", "", 13, 1999))
    assert not result.is_valid
    assert "Expense ID is required" in result.errors
    assert "Expense amount must be greater than 0" in result.errors
    assert "Expense month must be between 1 and 12" in result.errors
    assert "Expense year must be a valid year" in result.errors
    assert result.sanitized is None


def test_id_optional_for_new_records():
    result = validate_income(MonthlyIncome("Salary", 10, 7, 2025), require_id=False)
    assert result.is_valid


def test_budget_category_type_checked():
    bad = BudgetCategory("Food", "luxury", "#fff", 10, 0, 7, 2025, id="b1")
    assert "Category type must be needs, wants, or savings" in validate_budget_category(bad).errors


def test_analytics_data_filters_invalid_records():
    good = Expense("2025-07-01", "Coffee", 1, "Food", "BCA", 7, 2025, id="e1")
    bad = Expense("2025-07-01", "", 1, "Food", "BCA", 7, 2025, id="e2")
    data = validate_analytics_data([good, bad], [], [])
    assert [e.id for e in data.expenses] == ["e1"]
    assert data.errors == ["Expense 2: Expense description is required"]


def test_sanitize_chart_data_replaces_non_finite():
    rows = sanitize_chart_data([{"name": "a", "value": float("nan")}, {"name": "b", "value": float("inf")}])
    assert [r["value"] for r in rows] == [0, 0]


def test_aggregate():
    totals = aggregate([("a", 1), ("b", 2), ("a", 3)], key=lambda t: t[0], reducer=lambda acc, t: acc + t[1])
    assert totals == {"a": 4, "b": 2}


def test_debounce_runs_once_with_last_arguments():
    calls = []
    done = threading.Event()

    @debounce(0.05)
    def record(value):
        calls.append(value)
        done.set()

    record(1)
    record(2)
    record(3)
    assert done.wait(2)
    assert calls == [3]
    record.cancel()
