"""Record validation and sanitizing.

Validators never raise; they return a :class:`ValidationResult` holding the
error list and, when valid, a sanitized copy (trimmed text, absolute amounts).
"""

from __future__ import annotations

import functools
import math
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from .records import BudgetCategory, Expense, MonthlyIncome

T = TypeVar("T")

BUDGET_TYPES = ("needs", "wants", "savings")


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    sanitized: Optional[Any] = None


def _check_period(errors: List[str], label: str, month: int, year: int) -> None:
    if not month or month < 1 or month > 12:
        errors.append(f"{label} month must be between 1 and 12")
    if not year or year < 2000 or year > 2100:
        errors.append(f"{label} year must be a valid year")


def validate_expense(expense: Expense, require_id: bool = True) -> ValidationResult:
    errors: List[str] = []
    if require_id and not expense.id:
        errors.append("Expense ID is required")
    if not (expense.description or "").strip():
        errors.append("Expense description is required")
    if not expense.amount or expense.amount <= 0:
        errors.append("Expense amount must be greater than 0")
    if not expense.category:
        errors.append("Expense category is required")
    if not expense.account:
        errors.append("Expense account is required")
    if not expense.date:
        errors.append("Expense date is required")
    _check_period(errors, "Expense", expense.month, expense.year)
    if errors:
        return ValidationResult(False, errors)
    return ValidationResult(True, [], replace(
        expense,
        description=expense.description.strip(),
        amount=abs(expense.amount),
        category=expense.category.strip(),
        account=expense.account.strip(),
    ))


def validate_income(income: MonthlyIncome, require_id: bool = True) -> ValidationResult:
    errors: List[str] = []
    if require_id and not income.id:
        errors.append("Income ID is required")
    if not (income.source or "").strip():
        errors.append("Income source is required")
    if not income.amount or income.amount <= 0:
        errors.append("Income amount must be greater than 0")
    _check_period(errors, "Income", income.month, income.year)
    if errors:
        return ValidationResult(False, errors)
    return ValidationResult(True, [], replace(income, source=income.source.strip(), amount=abs(income.amount)))


def validate_budget_category(category: BudgetCategory, require_id: bool = True) -> ValidationResult:
    errors: List[str] = []
    if require_id and not category.id:
        errors.append("Category ID is required")
    if not (category.name or "").strip():
        errors.append("Category name is required")
    if category.type not in BUDGET_TYPES:
        errors.append("Category type must be needs, wants, or savings")
    if not category.color:
        errors.append("Category color is required")
    if category.allocation < 0:
        errors.append("Category allocation must be non-negative")
    if category.spent < 0:
        errors.append("Category spent amount must be non-negative")
    if errors:
        return ValidationResult(False, errors)
    return ValidationResult(True, [], replace(
        category,
        name=category.name.strip(),
        allocation=abs(category.allocation),
        spent=abs(category.spent),
    ))


@dataclass
class AnalyticsData:
    expenses: List[Expense]
    income: List[MonthlyIncome]
    categories: List[BudgetCategory]
    errors: List[str]


def validate_analytics_data(
    expenses: Iterable[Expense],
    income: Iterable[MonthlyIncome],
    categories: Iterable[BudgetCategory],
) -> AnalyticsData:
    """Keep only valid records; report the rest as ``"Expense 2: ..."`` messages."""
    out = AnalyticsData([], [], [], [])
    checks = (
        ("Expense", expenses, validate_expense, out.expenses),
        ("Income", income, validate_income, out.income),
        ("Category", categories, validate_budget_category, out.categories),
    )
    for label, items, validator, bucket in checks:
        for index, item in enumerate(items, start=1):
            result = validator(item)
            if result.is_valid:
                bucket.append(result.sanitized)
            else:
                out.errors.append(f"{label} {index}: {', '.join(result.errors)}")
    return out


def sanitize_chart_data(rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    cleaned = []
    for row in rows:
        item = {}
        for key, value in row.items():
            if isinstance(value, float) and not math.isfinite(value):
                value = 0
            item[key] = value
        cleaned.append(item)
    return cleaned


def aggregate(
    items: Iterable[T],
    key: Callable[[T], str],
    reducer: Callable[[float, T], float],
    initial: float = 0,
) -> Dict[str, float]:
    result: Dict[str, float] = {}
    for item in items:
        k = key(item)
        result[k] = reducer(result.get(k, initial), item)
    return result


def debounce(wait: float):
    """Delay calls until ``wait`` seconds pass without another call."""

    def decorator(fn):
        lock = threading.Lock()
        timer: List[Optional[threading.Timer]] = [None]

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            with lock:
                if timer[0] is not None:
                    timer[0].cancel()
                timer[0] = threading.Timer(wait, fn, args=args, kwargs=kwargs)
                timer[0].daemon = True
                timer[0].start()

        def cancel() -> None:
            with lock:
                if timer[0] is not None:
                    timer[0].cancel()
                    timer[0] = None

        wrapper.cancel = cancel
        return wrapper

    return decorator
