"""Demo-mode data.

Hard-coded sample records substituted when the spreadsheet is not configured
or a range comes back empty, plus the synthetic multi-month history that backs
the quarter/year analytics views.
"""

from __future__ import annotations

import datetime as dt
import random
from typing import Dict, List, Optional

from .records import (
    Asset,
    BankAccount,
    BudgetCategory,
    Expense,
    IdAllocator,
    MonthlyIncome,
    now_iso,
)

INCOME_SOURCES = (
    ("Salary", 25_000_000, "BCA Checking"),
    ("Freelance Work", 5_000_000, "BCA Checking"),
    ("Investment Returns", 2_500_000, "Investasi Saham"),
)

# name, type, color, allocation, spent, account
BUDGET_CATEGORIES = (
    ("Food & Groceries", "needs", "#10B981", 4_000_000, 3_200_000, "BCA Checking"),
    ("Transportation", "needs", "#3B82F6", 2_000_000, 1_800_000, "BCA Checking"),
    ("Utilities", "needs", "#F59E0B", 1_500_000, 1_200_000, "BCA Checking"),
    ("Entertainment", "wants", "#EF4444", 2_500_000, 3_100_000, "BCA Checking"),
    ("Shopping", "wants", "#8B5CF6", 2_000_000, 1_500_000, "BCA Checking"),
    ("Emergency Fund", "savings", "#059669", 5_000_000, 5_000_000, "Mandiri Savings"),
    ("Investments", "savings", "#7C3AED", 3_000_000, 3_000_000, "Investasi Saham"),
)

# day, description, amount, category
EXPENSE_TEMPLATES = (
    (5, "Supermarket Shopping", 750_000, "Food & Groceries"),
    (8, "Grab Transport", 85_000, "Transportation"),
    (10, "Electricity Bill", 450_000, "Utilities"),
    (12, "Netflix Subscription", 186_000, "Entertainment"),
    (15, "Restaurant Dinner", 420_000, "Entertainment"),
    (18, "Clothing Shopping", 650_000, "Shopping"),
    (20, "Grocery Store", 320_000, "Food & Groceries"),
    (22, "Gas Station", 200_000, "Transportation"),
    (25, "Coffee Shop", 85_000, "Entertainment"),
    (28, "Internet Bill", 350_000, "Utilities"),
)

ASSETS = (
    ("Bank BCA Saham", "liquid", "stocks", "BBCA.JK", 100, 9_750, 97_500_000, 120_000_000),
    ("Bitcoin", "liquid", "crypto", "BTC", 0.5, 1_500_000_000, 75_000_000, 100_000_000),
    ("Deposito BCA", "liquid", "deposit", "DEP", 1, 50_000_000, 50_000_000, 60_000_000),
    ("Ethereum", "liquid", "crypto", "ETH", 2, 65_000_000, 130_000_000, 150_000_000),
    ("Gold Investment", "liquid", "gold", "GOLD", 10, 1_200_000, 12_000_000, 15_000_000),
)

ACCOUNTS = (
    ("BCA Checking", "checking", 15_750_000, "#3B82F6"),
    ("Mandiri Savings", "savings", 87_500_000, "#10B981"),
    ("Investasi Saham", "investment", 125_000_000, "#8B5CF6"),
)


def _iso_day(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def demo_income(month: int, year: int) -> List[MonthlyIncome]:
    ids = IdAllocator("income")
    items = []
    for source, amount, account in INCOME_SOURCES:
        item = MonthlyIncome(source=source, amount=amount, month=month, year=year, account=account)
        item.id = ids(item.to_row())
        items.append(item)
    return items


def demo_budget(month: int, year: int) -> List[BudgetCategory]:
    ids = IdAllocator("budget")
    items = []
    for name, kind, color, allocation, spent, account in BUDGET_CATEGORIES:
        item = BudgetCategory(
            name=name, type=kind, color=color, allocation=allocation, spent=spent,
            month=month, year=year, account=account,
        )
        item.id = ids(item.to_row())
        items.append(item)
    return items


def demo_expenses(month: int, year: int) -> List[Expense]:
    ids = IdAllocator("expense")
    items = []
    for day, description, amount, category in EXPENSE_TEMPLATES:
        item = Expense(
            date=_iso_day(year, month, day), description=description, amount=amount,
            category=category, account="BCA Checking", month=month, year=year,
        )
        item.id = ids(item.to_row())
        items.append(item)
    return items


def demo_assets() -> List[Asset]:
    ids = IdAllocator("asset")
    stamp = now_iso()
    items = []
    for name, kind, category, symbol, shares, price, current, target in ASSETS:
        item = Asset(
            name=name, type=kind, category=category, symbol=symbol, shares=shares, price=price,
            current_value=current, target_value=target, last_updated=stamp,
        )
        item.id = ids(item.to_row()[:4])
        items.append(item)
    return items


def demo_accounts() -> List[BankAccount]:
    ids = IdAllocator("account")
    items = []
    for name, kind, balance, color in ACCOUNTS:
        item = BankAccount(name=name, type=kind, balance=balance, color=color)
        item.id = ids([item.name, item.type])
        items.append(item)
    return items


def _shift_month(year: int, month: int, back: int) -> tuple:
    index = year * 12 + (month - 1) - back
    return index // 12, index % 12 + 1


def seasonal_multiplier(month: int) -> float:
    """Higher spending in December and the mid-year holiday months."""
    if month == 12:
        return 1.3
    if month in (6, 7):
        return 1.1
    return 1.0


def generate_historical_data(
    months: int = 6,
    today: Optional[dt.date] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, List]:
    """Synthetic history for the last ``months`` months, newest first.

    Returns ``{"income": [...], "expenses": [...], "budget": [...]}`` with
    record objects. Detailed expenses are generated for the current month only.
    """

    today = today or dt.date.today()
    rng = rng or random.Random()
    income: List[MonthlyIncome] = []
    expenses: List[Expense] = []
    budget: List[BudgetCategory] = []

    for back in range(months):
        year, month = _shift_month(today.year, today.month, back)
        variation = (rng.random() - 0.5) * 0.2
        factors = (1 + variation, 1 + variation * 0.5, 1 + variation * 0.3)
        for idx, ((source, base, account), factor) in enumerate(zip(INCOME_SOURCES, factors), start=1):
            income.append(MonthlyIncome(
                id=f"income-{year}-{month}-{idx}", source=source, amount=round(base * factor),
                month=month, year=year, account=account,
            ))

        multiplier = seasonal_multiplier(month)
        for idx, (name, kind, color, allocation, base_spent, account) in enumerate(BUDGET_CATEGORIES):
            spent_variation = (rng.random() - 0.5) * 0.3
            spent = round(base_spent * multiplier * (1 + spent_variation))
            budget.append(BudgetCategory(
                id=f"budget-{year}-{month}-{idx}", name=name, type=kind, color=color,
                allocation=allocation, spent=min(spent, allocation * 1.2),
                month=month, year=year, account=account,
            ))

        if back == 0:
            for idx, (_, description, base_amount, category) in enumerate(EXPENSE_TEMPLATES):
                day = int(5 + idx * 2.5)
                expenses.append(Expense(
                    id=f"expense-{year}-{month}-{idx}", date=_iso_day(year, month, day),
                    description=description, amount=round(base_amount * (0.8 + rng.random() * 0.4)),
                    category=category, account="BCA Checking", month=month, year=year,
                ))

    return {"income": income, "expenses": expenses, "budget": budget}
