"""Savings goals and progress tracking."""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional

from .formatting import format_currency


@dataclass
class FinancialGoal:
    id: str
    name: str
    description: str
    target_amount: float
    current_amount: float
    target_date: str
    category: str  # travel | gadget | emergency | investment | education | home | car | other
    priority: str  # high | medium | low
    auto_save_amount: float = 0.0

    def to_dict(self) -> Dict:
        return asdict(self)

    @property
    def remaining(self) -> float:
        return self.target_amount - self.current_amount

    @property
    def progress(self) -> float:
        if self.target_amount <= 0:
            return 100.0
        return min(self.current_amount / self.target_amount * 100, 100.0)


DEMO_GOALS: List[FinancialGoal] = [
    FinancialGoal("goal-1", "Liburan Bali", "Family holiday in Bali for a week",
                  15_000_000, 8_500_000, "2025-12-31", "travel", "high", 1_000_000),
    FinancialGoal("goal-2", "iPhone 16 Pro", "Smartphone upgrade",
                  20_000_000, 12_000_000, "2025-09-30", "gadget", "medium", 1_500_000),
    FinancialGoal("goal-3", "Dana Darurat", "Six months of expenses set aside",
                  30_000_000, 18_000_000, "2025-12-31", "emergency", "high", 2_000_000),
    FinancialGoal("goal-4", "Down Payment Rumah", "Down payment for a house in South Jakarta",
                  150_000_000, 45_000_000, "2027-06-30", "home", "high", 5_000_000),
]


def goal_analytics(goals: Iterable[FinancialGoal]) -> Dict:
    goals = list(goals)
    target = sum(g.target_amount for g in goals)
    current = sum(g.current_amount for g in goals)
    return {
        "totalTargetAmount": target,
        "totalCurrentAmount": current,
        "totalProgress": current / target * 100 if target > 0 else 0.0,
        "completedGoals": sum(1 for g in goals if g.current_amount >= g.target_amount),
        "totalGoals": len(goals),
        "remainingAmount": target - current,
    }


def months_to_target(goal: FinancialGoal) -> Optional[int]:
    """Months of auto-saving left; 0 when reached, None when there is no auto-save."""
    if goal.remaining <= 0:
        return 0
    if goal.auto_save_amount <= 0:
        return None
    return math.ceil(goal.remaining / goal.auto_save_amount)


def time_to_target(goal: FinancialGoal) -> str:
    months = months_to_target(goal)
    if months == 0:
        return "Reached!"
    if months is None:
        return "Not predictable"
    if months == 1:
        return "1 month left"
    if months < 12:
        return f"{months} months left"
    years, rest = divmod(months, 12)
    year_part = f"{years} year{'s' if years > 1 else ''}"
    if rest == 0:
        return f"{year_part} left"
    return f"{year_part} {rest} month{'s' if rest > 1 else ''} left"


def required_monthly_saving(goal: FinancialGoal, today: Optional[dt.date] = None) -> float:
    today = today or dt.date.today()
    target = dt.date.fromisoformat(goal.target_date)
    months_left = max(1.0, (target - today).days / 30)
    return max(goal.remaining, 0.0) / months_left


def budget_adjustment(goal: FinancialGoal, today: Optional[dt.date] = None, currency: str = "Rp") -> str:
    needed = required_monthly_saving(goal, today)
    if needed > goal.auto_save_amount:
        extra = needed - goal.auto_save_amount
        return f"Add {format_currency(extra, currency)}/month to reach the target on time"
    return "On track for the target date"


def goal_rows(goals: Iterable[FinancialGoal], today: Optional[dt.date] = None, category: str = "all") -> List[Dict]:
    rows = []
    for goal in goals:
        if category not in ("", "all") and goal.category != category:
            continue
        row = goal.to_dict()
        row.update({
            "progress": goal.progress,
            "timeToTarget": time_to_target(goal),
            "suggestion": budget_adjustment(goal, today),
        })
        rows.append(row)
    return rows
