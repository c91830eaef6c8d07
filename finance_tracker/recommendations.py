"""Smart recommendations.

Each rule inspects the loaded records on its own and may emit one
:class:`Recommendation`. Rules do not know about each other; the only
coordination is deduplication by id, optional suppression by id and the final
ordering by impact.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from . import analytics as an
from .formatting import format_currency, format_percentage
from .records import Asset, BudgetCategory, Expense, MonthlyIncome

IMPACT_ORDER = {"high": 3, "medium": 2, "low": 1}
SUBSCRIPTION_KEYWORDS = ("subscription", "langganan", "netflix", "spotify")
FOOD_KEYWORDS = ("makan", "food")
ENTERTAINMENT_KEYWORDS = ("hiburan", "entertainment")

RETIREMENT_AGE = 55
CURRENT_AGE = 30
RETIREMENT_YEARS = 20


@dataclass
class Recommendation:
    id: str
    type: str  # warning | danger | success | info
    category: str
    title: str
    message: str
    impact: str  # high | medium | low
    value: Optional[float] = None
    action: Optional[str] = None
    action_label: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class Context:
    income: List[MonthlyIncome]
    expenses: List[Expense]
    categories: List[BudgetCategory]
    assets: List[Asset]
    previous_expenses: List[Expense]
    previous_income: List[MonthlyIncome]
    total_income: float
    total_expenses: float
    savings_rate: float
    category_spend: Dict[str, float]
    emergency_fund_months: float


Rule = Callable[[Context], Iterable[Recommendation]]


def _weekday(expense: Expense) -> Optional[int]:
    date = expense.parsed_date()
    return date.weekday() if date else None


def spending_spikes(ctx: Context) -> Iterable[Recommendation]:
    by_day: Dict[str, float] = defaultdict(float)
    for e in ctx.expenses[-30:]:
        by_day[e.date[:10]] += e.amount
    if not by_day:
        return
    avg = sum(by_day.values()) / len(by_day)
    spikes = sum(1 for amount in by_day.values() if amount > avg * 2)
    if spikes > 2:
        yield Recommendation(
            id="spending-spikes", type="warning", category="Spending Patterns",
            title="Unusual Spending Spikes Detected",
            message=f"You've had {spikes} days with spending well above average. Review recent purchases.",
            impact="medium", value=spikes,
        )


def weekend_spending(ctx: Context) -> Iterable[Recommendation]:
    weekend = sum(e.amount for e in ctx.expenses if _weekday(e) in (5, 6))
    ratio = weekend / ctx.total_expenses * 100 if ctx.total_expenses > 0 else 0.0
    if ratio > 40:
        yield Recommendation(
            id="weekend-spending", type="info", category="Spending Habits",
            title="High Weekend Spending",
            message=f"{format_percentage(ratio)} of your spending happens on weekends. Plan weekend activities with a budget.",
            impact="medium", value=ratio,
        )


def budget_reallocation(ctx: Context) -> Iterable[Recommendation]:
    idle = []
    for cat in ctx.categories:
        spent = ctx.category_spend.get(cat.name, 0.0)
        usage = spent / cat.allocation * 100 if cat.allocation > 0 else 0.0
        if usage < 50 and cat.allocation > 100_000:
            idle.append(cat.allocation - spent)
    if idle:
        yield Recommendation(
            id="budget-reallocation", type="success", category="Budget Optimization",
            title="Budget Reallocation Opportunity",
            message=f"You have significant unused budget in {len(idle)} categories. Consider moving it to high-priority goals.",
            impact="high", value=sum(idle),
        )


def category_rules(ctx: Context) -> Iterable[Recommendation]:
    previous_spend = an.spending_by_category(ctx.previous_expenses)
    for cat in ctx.categories:
        spent = ctx.category_spend.get(cat.name, 0.0)
        variance = spent - cat.allocation
        lowered = cat.name.lower()
        if variance > cat.allocation * an.OVERSPEND_WARNING:
            usage = spent / cat.allocation * 100 if cat.allocation > 0 else 0.0
            yield Recommendation(
                id=f"overspent-{cat.id or cat.name}", type="warning", category=cat.name,
                title=f"Overspending in {cat.name}",
                message=f"You have spent {format_percentage(usage)} of the {cat.name} budget. Cut back in this category.",
                impact="high", value=variance,
            )
        if any(k in lowered for k in FOOD_KEYWORDS):
            last = previous_spend.get(cat.name, 0.0)
            increase = (spent - last) / last * 100 if last > 0 else 0.0
            if increase > 15:
                yield Recommendation(
                    id=f"food-increase-{cat.id or cat.name}", type="warning", category="Food",
                    title="Food Spending Increase",
                    message=f"You spent {format_percentage(increase)} more on food than last month. Set a tighter limit.",
                    impact="medium", value=increase,
                )
        if any(k in lowered for k in ENTERTAINMENT_KEYWORDS):
            share = spent / ctx.total_income * 100 if ctx.total_income > 0 else 0.0
            if share > 15:
                yield Recommendation(
                    id=f"entertainment-high-{cat.id or cat.name}", type="danger", category="Entertainment",
                    title="Entertainment Spending Too High",
                    message=f"Entertainment takes {format_percentage(share)} of your income. Recommended maximum: 15%.",
                    impact="high", value=share,
                    action="reduce-entertainment", action_label="Plan a reduction",
                )


def savings_rate_tier(ctx: Context) -> Iterable[Recommendation]:
    rate = ctx.savings_rate
    if rate < 8:
        yield Recommendation(
            id="low-savings-rate", type="danger", category="Savings",
            title="Low Savings Rate",
            message=f"Your savings rate is {format_percentage(rate)}. Raise it to 15% for healthier long-term growth.",
            impact="high", value=rate, action="increase-savings", action_label="Build a savings plan",
        )
    elif rate >= 15:
        yield Recommendation(
            id="good-savings-rate", type="success", category="Savings",
            title="Excellent Savings Rate",
            message=f"Your savings rate of {format_percentage(rate)} beats the 15% target. Keep it up.",
            impact="low", value=rate,
        )
    else:
        yield Recommendation(
            id="moderate-savings-rate", type="info", category="Savings",
            title="Good Savings Rate",
            message=f"Your savings rate of {format_percentage(rate)} is decent. Push a little further toward 15%.",
            impact="medium", value=rate,
        )


def emergency_fund(ctx: Context) -> Iterable[Recommendation]:
    months = ctx.emergency_fund_months
    if months < 3:
        yield Recommendation(
            id="emergency-fund-low", type="warning", category="Emergency Fund",
            title="Emergency Fund Too Small",
            message=f"Your emergency fund covers {months:.1f} months. Target at least 3-6 months of expenses.",
            impact="high", value=months, action="build-emergency-fund", action_label="Start an emergency fund",
        )
    elif months >= 6:
        yield Recommendation(
            id="emergency-fund-excellent", type="success", category="Emergency Fund",
            title="Excellent Emergency Fund",
            message=f"Your emergency fund covers {months:.1f} months of expenses.",
            impact="low", value=months,
        )


def debt_ratio(ctx: Context) -> Iterable[Recommendation]:
    ratio = an.debt_payments(ctx.expenses) / ctx.total_income * 100 if ctx.total_income > 0 else 0.0
    if ratio > 36:
        yield Recommendation(
            id="high-debt-ratio", type="danger", category="Debt Management",
            title="Debt-to-Income Ratio Too High",
            message=f"Your debt-to-income ratio of {format_percentage(ratio)} exceeds the 36% safe limit. Prioritise paying it down.",
            impact="high", value=ratio, action="debt-payoff-plan", action_label="Plan a payoff",
        )


def investment_readiness(ctx: Context) -> Iterable[Recommendation]:
    if ctx.savings_rate >= 15 and ctx.emergency_fund_months >= 3:
        yield Recommendation(
            id="investment-opportunity", type="info", category="Investment",
            title="Ready to Invest",
            message="With solid savings and an adequate emergency fund you can start long-term investing.",
            impact="medium", action="start-investing", action_label="Start investing",
        )


def income_growth(ctx: Context) -> Iterable[Recommendation]:
    before = an.total_income(ctx.previous_income)
    if before <= 0:
        return
    growth = (ctx.total_income - before) / before * 100
    if growth > 10:
        yield Recommendation(
            id="income-growth", type="success", category="Income",
            title="Strong Income Growth",
            message=f"Your income grew {format_percentage(growth)} since last month. Consider raising your savings allocation.",
            impact="low", value=growth,
            action="increase-savings-allocation", action_label="Raise allocation",
        )


def retirement_planning(ctx: Context) -> Iterable[Recommendation]:
    years_left = RETIREMENT_AGE - CURRENT_AGE
    needed = ctx.total_expenses * 0.8 * 12 * RETIREMENT_YEARS
    saved = sum(a.current_value for a in ctx.assets if a.category in ("stocks", "deposit", "gold"))
    monthly = (needed - saved) / (years_left * 12)
    if monthly > ctx.total_income * 0.15:
        yield Recommendation(
            id="retirement-planning", type="warning", category="Retirement Planning",
            title="Retirement Planning Needs Attention",
            message=f"To retire at {RETIREMENT_AGE} you need to save more aggressively or plan to work longer.",
            impact="high", value=monthly,
            action="retirement-calculator", action_label="Estimate retirement needs",
        )


def subscription_audit(ctx: Context) -> Iterable[Recommendation]:
    subs = [e for e in ctx.expenses if any(k in (e.description or "").lower() for k in SUBSCRIPTION_KEYWORDS)]
    if len(subs) > 5:
        total = sum(e.amount for e in subs)
        yield Recommendation(
            id="subscription-audit", type="info", category="Subscriptions",
            title="Subscription Audit Needed",
            message=f"You have {len(subs)} subscriptions totalling {format_currency(total)}/month. Review which ones you still use.",
            impact="medium", value=total, action="subscription-audit", action_label="Audit subscriptions",
        )


RULES: Sequence[Rule] = (
    spending_spikes,
    weekend_spending,
    budget_reallocation,
    category_rules,
    savings_rate_tier,
    emergency_fund,
    debt_ratio,
    investment_readiness,
    income_growth,
    retirement_planning,
    subscription_audit,
)


def build_context(
    income: Sequence[MonthlyIncome],
    expenses: Sequence[Expense],
    categories: Sequence[BudgetCategory],
    assets: Sequence[Asset] = (),
    previous_expenses: Sequence[Expense] = (),
    previous_income: Sequence[MonthlyIncome] = (),
) -> Context:
    inc = an.total_income(income)
    spend = an.total_expenses(expenses)
    return Context(
        income=list(income),
        expenses=list(expenses),
        categories=list(categories),
        assets=list(assets),
        previous_expenses=list(previous_expenses),
        previous_income=list(previous_income),
        total_income=inc,
        total_expenses=spend,
        savings_rate=an.savings_rate(inc, spend),
        category_spend=an.spending_by_category(expenses),
        emergency_fund_months=an.liquid_assets(assets) / spend if spend > 0 else 0.0,
    )


def recommend(
    income: Sequence[MonthlyIncome],
    expenses: Sequence[Expense],
    categories: Sequence[BudgetCategory],
    assets: Sequence[Asset] = (),
    previous_expenses: Sequence[Expense] = (),
    previous_income: Sequence[MonthlyIncome] = (),
    suppress: Iterable[str] = (),
    rules: Sequence[Rule] = RULES,
) -> List[Recommendation]:
    """Run every rule; drop suppressed and duplicate ids; order by impact."""
    ctx = build_context(income, expenses, categories, assets, previous_expenses, previous_income)
    skip = set(suppress)
    seen = set()
    recs: List[Recommendation] = []
    for rule in rules:
        for rec in rule(ctx):
            if rec.id in skip or rec.id in seen:
                continue
            seen.add(rec.id)
            recs.append(rec)
    # sort() is stable, so rule order survives inside an impact level.
    recs.sort(key=lambda r: IMPACT_ORDER.get(r.impact, 0), reverse=True)
    return recs
