"""Ad-hoc checks against the loaded data and the sheets API.

A check is a zero-argument callable that raises to fail; a string return
value becomes the result message.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import analytics as an
from .models import CheckRun, db
from .sources import GET_TYPES
from .validation import validate_analytics_data

logger = logging.getLogger(__name__)

Check = Tuple[str, Callable[[], Optional[str]]]


class CheckFailed(AssertionError):
    pass


def expect(condition: bool, message: str) -> None:
    if not condition:
        raise CheckFailed(message)


@dataclass
class CheckResult:
    name: str
    passed: bool
    message: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class CheckSuite:
    name: str
    results: List[CheckResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


class CheckRunner:
    def __init__(self) -> None:
        self._results: List[CheckResult] = []

    def run_check(self, name: str, fn: Callable[[], Optional[str]]) -> CheckResult:
        start = time.perf_counter()
        try:
            outcome = fn()
        except Exception as exc:  # a failing check must not stop the suite
            passed, message = False, str(exc) or exc.__class__.__name__
        else:
            passed, message = True, outcome if isinstance(outcome, str) else "OK"
        result = CheckResult(
            name=name,
            passed=passed,
            message=message,
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
            timestamp=dt.datetime.now(dt.timezone.utc).isoformat(),
        )
        if not passed:
            logger.warning("Check %s failed: %s", name, message)
        self._results.append(result)
        return result

    def run_suite(self, name: str, checks: Sequence[Check]) -> CheckSuite:
        suite = CheckSuite(name)
        for check_name, fn in checks:
            suite.results.append(self.run_check(check_name, fn))
        logger.info("Suite %s: %s/%s passed", name, suite.passed, suite.total)
        return suite

    def results(self) -> List[CheckResult]:
        return list(self._results)

    def clear(self) -> None:
        self._results.clear()


def data_validation_checks(store) -> List[Check]:
    """Checks over the records currently held by a loaded store."""

    def records_valid() -> str:
        checked = validate_analytics_data(store.expenses, store.income, store.budget_categories)
        expect(not checked.errors, "; ".join(checked.errors[:5]))
        return f"{len(checked.expenses)} expenses, {len(checked.income)} income, {len(checked.categories)} categories valid"

    def categories_known() -> str:
        names = {c.name for c in store.budget_categories}
        unknown = sorted({e.category for e in store.expenses} - names)
        expect(not unknown, f"Expenses in unknown categories: {', '.join(unknown)}")
        return "All expense categories have a budget"

    def category_sum_matches_total() -> str:
        total = an.total_expenses(store.expenses)
        grouped = sum(row["amount"] for row in an.category_totals(store.expenses))
        expect(abs(total - grouped) < 0.01, f"Category sum {grouped} != total {total}")
        return f"Total {total:.0f}"

    def savings_rate_finite() -> str:
        rate = an.savings_rate(an.total_income(store.income), an.total_expenses(store.expenses))
        expect(rate == rate and abs(rate) != float("inf"), "Savings rate is not a finite number")
        return f"Savings rate {rate:.2f}%"

    def spent_reconciled() -> str:
        drift = [r for r in an.reconcile_spent(store.budget_categories, store.expenses) if r["drift"]]
        expect(not drift, f"Stored spent differs from expenses in {len(drift)} categories")
        return "Stored spent matches expenses"

    return [
        ("Records pass validation", records_valid),
        ("Expense categories match budgets", categories_known),
        ("Category totals add up", category_sum_matches_total),
        ("Savings rate is finite", savings_rate_finite),
        ("Budget spent reconciles", spent_reconciled),
    ]


def api_checks(source, month: int, year: int) -> List[Check]:
    """One fetch per GET type through ``source``."""

    def fetch(kind: str) -> Callable[[], str]:
        def check() -> str:
            data = source.fetch(kind, month, year)
            expect(isinstance(data, (list, dict)), f"Unexpected payload for {kind}: {type(data).__name__}")
            return f"{len(data)} entries"

        return check

    return [(f"GET {kind}", fetch(kind)) for kind in GET_TYPES]


def persist_suite(suite: CheckSuite, user_id: Optional[int] = None) -> List[CheckRun]:
    rows = [
        CheckRun(
            user_id=user_id,
            suite=suite.name,
            name=r.name,
            passed=r.passed,
            message=r.message[:500],
            duration_ms=r.duration_ms,
        )
        for r in suite.results
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows
