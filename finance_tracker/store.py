"""In-memory finance store.

Holds the records loaded for the selected month plus loading/error flags.
Every load replaces the lists wholesale. Loads are numbered as they are
issued; a response that arrives after a newer one has been committed is
dropped, so the most recently issued load always wins.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from . import reports
from .config import Settings
from .records import Asset, BankAccount, BudgetCategory, Expense, MonthlyIncome, now_iso
from .sources import InvalidRecord, SourceError
from .validation import debounce, validate_analytics_data, validate_expense, validate_income

logger = logging.getLogger(__name__)

SOURCE_ERRORS = (SourceError, InvalidRecord)


def _records(factory, rows: Optional[Sequence[Mapping]]) -> List:
    return [factory(row) for row in rows or []]


def historical_from_payload(raw: Optional[Mapping]) -> Dict[str, List]:
    raw = raw or {}
    return {
        "income": _records(MonthlyIncome.from_dict, raw.get("income")),
        "expenses": _records(Expense.from_dict, raw.get("expenses")),
        "budget": _records(BudgetCategory.from_dict, raw.get("budget")),
    }


class FinanceStore:
    def __init__(
        self,
        source,
        clock: Optional[Callable[[], dt.date]] = None,
        refresh_delay: float = 0.3,
    ) -> None:
        self.source = source
        self.clock = clock or dt.date.today
        today = self.clock()
        self.current_month = today.month
        self.current_year = today.year

        self.income: List[MonthlyIncome] = []
        self.budget_categories: List[BudgetCategory] = []
        self.expenses: List[Expense] = []
        self.assets: List[Asset] = []
        self.accounts: List[BankAccount] = []
        self.settings = Settings()
        self.historical_data: Optional[Dict[str, List]] = None
        self.dashboard_data: Optional[Dict] = None

        self.is_loading = False
        self.is_updating = False
        self.error: Optional[str] = None
        self.last_updated: Optional[str] = None
        self.validation_errors: List[str] = []

        self._lock = threading.Lock()
        self._issued = 0
        self._committed = 0
        # Bursts of edits rebuild the dashboard once, after they settle.
        self.request_dashboard_refresh = debounce(refresh_delay)(self.refresh_dashboard)

    # Loading

    def _begin(self) -> int:
        with self._lock:
            self._issued += 1
            self.is_loading = True
            self.error = None
            return self._issued

    def _finish(self, generation: int, apply: Callable[[], None]) -> bool:
        with self._lock:
            if generation < self._committed:
                logger.info("Dropping stale load %s (newer load %s already applied)", generation, self._committed)
                return False
            self._committed = generation
            apply()
            if generation == self._issued:
                self.is_loading = False
            return True

    def load_data(self) -> bool:
        """Fetch everything for the selected month; returns False if dropped or failed."""
        generation = self._begin()
        month, year = self.current_month, self.current_year
        try:
            payload = self.source.fetch("all", month, year) or {}
        except SOURCE_ERRORS as exc:
            logger.error("Failed to load data: %s", exc)

            def fail() -> None:
                self.error = "Failed to load data"

            self._finish(generation, fail)
            return False

        def apply() -> None:
            self.income = _records(MonthlyIncome.from_dict, payload.get("income"))
            self.budget_categories = _records(BudgetCategory.from_dict, payload.get("budget"))
            self.expenses = _records(Expense.from_dict, payload.get("expenses"))
            self.assets = _records(Asset.from_dict, payload.get("assets"))
            self.accounts = _records(BankAccount.from_dict, payload.get("accounts"))
            if payload.get("settings"):
                self.settings = Settings.from_dict(payload["settings"], base=self.settings)
            self.last_updated = now_iso()
            self._changed()

        return self._finish(generation, apply)

    def set_current_month(self, month: int, year: int) -> bool:
        self.current_month = month
        self.current_year = year
        return self.load_data()

    def load_historical_data(self) -> bool:
        try:
            payload = self.source.fetch("historical", self.current_month, self.current_year) or {}
        except SOURCE_ERRORS as exc:
            logger.error("Failed to load historical data: %s", exc)
            self.error = "Failed to load historical data"
            return False
        self.historical_data = historical_from_payload(payload.get("historicalData"))
        return True

    def _changed(self) -> None:
        if self.dashboard_data is not None:
            self.request_dashboard_refresh()

    def refresh_dashboard(self) -> Dict:
        """Rebuild dashboard data from the records that pass validation."""
        checked = validate_analytics_data(self.expenses, self.income, self.budget_categories)
        self.validation_errors = checked.errors
        if checked.errors:
            logger.warning("Skipping %s invalid records in dashboard", len(checked.errors))
        self.dashboard_data = reports.build_dashboard(
            self.current_month,
            self.current_year,
            checked.income,
            checked.categories,
            checked.expenses,
            self.assets,
            self.historical_data,
        )
        return self.dashboard_data

    # Writes

    def _push(self, method: str, kind: str, data: Any) -> bool:
        self.is_updating = True
        try:
            return getattr(self.source, method)(kind, data)
        except SOURCE_ERRORS as exc:
            logger.error("Failed to save %s: %s", kind, exc)
            self.error = f"Failed to save {kind}"
            return False
        finally:
            self.is_updating = False

    def _append_and_reload(self, kind: str, record) -> bool:
        persisted = self._push("append", kind, record.to_dict())
        push_error = self.error
        self.load_data()
        self.error = self.error or push_error
        return persisted

    def add_income(self, data: Mapping) -> bool:
        """Validate, append and reload; returns whether the sheet accepted the row."""
        result = validate_income(MonthlyIncome.from_dict(data), require_id=False)
        if not result.is_valid:
            self.error = "; ".join(result.errors)
            return False
        return self._append_and_reload("income", result.sanitized)

    def add_expense(self, data: Mapping) -> bool:
        result = validate_expense(Expense.from_dict(data), require_id=False)
        if not result.is_valid:
            self.error = "; ".join(result.errors)
            return False
        return self._append_and_reload("expense", result.sanitized)

    def _replace_local(self, items: List, item_id: str, changes: Mapping) -> Optional[Any]:
        for index, item in enumerate(items):
            if item.id == item_id:
                items[index] = replace(item, **changes)
                self._changed()
                return items[index]
        return None

    # The sheet has no update/delete path for these; changes stay in memory
    # until the next load replaces them.

    def update_income(self, income_id: str, **changes) -> bool:
        return self._replace_local(self.income, income_id, changes) is not None

    def update_expense(self, expense_id: str, **changes) -> bool:
        return self._replace_local(self.expenses, expense_id, changes) is not None

    def delete_expense(self, expense_id: str) -> bool:
        before = len(self.expenses)
        self.expenses = [e for e in self.expenses if e.id != expense_id]
        self._changed()
        return len(self.expenses) < before

    def update_account(self, account_id: str, **changes) -> bool:
        return self._replace_local(self.accounts, account_id, changes) is not None

    def update_budget_category(self, category_id: str, **changes) -> bool:
        updated = self._replace_local(self.budget_categories, category_id, changes)
        if updated is None:
            return False
        return self._push("update", "budget", updated.to_dict())

    def update_asset(self, asset_id: str, **changes) -> bool:
        if self._replace_local(self.assets, asset_id, changes) is None:
            return False
        return self._push("update", "assets", [a.to_dict() for a in self.assets])

    def refresh_asset_prices(self, price_feed: Callable[[Sequence[str]], Dict[str, float]]) -> bool:
        """Reprice assets that have a quote and write the whole range back."""
        symbols = [a.symbol for a in self.assets if a.symbol]
        if not symbols:
            return False
        prices = price_feed(symbols)
        stamp = now_iso()
        refreshed = []
        for asset in self.assets:
            price = prices.get(asset.symbol)
            if price is None:
                refreshed.append(asset)
                continue
            refreshed.append(replace(
                asset, price=price, current_value=(asset.shares or 1) * price, last_updated=stamp,
            ))
        self.assets = refreshed
        self._changed()
        return self._push("update", "assets", [a.to_dict() for a in self.assets])

    def update_settings(self, changes: Mapping) -> Settings:
        self.settings = Settings.from_dict(changes, base=self.settings)
        return self.settings

    def export_data(self, period: str = "month") -> Dict:
        return reports.export_payload(
            period,
            self.current_month,
            self.current_year,
            self.income,
            self.expenses,
            self.budget_categories,
            self.assets,
            self.historical_data,
        )


class AutoRefresher:
    """Re-runs ``store.load_data`` every ``interval_minutes`` until stopped."""

    def __init__(
        self,
        store: FinanceStore,
        interval_minutes: float = 5,
        on_refresh: Optional[Callable[[FinanceStore], None]] = None,
    ) -> None:
        self.store = store
        self.on_refresh = on_refresh
        self.interval = interval_minutes * 60
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._tick)
        self._timer.daemon = True
        self._timer.start()

    def _tick(self) -> None:
        with self._lock:
            if not self._running:
                return
        logger.debug("Auto-refresh")
        self.store.load_data()
        if self.on_refresh is not None:
            self.on_refresh(self.store)
        with self._lock:
            if self._running:
                self._schedule()

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._schedule()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
