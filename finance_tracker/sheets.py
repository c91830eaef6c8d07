"""Google Sheets access layer.

Thin wrapper over gspread. Reads return rows as lists of raw cell values and
degrade to an empty list on any error; writes are fire-and-forget (failures
are logged, never raised). Domain getters map fixed column positions onto
records and substitute demo data when a range is empty.
"""

from __future__ import annotations

import datetime as dt
import logging
import random
from typing import Any, Callable, Dict, List, Optional, Sequence

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from . import demo
from .config import AppConfig, Settings
from .records import (
    Asset,
    BankAccount,
    BudgetCategory,
    Expense,
    MonthlyIncome,
    accounts_from_rows,
    assets_from_rows,
    budget_from_rows,
    expenses_from_rows,
    income_from_rows,
    parse_int,
)

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Everything gspread/google-auth/requests raise for API, auth and transport failures.
SHEETS_ERRORS = (gspread.exceptions.GSpreadException, GoogleAuthError, requests.RequestException)

Rows = List[List[Any]]


def _tab(range_name: str) -> str:
    return range_name.split("!")[0]


class SheetsService:
    def __init__(
        self,
        config: AppConfig,
        client: Optional[gspread.Client] = None,
        clock: Optional[Callable[[], dt.date]] = None,
    ) -> None:
        self.config = config
        self.ranges = config.ranges
        self.clock = clock or dt.date.today
        self._client = client
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self.is_configured = client is not None or config.sheets_configured
        if not self.is_configured:
            logger.warning("Google Sheets not configured. Using demo data.")

    def _open(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            if self._client is None:
                try:
                    creds = Credentials.from_service_account_info(
                        self.config.service_account_info(), scopes=SCOPES
                    )
                except ValueError as exc:
                    # Malformed key material: fall back to demo mode for good.
                    logger.error("Failed to initialize Google Sheets API: %s", exc)
                    self.is_configured = False
                    raise GoogleAuthError(str(exc)) from exc
                self._client = gspread.authorize(creds)
                logger.info("Google Sheets API initialized")
            self._spreadsheet = self._client.open_by_key(self.config.spreadsheet_id)
        return self._spreadsheet

    def get_range(self, range_name: str) -> Rows:
        if not self.is_configured:
            return []
        try:
            response = self._open().values_get(range_name)
        except SHEETS_ERRORS as exc:
            logger.error("Error fetching range %s: %s", range_name, exc)
            return []
        return response.get("values") or []

    def update_range(self, range_name: str, values: Sequence[Sequence[Any]]) -> bool:
        if not self.is_configured:
            logger.warning("Google Sheets not configured. Update of %s skipped.", range_name)
            return False
        try:
            self._open().values_update(
                range_name,
                params={"valueInputOption": "USER_ENTERED"},
                body={"values": [list(v) for v in values]},
            )
        except SHEETS_ERRORS as exc:
            logger.error("Error updating range %s: %s", range_name, exc)
            return False
        return True

    def append_data(self, range_name: str, values: Sequence[Sequence[Any]]) -> bool:
        if not self.is_configured:
            logger.warning("Google Sheets not configured. Append to %s skipped.", range_name)
            return False
        try:
            self._open().values_append(
                range_name,
                params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
                body={"values": [list(v) for v in values]},
            )
        except SHEETS_ERRORS as exc:
            logger.error("Error appending to %s: %s", range_name, exc)
            return False
        return True

    def _is_current(self, month: int, year: int) -> bool:
        today = self.clock()
        return month == today.month and year == today.year

    def get_monthly_income(self, month: int, year: int) -> List[MonthlyIncome]:
        rows = self.get_range(self.ranges.income)
        if not rows:
            # Demo income only exists for the current calendar month.
            return demo.demo_income(month, year) if self._is_current(month, year) else []
        return income_from_rows(rows, month, year)

    def get_budget_categories(self, month: int, year: int) -> List[BudgetCategory]:
        rows = self.get_range(self.ranges.budget)
        if not rows:
            return demo.demo_budget(month, year)
        return budget_from_rows(rows, month, year)

    def get_expenses(self, month: int, year: int) -> List[Expense]:
        rows = self.get_range(self.ranges.expenses)
        if not rows:
            return demo.demo_expenses(month, year) if self._is_current(month, year) else []
        return expenses_from_rows(rows, month, year)

    def get_assets(self) -> List[Asset]:
        rows = self.get_range(self.ranges.assets)
        if not rows:
            return demo.demo_assets()
        return assets_from_rows(rows)

    def get_bank_accounts(self) -> List[BankAccount]:
        rows = self.get_range(self.ranges.accounts)
        if not rows:
            return demo.demo_accounts()
        return accounts_from_rows(rows)

    def add_expense(self, expense: Expense) -> bool:
        return self.append_data(self.ranges.expenses, [expense.to_row()])

    def add_income(self, income: MonthlyIncome) -> bool:
        return self.append_data(self.ranges.income, [income.to_row()])

    def update_budget_category(self, category: BudgetCategory) -> bool:
        """Overwrite the sheet row with the same name, month and year.

        Returns False without writing when no such row exists.
        """
        rows = self.get_range(self.ranges.budget)
        for index, row in enumerate(rows):
            if index == 0 or not row:
                continue
            name = row[0] if row else ""
            month = parse_int(row[5] if len(row) > 5 else "", 0)
            year = parse_int(row[6] if len(row) > 6 else "", 0)
            if name == category.name and month == category.month and year == category.year:
                target = f"{_tab(self.ranges.budget)}!A{index + 1}:H{index + 1}"
                return self.update_range(target, [category.to_row()])
        logger.warning(
            "Budget row %s %s/%s not found; update skipped", category.name, category.month, category.year
        )
        return False

    def update_asset_prices(self, assets: Sequence[Asset]) -> bool:
        if not assets:
            return False
        target = f"{_tab(self.ranges.assets)}!A2:I{len(assets) + 1}"
        return self.update_range(target, [a.to_row() for a in assets])

    def get_settings(self) -> Settings:
        rows = self.get_range(self.ranges.settings)
        defaults = self.config.settings

        def value(row_idx: int, fallback: str) -> str:
            if row_idx < len(rows) and len(rows[row_idx]) > 1 and rows[row_idx][1] not in (None, ""):
                return str(rows[row_idx][1])
            return fallback

        return Settings.from_dict(
            {
                "currency": value(0, defaults.currency),
                "defaultAccount": value(1, defaults.default_account),
                "stockApiKey": value(2, defaults.stock_api_key),
            },
            base=defaults,
        )

    def generate_historical_data(self, months: int = 6, rng: Optional[random.Random] = None) -> Dict[str, List]:
        return demo.generate_historical_data(months=months, today=self.clock(), rng=rng)

    def get_all_data(self, rng: Optional[random.Random] = None) -> Dict[str, Any]:
        today = self.clock()
        return {
            "accounts": self.get_bank_accounts(),
            "assets": self.get_assets(),
            "currentIncome": self.get_monthly_income(today.month, today.year),
            "currentExpenses": self.get_expenses(today.month, today.year),
            "currentBudget": self.get_budget_categories(today.month, today.year),
            "historicalData": self.generate_historical_data(6, rng=rng),
        }


def get_stock_prices(symbols: Sequence[str], rng: Optional[random.Random] = None) -> Dict[str, float]:
    """Simulated quotes; Jakarta listings (``.JK``) are quoted in the 0-10 000 range."""
    rng = rng or random.Random()
    prices: Dict[str, float] = {}
    for symbol in symbols:
        ceiling = 10_000 if symbol.endswith(".JK") else 1_000
        prices[symbol] = rng.random() * ceiling
    return prices
