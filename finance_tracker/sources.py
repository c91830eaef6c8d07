"""Data sources for the store.

Both sources speak the same JSON shapes as the ``/api/sheets`` endpoint:
``LocalSource`` calls the sheets service in-process, ``ApiClient`` goes
over HTTP with requests.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .records import Asset, BudgetCategory, Expense, MonthlyIncome
from .sheets import SheetsService
from .validation import validate_budget_category, validate_expense, validate_income

logger = logging.getLogger(__name__)

GET_TYPES = ("income", "budget", "expenses", "assets", "accounts", "historical", "all")
POST_TYPES = ("expense", "income")
PUT_TYPES = ("budget", "assets")


class SourceError(Exception):
    """Raised when a source cannot answer a request."""


class InvalidRecord(ValueError):
    def __init__(self, errors) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def _validated(result):
    if not result.is_valid:
        raise InvalidRecord(result.errors)
    return result.sanitized


def _record(data: Any) -> Dict:
    if not isinstance(data, dict):
        raise InvalidRecord(["data must be an object"])
    return data


def _dump(value: Any) -> Any:
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def fetch_payload(service: SheetsService, kind: str, month: int, year: int) -> Any:
    """JSON-ready payload for one GET type; raises ValueError on unknown types."""
    if kind == "income":
        return _dump(service.get_monthly_income(month, year))
    if kind == "budget":
        return _dump(service.get_budget_categories(month, year))
    if kind == "expenses":
        return _dump(service.get_expenses(month, year))
    if kind == "assets":
        return _dump(service.get_assets())
    if kind == "accounts":
        return _dump(service.get_bank_accounts())
    if kind == "historical":
        return _dump(service.get_all_data())
    if kind == "all":
        return {
            "income": _dump(service.get_monthly_income(month, year)),
            "budget": _dump(service.get_budget_categories(month, year)),
            "expenses": _dump(service.get_expenses(month, year)),
            "assets": _dump(service.get_assets()),
            "accounts": _dump(service.get_bank_accounts()),
            "settings": service.get_settings().to_dict(),
        }
    raise ValueError(
        "Invalid type parameter. Use: income, budget, expenses, assets, accounts, historical, or all"
    )


def write_payload(service: SheetsService, method: str, kind: str, data: Any) -> bool:
    """Validate and apply one POST/PUT write; returns whether the sheet accepted it.

    Raises ValueError for unknown types and :class:`InvalidRecord` for bad data.
    """
    if method == "POST":
        if kind == "expense":
            expense = _validated(validate_expense(Expense.from_dict(_record(data)), require_id=False))
            return service.add_expense(expense)
        if kind == "income":
            income = _validated(validate_income(MonthlyIncome.from_dict(_record(data)), require_id=False))
            return service.add_income(income)
        raise ValueError("Invalid type parameter. Use: expense, income")
    if kind == "budget":
        category = _validated(validate_budget_category(BudgetCategory.from_dict(_record(data)), require_id=False))
        return service.update_budget_category(category)
    if kind == "assets":
        if not isinstance(data, list):
            raise InvalidRecord(["data must be a list of assets"])
        return service.update_asset_prices([Asset.from_dict(_record(a)) for a in data])
    raise ValueError("Invalid type parameter. Use: budget, assets")


class LocalSource:
    def __init__(self, service: SheetsService) -> None:
        self.service = service

    def fetch(self, kind: str, month: int = 1, year: int = 2000) -> Any:
        return fetch_payload(self.service, kind, month, year)

    def append(self, kind: str, data: Dict) -> bool:
        return write_payload(self.service, "POST", kind, data)

    def update(self, kind: str, data: Any) -> bool:
        return write_payload(self.service, "PUT", kind, data)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/sheets"

    def _json(self, response: requests.Response) -> Dict:
        try:
            body = response.json()
        except ValueError as exc:
            raise SourceError(f"Non-JSON response ({response.status_code})") from exc
        if not response.ok:
            raise SourceError(body.get("error") or f"HTTP {response.status_code}")
        return body

    def fetch(self, kind: str, month: int = 1, year: int = 2000) -> Any:
        logger.debug("GET %s type=%s month=%s year=%s", self.endpoint, kind, month, year)
        try:
            response = self.session.get(
                self.endpoint, params={"type": kind, "month": month, "year": year}, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise SourceError(f"Failed to fetch data: {exc}") from exc
        return self._json(response).get("data")

    def _send(self, method: str, kind: str, data: Any) -> bool:
        logger.debug("%s %s type=%s", method, self.endpoint, kind)
        try:
            response = self.session.request(
                method, self.endpoint, json={"type": kind, "data": data}, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise SourceError(f"Failed to save data: {exc}") from exc
        return bool(self._json(response).get("persisted", False))

    def append(self, kind: str, data: Dict) -> bool:
        return self._send("POST", kind, data)

    def update(self, kind: str, data: Any) -> bool:
        return self._send("PUT", kind, data)

    def status(self) -> Dict:
        try:
            response = self.session.get(f"{self.endpoint}/status", timeout=self.timeout)
        except requests.RequestException as exc:
            raise SourceError(f"Failed to fetch status: {exc}") from exc
        return self._json(response)
