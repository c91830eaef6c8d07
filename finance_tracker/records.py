"""Financial records and spreadsheet row mapping.

Each sheet tab has a fixed column order (header row first). Rows are mapped
to dataclasses with lenient coercion: a malformed numeric cell becomes 0 and a
malformed month/year cell falls back to the requested period.

Record ids are content hashes of the mapped row, so reloading an unchanged
sheet yields the same ids.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from . import classifier

_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^[+-]?\d+")

INCOME_COLUMNS = ("source", "amount", "month", "year", "account")
BUDGET_COLUMNS = ("name", "type", "color", "allocation", "spent", "month", "year", "account")
EXPENSE_COLUMNS = ("date", "description", "amount", "category", "account", "month", "year")
ASSET_COLUMNS = (
    "name", "type", "category", "symbol", "shares", "price", "currentValue", "targetValue", "lastUpdated",
)
ACCOUNT_COLUMNS = ("name", "type", "balance", "color")

DEFAULT_COLOR = "#3B82F6"


def parse_float(value: Any) -> float:
    """Leading-number parse; anything unparseable (or NaN) is 0."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value) if value == value else 0.0
    match = _NUMBER_PREFIX.match(str(value or "").strip())
    if not match:
        return 0.0
    return float(match.group(0))


def parse_int(value: Any, default: int) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = int(value) if value == value else 0
    else:
        match = _INT_PREFIX.match(str(value or "").strip())
        parsed = int(match.group(0)) if match else 0
    return parsed or default


def _cell(row: Sequence[Any], idx: int) -> Any:
    return row[idx] if idx < len(row) else ""


def _text(row: Sequence[Any], idx: int, default: str = "") -> str:
    value = _cell(row, idx)
    return str(value) if value not in (None, "") else default


def _pick(raw: Mapping, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


def now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class IdAllocator:
    """Hands out content-hash ids, suffixing repeats of the same content."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self._seen: Dict[str, int] = {}

    def __call__(self, content: Sequence[Any]) -> str:
        blob = json.dumps([str(c) for c in content], ensure_ascii=False)
        digest = hashlib.sha1(blob.encode("utf-8")).hexdigest()[:10]
        count = self._seen.get(digest, 0) + 1
        self._seen[digest] = count
        base = f"{self.prefix}-{digest}"
        return base if count == 1 else f"{base}-{count}"


@dataclass
class MonthlyIncome:
    source: str
    amount: float
    month: int
    year: int
    account: str = ""
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_row(self) -> List[Any]:
        return [self.source, self.amount, self.month, self.year, self.account]

    @staticmethod
    def from_dict(raw: Mapping) -> "MonthlyIncome":
        return MonthlyIncome(
            id=str(_pick(raw, "id", default="")),
            source=str(_pick(raw, "source", default="")),
            amount=parse_float(_pick(raw, "amount", default=0)),
            month=parse_int(_pick(raw, "month", default=0), 0),
            year=parse_int(_pick(raw, "year", default=0), 0),
            account=str(_pick(raw, "account", default="")),
        )


@dataclass
class BudgetCategory:
    name: str
    type: str
    color: str
    allocation: float
    spent: float
    month: int
    year: int
    account: str = ""
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_row(self) -> List[Any]:
        return [
            self.name, self.type, self.color, self.allocation, self.spent, self.month, self.year, self.account,
        ]

    @staticmethod
    def from_dict(raw: Mapping) -> "BudgetCategory":
        return BudgetCategory(
            id=str(_pick(raw, "id", default="")),
            name=str(_pick(raw, "name", default="")),
            type=str(_pick(raw, "type", default="")),
            color=str(_pick(raw, "color", default="")),
            allocation=parse_float(_pick(raw, "allocation", default=0)),
            spent=parse_float(_pick(raw, "spent", default=0)),
            month=parse_int(_pick(raw, "month", default=0), 0),
            year=parse_int(_pick(raw, "year", default=0), 0),
            account=str(_pick(raw, "account", default="")),
        )


@dataclass
class Expense:
    date: str
    description: str
    amount: float
    category: str
    account: str
    month: int
    year: int
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_row(self) -> List[Any]:
        return [self.date, self.description, self.amount, self.category, self.account, self.month, self.year]

    def parsed_date(self) -> Optional[dt.date]:
        try:
            return dt.date.fromisoformat(self.date[:10])
        except (TypeError, ValueError):
            return None

    @staticmethod
    def from_dict(raw: Mapping) -> "Expense":
        return Expense(
            id=str(_pick(raw, "id", default="")),
            date=str(_pick(raw, "date", default="")),
            description=str(_pick(raw, "description", default="")),
            amount=parse_float(_pick(raw, "amount", default=0)),
            category=str(_pick(raw, "category", default="")),
            account=str(_pick(raw, "account", default="")),
            month=parse_int(_pick(raw, "month", default=0), 0),
            year=parse_int(_pick(raw, "year", default=0), 0),
        )


@dataclass
class Asset:
    name: str
    type: str
    category: str
    symbol: str
    shares: float
    price: float
    current_value: float
    target_value: float
    last_updated: str
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "category": self.category,
            "symbol": self.symbol,
            "shares": self.shares,
            "price": self.price,
            "currentValue": self.current_value,
            "targetValue": self.target_value,
            "lastUpdated": self.last_updated,
        }

    def to_row(self) -> List[Any]:
        return [
            self.name, self.type, self.category, self.symbol, self.shares, self.price,
            self.current_value, self.target_value, self.last_updated,
        ]

    @staticmethod
    def from_dict(raw: Mapping) -> "Asset":
        return Asset(
            id=str(_pick(raw, "id", default="")),
            name=str(_pick(raw, "name", default="")),
            type=str(_pick(raw, "type", default="liquid")),
            category=str(_pick(raw, "category", default="cash")),
            symbol=str(_pick(raw, "symbol", default="")),
            shares=parse_float(_pick(raw, "shares", default=0)),
            price=parse_float(_pick(raw, "price", default=0)),
            current_value=parse_float(_pick(raw, "currentValue", "current_value", default=0)),
            target_value=parse_float(_pick(raw, "targetValue", "target_value", default=0)),
            last_updated=str(_pick(raw, "lastUpdated", "last_updated", default="")) or now_iso(),
        )


@dataclass
class BankAccount:
    name: str
    type: str
    balance: float
    color: str = DEFAULT_COLOR
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(raw: Mapping) -> "BankAccount":
        return BankAccount(
            id=str(_pick(raw, "id", default="")),
            name=str(_pick(raw, "name", default="")),
            type=classifier.account_type(_pick(raw, "type", default="")),
            balance=parse_float(_pick(raw, "balance", default=0)),
            color=str(_pick(raw, "color", default=DEFAULT_COLOR)),
        )


def income_from_rows(rows: Sequence[Sequence[Any]], month: int, year: int) -> List[MonthlyIncome]:
    ids = IdAllocator("income")
    items: List[MonthlyIncome] = []
    for row in rows[1:]:
        item = MonthlyIncome(
            source=_text(row, 0),
            amount=parse_float(_cell(row, 1)),
            month=parse_int(_cell(row, 2), month),
            year=parse_int(_cell(row, 3), year),
            account=_text(row, 4),
        )
        item.id = ids(item.to_row())
        items.append(item)
    return [i for i in items if i.month == month and i.year == year]


def budget_from_rows(rows: Sequence[Sequence[Any]], month: int, year: int) -> List[BudgetCategory]:
    ids = IdAllocator("budget")
    items: List[BudgetCategory] = []
    for row in rows[1:]:
        item = BudgetCategory(
            name=_text(row, 0),
            type=classifier.budget_type(_text(row, 1)),
            color=_text(row, 2, DEFAULT_COLOR),
            allocation=parse_float(_cell(row, 3)),
            spent=parse_float(_cell(row, 4)),
            month=parse_int(_cell(row, 5), month),
            year=parse_int(_cell(row, 6), year),
            account=_text(row, 7),
        )
        item.id = ids(item.to_row())
        items.append(item)
    return [i for i in items if i.month == month and i.year == year]


def expenses_from_rows(rows: Sequence[Sequence[Any]], month: int, year: int) -> List[Expense]:
    ids = IdAllocator("expense")
    items: List[Expense] = []
    for row in rows[1:]:
        item = Expense(
            date=_text(row, 0),
            description=_text(row, 1),
            amount=parse_float(_cell(row, 2)),
            category=_text(row, 3),
            account=_text(row, 4),
            month=parse_int(_cell(row, 5), month),
            year=parse_int(_cell(row, 6), year),
        )
        item.id = ids(item.to_row())
        items.append(item)
    return [i for i in items if i.month == month and i.year == year]


def assets_from_rows(rows: Sequence[Sequence[Any]]) -> List[Asset]:
    ids = IdAllocator("asset")
    items: List[Asset] = []
    for row in rows[1:]:
        item = Asset(
            name=_text(row, 0),
            type=classifier.asset_type(_text(row, 1)),
            category=classifier.asset_category(_text(row, 2)),
            symbol=_text(row, 3),
            shares=parse_float(_cell(row, 4)),
            price=parse_float(_cell(row, 5)),
            current_value=parse_float(_cell(row, 6)),
            target_value=parse_float(_cell(row, 7)),
            last_updated=_text(row, 8),
        )
        # Identity excludes the timestamp so a price refresh keeps the id.
        item.id = ids(item.to_row()[:4])
        item.last_updated = item.last_updated or now_iso()
        items.append(item)
    return items


def accounts_from_rows(rows: Sequence[Sequence[Any]]) -> List[BankAccount]:
    ids = IdAllocator("account")
    items: List[BankAccount] = []
    for row in rows[1:]:
        item = BankAccount(
            name=_text(row, 0),
            type=classifier.account_type(_text(row, 1)),
            balance=parse_float(_cell(row, 2)),
            color=_text(row, 3, DEFAULT_COLOR),
        )
        item.id = ids([item.name, item.type])
        items.append(item)
    return items
