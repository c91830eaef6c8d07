"""Display formatting helpers (Indonesian locale)."""

from __future__ import annotations

import datetime as dt
import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from .config import MONTH_NAMES

SHORT_MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep", "Okt", "Nov", "Des"]
DAY_NAMES = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]

BUDGET_STATUS_TEXT = (
    (50, "safe", "Aman"),
    (80, "caution", "Hati-hati"),
    (100, "almost", "Hampir Habis"),
)
CATEGORY_TYPE_LABELS = {"needs": "Kebutuhan", "wants": "Keinginan", "savings": "Tabungan"}


def _group_thousands(digits: str) -> str:
    parts = []
    while len(digits) > 3:
        parts.insert(0, digits[-3:])
        digits = digits[:-3]
    parts.insert(0, digits)
    return ".".join(parts)


def _round(value: float, places: int) -> Decimal:
    if not math.isfinite(value):
        value = 0
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def format_currency(amount: float, currency: str = "Rp") -> str:
    """``1500000`` -> ``"Rp 1.500.000"``.

    The symbol is cosmetic: a different ``currency`` only changes the prefix,
    the amount is printed in the same unit.
    """
    rounded = _round(amount or 0, 0)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{currency} {_group_thousands(str(abs(int(rounded))))}"


def format_number(value: float, max_decimals: int = 3) -> str:
    rounded = _round(value or 0, max_decimals)
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):f}"
    whole, _, frac = text.partition(".")
    frac = frac.rstrip("0")
    out = _group_thousands(whole)
    return f"{sign}{out},{frac}" if frac else f"{sign}{out}"


def format_percentage(value: float, decimals: int = 2) -> str:
    return f"{_round(value or 0, decimals):.{decimals}f}%"


def format_date(value: str | dt.date, style: str = "medium") -> str:
    if isinstance(value, str):
        value = dt.date.fromisoformat(value[:10])
    if style == "short":
        return f"{value.day:02d}/{value.month:02d}/{value.year}"
    if style == "long":
        return f"{DAY_NAMES[value.weekday()]}, {value.day} {MONTH_NAMES[value.month - 1]} {value.year}"
    return f"{value.day} {SHORT_MONTH_NAMES[value.month - 1]} {value.year}"


def get_month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "Unknown"


def get_month_names() -> List[str]:
    return list(MONTH_NAMES)


def parse_currency(text: str) -> float:
    """Inverse of :func:`format_currency` for id-ID strings (``.`` groups, ``,`` decimals)."""
    cleaned = re.sub(r"[^0-9,\-]", "", text or "").replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def calculate_budget_usage(allocated: float, spent: float) -> float:
    if not allocated:
        return 0.0
    return spent / allocated * 100


def budget_status(usage: float) -> dict:
    for ceiling, level, label in BUDGET_STATUS_TEXT:
        if usage <= ceiling:
            return {"level": level, "label": label}
    return {"level": "over", "label": "Melebihi Budget"}


def category_type_label(kind: str) -> str:
    return CATEGORY_TYPE_LABELS.get(kind, kind)


def shorten_text(text: str, max_length: int = 20) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def is_current_month(month: int, year: int, today: Optional[dt.date] = None) -> bool:
    today = today or dt.date.today()
    return month == today.month and year == today.year


def months_between(start: dt.date, end: dt.date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def financial_year_progress(today: Optional[dt.date] = None) -> float:
    today = today or dt.date.today()
    start = dt.date(today.year, 1, 1)
    end = dt.date(today.year, 12, 31)
    return (today - start).days / (end - start).days * 100
