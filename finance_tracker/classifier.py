"""Sheet text classification.

Keyword matcher that maps the free-text type/category cells people type into
their spreadsheets onto the closed sets the rest of the app works with.
Keywords are matched in the normalized cell text (lowercase, punctuation
stripped except spaces); the first rule with a matching keyword wins.
"""

from __future__ import annotations

import re
import string
from typing import List, Sequence, Tuple

_PUNCT_TABLE = str.maketrans({c: " " for c in string.punctuation})

Rules = Sequence[Tuple[str, Sequence[str]]]

BUDGET_TYPE_RULES: Rules = (
    ("wants", ("wants", "variable", "entertainment", "travel")),
    ("savings", ("savings", "investment")),
)

ASSET_TYPE_RULES: Rules = (
    ("non-liquid", ("property", "real estate", "land")),
)

ASSET_CATEGORY_RULES: Rules = (
    ("crypto", ("digital", "crypto")),
    ("property", ("property", "real estate")),
    ("stocks", ("investment", "stock", "fund")),
    ("gold", ("precious", "gold", "metal")),
    ("deposit", ("deposit", "savings")),
)

ACCOUNT_TYPES: List[str] = ["checking", "savings", "investment"]


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", str(text or "").lower().translate(_PUNCT_TABLE)).strip()


def classify(text: str, rules: Rules, default: str) -> str:
    norm = _normalize(text)
    if not norm:
        return default
    for label, keywords in rules:
        for kw in keywords:
            if kw in norm:
                return label
    return default


def budget_type(text: str) -> str:
    """Fixed expenses, utilities and anything unrecognised count as needs."""
    return classify(text, BUDGET_TYPE_RULES, "needs")


def asset_type(text: str) -> str:
    return classify(text, ASSET_TYPE_RULES, "liquid")


def asset_category(text: str) -> str:
    return classify(text, ASSET_CATEGORY_RULES, "cash")


def account_type(text: str) -> str:
    norm = _normalize(text)
    return norm if norm in ACCOUNT_TYPES else "checking"
