from finance_tracker import classifier
from finance_tracker.records import (
    Asset,
    accounts_from_rows,
    assets_from_rows,
    budget_from_rows,
    expenses_from_rows,
    income_from_rows,
    parse_float,
    parse_int,
)

INCOME_ROWS = [
    ["Source", "Amount", "Month", "Year", "Account"],
    ["Salary", "25000000", "7", "2025", "BCA"],
    ["Salary", "25000000", "7", "2025", "BCA"],
    ["Bonus", "abc", "6", "2025", "BCA"],
]


def test_parse_float_is_lenient():
    assert parse_float("12abc") == 12.0
    assert parse_float(" -4.5e2x") == -450.0
    assert parse_float("abc") == 0.0
    assert parse_float("") == 0.0
    assert parse_float(None) == 0.0
    assert parse_float(3) == 3.0
    assert parse_float(float("nan")) == 0.0


def test_parse_int_falls_back_on_zero_or_garbage():
    assert parse_int("7", 1) == 7
    assert parse_int("7.9", 1) == 7
    assert parse_int("x", 3) == 3
    assert parse_int("0", 3) == 3
    assert parse_int("", 2025) == 2025


def test_income_rows_filtered_by_period():
    items = income_from_rows(INCOME_ROWS, 7, 2025)
    assert [i.source for i in items] == ["Salary", "Salary"]
    assert items[0].amount == 25_000_000


def test_ids_are_stable_and_unique():
    first = income_from_rows(INCOME_ROWS, 7, 2025)
    second = income_from_rows(INCOME_ROWS, 7, 2025)
    assert [i.id for i in first] == [i.id for i in second]
    assert first[0].id != first[1].id
    assert first[1].id == first[0].id + "-2"
    assert first[0].id.startswith("income-")


def test_malformed_period_cells_use_requested_period():
    rows = [["h"], ["2025-07-01", "Coffee", "25000", "Food", "BCA", "", "bad"]]
    (expense,) = expenses_from_rows(rows, 7, 2025)
    assert (expense.month, expense.year) == (7, 2025)
    assert expense.amount == 25_000


def test_budget_rows_classify_type_and_default_color():
    rows = [
        ["Name", "Type"],
        ["Fun", "Variable", "", "100", "50", "7", "2025"],
        ["Stash", "Savings", "#111", "100", "0", "7", "2025"],
        ["Rent", "", "#222", "100", "100", "7", "2025"],
        ["Toys", "wants", "#333", "100", "10", "7", "2025"],
    ]
    items = budget_from_rows(rows, 7, 2025)
    assert [c.type for c in items] == ["wants", "savings", "needs", "wants"]
    assert items[0].color == "#3B82F6"


def test_asset_id_survives_price_change():
    row = ["BBCA", "Stocks", "Investment", "BBCA.JK", "100", "9000", "900000", "1000000", "2025-07-01"]
    repriced = row[:5] + ["9500", "950000"] + row[7:8] + ["2025-07-02"]
    (a,) = assets_from_rows([["h"], row])
    (b,) = assets_from_rows([["h"], repriced])
    assert a.id == b.id
    assert a.category == "stocks"
    assert a.type == "liquid"


def test_asset_dict_uses_camel_case():
    asset = Asset.from_dict({"name": "Gold", "currentValue": "12", "targetValue": 15})
    data = asset.to_dict()
    assert data["currentValue"] == 12.0
    assert data["targetValue"] == 15.0
    assert data["lastUpdated"]


def test_accounts_unknown_type_is_checking():
    items = accounts_from_rows([["h"], ["Wallet", "Cash", "1000"], ["Saver", "Savings", "5"]])
    assert [a.type for a in items] == ["checking", "savings"]


def test_classifier_rules():
    assert classifier.asset_category("Digital Currency") == "crypto"
    assert classifier.asset_category("Precious metal") == "gold"
    assert classifier.asset_category("") == "cash"
    assert classifier.asset_type("Real-Estate") == "non-liquid"
    assert classifier.budget_type("Entertainment & travel") == "wants"
