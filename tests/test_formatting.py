import datetime as dt

from finance_tracker.formatting import (
    budget_status,
    calculate_budget_usage,
    format_currency,
    format_date,
    format_number,
    format_percentage,
    get_month_name,
    is_current_month,
    months_between,
    parse_currency,
    shorten_text,
)


def test_format_currency_zero_and_grouping():
    assert format_currency(0) == "Rp 0"
    assert format_currency(1_500_000) == "Rp 1.500.000"
    assert format_currency(-1500) == "-Rp 1.500"
    assert format_currency(999.5) == "Rp 1.000"


def test_currency_symbol_swap_does_not_convert():
    assert format_currency(1_500_000, "$") == "$ 1.500.000"


def test_format_currency_non_finite_renders_zero():
    assert format_currency(float("nan")) == "Rp 0"
    assert format_currency(float("inf")) == "Rp 0"


def test_format_percentage_precision():
    assert format_percentage(12.3456) == "12.35%"
    assert format_percentage(12.3456, 1) == "12.3%"
    assert format_percentage(0) == "0.00%"


def test_format_number():
    assert format_number(1234.5) == "1.234,5"
    assert format_number(1_000_000) == "1.000.000"


def test_format_date_styles():
    assert format_date("2025-07-05", "short") == "05/07/2025"
    assert format_date("2025-07-05") == "5 Jul 2025"
    assert format_date(dt.date(2025, 7, 5), "long") == "Sabtu, 5 Juli 2025"


def test_month_names():
    assert get_month_name(1) == "Januari"
    assert get_month_name(12) == "Desember"
    assert get_month_name(13) == "Unknown"


def test_parse_currency():
    assert parse_currency("Rp 1.500.000") == 1_500_000
    assert parse_currency("Rp 1.234,5") == 1234.5
    assert parse_currency("") == 0.0


def test_budget_usage_and_status():
    assert calculate_budget_usage(0, 100) == 0.0
    assert calculate_budget_usage(200, 50) == 25.0
    assert budget_status(50)["level"] == "safe"
    assert budget_status(80)["level"] == "caution"
    assert budget_status(100)["level"] == "almost"
    assert budget_status(101) == {"level": "over", "label": "Melebihi Budget"}


def test_small_helpers():
    assert shorten_text("abcdefghij", 5) == "abcde..."
    assert shorten_text("abc", 5) == "abc"
    assert is_current_month(7, 2025, dt.date(2025, 7, 31))
    assert not is_current_month(7, 2024, dt.date(2025, 7, 31))
    assert months_between(dt.date(2024, 11, 1), dt.date(2025, 2, 1)) == 3
