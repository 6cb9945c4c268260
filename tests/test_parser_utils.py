"""Tests for shared parsing helpers."""

from datetime import date

import pytest

from nutrition_import.domain.imports import MealType
from nutrition_import.parsers.utils import (
    format_date_key,
    get_value,
    has_required_headers,
    normalize_meal_name,
    parse_date,
    parse_number,
    time_to_meal_type,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("250", 250.0),
        (" 12.5 ", 12.5),
        ("1,234", 1234.0),
        ("", 0.0),
        ("n/a", 0.0),
        (None, 0.0),
        ("NaN", 0.0),
        ("inf", 0.0),
        (42, 42.0),
    ],
)
def test_parse_number_is_total(value: object, expected: float) -> None:
    assert parse_number(value) == expected


def test_parse_date_slash_format_keeps_calendar_day() -> None:
    parsed = parse_date("01/15/2024")

    assert parsed is not None
    assert parsed.date() == date(2024, 1, 15)
    assert parsed.hour == 12


def test_parse_date_accepts_single_digit_parts() -> None:
    parsed = parse_date("2024-3-7")

    assert parsed is not None
    assert format_date_key(parsed) == "2024-03-07"


def test_parse_date_keeps_written_day_for_utc_timestamps() -> None:
    parsed = parse_date("2024-03-10T23:30:00Z")

    assert parsed is not None
    assert format_date_key(parsed) == "2024-03-10"


@pytest.mark.parametrize("value", ["", "   ", None, "yesterday", "2024-02-30", "13/01/2024"])
def test_parse_date_rejects_invalid_values(value: str | None) -> None:
    assert parse_date(value) is None


@pytest.mark.parametrize(
    ("value", "key"),
    [
        ("2024-01-01", "2024-01-01"),
        ("2024-02-29", "2024-02-29"),
        ("2023-12-31", "2023-12-31"),
        ("01/05/2024", "2024-01-05"),
        ("12/31/2023", "2023-12-31"),
        ("2/29/2024", "2024-02-29"),
        ("2024-03-10T08:00:00Z", "2024-03-10"),
        ("2024-03-10T23:30:00-05:00", "2024-03-10"),
        ("2024-07-04T00:15:00", "2024-07-04"),
    ],
)
def test_format_date_key_matches_written_date(value: str, key: str) -> None:
    parsed = parse_date(value)

    assert parsed is not None
    assert format_date_key(parsed) == key
    assert parse_date(format_date_key(parsed)) == parsed


def test_has_required_headers_is_case_insensitive() -> None:
    headers = ["DATE", " Meal ", "Calories", "Fat (g)"]

    assert has_required_headers(headers, ["date", "meal", "calories"])
    assert not has_required_headers(headers, ["date", "type"])


def test_has_required_headers_rejects_empty_header_list() -> None:
    assert not has_required_headers([], [])


def test_get_value_prefers_exact_key_then_case_insensitive() -> None:
    row = {"calories": "100", "Energy (kcal)": " 250 ", "Protein": ""}

    assert get_value(row, "Energy (kcal)", "calories") == "250"
    assert get_value(row, "CALORIES") == "100"
    assert get_value(row, "Protein", "Fat") == ""


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Breakfast", MealType.BREAKFAST),
        ("LUNCH", MealType.LUNCH),
        ("dinner ", MealType.DINNER),
        ("Snacks", MealType.SNACK),
        ("Pre-workout", MealType.SNACK),
    ],
)
def test_normalize_meal_name(label: str, expected: MealType) -> None:
    assert normalize_meal_name(label) == expected


@pytest.mark.parametrize(
    ("time", "expected"),
    [
        ("07:30", MealType.BREAKFAST),
        ("12:15", MealType.LUNCH),
        ("6:45 PM", MealType.DINNER),
        ("12:05 AM", MealType.SNACK),
        ("23:00", MealType.SNACK),
        ("", MealType.SNACK),
        (None, MealType.SNACK),
    ],
)
def test_time_to_meal_type(time: str | None, expected: MealType) -> None:
    assert time_to_meal_type(time) == expected
