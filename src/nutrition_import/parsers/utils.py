"""Locale-agnostic helpers shared by every source parser.

None of these helpers raise on malformed input: numbers default to ``0``
and dates to ``None`` so a hand-edited export still imports.
"""

import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime

from nutrition_import.domain.imports import MealType, NutritionTotals

_YMD_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_MDY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_TIME_PATTERN = re.compile(r"(\d{1,2}):?(\d{2})?\s*(am|pm)?", re.IGNORECASE)

# Dates are pinned to midday so no timezone conversion moves the calendar day.
_NOON = 12

_MEAL_NAMES = {
    "breakfast": MealType.BREAKFAST,
    "lunch": MealType.LUNCH,
    "dinner": MealType.DINNER,
    "snack": MealType.SNACK,
    "snacks": MealType.SNACK,
}

Row = Mapping[str, str | None]


def parse_number(value: object) -> float:
    """Return the numeric value of a cell, or 0 for anything unparseable."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    else:
        cleaned = str(value).strip().replace(",", "")
        if not cleaned:
            return 0.0
        try:
            number = float(cleaned)
        except ValueError:
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def parse_date(value: str | None) -> datetime | None:
    """Parse YYYY-MM-DD, MM/DD/YYYY or ISO-8601 into a local noon datetime.

    Timestamps keep the calendar date they were written with.
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    match = _YMD_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _noon(year, month, day)

    match = _MDY_PATTERN.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
        return _noon(year, month, day)

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return _noon(parsed.year, parsed.month, parsed.day)


def local_date_from_key(key: str) -> datetime:
    """Build a local noon datetime from a YYYY-MM-DD key."""
    year, month, day = (int(part) for part in key.split("-"))
    return datetime(year, month, day, _NOON)


def normalize_header(value: str) -> str:
    """Lowercase and trim a header cell for comparison."""
    return value.strip().lower()


def normalized_headers(headers: Iterable[str]) -> set[str]:
    return {normalize_header(header) for header in headers}


def has_required_headers(headers: list[str], required: Iterable[str]) -> bool:
    """Return True only if every required header is present."""
    if not headers:
        return False
    present = normalized_headers(headers)
    return all(normalize_header(name) in present for name in required)


def format_date_key(value: date) -> str:
    """Format a date as YYYY-MM-DD from its local components."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def get_value(row: Row, *keys: str) -> str:
    """Return the first non-empty value found under any candidate key.

    Exact keys are tried first, then a case-insensitive match against every
    key of the row.
    """
    for key in keys:
        value = row.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()

    lowered = {normalize_header(str(key)): value for key, value in row.items()}
    for key in keys:
        value = lowered.get(normalize_header(key))
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def normalize_meal_name(name: str) -> MealType:
    """Map a source meal label onto the canonical meal types."""
    return _MEAL_NAMES.get(name.strip().lower(), MealType.SNACK)


def time_to_meal_type(time: str | None) -> MealType:
    """Bucket a clock time into a meal."""
    if not time:
        return MealType.SNACK
    match = _TIME_PATTERN.search(time)
    if not match:
        return MealType.SNACK

    hour = int(match.group(1))
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour != _NOON:
        hour += _NOON
    if meridiem == "am" and hour == _NOON:
        hour = 0

    if 5 <= hour < 11:  # noqa: PLR2004
        return MealType.BREAKFAST
    if 11 <= hour < 15:  # noqa: PLR2004
        return MealType.LUNCH
    if 15 <= hour < 21:  # noqa: PLR2004
        return MealType.DINNER
    return MealType.SNACK


def sum_totals(items: Iterable[object]) -> NutritionTotals:
    """Sum the ``totals`` of foods or meals."""
    total = NutritionTotals()
    for item in items:
        total = total + item.totals  # type: ignore[attr-defined]
    return total


def _noon(year: int, month: int, day: int) -> datetime | None:
    try:
        return datetime(year, month, day, _NOON)
    except ValueError:
        return None
