"""Common contract for source parsers."""

from collections.abc import Sequence
from typing import ClassVar, Protocol

from nutrition_import.domain.imports import (
    ImportSource,
    ImportType,
    MealType,
    NutritionTotals,
    ParsedFood,
    ParsedMeal,
    ParsedNutritionDay,
    ParseResult,
    ParseWarning,
)
from nutrition_import.domain.sources import default_import_type
from nutrition_import.parsers.utils import (
    Row,
    get_value,
    local_date_from_key,
    parse_number,
    sum_totals,
)

# Header row is line 1, so the first data row is line 2.
FIRST_DATA_LINE = 2


class NutritionParser(Protocol):
    """Capability set every source format implements."""

    source: ImportSource
    default_import_type: ImportType

    def detect(self, headers: list[str]) -> bool:
        """Return True if the header row belongs to this format."""

    def parse(
        self,
        rows: Sequence[Row],
        import_type: ImportType | None = None,
    ) -> list[ParsedNutritionDay]:
        """Return parsed days sorted by date."""

    def parse_with_warnings(
        self,
        rows: Sequence[Row],
        import_type: ImportType | None = None,
    ) -> ParseResult:
        """Return parsed days together with dropped-row warnings."""


class BaseParser:
    """Shared plumbing for parsers that group rows by date."""

    source: ClassVar[ImportSource]

    @property
    def default_import_type(self) -> ImportType:
        return default_import_type(self.source)

    def resolve_import_type(self, import_type: ImportType | None) -> ImportType:
        return import_type or self.default_import_type

    def parse(
        self,
        rows: Sequence[Row],
        import_type: ImportType | None = None,
    ) -> list[ParsedNutritionDay]:
        return self.parse_with_warnings(rows, import_type).days

    def parse_with_warnings(
        self,
        rows: Sequence[Row],
        import_type: ImportType | None = None,
    ) -> ParseResult:
        raise NotImplementedError


class DayAccumulator:
    """Collects foods per date and meal, preserving first-seen order."""

    def __init__(self) -> None:
        self._days: dict[str, dict[MealType, list[ParsedFood]]] = {}
        self.warnings: list[ParseWarning] = []

    def add(self, day_key: str, meal: MealType, food: ParsedFood) -> None:
        meals = self._days.setdefault(day_key, {})
        meals.setdefault(meal, []).append(food)

    def warn_bad_date(self, index: int, raw: str) -> None:
        self.warnings.append(
            ParseWarning(
                line=index + FIRST_DATA_LINE,
                message=f'Could not parse date: "{raw}"',
            )
        )

    def build(self, include_foods: bool) -> ParseResult:
        days = [
            build_day(day_key, meals, include_foods)
            for day_key, meals in self._days.items()
        ]
        return ParseResult(days=sort_days(days), warnings=list(self.warnings))


def build_day(
    day_key: str,
    meals: dict[MealType, list[ParsedFood]],
    include_foods: bool,
) -> ParsedNutritionDay:
    """Build a day whose totals are the sum of its meals."""
    parsed_meals: list[ParsedMeal] = []
    day_totals = NutritionTotals()
    for meal_type, foods in meals.items():
        meal_totals = sum_totals(foods)
        parsed_meals.append(
            ParsedMeal.from_totals(
                meal_type, meal_totals, list(foods) if include_foods else None
            )
        )
        day_totals = day_totals + meal_totals
    return ParsedNutritionDay(
        date=local_date_from_key(day_key).date(),
        meals=parsed_meals,
        totals=day_totals,
    )


def sort_days(days: list[ParsedNutritionDay]) -> list[ParsedNutritionDay]:
    return sorted(days, key=lambda day: day.date)


def macro_values(row: Row, carbs_keys: tuple[str, ...]) -> tuple[float, float, float]:
    """Read protein, carbs and fat using the common column names."""
    protein = parse_number(get_value(row, "Protein (g)", "Protein"))
    carbs = parse_number(get_value(row, *carbs_keys))
    fat = parse_number(get_value(row, "Fat (g)", "Fat"))
    return protein, carbs, fat
