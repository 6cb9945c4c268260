"""Parser for MyFitnessPal nutrition exports.

MyFitnessPal exports one row per meal, already aggregated:
Date, Meal, Calories, Fat (g), Protein (g), Carbohydrates (g), ...
"""

from collections.abc import Sequence

from nutrition_import.domain.imports import (
    ImportSource,
    ImportType,
    ParsedFood,
    ParseResult,
)
from nutrition_import.parsers.base import BaseParser, DayAccumulator, macro_values
from nutrition_import.parsers.utils import (
    Row,
    format_date_key,
    get_value,
    has_required_headers,
    normalize_meal_name,
    parse_date,
    parse_number,
)

_REQUIRED_HEADERS = ("date", "meal", "calories")
_CARBS_KEYS = ("Carbohydrates (g)", "Carbs (g)", "Carbohydrates", "Carbs")


class MyFitnessPalParser(BaseParser):
    """Meal-level totals; no individual foods."""

    source = ImportSource.MYFITNESSPAL

    def detect(self, headers: list[str]) -> bool:
        return has_required_headers(headers, _REQUIRED_HEADERS)

    def parse_with_warnings(
        self,
        rows: Sequence[Row],
        import_type: ImportType | None = None,
    ) -> ParseResult:
        accumulator = DayAccumulator()
        for index, row in enumerate(rows):
            raw_date = get_value(row, "Date")
            parsed = parse_date(raw_date)
            if parsed is None:
                accumulator.warn_bad_date(index, raw_date)
                continue

            meal_label = get_value(row, "Meal")
            protein, carbs, fat = macro_values(row, _CARBS_KEYS)
            accumulator.add(
                format_date_key(parsed),
                normalize_meal_name(meal_label),
                ParsedFood(
                    name=meal_label or "Meal",
                    calories=parse_number(get_value(row, "Calories")),
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                ),
            )
        return accumulator.build(include_foods=False)
