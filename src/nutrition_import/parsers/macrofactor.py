"""Parser for MacroFactor food log exports.

One row per food: Date, Time, Food Name, Calories, Protein (g), Carbs (g),
Fat (g), Servings, ... Foods are bucketed into meals by time of day; a file
without times yields one snack meal per day.
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
    normalized_headers,
    parse_date,
    parse_number,
    time_to_meal_type,
)

_FOOD_HEADERS = {"food name", "food", "name"}
_ENERGY_HEADERS = {"calories", "energy", "kcal"}
_CARBS_KEYS = ("Carbs (g)", "Carbohydrates (g)", "Carbs", "Carbohydrates")


class MacroFactorParser(BaseParser):
    """Per-food detail grouped into meals by time."""

    source = ImportSource.MACROFACTOR

    def detect(self, headers: list[str]) -> bool:
        if not headers:
            return False
        present = normalized_headers(headers)
        return (
            "date" in present
            and bool(present & _FOOD_HEADERS)
            and bool(present & _ENERGY_HEADERS)
        )

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

            meal = time_to_meal_type(get_value(row, "Time"))
            protein, carbs, fat = macro_values(row, _CARBS_KEYS)
            accumulator.add(
                format_date_key(parsed),
                meal,
                ParsedFood(
                    name=get_value(row, "Food Name", "Food", "Name") or "Unknown Food",
                    amount=get_value(row, "Amount", "Serving", "Servings")
                    or "1 serving",
                    calories=parse_number(
                        get_value(row, "Calories", "Energy", "kcal")
                    ),
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                ),
            )
        return accumulator.build(
            include_foods=self.resolve_import_type(import_type)
            == ImportType.INDIVIDUAL_FOODS
        )
