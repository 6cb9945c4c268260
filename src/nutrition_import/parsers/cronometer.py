"""Parser for Cronometer "Food & Recipe Entries" exports.

One row per food: Day, Group, Food Name, Amount, Energy (kcal), Protein (g),
Carbs (g), Fat (g), ... Meal and day totals are derived by summing foods.
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

_REQUIRED_HEADERS = ("day", "group", "food name", "energy (kcal)")
_CARBS_KEYS = ("Carbs (g)", "Net Carbs (g)", "Carbohydrates (g)", "Carbs")


class CronometerParser(BaseParser):
    """Per-food detail, collapsible to daily totals."""

    source = ImportSource.CRONOMETER

    def detect(self, headers: list[str]) -> bool:
        return has_required_headers(headers, _REQUIRED_HEADERS)

    def parse_with_warnings(
        self,
        rows: Sequence[Row],
        import_type: ImportType | None = None,
    ) -> ParseResult:
        accumulator = DayAccumulator()
        for index, row in enumerate(rows):
            raw_date = get_value(row, "Day", "Date")
            parsed = parse_date(raw_date)
            if parsed is None:
                accumulator.warn_bad_date(index, raw_date)
                continue

            protein, carbs, fat = macro_values(row, _CARBS_KEYS)
            amount = get_value(row, "Amount")
            accumulator.add(
                format_date_key(parsed),
                normalize_meal_name(get_value(row, "Group")),
                ParsedFood(
                    name=get_value(row, "Food Name") or "Unknown Food",
                    amount=amount or None,
                    calories=parse_number(
                        get_value(row, "Energy (kcal)", "Energy", "Calories")
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
