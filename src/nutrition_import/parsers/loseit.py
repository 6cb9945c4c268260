"""Parser for Lose It! exports.

Rows: Date (MM/DD/YYYY), Name, Type, Calories, Fat (g), Protein (g),
Carbohydrates (g), ... Lose It! has no meal grouping, so every food row of a
date is folded into one snack meal. Exercise rows are not part of a
nutrition history and are dropped, never subtracted.
"""

from collections.abc import Sequence

from nutrition_import.domain.imports import (
    ImportSource,
    ImportType,
    MealType,
    ParsedFood,
    ParseResult,
)
from nutrition_import.parsers.base import BaseParser, DayAccumulator, macro_values
from nutrition_import.parsers.utils import (
    Row,
    format_date_key,
    get_value,
    has_required_headers,
    parse_date,
    parse_number,
)

_REQUIRED_HEADERS = ("date", "type", "calories")
_CARBS_KEYS = ("Carbohydrates (g)", "Carbs (g)", "Carbohydrates", "Carbs")
_EXERCISE = "exercise"


class LoseItParser(BaseParser):
    """Daily food totals as a single snack meal."""

    source = ImportSource.LOSEIT

    def detect(self, headers: list[str]) -> bool:
        return has_required_headers(headers, _REQUIRED_HEADERS)

    def parse_with_warnings(
        self,
        rows: Sequence[Row],
        import_type: ImportType | None = None,
    ) -> ParseResult:
        accumulator = DayAccumulator()
        for index, row in enumerate(rows):
            if get_value(row, "Type").lower() == _EXERCISE:
                continue

            raw_date = get_value(row, "Date")
            parsed = parse_date(raw_date)
            if parsed is None:
                accumulator.warn_bad_date(index, raw_date)
                continue

            protein, carbs, fat = macro_values(row, _CARBS_KEYS)
            accumulator.add(
                format_date_key(parsed),
                MealType.SNACK,
                ParsedFood(
                    name=get_value(row, "Name") or "Unknown Food",
                    calories=parse_number(get_value(row, "Calories")),
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                ),
            )
        return accumulator.build(include_foods=False)
