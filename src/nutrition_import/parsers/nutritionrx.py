"""Parser for NutritionRx's own backups.

CSV backups carry one row per food:
Date, Meal, Type, Food Name, Brand, Servings, Calories, Protein (g),
Carbs (g), Fat (g), Notes

JSON backups wrap the canonical day shape in a versioned envelope; see
``NutritionRxBackup``. ``dump_backup_json`` writes the same envelope so a
backup restores to identical days.
"""

import json
from collections.abc import Sequence
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

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
from nutrition_import.parsers.base import (
    BaseParser,
    DayAccumulator,
    macro_values,
    sort_days,
)
from nutrition_import.parsers.utils import (
    Row,
    format_date_key,
    get_value,
    has_required_headers,
    normalize_meal_name,
    parse_date,
    parse_number,
)

BACKUP_VERSION = "1.0"

_REQUIRED_HEADERS = ("date", "meal", "type", "food name")
_CARBS_KEYS = ("Carbs (g)", "Carbohydrates (g)", "Carbs")


class BackupFood(BaseModel):
    """Food entry in a JSON backup."""

    name: str
    amount: str | None = None
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class BackupTotals(BaseModel):
    """Macro totals in a JSON backup."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class BackupMeal(BaseModel):
    """Meal entry in a JSON backup."""

    name: str
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    foods: list[BackupFood] | None = None


class BackupDay(BaseModel):
    """One day of food logs in a JSON backup."""

    date: str
    meals: list[BackupMeal] = Field(default_factory=list)
    totals: BackupTotals = Field(default_factory=BackupTotals)


class BackupData(BaseModel):
    """Payload section of a JSON backup."""

    model_config = ConfigDict(populate_by_name=True)

    food_logs: list[BackupDay] | None = Field(default=None, alias="foodLogs")


class NutritionRxBackup(BaseModel):
    """Top-level JSON backup envelope."""

    model_config = ConfigDict(populate_by_name=True)

    version: str
    exported_at: str = Field(alias="exportedAt")
    data: BackupData


class NutritionRxParser(BaseParser):
    """Backup restore; keeps food detail by default."""

    source = ImportSource.NUTRITIONRX

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

            food_name = get_value(row, "Food Name")
            brand = get_value(row, "Brand")
            servings = get_value(row, "Servings")
            protein, carbs, fat = macro_values(row, _CARBS_KEYS)
            accumulator.add(
                format_date_key(parsed),
                normalize_meal_name(get_value(row, "Meal")),
                ParsedFood(
                    name=f"{food_name} ({brand})" if brand else food_name,
                    amount=f"{servings} serving(s)" if servings else "1 serving",
                    calories=parse_number(get_value(row, "Calories")),
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                ),
            )
        return accumulator.build(
            include_foods=self.resolve_import_type(import_type)
            == ImportType.INDIVIDUAL_FOODS
        )


def is_backup_json(content: str) -> bool:
    """Return True if the content looks like a JSON backup envelope."""
    try:
        payload = json.loads(content)
    except ValueError:
        return False
    return isinstance(payload, dict) and all(
        payload.get(key) for key in ("version", "exportedAt", "data")
    )


def parse_backup_json(content: str) -> ParseResult:
    """Parse a JSON backup; an invalid envelope yields no days."""
    try:
        backup = NutritionRxBackup.model_validate_json(content)
    except ValidationError as exc:
        return ParseResult(
            days=[],
            warnings=[ParseWarning(line=1, message=f"Invalid backup file: {exc}")],
        )

    days: list[ParsedNutritionDay] = []
    warnings: list[ParseWarning] = []
    for index, day in enumerate(backup.data.food_logs or []):
        parsed = parse_date(day.date)
        if parsed is None:
            warnings.append(
                ParseWarning(
                    line=index + 1, message=f'Could not parse date: "{day.date}"'
                )
            )
            continue
        days.append(
            ParsedNutritionDay(
                date=parsed.date(),
                meals=[_meal_from_backup(meal) for meal in day.meals],
                totals=NutritionTotals(**day.totals.model_dump()),
            )
        )
    return ParseResult(days=sort_days(days), warnings=warnings)


def dump_backup_json(
    days: Sequence[ParsedNutritionDay], exported_at: datetime | None = None
) -> str:
    """Serialize days into the JSON backup envelope."""
    backup = NutritionRxBackup(
        version=BACKUP_VERSION,
        exported_at=(exported_at or datetime.now(tz=UTC)).isoformat(),
        data=BackupData(food_logs=[_day_to_backup(day) for day in days]),
    )
    return backup.model_dump_json(by_alias=True, exclude_none=True)


def _meal_from_backup(meal: BackupMeal) -> ParsedMeal:
    try:
        meal_type = MealType(meal.name)
    except ValueError:
        meal_type = normalize_meal_name(meal.name)
    foods = (
        [ParsedFood(**food.model_dump()) for food in meal.foods]
        if meal.foods is not None
        else None
    )
    return ParsedMeal(
        name=meal_type,
        calories=meal.calories,
        protein=meal.protein,
        carbs=meal.carbs,
        fat=meal.fat,
        foods=foods,
    )


def _day_to_backup(day: ParsedNutritionDay) -> BackupDay:
    return BackupDay(
        date=format_date_key(day.date),
        meals=[
            BackupMeal(
                name=meal.name.value,
                calories=meal.calories,
                protein=meal.protein,
                carbs=meal.carbs,
                fat=meal.fat,
                foods=(
                    [
                        BackupFood(
                            name=food.name,
                            amount=food.amount,
                            calories=food.calories,
                            protein=food.protein,
                            carbs=food.carbs,
                            fat=food.fat,
                        )
                        for food in meal.foods
                    ]
                    if meal.foods is not None
                    else None
                ),
            )
            for meal in day.meals
        ],
        totals=BackupTotals(
            calories=day.totals.calories,
            protein=day.totals.protein,
            carbs=day.totals.carbs,
            fat=day.totals.fat,
        ),
    )
