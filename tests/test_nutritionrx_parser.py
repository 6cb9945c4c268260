"""Tests for NutritionRx backup parsing."""

import json
from datetime import UTC, date, datetime

from nutrition_import.domain.imports import (
    ImportType,
    MealType,
    NutritionTotals,
    ParsedFood,
    ParsedMeal,
    ParsedNutritionDay,
)
from nutrition_import.parsers.nutritionrx import (
    BACKUP_VERSION,
    NutritionRxParser,
    dump_backup_json,
    is_backup_json,
    parse_backup_json,
)


def _backup_rows() -> list[dict[str, str]]:
    return [
        {
            "Date": "2024-05-01",
            "Meal": "Breakfast",
            "Type": "food",
            "Food Name": "Eggs",
            "Brand": "Farm Fresh",
            "Servings": "2",
            "Calories": "140",
            "Protein (g)": "12",
            "Carbs (g)": "1",
            "Fat (g)": "10",
        },
        {
            "Date": "2024-05-01",
            "Meal": "Lunch",
            "Type": "quick_add",
            "Food Name": "Salad",
            "Brand": "",
            "Servings": "",
            "Calories": "320",
            "Protein (g)": "8",
            "Carbs (g)": "20",
            "Fat (g)": "22",
        },
    ]


def test_csv_backup_keeps_brand_and_servings() -> None:
    days = NutritionRxParser().parse(_backup_rows())

    breakfast, lunch = days[0].meals
    assert breakfast.foods is not None
    assert breakfast.foods[0].name == "Eggs (Farm Fresh)"
    assert breakfast.foods[0].amount == "2 serving(s)"
    assert lunch.foods is not None
    assert lunch.foods[0].amount == "1 serving"
    assert days[0].totals.calories == 460


def test_csv_backup_daily_totals_omits_foods() -> None:
    days = NutritionRxParser().parse(_backup_rows(), ImportType.DAILY_TOTALS)

    assert all(meal.foods is None for meal in days[0].meals)


def test_backup_json_round_trip_is_lossless() -> None:
    day = ParsedNutritionDay(
        date=date(2024, 5, 2),
        meals=[
            ParsedMeal(
                name=MealType.DINNER,
                calories=610.0,
                protein=45.0,
                carbs=50.0,
                fat=22.0,
                foods=[
                    ParsedFood(
                        name="Steak",
                        calories=610.0,
                        protein=45.0,
                        carbs=50.0,
                        fat=22.0,
                        amount="1 serving",
                    )
                ],
            )
        ],
        totals=NutritionTotals(calories=610.0, protein=45.0, carbs=50.0, fat=22.0),
    )

    content = dump_backup_json([day], exported_at=datetime(2024, 5, 3, tzinfo=UTC))
    result = parse_backup_json(content)

    assert is_backup_json(content)
    assert json.loads(content)["version"] == BACKUP_VERSION
    assert "foodLogs" in json.loads(content)["data"]
    assert result.days == [day]
    assert result.warnings == []


def test_invalid_backup_envelope_reports_warning() -> None:
    content = json.dumps({"version": "1.0", "exportedAt": "x", "data": {"foodLogs": 5}})

    result = parse_backup_json(content)

    assert result.days == []
    assert result.warnings[0].line == 1
    assert result.warnings[0].message.startswith("Invalid backup file")


def test_is_backup_json_rejects_csv_and_plain_json() -> None:
    assert not is_backup_json("Date,Meal,Calories\n2024-01-01,Lunch,300\n")
    assert not is_backup_json(json.dumps([1, 2, 3]))
    assert not is_backup_json(json.dumps({"version": "1.0"}))
