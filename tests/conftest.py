"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date

import pytest

from nutrition_import.config import Settings
from nutrition_import.domain.imports import (
    MealType,
    NutritionTotals,
    ParsedMeal,
    ParsedNutritionDay,
    QuickAddEntry,
    QuickAddInput,
)
from nutrition_import.services.persistence import (
    IMPORT_DESCRIPTION_PREFIX,
    ImportPersistenceEngine,
    QuickAddRepository,
)
from nutrition_import.services.sessions import ImportSessionManager


@dataclass
class InMemoryQuickAddRepository(QuickAddRepository):
    """In-memory quick add repository for tests."""

    entries: list[QuickAddEntry] = field(default_factory=list)
    insert_calls: list[list[QuickAddInput]] = field(default_factory=list)
    lookup_calls: list[list[str]] = field(default_factory=list)
    deleted_ids: list[str] = field(default_factory=list)
    fail_insert_calls: set[int] = field(default_factory=set)
    fail_deletes: bool = False
    fail_reads: bool = False

    def find_by_date(self, date_key: str) -> list[QuickAddEntry]:
        if self.fail_reads:
            raise RuntimeError("connection refused")
        return [entry for entry in self.entries if entry.date == date_key]

    def list_imported_dates(self, date_keys: list[str]) -> list[str]:
        if self.fail_reads:
            raise RuntimeError("connection refused")
        self.lookup_calls.append(list(date_keys))
        imported = {
            entry.date
            for entry in self.entries
            if (entry.description or "").startswith(IMPORT_DESCRIPTION_PREFIX)
        }
        return [key for key in date_keys if key in imported]

    def delete_entries(self, entry_ids: list[str]) -> None:
        if self.fail_deletes:
            raise RuntimeError("delete failed")
        self.deleted_ids.extend(entry_ids)
        self.entries = [entry for entry in self.entries if entry.id not in entry_ids]

    def insert_entries(self, entries: list[QuickAddInput]) -> None:
        call_index = len(self.insert_calls)
        self.insert_calls.append(list(entries))
        if call_index in self.fail_insert_calls:
            raise RuntimeError("disk full")
        for index, entry in enumerate(entries):
            self.entries.append(
                QuickAddEntry(
                    id=f"entry-{call_index}-{index}",
                    date=entry.date,
                    meal_type=entry.meal_type,
                    calories=entry.calories,
                    protein=entry.protein,
                    carbs=entry.carbs,
                    fat=entry.fat,
                    description=entry.description,
                )
            )


def make_day(day: date, *meals: tuple[MealType, float]) -> ParsedNutritionDay:
    """Build a day whose meals only carry calories."""
    parsed_meals = [
        ParsedMeal(name=name, calories=calories, protein=0.0, carbs=0.0, fat=0.0)
        for name, calories in meals
    ]
    return ParsedNutritionDay(
        date=day,
        meals=parsed_meals,
        totals=NutritionTotals(calories=sum(calories for _, calories in meals)),
    )


def existing_entry(date_key: str, description: str | None = None) -> QuickAddEntry:
    return QuickAddEntry(
        id=f"existing-{date_key}",
        date=date_key,
        meal_type=MealType.LUNCH,
        calories=400.0,
        protein=20.0,
        carbs=40.0,
        fat=10.0,
        description=description,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def repository() -> InMemoryQuickAddRepository:
    return InMemoryQuickAddRepository()


@pytest.fixture
def engine(repository: InMemoryQuickAddRepository) -> ImportPersistenceEngine:
    return ImportPersistenceEngine(repository=repository)


@pytest.fixture
def manager(engine: ImportPersistenceEngine) -> ImportSessionManager:
    return ImportSessionManager(engine=engine)
