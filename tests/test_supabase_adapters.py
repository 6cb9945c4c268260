"""Tests for the Supabase quick add repository."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import date

from nutrition_import.adapters.supabase_quick_add_repository import (
    SupabaseQuickAddRepository,
)
from nutrition_import.domain.imports import ImportSource, MealType, QuickAddInput
from nutrition_import.services.persistence import ImportPersistenceEngine
from nutrition_import.services.sessions import new_session
from tests.conftest import make_day


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "delete": []}
    )
    payloads: list[object] = field(default_factory=list)
    filters: list[tuple[str, str, object]] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.payloads.append(payload)
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append(("in", column, value))
        return self

    def ilike(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append(("ilike", column, value))
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.actions.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _inputs(count: int) -> list[QuickAddInput]:
    return [
        QuickAddInput(
            date="2024-01-01",
            meal_type=MealType.DINNER,
            calories=500,
            protein=30,
            carbs=50,
            fat=20,
            description="Imported from Cronometer",
        )
        for _ in range(count)
    ]


def test_find_by_date_parses_rows() -> None:
    client = FakeSupabaseClient()
    table = client.table("quick_add_entries")
    table.queue(
        "select",
        [
            {
                "id": "abc",
                "date": "2024-01-01",
                "meal_type": "lunch",
                "calories": 420,
                "protein": None,
                "carbs": 40,
                "fat": 12.5,
                "description": None,
            }
        ],
    )

    entries = SupabaseQuickAddRepository(client).find_by_date("2024-01-01")

    assert entries[0].meal_type == MealType.LUNCH
    assert entries[0].protein is None
    assert entries[0].fat == 12.5
    assert ("eq", "date", "2024-01-01") in table.filters


def test_list_imported_dates_filters_on_description() -> None:
    client = FakeSupabaseClient()
    table = client.table("quick_add_entries")
    table.queue("select", [{"date": "2024-01-02"}, {"date": "2024-01-02"}])

    found = SupabaseQuickAddRepository(client).list_imported_dates(
        ["2024-01-01", "2024-01-02"]
    )

    assert found == ["2024-01-02"]
    assert ("ilike", "description", "Imported from%") in table.filters


def test_list_imported_dates_skips_query_for_empty_keys() -> None:
    client = FakeSupabaseClient()

    assert SupabaseQuickAddRepository(client).list_imported_dates([]) == []
    assert client.tables == {}


def test_delete_entries_by_id() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseQuickAddRepository(client)

    repository.delete_entries(["a", "b"])
    repository.delete_entries([])

    table = client.tables["quick_add_entries"]
    assert table.actions == ["delete"]
    assert table.filters == [("in", "id", ["a", "b"])]


def test_find_by_date_maps_unknown_meal_labels_to_snack() -> None:
    client = FakeSupabaseClient()
    client.table("quick_add_entries").queue(
        "select",
        [
            {
                "id": "abc",
                "date": "2024-01-01",
                "meal_type": "Pre-workout",
                "calories": 150,
                "protein": 10,
                "carbs": 20,
                "fat": 3,
                "description": "Manual",
            }
        ],
    )

    (entry,) = SupabaseQuickAddRepository(client).find_by_date("2024-01-01")

    assert entry.meal_type == MealType.SNACK


def test_insert_entries_writes_ten_columns_per_row() -> None:
    client = FakeSupabaseClient()

    SupabaseQuickAddRepository(client).insert_entries(_inputs(2))

    (payload,) = client.tables["quick_add_entries"].payloads
    assert isinstance(payload, list)
    assert set(payload[0]) == {
        "id",
        "date",
        "meal_type",
        "calories",
        "protein",
        "carbs",
        "fat",
        "description",
        "created_at",
        "updated_at",
    }
    assert payload[0]["meal_type"] == "dinner"
    assert payload[0]["id"] != payload[1]["id"]


def test_import_of_75_rows_issues_two_bounded_writes() -> None:
    client = FakeSupabaseClient()
    engine = ImportPersistenceEngine(repository=SupabaseQuickAddRepository(client))
    days = [
        make_day(date(2024, month, day), (MealType.DINNER, 500))
        for month in (1, 2, 3)
        for day in range(1, 26)
    ]
    session = replace(
        new_session(ImportSource.CRONOMETER), parsed_days=days, total_days=len(days)
    )

    result = asyncio.run(engine.commit(session))

    assert result.imported_days == 75

    payloads = client.tables["quick_add_entries"].payloads
    value_counts = [sum(len(row) for row in payload) for payload in payloads]
    assert value_counts == [500, 250]
