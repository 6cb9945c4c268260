"""Supabase repository for meal-level quick add entries."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from supabase import Client

from nutrition_import.domain.imports import QuickAddEntry, QuickAddInput
from nutrition_import.parsers.utils import normalize_meal_name
from nutrition_import.services.persistence import (
    IMPORT_DESCRIPTION_PREFIX,
    QuickAddRepository,
)

_TABLE = "quick_add_entries"
_COLUMNS = "id, date, meal_type, calories, protein, carbs, fat, description"


@dataclass
class SupabaseQuickAddRepository(QuickAddRepository):
    """Supabase implementation for quick add entries."""

    client: Client

    def find_by_date(self, date_key: str) -> list[QuickAddEntry]:
        """Return entries stored for a date."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("date", date_key)
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def list_imported_dates(self, date_keys: list[str]) -> list[str]:
        """Return which dates already hold imported entries."""
        if not date_keys:
            return []
        response = (
            self.client.table(_TABLE)
            .select("date")
            .in_("date", date_keys)
            .ilike("description", f"{IMPORT_DESCRIPTION_PREFIX}%")
            .execute()
        )
        found = {str(row["date"]) for row in response.data or []}
        return [key for key in date_keys if key in found]

    def delete_entries(self, entry_ids: list[str]) -> None:
        """Delete entries by id."""
        if not entry_ids:
            return
        self.client.table(_TABLE).delete().in_("id", entry_ids).execute()

    def insert_entries(self, entries: list[QuickAddInput]) -> None:
        """Insert entries in one multi-row request."""
        if not entries:
            return
        now = datetime.now(tz=UTC).isoformat()
        payload = [
            {
                "id": str(uuid4()),
                "date": entry.date,
                "meal_type": entry.meal_type.value,
                "calories": entry.calories,
                "protein": entry.protein,
                "carbs": entry.carbs,
                "fat": entry.fat,
                "description": entry.description,
                "created_at": now,
                "updated_at": now,
            }
            for entry in entries
        ]
        self.client.table(_TABLE).insert(payload).execute()


def _parse_entry(row: dict[str, object]) -> QuickAddEntry:
    return QuickAddEntry(
        id=str(row["id"]),
        date=str(row["date"]),
        meal_type=normalize_meal_name(str(row.get("meal_type") or "")),
        calories=float(row.get("calories") or 0.0),
        protein=_optional_float(row.get("protein")),
        carbs=_optional_float(row.get("carbs")),
        fat=_optional_float(row.get("fat")),
        description=str(row["description"]) if row.get("description") else None,
    )


def _optional_float(value: object) -> float | None:
    return None if value is None else float(value)  # type: ignore[arg-type]
