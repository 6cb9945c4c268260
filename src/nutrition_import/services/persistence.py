"""Conflict detection and chunked persistence of imported days."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from nutrition_import.domain.imports import (
    ConflictResolution,
    ImportConflict,
    ImportErrorDetail,
    ImportProgress,
    ImportResult,
    NutritionImportSession,
    ParsedNutritionDay,
    QuickAddEntry,
    QuickAddInput,
)
from nutrition_import.domain.sources import source_display_name
from nutrition_import.parsers.utils import format_date_key

# 50 rows x 10 columns stays under SQLite's 999 bound-parameter limit.
DEFAULT_BATCH_SIZE = 50
DEFAULT_LOOKUP_CHUNK_SIZE = 500
IMPORT_DESCRIPTION_PREFIX = "Imported from"

_logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[ImportProgress], None]


class StorageUnavailableError(RuntimeError):
    """Raised when storage cannot be reached and the import cannot proceed."""


class QuickAddRepository(Protocol):
    """Persistence interface for day-indexed meal entries."""

    def find_by_date(self, date_key: str) -> list[QuickAddEntry]:
        """Return stored entries for a date."""

    def list_imported_dates(self, date_keys: list[str]) -> list[str]:
        """Return which of the dates already hold imported entries."""

    def delete_entries(self, entry_ids: list[str]) -> None:
        """Delete entries by id."""

    def insert_entries(self, entries: list[QuickAddInput]) -> None:
        """Insert entries in a single multi-row write."""


@dataclass
class _DayPlan:
    date_key: str
    rows: list[QuickAddInput]
    merged: bool
    replaced_ids: list[str] = field(default_factory=list)


@dataclass
class _CommitState:
    imported: int = 0
    skipped: int = 0
    merged: int = 0
    errors: list[ImportErrorDetail] = field(default_factory=list)

    def commit(self, plan: _DayPlan) -> None:
        self.imported += 1
        if plan.merged:
            self.merged += 1

    def fail(self, date_key: str, message: str) -> None:
        self.errors.append(ImportErrorDetail(message=message, date=date_key))


@dataclass
class ImportPersistenceEngine:
    """Writes parsed days to storage, honoring conflict resolutions."""

    repository: QuickAddRepository
    batch_size: int = DEFAULT_BATCH_SIZE
    lookup_chunk_size: int = DEFAULT_LOOKUP_CHUNK_SIZE

    def find_existing_import_dates(self, date_keys: Sequence[str]) -> list[str]:
        """Return dates that already hold imported entries."""
        found: list[str] = []
        for chunk in chunked(list(date_keys), self.lookup_chunk_size):
            try:
                found.extend(self.repository.list_imported_dates(chunk))
            except Exception as exc:
                raise StorageUnavailableError(
                    f"Could not look up imported dates: {exc}"
                ) from exc
        return found

    def find_conflicts(
        self,
        days: Sequence[ParsedNutritionDay],
        resolutions: dict[str, ConflictResolution] | None = None,
    ) -> list[ImportConflict]:
        """Return a conflict for every day that already has stored entries."""
        chosen = resolutions or {}
        conflicts: list[ImportConflict] = []
        for day in days:
            date_key = format_date_key(day.date)
            try:
                existing = self.repository.find_by_date(date_key)
            except Exception as exc:
                raise StorageUnavailableError(
                    f"Could not read existing entries: {exc}"
                ) from exc
            if existing:
                conflicts.append(
                    ImportConflict(
                        date=date_key,
                        existing=existing,
                        parsed=day,
                        resolution=chosen.get(date_key),
                    )
                )
        return conflicts

    async def create_batch(self, rows: Sequence[QuickAddInput]) -> None:
        """Insert rows in sequential chunks of at most ``batch_size``."""
        for chunk in chunked(list(rows), self.batch_size):
            self.repository.insert_entries(chunk)
            await asyncio.sleep(0)

    async def commit(
        self,
        session: NutritionImportSession,
        default_resolution: ConflictResolution = ConflictResolution.SKIP,
        resolutions: dict[str, ConflictResolution] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ImportResult:
        """Write the session's days and return the summary.

        Days are packed into writes without splitting a day across writes,
        unless the day alone exceeds ``batch_size``. A failed write is
        recorded against its dates and the remaining days still import.
        Overwritten days drop their old entries only after the new rows
        are stored.
        """
        conflicts = {
            conflict.date: conflict
            for conflict in self.find_conflicts(session.parsed_days, resolutions)
        }
        description = (
            f"{IMPORT_DESCRIPTION_PREFIX} {source_display_name(session.source)}"
        )
        state = _CommitState()
        plans: list[_DayPlan] = []
        for day in session.parsed_days:
            date_key = format_date_key(day.date)
            conflict = conflicts.get(date_key)
            resolution = (
                (conflict.resolution or default_resolution) if conflict else None
            )
            if resolution == ConflictResolution.SKIP:
                state.skipped += 1
                continue
            plans.append(
                _DayPlan(
                    date_key=date_key,
                    rows=build_entries(day, description),
                    merged=resolution == ConflictResolution.MERGE,
                    replaced_ids=(
                        [entry.id for entry in conflict.existing]
                        if conflict and resolution == ConflictResolution.OVERWRITE
                        else []
                    ),
                )
            )

        progress = _ProgressTracker(total=len(plans), on_progress=on_progress)
        for group in self._write_groups(plans):
            try:
                await self.create_batch([row for plan in group for row in plan.rows])
            except Exception as exc:
                _logger.warning("Import chunk write failed: %s", exc)
                for plan in group:
                    state.fail(plan.date_key, f"Failed to save entries: {exc}")
                continue
            for plan in group:
                if self._replace_existing(plan, state):
                    state.commit(plan)
                    progress.advance(plan.date_key)

        _logger.info(
            "Import committed: imported=%s merged=%s skipped=%s errors=%s",
            state.imported,
            state.merged,
            state.skipped,
            len(state.errors),
        )
        return ImportResult(
            success=not state.errors,
            imported_days=state.imported,
            skipped_days=state.skipped,
            merged_days=state.merged,
            errors=state.errors,
        )

    def _write_groups(self, plans: list[_DayPlan]) -> list[list[_DayPlan]]:
        """Pack whole days into groups of at most ``batch_size`` rows."""
        groups: list[list[_DayPlan]] = []
        current: list[_DayPlan] = []
        size = 0
        for plan in plans:
            rows = len(plan.rows)
            if current and size + rows > self.batch_size:
                groups.append(current)
                current, size = [], 0
            current.append(plan)
            size += rows
        if current:
            groups.append(current)
        return groups

    def _replace_existing(self, plan: _DayPlan, state: _CommitState) -> bool:
        if not plan.replaced_ids:
            return True
        try:
            self.repository.delete_entries(plan.replaced_ids)
        except Exception as exc:
            _logger.warning("Overwrite delete failed for %s: %s", plan.date_key, exc)
            state.fail(
                plan.date_key,
                f"New entries were saved but existing entries could not be "
                f"removed: {exc}",
            )
            return False
        return True


@dataclass
class _ProgressTracker:
    total: int
    on_progress: ProgressCallback | None
    current: int = 0

    def advance(self, date_key: str) -> None:
        self.current += 1
        if self.on_progress:
            self.on_progress(
                ImportProgress(
                    current=self.current, total=self.total, current_date=date_key
                )
            )


def build_entries(day: ParsedNutritionDay, description: str) -> list[QuickAddInput]:
    """Turn each meal of a day into a rounded meal-level entry."""
    date_key = format_date_key(day.date)
    return [
        QuickAddInput(
            date=date_key,
            meal_type=meal.name,
            calories=round(meal.calories),
            protein=round(meal.protein),
            carbs=round(meal.carbs),
            fat=round(meal.fat),
            description=description,
        )
        for meal in day.meals
    ]


def chunked(items: list[T], size: int) -> list[list[T]]:
    """Split items into consecutive chunks of at most ``size``."""
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    return [items[start : start + size] for start in range(0, len(items), size)]
