"""Import session state machine and file analysis."""

import csv
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from nutrition_import.domain.imports import (
    ConflictResolution,
    ImportErrorDetail,
    ImportProgress,
    ImportResult,
    ImportSource,
    ImportStatus,
    ImportType,
    NutritionImportSession,
    ParsedNutritionDay,
    ParseResult,
    ParseWarning,
)
from nutrition_import.domain.sources import (
    default_import_type,
    source_display_name,
    supports_import_type,
)
from nutrition_import.parsers.base import NutritionParser
from nutrition_import.parsers.nutritionrx import is_backup_json, parse_backup_json
from nutrition_import.parsers.reader import read_csv, strip_bom
from nutrition_import.parsers.registry import PARSER_REGISTRY, detect_parser, get_parser
from nutrition_import.parsers.utils import format_date_key
from nutrition_import.services.persistence import (
    ImportPersistenceEngine,
    ProgressCallback,
    StorageUnavailableError,
)

MAX_FILE_BYTES = 10 * 1024 * 1024
MAX_ROWS = 50_000

_logger = logging.getLogger(__name__)

_TRANSITIONS: dict[ImportStatus, frozenset[ImportStatus]] = {
    ImportStatus.PENDING: frozenset({ImportStatus.ANALYZING, ImportStatus.READY}),
    ImportStatus.ANALYZING: frozenset({ImportStatus.READY, ImportStatus.ERROR}),
    ImportStatus.READY: frozenset({ImportStatus.ANALYZING, ImportStatus.IMPORTING}),
    ImportStatus.IMPORTING: frozenset({ImportStatus.COMPLETED, ImportStatus.ERROR}),
    ImportStatus.COMPLETED: frozenset(),
    ImportStatus.ERROR: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """Raised when a session is moved to a status it cannot reach."""


class ImportAnalysisError(ValueError):
    """Raised when an uploaded file cannot be turned into importable days."""


class UnsupportedSourceError(ImportAnalysisError):
    """Raised when no parser is registered for a source."""


@dataclass(frozen=True)
class AnalyzeResult:
    """Outcome of analyzing a file."""

    success: bool
    session: NutritionImportSession | None = None
    error: str | None = None


def new_session(
    source: ImportSource = ImportSource.UNKNOWN,
    import_type: ImportType = ImportType.DAILY_TOTALS,
    file_name: str | None = None,
) -> NutritionImportSession:
    return NutritionImportSession(
        id=str(uuid4()),
        source=source,
        import_type=import_type,
        status=ImportStatus.PENDING,
        created_at=datetime.now(tz=UTC),
        file_name=file_name,
    )


def can_transition(current: ImportStatus, target: ImportStatus) -> bool:
    return target in _TRANSITIONS[current]


def transition(
    session: NutritionImportSession, target: ImportStatus, **changes: object
) -> NutritionImportSession:
    """Return a copy of the session moved to ``target``.

    Raises InvalidTransitionError for moves outside the lifecycle, so a
    completed or failed session can never be imported again.
    """
    if not can_transition(session.status, target):
        raise InvalidTransitionError(
            f"Cannot move import session from {session.status.value} "
            f"to {target.value}"
        )
    return replace(session, status=target, **changes)


def begin_analysis(
    session: NutritionImportSession, file_name: str | None = None
) -> NutritionImportSession:
    return transition(
        session,
        ImportStatus.ANALYZING,
        file_name=file_name or session.file_name,
        error=None,
    )


def mark_ready(  # noqa: PLR0913
    session: NutritionImportSession,
    source: ImportSource,
    import_type: ImportType,
    days: list[ParsedNutritionDay],
    warnings: list[ParseWarning],
    duplicate_dates: list[str],
) -> NutritionImportSession:
    return transition(
        session,
        ImportStatus.READY,
        source=source,
        import_type=import_type,
        parsed_days=days,
        warnings=warnings,
        total_days=len(days),
        duplicate_dates=duplicate_dates,
    )


def begin_import(
    session: NutritionImportSession, resolution: ConflictResolution
) -> NutritionImportSession:
    return transition(session, ImportStatus.IMPORTING, conflict_resolution=resolution)


def complete_import(
    session: NutritionImportSession, result: ImportResult
) -> NutritionImportSession:
    return transition(
        session,
        ImportStatus.COMPLETED,
        imported_days=result.imported_days,
        skipped_days=result.skipped_days,
        merged_days=result.merged_days,
        result=result,
    )


def fail(session: NutritionImportSession, message: str) -> NutritionImportSession:
    return transition(session, ImportStatus.ERROR, error=message)


@dataclass
class ImportSessionManager:
    """Drives one import from file analysis to committed days."""

    engine: ImportPersistenceEngine
    max_file_bytes: int = MAX_FILE_BYTES
    max_rows: int = MAX_ROWS
    default_resolution: ConflictResolution = ConflictResolution.SKIP
    registry: tuple[NutritionParser, ...] = PARSER_REGISTRY
    current: NutritionImportSession | None = None

    def start_session(
        self, source: ImportSource | None = None
    ) -> NutritionImportSession:
        """Start a fresh pending session, discarding any previous one."""
        self.current = new_session(source=source or ImportSource.UNKNOWN)
        return self.current

    def cancel(self) -> None:
        self.current = None

    def analyze_content(
        self,
        content: str,
        file_name: str,
        selected_source: ImportSource | None = None,
    ) -> AnalyzeResult:
        """Parse file content into days and move the session to ready."""
        if self.current is None or self.current.status != ImportStatus.PENDING:
            self.start_session(selected_source)
        session = begin_analysis(self._require_session(), file_name)
        self.current = session
        try:
            source, import_type, parsed = self._parse_content(
                content, selected_source, None
            )
            duplicates = self._duplicate_dates(parsed.days)
        except (ImportAnalysisError, StorageUnavailableError, csv.Error) as exc:
            return self._fail_analysis(session, str(exc))

        self.current = mark_ready(
            session, source, import_type, parsed.days, parsed.warnings, duplicates
        )
        _logger.info(
            "Import analyzed: file=%s source=%s days=%s warnings=%s duplicates=%s",
            file_name,
            source.value,
            len(parsed.days),
            len(parsed.warnings),
            len(duplicates),
        )
        return AnalyzeResult(success=True, session=self.current)

    def analyze_file(
        self, path: str | Path, selected_source: ImportSource | None = None
    ) -> AnalyzeResult:
        """Read a local export file and analyze it."""
        file_path = Path(path)
        try:
            size = file_path.stat().st_size
            if size > self.max_file_bytes:
                raise ImportAnalysisError(self._too_large_message())
            content = file_path.read_bytes().decode("utf-8", errors="replace")
        except (OSError, ImportAnalysisError) as exc:
            self.start_session(selected_source)
            session = begin_analysis(self._require_session(), file_path.name)
            return self._fail_analysis(session, str(exc))
        return self.analyze_content(content, file_path.name, selected_source)

    def load_parsed(
        self,
        days: list[ParsedNutritionDay],
        source: ImportSource,
        file_name: str | None = None,
        import_type: ImportType | None = None,
    ) -> NutritionImportSession:
        """Accept already-parsed days, skipping analysis."""
        if self.current is None or self.current.status != ImportStatus.PENDING:
            self.start_session(source)
        session = replace(self._require_session(), file_name=file_name)
        self.current = mark_ready(
            session,
            source,
            import_type or default_import_type(source),
            list(days),
            [],
            self._duplicate_dates(days),
        )
        return self.current

    def reparse(self, content: str, import_type: ImportType) -> AnalyzeResult:
        """Parse the same content again with another import type."""
        session = self._require_session()
        if get_parser(session.source, self.registry) is None:
            raise UnsupportedSourceError(
                f"No parser found for source: {session.source.value}"
            )
        session = begin_analysis(session)
        self.current = session
        try:
            source, resolved_type, parsed = self._parse_content(
                content, session.source, import_type
            )
            duplicates = self._duplicate_dates(parsed.days)
        except (ImportAnalysisError, StorageUnavailableError, csv.Error) as exc:
            return self._fail_analysis(session, str(exc))
        self.current = mark_ready(
            session, source, resolved_type, parsed.days, parsed.warnings, duplicates
        )
        return AnalyzeResult(success=True, session=self.current)

    async def execute_import(
        self,
        resolution: ConflictResolution | None = None,
        resolutions: dict[str, ConflictResolution] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ImportResult:
        """Commit the ready session's days to storage."""
        chosen = resolution or self.default_resolution
        session = begin_import(self._require_session(), chosen)
        self.current = session

        def track(progress: ImportProgress) -> None:
            self.current = replace(session, imported_days=progress.current)
            if on_progress is not None:
                on_progress(progress)

        try:
            result = await self.engine.commit(
                session,
                default_resolution=chosen,
                resolutions=resolutions,
                on_progress=track,
            )
        except StorageUnavailableError as exc:
            _logger.warning("Import aborted: %s", exc)
            self.current = fail(session, str(exc))
            return ImportResult(
                success=False,
                imported_days=0,
                skipped_days=0,
                merged_days=0,
                errors=[ImportErrorDetail(message=str(exc))],
            )
        self.current = complete_import(session, result)
        return result

    def _parse_content(
        self,
        content: str,
        selected_source: ImportSource | None,
        import_type: ImportType | None,
    ) -> tuple[ImportSource, ImportType, ParseResult]:
        if len(content.encode("utf-8")) > self.max_file_bytes:
            raise ImportAnalysisError(self._too_large_message())
        text = strip_bom(content)
        if not text.strip():
            raise ImportAnalysisError("This file is empty.")

        explicit = (
            selected_source
            if selected_source and selected_source != ImportSource.UNKNOWN
            else None
        )
        if is_backup_json(text):
            if explicit and explicit != ImportSource.NUTRITIONRX:
                raise ImportAnalysisError(self._mismatch_message(explicit))
            resolved = import_type or default_import_type(ImportSource.NUTRITIONRX)
            parsed = parse_backup_json(text)
            if resolved == ImportType.DAILY_TOTALS:
                parsed = ParseResult(
                    days=[_without_foods(day) for day in parsed.days],
                    warnings=parsed.warnings,
                )
            return ImportSource.NUTRITIONRX, resolved, self._require_days(parsed)

        table = read_csv(text)
        if not table.headers:
            raise ImportAnalysisError("This file is empty.")
        if len(table.rows) > self.max_rows:
            raise ImportAnalysisError(
                f"This file has too many rows ({len(table.rows):,}). "
                f"Maximum is {self.max_rows:,} rows."
            )

        parser = self._select_parser(table.headers, explicit)
        resolved = import_type or parser.default_import_type
        if not supports_import_type(parser.source, resolved):
            raise ImportAnalysisError(
                f"{source_display_name(parser.source)} exports only provide "
                "daily totals."
            )
        parsed = parser.parse_with_warnings(table.rows, resolved)
        return parser.source, resolved, self._require_days(parsed)

    def _select_parser(
        self, headers: list[str], explicit: ImportSource | None
    ) -> NutritionParser:
        if explicit is not None:
            parser = get_parser(explicit, self.registry)
            if parser is None:
                raise UnsupportedSourceError(
                    f"No parser found for source: {explicit.value}"
                )
            if not parser.detect(headers):
                raise ImportAnalysisError(self._mismatch_message(explicit))
            return parser
        detected = detect_parser(headers, self.registry)
        if detected is None:
            raise ImportAnalysisError(
                "Could not detect the format of this CSV file. Please ensure you "
                "exported from MyFitnessPal, Cronometer, Lose It!, MacroFactor, "
                f"or a NutritionRx backup. Headers found: {', '.join(headers)}"
            )
        return detected.parser

    def _duplicate_dates(self, days: list[ParsedNutritionDay]) -> list[str]:
        keys = [format_date_key(day.date) for day in days]
        return self.engine.find_existing_import_dates(keys) if keys else []

    def _fail_analysis(
        self, session: NutritionImportSession, message: str
    ) -> AnalyzeResult:
        _logger.warning("Import analysis failed: %s", message)
        self.current = fail(session, message)
        return AnalyzeResult(success=False, session=self.current, error=message)

    def _require_session(self) -> NutritionImportSession:
        if self.current is None:
            raise InvalidTransitionError("No active import session")
        return self.current

    def _too_large_message(self) -> str:
        limit_mb = self.max_file_bytes // (1024 * 1024)
        return f"This file is too large. Maximum size is {limit_mb}MB."

    @staticmethod
    def _mismatch_message(source: ImportSource) -> str:
        return (
            "This file doesn't match the expected format for "
            f"{source_display_name(source)}."
        )

    @staticmethod
    def _require_days(parsed: ParseResult) -> ParseResult:
        if not parsed.days:
            raise ImportAnalysisError(
                "No valid nutrition data found in this file. Please check that "
                "the file contains food entries."
            )
        return parsed


def _without_foods(day: ParsedNutritionDay) -> ParsedNutritionDay:
    return replace(day, meals=[replace(meal, foods=None) for meal in day.meals])
