"""Dependency container wiring for the importer."""

from dataclasses import dataclass

from supabase import create_client

from nutrition_import.adapters.supabase_quick_add_repository import (
    SupabaseQuickAddRepository,
)
from nutrition_import.config import Settings
from nutrition_import.services.persistence import (
    ImportPersistenceEngine,
    QuickAddRepository,
)
from nutrition_import.services.sessions import ImportSessionManager


@dataclass
class AppContainer:
    """Holds importer-wide dependencies."""

    settings: Settings
    repository: QuickAddRepository
    engine: ImportPersistenceEngine
    session_manager: ImportSessionManager


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    repository = SupabaseQuickAddRepository(supabase_client)
    engine = ImportPersistenceEngine(
        repository=repository,
        batch_size=resolved_settings.import_batch_size,
        lookup_chunk_size=resolved_settings.import_lookup_chunk_size,
    )
    session_manager = ImportSessionManager(
        engine=engine,
        max_file_bytes=resolved_settings.import_max_file_bytes,
        max_rows=resolved_settings.import_max_rows,
        default_resolution=resolved_settings.import_default_resolution,
    )
    return AppContainer(
        settings=resolved_settings,
        repository=repository,
        engine=engine,
        session_manager=session_manager,
    )
