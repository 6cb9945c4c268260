"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from nutrition_import.domain.imports import ConflictResolution

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Import settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    environment: str = _ENVIRONMENT
    import_max_file_bytes: int = 10 * 1024 * 1024
    import_max_rows: int = 50_000
    import_batch_size: int = 50
    import_lookup_chunk_size: int = 500
    import_default_resolution: ConflictResolution = ConflictResolution.SKIP

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
