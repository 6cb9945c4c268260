"""Static catalog of supported import sources."""

from dataclasses import dataclass

from nutrition_import.domain.imports import ImportSource, ImportType


@dataclass(frozen=True)
class ImportSourceConfig:
    """Describes one source the user can import from."""

    id: ImportSource
    name: str
    description: str
    supports_individual_foods: bool
    is_premium: bool
    export_instructions: tuple[str, ...]
    default_import_type: ImportType = ImportType.DAILY_TOTALS


IMPORT_SOURCES: tuple[ImportSourceConfig, ...] = (
    ImportSourceConfig(
        id=ImportSource.MYFITNESSPAL,
        name="MyFitnessPal",
        description="Import daily meal totals from MyFitnessPal",
        supports_individual_foods=False,
        is_premium=False,
        export_instructions=(
            "Open MyFitnessPal on the web (not the app)",
            "Go to Reports > Export Data",
            "Pick a date range and export as CSV",
            "Save the CSV file to your device",
        ),
    ),
    ImportSourceConfig(
        id=ImportSource.CRONOMETER,
        name="Cronometer",
        description="Import daily totals or individual foods from Cronometer",
        supports_individual_foods=True,
        is_premium=False,
        export_instructions=(
            "Open Cronometer on the web",
            "Go to Settings > Account > Export Data",
            'Choose "Food & Recipe Entries"',
            "Select your date range and download the CSV",
        ),
    ),
    ImportSourceConfig(
        id=ImportSource.LOSEIT,
        name="Lose It!",
        description="Import daily food totals from Lose It!",
        supports_individual_foods=False,
        is_premium=False,
        export_instructions=(
            "Open Lose It! on the web",
            "Go to Insights > Weekly Summary",
            'Click "Export to spreadsheet"',
            "Save the CSV file to your device",
        ),
    ),
    ImportSourceConfig(
        id=ImportSource.MACROFACTOR,
        name="MacroFactor",
        description="Import food logs from MacroFactor",
        supports_individual_foods=True,
        is_premium=True,
        export_instructions=(
            "Open MacroFactor",
            "Go to More > Data Management > Data Export",
            'Choose "Food Log" and export as CSV',
            "Save the CSV file to your device",
        ),
        default_import_type=ImportType.INDIVIDUAL_FOODS,
    ),
    ImportSourceConfig(
        id=ImportSource.NUTRITIONRX,
        name="NutritionRx Backup",
        description="Restore food logs from a NutritionRx backup",
        supports_individual_foods=True,
        is_premium=False,
        export_instructions=(
            "Open Settings > Export Data in NutritionRx",
            "Export your food log as CSV or JSON",
            "Select the exported file here",
        ),
        default_import_type=ImportType.INDIVIDUAL_FOODS,
    ),
)

_BY_ID = {config.id: config for config in IMPORT_SOURCES}


def get_source_config(source: ImportSource) -> ImportSourceConfig | None:
    """Return the catalog entry for a source."""
    return _BY_ID.get(source)


def source_display_name(source: ImportSource) -> str:
    """Return the human-readable name of a source."""
    config = _BY_ID.get(source)
    return config.name if config else "Unknown"


def default_import_type(source: ImportSource) -> ImportType:
    """Return the import type a source uses when none is requested."""
    config = _BY_ID.get(source)
    return config.default_import_type if config else ImportType.DAILY_TOTALS


def supports_import_type(source: ImportSource, import_type: ImportType) -> bool:
    """Return True if the source's exports carry enough detail for the type."""
    if import_type == ImportType.DAILY_TOTALS:
        return True
    config = _BY_ID.get(source)
    return bool(config and config.supports_individual_foods)
