"""Domain models for nutrition history imports."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class MealType(str, Enum):
    """Canonical meal taxonomy shared by every source."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class ImportSource(str, Enum):
    """Known export formats. UNKNOWN means auto-detect."""

    MYFITNESSPAL = "myfitnesspal"
    CRONOMETER = "cronometer"
    LOSEIT = "loseit"
    MACROFACTOR = "macrofactor"
    NUTRITIONRX = "nutritionrx"
    UNKNOWN = "unknown"


class ImportType(str, Enum):
    """Granularity of imported data."""

    DAILY_TOTALS = "daily_totals"
    INDIVIDUAL_FOODS = "individual_foods"


class ImportStatus(str, Enum):
    """Lifecycle states of an import session."""

    PENDING = "pending"
    ANALYZING = "analyzing"
    READY = "ready"
    IMPORTING = "importing"
    COMPLETED = "completed"
    ERROR = "error"


class ConflictResolution(str, Enum):
    """What to do with a day that already has stored entries."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    MERGE = "merge"


@dataclass(frozen=True)
class NutritionTotals:
    """Aggregate calories and macros."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def __add__(self, other: "NutritionTotals") -> "NutritionTotals":
        return NutritionTotals(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )


@dataclass(frozen=True)
class ParsedFood:
    """One food line within a meal."""

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    amount: str | None = None

    @property
    def totals(self) -> NutritionTotals:
        return NutritionTotals(self.calories, self.protein, self.carbs, self.fat)


@dataclass(frozen=True)
class ParsedMeal:
    """One meal within a parsed day."""

    name: MealType
    calories: float
    protein: float
    carbs: float
    fat: float
    foods: list[ParsedFood] | None = None

    @property
    def totals(self) -> NutritionTotals:
        return NutritionTotals(self.calories, self.protein, self.carbs, self.fat)

    @classmethod
    def from_totals(
        cls,
        name: MealType,
        totals: NutritionTotals,
        foods: list[ParsedFood] | None = None,
    ) -> "ParsedMeal":
        return cls(
            name=name,
            calories=totals.calories,
            protein=totals.protein,
            carbs=totals.carbs,
            fat=totals.fat,
            foods=foods,
        )


@dataclass(frozen=True)
class ParsedNutritionDay:
    """The unit of import: one calendar day of eating."""

    date: date
    meals: list[ParsedMeal]
    totals: NutritionTotals


@dataclass(frozen=True)
class ParseWarning:
    """A row the parser dropped, with its source line number."""

    line: int
    message: str


@dataclass(frozen=True)
class ParseResult:
    """Parsed days plus any row-level warnings."""

    days: list[ParsedNutritionDay]
    warnings: list[ParseWarning] = field(default_factory=list)


@dataclass(frozen=True)
class QuickAddEntry:
    """A stored meal-level entry."""

    id: str
    date: str
    meal_type: MealType
    calories: float
    protein: float | None
    carbs: float | None
    fat: float | None
    description: str | None


@dataclass(frozen=True)
class QuickAddInput:
    """A meal-level entry to be written."""

    date: str
    meal_type: MealType
    calories: int
    protein: int | None = None
    carbs: int | None = None
    fat: int | None = None
    description: str | None = None


@dataclass(frozen=True)
class ImportConflict:
    """Stored data for a date that collides with a freshly parsed day."""

    date: str
    existing: list[QuickAddEntry]
    parsed: ParsedNutritionDay
    resolution: ConflictResolution | None = None


@dataclass(frozen=True)
class ImportErrorDetail:
    """A failure tied to a date, source line or field."""

    message: str
    date: str | None = None
    line: int | None = None
    field: str | None = None


@dataclass(frozen=True)
class ImportResult:
    """Summary of a finished import.

    ``imported_days`` counts every day written, merged days included;
    ``merged_days`` is the subset written alongside existing entries.
    """

    success: bool
    imported_days: int
    skipped_days: int
    merged_days: int
    errors: list[ImportErrorDetail] = field(default_factory=list)


@dataclass(frozen=True)
class ImportProgress:
    """Progress of a running import."""

    current: int
    total: int
    current_date: str | None = None


@dataclass(frozen=True)
class NutritionImportSession:
    """Tracks one import attempt from file selection to commit."""

    id: str
    source: ImportSource
    import_type: ImportType
    status: ImportStatus
    created_at: datetime
    file_name: str | None = None
    parsed_days: list[ParsedNutritionDay] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)
    total_days: int = 0
    imported_days: int = 0
    skipped_days: int = 0
    merged_days: int = 0
    duplicate_dates: list[str] = field(default_factory=list)
    conflict_resolution: ConflictResolution = ConflictResolution.SKIP
    error: str | None = None
    result: ImportResult | None = None
