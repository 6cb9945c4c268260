"""Ordered registry of source parsers and header-based format detection."""

import logging
from dataclasses import dataclass

from nutrition_import.domain.imports import ImportSource
from nutrition_import.parsers.base import NutritionParser
from nutrition_import.parsers.cronometer import CronometerParser
from nutrition_import.parsers.loseit import LoseItParser
from nutrition_import.parsers.macrofactor import MacroFactorParser
from nutrition_import.parsers.myfitnesspal import MyFitnessPalParser
from nutrition_import.parsers.nutritionrx import NutritionRxParser

_logger = logging.getLogger(__name__)

# Order matters: the first matching detector wins. Backup headers
# (date/meal/type/food name) also satisfy MyFitnessPal, and Lose It!'s
# "Name" column also satisfies MacroFactor.
PARSER_REGISTRY: tuple[NutritionParser, ...] = (
    NutritionRxParser(),
    CronometerParser(),
    MyFitnessPalParser(),
    LoseItParser(),
    MacroFactorParser(),
)


@dataclass(frozen=True)
class DetectedParser:
    """A detected source paired with the parser that recognized it."""

    source: ImportSource
    parser: NutritionParser


def detect_parser(
    headers: list[str],
    registry: tuple[NutritionParser, ...] = PARSER_REGISTRY,
) -> DetectedParser | None:
    """Return the first registered parser that recognizes the headers."""
    if not headers:
        return None
    for parser in registry:
        if parser.detect(headers):
            _logger.info("Detected import format: source=%s", parser.source.value)
            return DetectedParser(source=parser.source, parser=parser)
    _logger.info("No import format matched headers=%s", headers)
    return None


def get_parser(
    source: ImportSource | str,
    registry: tuple[NutritionParser, ...] = PARSER_REGISTRY,
) -> NutritionParser | None:
    """Return the parser for an explicitly chosen source."""
    for parser in registry:
        if parser.source == source:
            return parser
    return None
