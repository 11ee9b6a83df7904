"""Free text and legacy name mapping onto canonical field paths."""

from mismokb.mapping.legacy import (
    LEGACY_MAPPINGS,
    LegacyConversion,
    LegacyFieldMapper,
    LegacySuggestion,
    normalize_name,
)
from mismokb.mapping.narrative import (
    DEFAULT_RULES,
    NarrativeExtractor,
    NarrativeResult,
    NarrativeRule,
)

__all__ = [
    "LEGACY_MAPPINGS",
    "LegacyConversion",
    "LegacyFieldMapper",
    "LegacySuggestion",
    "normalize_name",
    "DEFAULT_RULES",
    "NarrativeExtractor",
    "NarrativeResult",
    "NarrativeRule",
]
