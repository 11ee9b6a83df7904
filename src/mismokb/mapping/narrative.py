"""Narrative text to canonical field extraction.

A fixed, ordered table of regular-expression rules. Each rule targets one
field path, captures a value, coerces it and records a fixed confidence.
There is no language understanding here: text that no rule touches is
handed back as ``unmatched`` so a human can look at it.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from mismokb.config.models import NarrativeConfig

logger = structlog.get_logger()

DEFAULT_MIN_UNMATCHED_LENGTH = 20

# Terminal punctuation followed by whitespace or end of text; "2.5" stays whole
_SEGMENT_BOUNDARY = re.compile(r"[.!?]+(?=\s|$)")

_WORD_NUMBERS = {"one": 1, "two": 2, "three": 3, "four": 4}


def normalize_phrase(text: str) -> str:
    """Lower-case, hyphens and runs of whitespace to single spaces."""
    return re.sub(r"[\s\-]+", " ", text.lower()).strip()


def title_case(text: str) -> str:
    return " ".join(word.capitalize() for word in normalize_phrase(text).split())


# =============================================================================
# Coercions
# =============================================================================


def _count(match: re.Match[str]) -> int:
    raw = match.group(1).replace(",", "").lower()
    return _WORD_NUMBERS.get(raw) or int(raw)


def _half_units(match: re.Match[str]) -> int | float:
    whole = int(match.group(1))
    return whole + 0.5 if match.group(2) else whole


def _decimal(match: re.Match[str]) -> float:
    return float(match.group(1))


def _categorical(canonical: dict[str, str] | None = None) -> Callable[[re.Match[str]], str]:
    """Canonical value for the captured phrase, else its title-cased text."""
    table = canonical or {}

    def extract(match: re.Match[str]) -> str:
        phrase = normalize_phrase(match.group(1))
        return table.get(phrase) or title_case(phrase)

    return extract


# =============================================================================
# Rules
# =============================================================================


@dataclass(frozen=True)
class NarrativeRule:
    """One extraction rule: pattern -> coerced value for field_path.

    A rule without a field_path only marks text as recognized, so the
    sentence it touches is not reported as unmatched.
    """

    label: str
    field_path: str | None
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], Any] | None
    confidence: float


def _rule(
    label: str,
    field_path: str,
    pattern: str,
    extract: Callable[[re.Match[str]], Any],
    confidence: float,
) -> NarrativeRule:
    return NarrativeRule(label, field_path, re.compile(pattern, re.IGNORECASE), extract, confidence)


def _recognize(label: str, pattern: str) -> NarrativeRule:
    return NarrativeRule(label, None, re.compile(pattern, re.IGNORECASE), None, 0.0)


PROPERTY_TYPES = {
    "single family": "SingleFamily",
    "condo": "Condominium",
    "condominium": "Condominium",
    "townhouse": "Townhouse",
    "townhome": "Townhouse",
    "manufactured": "ManufacturedHousing",
    "mobile home": "ManufacturedHousing",
}

FOUNDATION_TYPES = {
    "slab": "Slab",
    "crawl space": "CrawlSpace",
    "crawlspace": "CrawlSpace",
    "basement": "Basement",
    "pier": "Pier",
    "pier and beam": "Pier",
}

DEFAULT_RULES: tuple[NarrativeRule, ...] = (
    _rule(
        "bedrooms",
        "Property.BedroomTotalCount",
        r"\b(\d+)\s*(?:bedrooms?|beds?|br)\b",
        _count,
        0.95,
    ),
    _rule(
        "bathrooms",
        "Property.BathroomTotalCount",
        r"\b(\d+)(\.5)?\s*(?:bathrooms?|baths?|ba)\b",
        _half_units,
        0.95,
    ),
    _rule(
        "year_built",
        "Property.YearBuilt",
        r"\b(?:built\s+(?:in\s+)?|year\s+built:?\s*)(\d{4})\b",
        _count,
        0.9,
    ),
    _rule(
        "square_feet",
        "Property.GrossLivingAreaSquareFeetCount",
        r"\b(\d{1,3}(?:,\d{3})+|\d{1,6})\s*(?:sq\.?\s*ft\.?|square\s*f(?:ee|oo)t|sf\b)",
        _count,
        0.85,
    ),
    _rule(
        "stories",
        "Property.StoriesCount",
        r"\b(\d+|one|two|three|four)[\s\-]*stor(?:y|ies)\b",
        _count,
        0.85,
    ),
    _rule(
        "property_type",
        "Property.PropertyType",
        r"\b(single[\s\-]*family|condominium|condo|townhouse|townhome|manufactured|mobile\s*home)\b",
        _categorical(PROPERTY_TYPES),
        0.9,
    ),
    _rule(
        "style",
        "Property.ArchitecturalDesignType",
        r"\b(ranch|colonial|cape\s*cod|split[\s\-]*level|contemporary|traditional|craftsman|victorian)\b",
        _categorical(),
        0.8,
    ),
    _rule(
        "roof_material",
        "Property.RoofSurfaceMaterialType",
        r"\b(asphalt\s*shingle|architectural\s*shingle|composition\s*shingle|metal|tile|slate"
        r"|wood\s*shake)s?\s+roof(?:ing)?\b",
        _categorical(),
        0.85,
    ),
    _rule(
        "siding_material",
        "Property.ExteriorWallCoveringType",
        r"\b(vinyl|wood|brick|stucco|hardiplank|fiber\s*cement|aluminum|stone)"
        r"\s+(?:siding|exterior|walls?|veneer)\b",
        _categorical(),
        0.85,
    ),
    _rule(
        "foundation",
        "Property.FoundationType",
        r"\b(slab|crawl\s*space|basement|pier(?:\s+and\s+beam)?)\s+foundation\b",
        _categorical(FOUNDATION_TYPES),
        0.8,
    ),
    _rule(
        "countertop_material",
        "Kitchen.CountertopMaterialType",
        r"\b(granite|quartz|laminate|butcher\s*block|solid\s*surface|tile|marble|concrete)"
        r"\s+counter(?:top)?s?\b",
        _categorical(),
        0.8,
    ),
    _rule(
        "cabinet_material",
        "Kitchen.CabinetMaterialType",
        r"\b(wood|oak|maple|cherry|laminate|thermofoil|metal|painted)\s+cabinet(?:ry|s)?\b",
        _categorical(),
        0.8,
    ),
    _rule(
        "kitchen_update",
        "Kitchen.UpdateYear",
        r"\bkitchen\s+(?:was\s+)?(?:updated|remodeled|renovated)\s+(?:in\s+)?(\d{4})\b",
        _count,
        0.85,
    ),
    _rule(
        "condition",
        "Property.PropertyConditionType",
        r"\b(excellent|good|average|fair|poor)\s+(?:overall\s+)?(?:condition|shape)\b",
        _categorical(),
        0.75,
    ),
    _rule(
        "lot_acreage",
        "Site.SiteAcreageNumber",
        r"\b(\d+(?:\.\d+)?)\s*(?:acres?|ac)\b",
        _decimal,
        0.8,
    ),
    _recognize(
        "flooring",
        r"\b(?:hardwood|carpet(?:ing)?|tile|laminate|vinyl|lvp|luxury\s*vinyl)\b",
    ),
    _recognize(
        "updates",
        r"\b(?:updated|remodeled|renovated|new)\s+"
        r"(?:kitchen|bathroom|bath|roof|hvac|windows|flooring)\b",
    ),
    _recognize("lot_dimensions", r"\b\d+\s*x\s*\d+\b"),
)


# =============================================================================
# Extractor
# =============================================================================


@dataclass
class NarrativeResult:
    """Extracted fields with per-field confidence and leftover text."""

    fields: dict[str, Any] = field(default_factory=dict)
    confidence: dict[str, float] = field(default_factory=dict)
    unmatched: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": dict(self.fields),
            "confidence": dict(self.confidence),
            "unmatched": list(self.unmatched),
        }


class NarrativeExtractor:
    """Applies the rule table to descriptive text.

    parse() is total: it never raises, whatever it is given.
    """

    def __init__(
        self,
        rules: Sequence[NarrativeRule] = DEFAULT_RULES,
        min_unmatched_length: int = DEFAULT_MIN_UNMATCHED_LENGTH,
    ) -> None:
        self.rules = tuple(rules)
        self.min_unmatched_length = min_unmatched_length

    @classmethod
    def from_config(cls, config: NarrativeConfig) -> NarrativeExtractor:
        return cls(min_unmatched_length=config.min_unmatched_length)

    def parse(self, text: object) -> NarrativeResult:
        result = NarrativeResult()
        normalized = " ".join(text.split()) if isinstance(text, str) else ""
        if not normalized:
            return result

        spans: list[tuple[int, int]] = []
        for rule in self.rules:
            matches = list(rule.pattern.finditer(normalized))
            if not matches:
                continue
            spans.extend(match.span() for match in matches)
            if rule.field_path is None or rule.extract is None:
                continue
            if rule.field_path in result.fields:
                continue
            result.fields[rule.field_path] = rule.extract(matches[0])
            result.confidence[rule.field_path] = rule.confidence

        result.unmatched = self._unmatched_segments(normalized, spans)
        logger.debug(
            "narrative_parsed",
            fields=len(result.fields),
            unmatched=len(result.unmatched),
        )
        return result

    def _unmatched_segments(self, text: str, spans: list[tuple[int, int]]) -> list[str]:
        segments: list[tuple[int, int]] = []
        start = 0
        for boundary in _SEGMENT_BOUNDARY.finditer(text):
            segments.append((start, boundary.start()))
            start = boundary.end()
        segments.append((start, len(text)))

        unmatched = []
        for seg_start, seg_end in segments:
            segment = text[seg_start:seg_end].strip()
            if len(segment) <= self.min_unmatched_length:
                continue
            if any(m_start < seg_end and seg_start < m_end for m_start, m_end in spans):
                continue
            unmatched.append(segment)
        return unmatched
