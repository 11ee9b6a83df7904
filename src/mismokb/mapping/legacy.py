"""Legacy field name to canonical path mapping.

A static dictionary of common legacy names, matched exactly after
normalization and otherwise by substring containment in either direction.
Fuzzy ties are broken deterministically:

1. Longest contained text (the matched part of name and key)
2. Key length closest to the name's length
3. Alphabetical key
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from mismokb.config.models import LegacyConfig

logger = structlog.get_logger()

NO_MAPPING_MESSAGE = "No direct mapping found"
NO_CONFIDENT_MAPPING = "No confident mapping found"

LEGACY_MAPPINGS: dict[str, str] = {
    # Basic property info
    "address": "Property.Address",
    "year_built": "Property.YearBuilt",
    "construction year": "Property.YearBuilt",
    "bedrooms": "Property.BedroomTotalCount",
    "beds": "Property.BedroomTotalCount",
    "bathrooms": "Property.BathroomTotalCount",
    "baths": "Property.BathroomTotalCount",
    "square_feet": "Property.GrossLivingAreaSquareFeetCount",
    "sq_ft": "Property.GrossLivingAreaSquareFeetCount",
    "living_area": "Property.GrossLivingAreaSquareFeetCount",
    "gla": "Property.GrossLivingAreaSquareFeetCount",
    # Property type
    "property_type": "Property.PropertyType",
    "prop_type": "Property.PropertyType",
    "style": "Property.ArchitecturalDesignType",
    "design": "Property.ArchitecturalDesignType",
    # Valuation
    "appraised_value": "PropertyValuation.PropertyValuationAmount",
    "market_value": "PropertyValuation.PropertyValuationAmount",
    "value": "PropertyValuation.PropertyValuationAmount",
    "effective_date": "PropertyValuation.PropertyValuationEffectiveDate",
    "appraisal_date": "PropertyValuation.PropertyValuationEffectiveDate",
    # Site
    "lot_size": "Site.SiteAcreageNumber",
    "acreage": "Site.SiteAcreageNumber",
    "zoning": "Site.ZoningClassificationType",
    # Construction
    "foundation": "Construction.FoundationMaterialType",
    "roof_type": "Construction.RoofSurfaceMaterialType",
    "roof_material": "Construction.RoofSurfaceMaterialType",
    "exterior_walls": "Construction.ExteriorWallCoveringType",
    "siding": "Construction.ExteriorWallCoveringType",
}


def normalize_name(name: str) -> str:
    """Lower-case; underscores, hyphens, dots and whitespace to single spaces."""
    return re.sub(r"[\s_.\-]+", " ", name.lower()).strip()


@dataclass
class LegacySuggestion:
    """Best canonical path for one legacy name."""

    field: str
    suggested_mapping: str | None
    confidence: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "field": self.field,
            "suggestedMapping": self.suggested_mapping,
            "confidence": self.confidence,
        }
        if self.message is not None:
            result["message"] = self.message
        return result


@dataclass
class LegacyConversion:
    """A legacy record split into canonical data and unmapped leftovers."""

    data: dict[str, Any] = field(default_factory=dict)
    mapping_report: list[dict[str, Any]] = field(default_factory=list)
    unmapped_fields: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mismoData": dict(self.data),
            "mappingReport": list(self.mapping_report),
            "unmappedFields": list(self.unmapped_fields),
        }


class LegacyFieldMapper:
    """Maps legacy field names onto canonical field paths."""

    def __init__(
        self,
        mappings: Mapping[str, str] = LEGACY_MAPPINGS,
        exact_confidence: float = 0.9,
        fuzzy_confidence: float = 0.7,
        min_confidence: float = 0.5,
    ) -> None:
        self._mappings: dict[str, str] = {}
        for key, path in mappings.items():
            self._mappings.setdefault(normalize_name(key), path)
        self.exact_confidence = exact_confidence
        self.fuzzy_confidence = fuzzy_confidence
        self.min_confidence = min_confidence

    @classmethod
    def from_config(cls, config: LegacyConfig) -> LegacyFieldMapper:
        return cls(
            exact_confidence=config.exact_confidence,
            fuzzy_confidence=config.fuzzy_confidence,
            min_confidence=config.min_confidence,
        )

    def suggest(self, legacy_name: str) -> LegacySuggestion:
        normalized = normalize_name(legacy_name)
        if not normalized:
            return LegacySuggestion(legacy_name, None, 0, NO_MAPPING_MESSAGE)

        path = self._mappings.get(normalized)
        if path is not None:
            return LegacySuggestion(legacy_name, path, self.exact_confidence)

        key = self._best_fuzzy_key(normalized)
        if key is not None:
            return LegacySuggestion(legacy_name, self._mappings[key], self.fuzzy_confidence)

        return LegacySuggestion(legacy_name, None, 0, NO_MAPPING_MESSAGE)

    def _best_fuzzy_key(self, normalized: str) -> str | None:
        candidates = [
            key for key in self._mappings if key in normalized or normalized in key
        ]
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda k: (
                -min(len(k), len(normalized)),
                abs(len(k) - len(normalized)),
                k,
            ),
        )

    def convert(self, record: Mapping[Any, Any]) -> LegacyConversion:
        """Translate every key of record; low-confidence keys stay unmapped.

        A key whose canonical path is already filled by an earlier key is
        reported as unmapped instead of overwriting it.
        """
        result = LegacyConversion()
        owners: dict[str, str] = {}
        for key, value in record.items():
            name = str(key)
            suggestion = self.suggest(name)
            path = suggestion.suggested_mapping
            if path is None or suggestion.confidence <= self.min_confidence:
                result.unmapped_fields.append(
                    {"field": name, "value": value, "reason": NO_CONFIDENT_MAPPING}
                )
                continue
            if path in owners:
                result.unmapped_fields.append(
                    {
                        "field": name,
                        "value": value,
                        "reason": f"Conflicts with '{owners[path]}' for {path}",
                    }
                )
                continue
            owners[path] = name
            result.data[path] = value
            result.mapping_report.append(
                {
                    "legacy": name,
                    "mismo": path,
                    "confidence": suggestion.confidence,
                    "value": value,
                }
            )
        logger.debug(
            "legacy_converted",
            mapped=len(result.mapping_report),
            unmapped=len(result.unmapped_fields),
        )
        return result
