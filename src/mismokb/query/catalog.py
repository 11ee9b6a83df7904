"""Static vocabularies behind the query engine.

These are curated lists, not derived from the ingested schema: a feature
keyword expands to candidate classes and name fragments, and a few
(entity type, use case) pairs carry a required-field checklist.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FeatureMapping:
    """Candidate owning classes plus property-name fragments for a feature."""

    classes: tuple[str, ...]
    keywords: tuple[str, ...]


FEATURE_VOCABULARY: dict[str, FeatureMapping] = {
    "kitchen": FeatureMapping(
        classes=("Kitchen", "Appliance", "Room"),
        keywords=("kitchen", "counter", "cabinet", "appliance"),
    ),
    "bathroom": FeatureMapping(
        classes=("Bathroom", "Room"),
        keywords=("bath", "tub", "shower", "toilet", "vanity"),
    ),
    "exterior": FeatureMapping(
        classes=("Structure", "Construction", "ExteriorFeature"),
        keywords=("exterior", "siding", "roof", "foundation", "window"),
    ),
    "site": FeatureMapping(
        classes=("Site", "SiteFeature", "SiteUtility"),
        keywords=("lot", "site", "utility", "drainage", "topography"),
    ),
    "neighborhood": FeatureMapping(
        classes=("Neighborhood", "Location", "Area", "Site", "Property"),
        keywords=(
            "neighborhood",
            "location",
            "area",
            "vicinity",
            "district",
            "community",
            "locale",
            "surroundings",
        ),
    ),
}

REQUIRED_FIELDS: dict[tuple[str, str], tuple[str, ...]] = {
    ("SingleFamily", "appraisal"): (
        "Property.Address",
        "Property.PropertyType",
        "Property.YearBuilt",
        "Property.GrossLivingArea",
        "Property.BedroomCount",
        "Property.BathroomCount",
        "PropertyValuation.PropertyValuationAmount",
        "PropertyValuation.PropertyValuationEffectiveDate",
    ),
}

RELATED_ENTITIES: dict[str, tuple[str, ...]] = {
    "Property": ("Address", "Site", "Structure", "PropertyValuation"),
    "Borrower": ("Employment", "Income", "Asset", "Liability"),
    "Loan": ("Property", "Borrower", "LoanTerms"),
}


def feature_mapping(feature: str) -> FeatureMapping:
    """Vocabulary entry for feature; unknown words search on themselves."""
    word = feature.strip().lower()
    mapping = FEATURE_VOCABULARY.get(word)
    if mapping is not None:
        return mapping
    return FeatureMapping(classes=(), keywords=(word,) if word else ())
