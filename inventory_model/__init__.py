"""
Inventory Model Package.

Shared data shapes for the inventory pipeline.

Modules:
- external_record: pydantic parse boundary for SSP payloads
- screen: canonical Screen and its value objects
- categories: closed internal category set
"""

from .categories import (
    CATEGORY_LABELS,
    VENUE_TYPE_TO_CATEGORY,
    ScreenCategoryId,
    category_label,
    map_venue_types,
)
from .external_record import (
    AudienceInfo,
    AvailabilityInfo,
    ExternalInventoryRecord,
    GeoLocation,
    MalformedValue,
    PricingInfo,
    RawInventoryRecord,
    ScreenInfo,
    VenueInfo,
    parse_external_record,
)
from .screen import (
    MAX_RATING,
    MIN_RATING,
    AudienceViews,
    Coordinates,
    Environment,
    LocationDetails,
    OperatingHours,
    Orientation,
    PricingBundle,
    PricingBundles,
    Screen,
    ScreenCategory,
    ScreenSpecs,
    SourceMetadata,
    TrafficMetrics,
    clamp_rating,
)


__all__ = [
    # Categories
    "CATEGORY_LABELS",
    "VENUE_TYPE_TO_CATEGORY",
    "ScreenCategoryId",
    "category_label",
    "map_venue_types",
    # External record
    "AudienceInfo",
    "AvailabilityInfo",
    "ExternalInventoryRecord",
    "GeoLocation",
    "MalformedValue",
    "PricingInfo",
    "RawInventoryRecord",
    "ScreenInfo",
    "VenueInfo",
    "parse_external_record",
    # Screen
    "MAX_RATING",
    "MIN_RATING",
    "AudienceViews",
    "Coordinates",
    "Environment",
    "LocationDetails",
    "OperatingHours",
    "Orientation",
    "PricingBundle",
    "PricingBundles",
    "Screen",
    "ScreenCategory",
    "ScreenSpecs",
    "SourceMetadata",
    "TrafficMetrics",
    "clamp_rating",
]
