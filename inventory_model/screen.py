"""
Inventory Model - Canonical Screen.

============================================================
PURPOSE
============================================================
The one internal shape every marketplace consumer reads:
search, filters, map rendering and pricing all work from
Screen, regardless of whether the display is operated
directly (local) or ingested from an SSP (external).

============================================================
INVARIANTS
============================================================
- id is unique across the whole aggregated inventory
- external screens carry a non-empty source_metadata.source_id
- coordinates are valid or the explicit unknown sentinel
- rating is within [1.0, 5.0]
- bundle prices are non-negative

Instances are frozen: replacing a screen means building a
new one (dataclasses.replace).

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .categories import ScreenCategoryId, category_label


MIN_RATING = 1.0
MAX_RATING = 5.0


# =============================================================
# ENUMS
# =============================================================

class Environment(str, Enum):
    """Where the display is installed."""
    INDOOR = "indoor"
    OUTDOOR = "outdoor"


class Orientation(str, Enum):
    """Panel orientation."""
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"


# =============================================================
# VALUE OBJECTS
# =============================================================

@dataclass(frozen=True)
class Coordinates:
    """Geocoordinates; lat/lng None is the explicit unknown sentinel."""
    lat: Optional[float]
    lng: Optional[float]

    @classmethod
    def unknown(cls) -> "Coordinates":
        """The unknown-location sentinel."""
        return cls(lat=None, lng=None)

    @property
    def is_known(self) -> bool:
        """True when both components are present and in range."""
        return (
            self.lat is not None and self.lng is not None
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lng <= 180.0
        )

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class ScreenCategory:
    """Category id plus display label."""
    id: ScreenCategoryId
    name: str

    @classmethod
    def from_id(cls, category_id: ScreenCategoryId) -> "ScreenCategory":
        return cls(id=category_id, name=category_label(category_id))


@dataclass(frozen=True)
class ScreenSpecs:
    """Technical specifications."""
    width: int
    height: int
    resolution: str
    brightness: str
    aspect_ratio: str
    orientation: Orientation
    pixel_density: float
    color_depth: int = 24
    refresh_rate: int = 60
    technology: str = "LED"


@dataclass(frozen=True)
class AudienceViews:
    """Estimated view counts."""
    daily: int
    weekly: int
    monthly: int


@dataclass(frozen=True)
class PricingBundle:
    """One time-bucketed bundle."""
    enabled: bool
    price: float
    spots: int


@dataclass(frozen=True)
class PricingBundles:
    """Hourly / daily / weekly / monthly bundles."""
    hourly: PricingBundle
    daily: PricingBundle
    weekly: PricingBundle
    monthly: PricingBundle
    currency: str = "USD"
    allow_moments: bool = True
    device_id: str = ""

    def as_tuple(self) -> Tuple[PricingBundle, ...]:
        return (self.hourly, self.daily, self.weekly, self.monthly)


@dataclass(frozen=True)
class TrafficMetrics:
    """Traffic estimates."""
    daily_traffic: int
    monthly_traffic: int
    average_engagement: int = 85


@dataclass(frozen=True)
class LocationDetails:
    """Structured location."""
    address: str
    city: str
    region: str
    country: str
    coordinates: Coordinates
    timezone: str
    landmarks: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OperatingHours:
    """Daily operating window."""
    start: str = "06:00"
    end: str = "23:00"
    days_active: Tuple[str, ...] = (
        "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo",
    )


@dataclass(frozen=True)
class SourceMetadata:
    """Provenance of an externally sourced screen."""
    source_id: str
    source_name: str
    original_inventory_id: str
    last_updated: datetime
    is_external: bool = True


# =============================================================
# CANONICAL SCREEN
# =============================================================

@dataclass(frozen=True)
class Screen:
    """A sellable display, independent of origin."""

    id: str
    name: str
    location: str
    price: float
    availability: bool
    category: ScreenCategory
    environment: Environment
    specs: ScreenSpecs
    views: AudienceViews
    rating: float
    reviews: int
    coordinates: Coordinates
    pricing: Optional[PricingBundles]
    metrics: TrafficMetrics
    location_details: LocationDetails
    operating_hours: OperatingHours = field(default_factory=OperatingHours)
    image: str = ""
    source_metadata: Optional[SourceMetadata] = None

    @property
    def is_external(self) -> bool:
        """True for SSP-sourced inventory."""
        return self.source_metadata is not None and self.source_metadata.is_external

    @property
    def source_id(self) -> Optional[str]:
        return self.source_metadata.source_id if self.source_metadata else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/output."""
        meta = self.source_metadata
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "price": self.price,
            "availability": self.availability,
            "image": self.image,
            "category": {"id": self.category.id.value, "name": self.category.name},
            "environment": self.environment.value,
            "specs": {
                "width": self.specs.width,
                "height": self.specs.height,
                "resolution": self.specs.resolution,
                "brightness": self.specs.brightness,
                "aspect_ratio": self.specs.aspect_ratio,
                "orientation": self.specs.orientation.value,
                "pixel_density": self.specs.pixel_density,
                "color_depth": self.specs.color_depth,
                "refresh_rate": self.specs.refresh_rate,
                "technology": self.specs.technology,
            },
            "views": {
                "daily": self.views.daily,
                "weekly": self.views.weekly,
                "monthly": self.views.monthly,
            },
            "rating": self.rating,
            "reviews": self.reviews,
            "coordinates": self.coordinates.to_dict(),
            "pricing": None if self.pricing is None else {
                "currency": self.pricing.currency,
                "allow_moments": self.pricing.allow_moments,
                "device_id": self.pricing.device_id,
                "bundles": {
                    name: {"enabled": b.enabled, "price": b.price, "spots": b.spots}
                    for name, b in (
                        ("hourly", self.pricing.hourly),
                        ("daily", self.pricing.daily),
                        ("weekly", self.pricing.weekly),
                        ("monthly", self.pricing.monthly),
                    )
                },
            },
            "metrics": {
                "daily_traffic": self.metrics.daily_traffic,
                "monthly_traffic": self.metrics.monthly_traffic,
                "average_engagement": self.metrics.average_engagement,
            },
            "location_details": {
                "address": self.location_details.address,
                "city": self.location_details.city,
                "region": self.location_details.region,
                "country": self.location_details.country,
                "coordinates": self.location_details.coordinates.to_dict(),
                "timezone": self.location_details.timezone,
                "landmarks": list(self.location_details.landmarks),
            },
            "operating_hours": {
                "start": self.operating_hours.start,
                "end": self.operating_hours.end,
                "days_active": list(self.operating_hours.days_active),
            },
            "source_metadata": None if meta is None else {
                "source_id": meta.source_id,
                "source_name": meta.source_name,
                "original_inventory_id": meta.original_inventory_id,
                "last_updated": meta.last_updated.isoformat(),
                "is_external": meta.is_external,
            },
        }


def clamp_rating(value: float) -> float:
    """Clamp a quality rating into [MIN_RATING, MAX_RATING]."""
    return min(MAX_RATING, max(MIN_RATING, value))
