"""
Inventory Model - External Inventory Record.

============================================================
PURPOSE
============================================================
Parse boundary for third-party (SSP) inventory payloads.

Feeds arrive already deserialized, structurally loose, and
with any field possibly absent. This module turns one raw
mapping into a typed ExternalInventoryRecord:

- Accepts the feed's PascalCase keys (SSPId, VenueInfo, ...)
  as well as snake_case attribute names
- Every field is optional - absence is the validator's concern
- Unknown keys are ignored
- A field value whose type cannot be coerced becomes a
  MalformedValue marker; the validator flags and defaults it
- Only a non-mapping payload or a non-mapping section fails
  the record here, as a ConversionFault

============================================================
FEED SHAPE
============================================================
{
  "SSPId": "...", "SSPName": "...", "RequestId": "...",
  "Timestamp": "2025-01-01T00:00:00Z",
  "VenueInfo":        {"VenueId", "VenueName", "VenueTypes"},
  "GeoLocation":      {"Latitude", "Longitude", "City", "Region",
                       "Country", "Address", "Timezone"},
  "ScreenInfo":       {"WidthPixels", "HeightPixels", "Brightness",
                       "PixelsPerInch", "IsFixed", "ImageUrl"},
  "PricingInfo":      {"FloorPrice", "Currency"},
  "AudienceInfo":     {"EstimatedDailyImpressions"},
  "AvailabilityInfo": {"Status"}
}

============================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.exceptions import ConversionFault


# =============================================================
# HELPERS
# =============================================================

def _coerce_identifier(value: Any) -> Any:
    """Identifiers sometimes arrive as numbers."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class MalformedValue:
    """A feed value that could not be coerced to its field type."""

    __slots__ = ("raw",)

    def __init__(self, raw: Any) -> None:
        self.raw = raw

    def __repr__(self) -> str:
        return f"MalformedValue({self.raw!r})"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, MalformedValue) and other.raw == self.raw


def _coerce_or_mark(value: Any, handler: Any) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return MalformedValue(value)


def _plain(value: Any) -> Optional[str]:
    if value is None or isinstance(value, MalformedValue):
        return None
    return value


class _FeedModel(BaseModel):
    """Shared pydantic settings for feed sections."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _FeedSection(_FeedModel):
    """Section whose scalar fields degrade to MalformedValue instead of failing."""

    @field_validator("*", mode="wrap")
    @classmethod
    def _lenient(cls, value: Any, handler: Any) -> Any:
        return _coerce_or_mark(value, handler)


# =============================================================
# FEED SECTIONS
# =============================================================

class VenueInfo(_FeedSection):
    """Venue identification block."""
    venue_id: Optional[str] = Field(default=None, alias="VenueId")
    venue_name: Optional[str] = Field(default=None, alias="VenueName")
    venue_types: Optional[List[str]] = Field(default=None, alias="VenueTypes")

    @field_validator("venue_id", mode="before")
    @classmethod
    def _coerce_venue_id(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    @field_validator("venue_types", mode="before")
    @classmethod
    def _wrap_single_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class GeoLocation(_FeedSection):
    """Geolocation block."""
    latitude: Optional[float] = Field(default=None, alias="Latitude")
    longitude: Optional[float] = Field(default=None, alias="Longitude")
    city: Optional[str] = Field(default=None, alias="City")
    region: Optional[str] = Field(default=None, alias="Region")
    country: Optional[str] = Field(default=None, alias="Country")
    address: Optional[str] = Field(default=None, alias="Address")
    timezone: Optional[str] = Field(default=None, alias="Timezone")


class ScreenInfo(_FeedSection):
    """Physical screen specification block."""
    width_pixels: Optional[int] = Field(default=None, alias="WidthPixels")
    height_pixels: Optional[int] = Field(default=None, alias="HeightPixels")
    brightness: Optional[float] = Field(default=None, alias="Brightness")
    pixels_per_inch: Optional[float] = Field(default=None, alias="PixelsPerInch")
    is_fixed: Optional[bool] = Field(default=None, alias="IsFixed")
    image_url: Optional[str] = Field(default=None, alias="ImageUrl")


class PricingInfo(_FeedSection):
    """Pricing block (floor price in the source's native unit)."""
    floor_price: Optional[float] = Field(default=None, alias="FloorPrice")
    currency: Optional[str] = Field(default=None, alias="Currency")


class AudienceInfo(_FeedSection):
    """Audience estimate block."""
    estimated_daily_impressions: Optional[int] = Field(
        default=None, alias="EstimatedDailyImpressions"
    )


class AvailabilityInfo(_FeedSection):
    """Availability block."""
    status: Optional[str] = Field(default=None, alias="Status")


# =============================================================
# EXTERNAL INVENTORY RECORD
# =============================================================

class ExternalInventoryRecord(_FeedModel):
    """One SSP inventory record, parsed but not yet validated."""

    source_id: Optional[str] = Field(default=None, alias="SSPId")
    source_name: Optional[str] = Field(default=None, alias="SSPName")
    request_id: Optional[str] = Field(default=None, alias="RequestId")
    timestamp: Optional[datetime] = Field(default=None, alias="Timestamp")

    venue: Optional[VenueInfo] = Field(default=None, alias="VenueInfo")
    geo: Optional[GeoLocation] = Field(default=None, alias="GeoLocation")
    screen: Optional[ScreenInfo] = Field(default=None, alias="ScreenInfo")
    pricing: Optional[PricingInfo] = Field(default=None, alias="PricingInfo")
    audience: Optional[AudienceInfo] = Field(default=None, alias="AudienceInfo")
    availability: Optional[AvailabilityInfo] = Field(default=None, alias="AvailabilityInfo")

    @field_validator("source_id", "request_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    @field_validator("source_id", "source_name", "request_id", "timestamp", mode="wrap")
    @classmethod
    def _lenient_scalars(cls, value: Any, handler: Any) -> Any:
        return _coerce_or_mark(value, handler)

    def lookup(self, path: str) -> Tuple[bool, Any]:
        """
        Resolve a dotted field path.

        Returns:
            (group_present, value). For top-level paths group_present
            is always True.
        """
        if "." not in path:
            return True, getattr(self, path)

        group_name, field_name = path.split(".", 1)
        group = getattr(self, group_name)
        if group is None:
            return False, None
        return True, getattr(group, field_name)

    @property
    def venue_id(self) -> Optional[str]:
        """Shortcut for the venue identifier."""
        return _plain(self.venue.venue_id) if self.venue else None

    def reference(self) -> Dict[str, Optional[str]]:
        """Minimal identifying fields for failure reports and logs."""
        return {
            "source_id": _plain(self.source_id),
            "venue_id": self.venue_id,
            "request_id": _plain(self.request_id),
        }


RawInventoryRecord = Union[Mapping[str, Any], ExternalInventoryRecord]


def parse_external_record(raw: RawInventoryRecord) -> ExternalInventoryRecord:
    """
    Parse one raw feed payload.

    Args:
        raw: Mapping from the transport layer, or an already parsed record

    Returns:
        Typed ExternalInventoryRecord

    Raises:
        ConversionFault: payload or one of its sections is not a mapping
    """
    if isinstance(raw, ExternalInventoryRecord):
        return raw

    if not isinstance(raw, Mapping):
        raise ConversionFault(
            f"Inventory record must be a mapping, got {type(raw).__name__}",
        )

    try:
        return ExternalInventoryRecord.model_validate(dict(raw))
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConversionFault(
            f"Inventory record has malformed fields: {', '.join(fields)}",
            source_id=_safe_str(raw.get("SSPId", raw.get("source_id"))),
            context={"fields": fields},
            cause=e,
        ) from e


def _safe_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)[:100]
