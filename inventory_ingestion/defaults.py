"""
Inventory Ingestion - Field Rule Table.

============================================================
PURPOSE
============================================================
Single declarative table of every external-record field:
where it lives, what its default is, whether its absence is
worth a warning, and what makes a present value invalid.

Both sides read from here:
- the validator decides warning vs error and fills defaults
- the adapter asks effective_value() for a usable value

so the two can never drift apart.

============================================================
GROUPS
============================================================
A group (geo, screen, pricing, audience, availability) that
is absent entirely produces ONE warning and every field of
the group takes its group default (or field default).

============================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from inventory_model.external_record import MalformedValue

from .types import IssueCode


_UNSET = object()

DEFAULT_VENUE_NAME = "SSP Screen"
DEFAULT_SOURCE_NAME = "Unknown SSP"
UNKNOWN_PLACE = "Unknown"
DEFAULT_TIMEZONE = "America/Bogota"
DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_BRIGHTNESS = 5000.0
DEFAULT_PIXEL_DENSITY = 72.0
DEFAULT_IMAGE_URL = "/screens_photos/ssp-default.jpg"
DEFAULT_FLOOR_PRICE = 10.0
DEFAULT_CURRENCY = "USD"
DEFAULT_DAILY_IMPRESSIONS = 10000
DEFAULT_AVAILABILITY_STATUS = "Available"


# =============================================================
# CHECKS
# =============================================================

def _latitude_in_range(value: float) -> bool:
    return -90.0 <= value <= 90.0


def _longitude_in_range(value: float) -> bool:
    return -180.0 <= value <= 180.0


def _positive(value: float) -> bool:
    return value > 0


def _non_negative(value: float) -> bool:
    return value >= 0


# =============================================================
# RULE TYPES
# =============================================================

@dataclass(frozen=True)
class FieldRule:
    """How one field is defaulted and checked."""
    path: str
    attr: str
    default: Any = None
    required: bool = False
    warn_when_missing: bool = False
    missing_code: IssueCode = IssueCode.MISSING_OPTIONAL_FIELD
    missing_message: str = ""
    check: Optional[Callable[[Any], bool]] = None
    invalid_code: IssueCode = IssueCode.MISSING_OPTIONAL_FIELD
    invalid_message: str = ""
    # Value used when the whole group is absent (falls back to default)
    group_default: Any = _UNSET
    # Take the default from another, already resolved, attribute
    default_from: Optional[str] = None

    @property
    def group(self) -> Optional[str]:
        if "." not in self.path:
            return None
        return self.path.split(".", 1)[0]

    def is_valid(self, value: Any) -> bool:
        if isinstance(value, MalformedValue):
            return False
        if self.check is None:
            return True
        try:
            return bool(self.check(value))
        except TypeError:
            return False

    def default_for(self, group_present: bool, resolved: Dict[str, Any]) -> Any:
        if not group_present and self.group_default is not _UNSET:
            return self.group_default
        if self.default_from is not None:
            fallback = resolved.get(self.default_from)
            if fallback:
                return fallback
        return self.default


@dataclass(frozen=True)
class GroupRule:
    """Warning emitted when a whole feed section is absent."""
    group: str
    code: IssueCode
    message: str


# =============================================================
# THE TABLE
# =============================================================

# Order matters: default_from may only reference earlier rules.
FIELD_RULES: Tuple[FieldRule, ...] = (
    # Identity
    FieldRule(
        path="source_id", attr="source_id", default="", required=True,
        missing_code=IssueCode.MISSING_REQUIRED_FIELD,
        missing_message="SSP ID is required",
    ),
    FieldRule(path="source_name", attr="source_name", default=DEFAULT_SOURCE_NAME),
    FieldRule(path="request_id", attr="request_id", default=""),
    FieldRule(
        path="timestamp", attr="timestamp", default=None, warn_when_missing=True,
        missing_code=IssueCode.MISSING_TIMESTAMP,
        missing_message="Record timestamp missing, stamping at conversion time",
    ),

    # Venue
    FieldRule(
        path="venue.venue_id", attr="venue_id", default="", required=True,
        missing_code=IssueCode.MISSING_REQUIRED_FIELD,
        missing_message="Venue ID is required",
    ),
    FieldRule(
        path="venue.venue_name", attr="venue_name", default=DEFAULT_VENUE_NAME,
        warn_when_missing=True,
        missing_message="Venue name is missing, using default",
    ),
    FieldRule(path="venue.venue_types", attr="venue_types", default=()),

    # Geolocation
    FieldRule(
        path="geo.latitude", attr="latitude", default=None,
        check=_latitude_in_range,
        invalid_code=IssueCode.INVALID_COORDINATE,
        invalid_message="Invalid latitude value",
    ),
    FieldRule(
        path="geo.longitude", attr="longitude", default=None,
        check=_longitude_in_range,
        invalid_code=IssueCode.INVALID_COORDINATE,
        invalid_message="Invalid longitude value",
    ),
    FieldRule(path="geo.city", attr="city", default=UNKNOWN_PLACE),
    FieldRule(path="geo.region", attr="region", default=UNKNOWN_PLACE),
    FieldRule(path="geo.country", attr="country", default=UNKNOWN_PLACE),
    FieldRule(path="geo.address", attr="address", default="SSP Location", default_from="venue_name"),
    FieldRule(path="geo.timezone", attr="timezone", default=DEFAULT_TIMEZONE),

    # Screen
    FieldRule(
        path="screen.width_pixels", attr="width", default=DEFAULT_WIDTH,
        check=_positive,
        invalid_code=IssueCode.INVALID_DIMENSION,
        invalid_message="Screen width must be positive",
    ),
    FieldRule(
        path="screen.height_pixels", attr="height", default=DEFAULT_HEIGHT,
        check=_positive,
        invalid_code=IssueCode.INVALID_DIMENSION,
        invalid_message="Screen height must be positive",
    ),
    FieldRule(path="screen.brightness", attr="brightness", default=DEFAULT_BRIGHTNESS, check=_positive),
    FieldRule(path="screen.pixels_per_inch", attr="pixel_density", default=DEFAULT_PIXEL_DENSITY, check=_positive),
    FieldRule(path="screen.is_fixed", attr="is_fixed", default=False, group_default=True),
    FieldRule(path="screen.image_url", attr="image_url", default=DEFAULT_IMAGE_URL),

    # Pricing
    FieldRule(
        path="pricing.floor_price", attr="floor_price", default=DEFAULT_FLOOR_PRICE,
        check=_non_negative,
        invalid_code=IssueCode.INVALID_PRICE,
        invalid_message="Floor price cannot be negative",
    ),
    FieldRule(path="pricing.currency", attr="currency", default=DEFAULT_CURRENCY),

    # Audience
    FieldRule(
        path="audience.estimated_daily_impressions", attr="daily_impressions",
        default=DEFAULT_DAILY_IMPRESSIONS,
        check=_non_negative,
        invalid_code=IssueCode.INVALID_IMPRESSIONS,
        invalid_message="Daily impressions cannot be negative",
    ),

    # Availability
    FieldRule(path="availability.status", attr="availability_status", default=DEFAULT_AVAILABILITY_STATUS),
)

GROUP_RULES: Tuple[GroupRule, ...] = (
    GroupRule("geo", IssueCode.MISSING_LOCATION_DATA, "Geographic location is missing"),
    GroupRule("screen", IssueCode.MISSING_SCREEN_SPECS, "Screen specifications missing, using defaults"),
    GroupRule("pricing", IssueCode.MISSING_PRICING_INFO, "Pricing information missing, using default"),
    GroupRule("audience", IssueCode.MISSING_AUDIENCE_INFO, "Audience information missing, using estimates"),
    GroupRule("availability", IssueCode.MISSING_AVAILABILITY_INFO, "Availability information missing, assuming available"),
)

RULES_BY_ATTR: Dict[str, FieldRule] = {rule.attr: rule for rule in FIELD_RULES}


def get_rule(attr: str) -> FieldRule:
    """Look up a rule by sanitized attribute name."""
    try:
        return RULES_BY_ATTR[attr]
    except KeyError:
        raise KeyError(f"No field rule for attribute: {attr}") from None


def effective_value(attr: str, value: Any) -> Any:
    """
    Value safe to build a canonical screen from.

    Present and passing its check -> value; otherwise the rule's
    default. Used by the adapter so that soft-invalid values kept in
    the sanitized record never reach canonical output.
    """
    rule = get_rule(attr)
    if is_missing(value) or not rule.is_valid(value):
        return rule.default
    return value


def is_missing(value: Any) -> bool:
    """None, blank strings and empty collections count as absent."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False
