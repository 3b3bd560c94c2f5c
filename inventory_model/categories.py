"""
Inventory Model - Screen Categories.

Closed set of internal marketplace categories and the lookup
from SSP venue types into it. Anything unmapped lands in
"general".
"""

from enum import Enum
from typing import Dict, Optional, Sequence


class ScreenCategoryId(str, Enum):
    """Internal marketplace categories."""
    MALL = "mall"
    TRANSPORT = "transport"
    BILLBOARD = "billboard"
    ENTERTAINMENT = "entertainment"
    CORPORATE = "corporate"
    UNIVERSITY = "university"
    HOSPITAL = "hospital"
    GOVERNMENT = "government"
    GENERAL = "general"


VENUE_TYPE_TO_CATEGORY: Dict[str, ScreenCategoryId] = {
    "retail": ScreenCategoryId.MALL,
    "transit": ScreenCategoryId.TRANSPORT,
    "outdoor": ScreenCategoryId.BILLBOARD,
    "leisure": ScreenCategoryId.ENTERTAINMENT,
    "office": ScreenCategoryId.CORPORATE,
    "education": ScreenCategoryId.UNIVERSITY,
    "healthcare": ScreenCategoryId.HOSPITAL,
    "government": ScreenCategoryId.GOVERNMENT,
}

# Display labels shown by the marketplace
CATEGORY_LABELS: Dict[ScreenCategoryId, str] = {
    ScreenCategoryId.MALL: "Centro Comercial",
    ScreenCategoryId.TRANSPORT: "Transporte",
    ScreenCategoryId.BILLBOARD: "Valla Exterior",
    ScreenCategoryId.ENTERTAINMENT: "Entretenimiento",
    ScreenCategoryId.CORPORATE: "Corporativo",
    ScreenCategoryId.UNIVERSITY: "Universidad",
    ScreenCategoryId.HOSPITAL: "Hospital",
    ScreenCategoryId.GOVERNMENT: "Gubernamental",
    ScreenCategoryId.GENERAL: "General",
}


def map_venue_types(venue_types: Optional[Sequence[str]]) -> ScreenCategoryId:
    """Map the first venue type to an internal category."""
    if not venue_types:
        return ScreenCategoryId.GENERAL
    first = venue_types[0]
    if not isinstance(first, str):
        return ScreenCategoryId.GENERAL
    return VENUE_TYPE_TO_CATEGORY.get(first.strip().lower(), ScreenCategoryId.GENERAL)


def category_label(category: ScreenCategoryId) -> str:
    """Display label for a category."""
    return CATEGORY_LABELS.get(category, CATEGORY_LABELS[ScreenCategoryId.GENERAL])
