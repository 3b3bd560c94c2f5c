"""
Inventory Store - Integrity Check.

Cross-record invariants of the aggregated inventory, run after
every merge. Violations are reported, never enforced here; the
store decides what to do with them.

Errors:   duplicate ids, missing name, external entry without
          source id
Warnings: missing location, unknown coordinates, external
          entry without source name
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from inventory_model.screen import Screen


@dataclass
class IntegrityReport:
    """Result of an integrity pass over the whole inventory."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    checked: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "checked": self.checked,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "errors": self.errors[:10],
            "warnings": self.warnings[:10],
        }


def validate_inventory(screens: Iterable[Screen]) -> IntegrityReport:
    """Check cross-record invariants over a collection of screens."""
    screens = list(screens)
    report = IntegrityReport(checked=len(screens))

    id_counts = Counter(screen.id for screen in screens)
    for screen_id, count in sorted(id_counts.items()):
        if count > 1:
            report.errors.append(f"Duplicate screen id {screen_id} ({count} entries)")

    for screen in screens:
        if not screen.name:
            report.errors.append(f"Screen {screen.id} has no name")

        if not screen.location:
            report.warnings.append(f"Screen {screen.id} has no location")

        if not screen.coordinates.is_known:
            report.warnings.append(f"Screen {screen.id} has unknown coordinates")

        if screen.is_external:
            if not screen.source_metadata.source_id:
                report.errors.append(f"External screen {screen.id} has no source id")
            if not screen.source_metadata.source_name:
                report.warnings.append(f"External screen {screen.id} has no source name")

    return report
