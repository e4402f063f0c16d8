"""Maintenance categories and how service records are matched to them.

Records created with an explicit ``category`` are matched on it directly.
Legacy records only carry a free-text ``service_type``; for those the
keyword rule below is the fallback (substring, case-insensitive).
"""

from __future__ import annotations

from dataclasses import dataclass

from services.alerting.types import ServiceRecord


@dataclass(frozen=True)
class MaintenanceCategory:
    name: str                       # settings key, e.g. "oilChange"
    label: str                      # "Oil Change"
    keywords: tuple[str, ...]
    upcoming_window_km: int

    @property
    def noun(self) -> str:
        return self.label.lower()


OIL_CHANGE = MaintenanceCategory("oilChange", "Oil Change", ("oil",), 500)
TIRE_ROTATION = MaintenanceCategory("tireRotation", "Tire Rotation", ("tire", "rotation"), 1000)
BRAKE_INSPECTION = MaintenanceCategory("brakeInspection", "Brake Inspection", ("brake",), 1500)

CATEGORIES: dict[str, MaintenanceCategory] = {
    c.name: c for c in (OIL_CHANGE, TIRE_ROTATION, BRAKE_INSPECTION)
}


def get_category(name: str) -> MaintenanceCategory | None:
    return CATEGORIES.get(name)


class CategoryMatcher:
    """Decides whether a service record counts as a given category.

    Subclass and override ``matches`` to change classification; the
    evaluator only talks to this interface.
    """

    def __init__(self, keyword_fallback: bool = True):
        self.keyword_fallback = keyword_fallback

    def matches(self, record: ServiceRecord, category: MaintenanceCategory) -> bool:
        if record.category:
            return record.category == category.name
        if not self.keyword_fallback:
            return False
        service = (record.service_type or "").lower()
        return any(kw in service for kw in category.keywords)

    def last_service(
        self, records: tuple[ServiceRecord, ...] | list[ServiceRecord],
        category: MaintenanceCategory,
    ) -> ServiceRecord | None:
        """First match in a newest-first history."""
        for record in records:
            if self.matches(record, category):
                return record
        return None


default_matcher = CategoryMatcher()
