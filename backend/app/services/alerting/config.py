"""Typed view of the fleet settings JSON consumed by the alerting engine."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class NotificationToggles(BaseModel):
    """Global on/off switches. Anything not set is off."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: bool = False
    upcoming_maintenance: bool = False
    overdue_maintenance: bool = False
    low_stock: bool = False


class AlertingConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    maintenance_intervals: dict[str, int | None] = {}
    notifications: NotificationToggles | None = None
    company_name: str | None = None

    def interval_for(self, category: str) -> int | None:
        """Configured interval in km; None means the category is not checked."""
        value = self.maintenance_intervals.get(category)
        if not value or value <= 0:
            return None
        return value
