"""Fleet-wide settings row (first row wins).

maintenance_intervals: {"oilChange": 5000, "tireRotation": 10000, ...}
notifications:         {"email": true, "upcomingMaintenance": true, ...}
"""
from __future__ import annotations

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class FleetSettings(TimestampMixin, Base):
    __tablename__ = "fleet_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    company_name: Mapped[str | None] = mapped_column(String(100), default=None)
    maintenance_intervals: Mapped[dict | None] = mapped_column(JSON, default=None)
    notifications: Mapped[dict | None] = mapped_column(JSON, default=None)

    def __repr__(self) -> str:
        return f"<FleetSettings {self.company_name or '-'}>"
