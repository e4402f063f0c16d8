"""Maintenance history models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin


# ---------------------------------------------------------------------------
# MaintenanceRecord: a service performed on a truck
# ---------------------------------------------------------------------------

class MaintenanceRecord(TimestampMixin, Base):
    __tablename__ = "maintenance_records"

    __table_args__ = (
        Index("ix_maintenance_records_truck_date", "truck_id", "date_performed"),
        Index("ix_maintenance_records_date", "date_performed"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    truck_id: Mapped[int] = mapped_column(
        ForeignKey("trucks.id", ondelete="CASCADE")
    )
    service_type: Mapped[str] = mapped_column(String(100))          # free text: "Oil change + filter"
    category: Mapped[str | None] = mapped_column(String(40), default=None)  # "oilChange"; NULL on legacy rows
    description: Mapped[str | None] = mapped_column(Text, default=None)
    date_performed: Mapped[datetime] = mapped_column()
    current_mileage: Mapped[int | None] = mapped_column(default=None)  # km on the truck at service time
    parts_cost: Mapped[float | None] = mapped_column(Numeric(10, 2), default=None)
    labor_cost: Mapped[float | None] = mapped_column(Numeric(10, 2), default=None)
    performed_by: Mapped[str | None] = mapped_column(String(100), default=None)

    # Relationships
    truck = relationship("Truck", back_populates="maintenance_records")

    def __repr__(self) -> str:
        return f"<MaintenanceRecord truck={self.truck_id} {self.service_type!r} @ {self.current_mileage}km>"
