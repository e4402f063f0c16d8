import enum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin


class TruckStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"  # in the shop, not checked for alerts


class Truck(TimestampMixin, Base):
    __tablename__ = "trucks"

    id: Mapped[int] = mapped_column(primary_key=True)
    vin: Mapped[str] = mapped_column(String(17), unique=True)
    license_plate: Mapped[str] = mapped_column(String(20))
    make: Mapped[str] = mapped_column(String(50))
    model: Mapped[str] = mapped_column(String(50))
    year: Mapped[int] = mapped_column()
    current_mileage: Mapped[int] = mapped_column(default=0)  # km, never decreases
    status: Mapped[TruckStatus] = mapped_column(default=TruckStatus.ACTIVE)
    is_deleted: Mapped[bool] = mapped_column(default=False)

    maintenance_records = relationship(
        "MaintenanceRecord",
        back_populates="truck",
        cascade="all, delete-orphan",
        order_by="desc(MaintenanceRecord.date_performed)",
    )

    def __repr__(self) -> str:
        return f"<Truck {self.make} {self.model} ({self.license_plate}) {self.current_mileage}km>"
