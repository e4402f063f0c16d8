"""Storage-free value types shared by the alerting components."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from models.notification import NotificationType


class MaintenanceStatus(str, enum.Enum):
    OK = "ok"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    OVERDUE_NO_RECORD = "overdue_no_record"


class GateOutcome(str, enum.Enum):
    CREATED = "created"
    SUPPRESSED = "suppressed"
    FAILED = "failed"


@dataclass(frozen=True)
class ServiceRecord:
    service_type: str
    date_performed: datetime
    mileage: int | None = None          # truck mileage at service time
    category: str | None = None
    description: str | None = None
    id: int | None = None
    truck_id: int | None = None


@dataclass(frozen=True)
class FleetVehicle:
    id: int
    vin: str
    license_plate: str
    make: str
    model: str
    year: int
    current_mileage: int
    records: tuple[ServiceRecord, ...] = ()  # newest first

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model} ({self.license_plate})"


@dataclass(frozen=True)
class Recipient:
    id: int
    email: str
    name: str | None = None


@dataclass(frozen=True)
class Evaluation:
    status: MaintenanceStatus
    delta_km: int | None = None
    record: ServiceRecord | None = None


@dataclass
class AlertDraft:
    """An alert the engine wants to persist (and possibly email)."""

    kind: NotificationType
    title: str
    message: str
    vehicle: FleetVehicle | None = None
    category: str | None = None
    status: MaintenanceStatus | None = None
    delta_km: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def vehicle_id(self) -> int | None:
        return self.vehicle.id if self.vehicle else None


@dataclass(frozen=True)
class LowStockFinding:
    part: str
    estimated_remaining: int
    threshold: int
    used: int


@dataclass
class GateResult:
    outcome: GateOutcome
    record: Any = None


@dataclass
class RunReport:
    skipped: bool = False
    created: int = 0
    suppressed: int = 0
    failed: int = 0
    errors: int = 0
    emails_sent: int = 0
    emails_failed: int = 0

    def as_dict(self) -> dict:
        return asdict(self)
