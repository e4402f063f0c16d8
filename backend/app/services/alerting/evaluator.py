"""Threshold evaluator: classifies one truck for one maintenance category.

Pure functions, no I/O:

    since_last = current_mileage - mileage at last matching service
    since_last > interval                 -> OVERDUE   (delta = since_last - interval)
    0 < interval - since_last <= window   -> UPCOMING  (delta = interval - since_last)
    no matching record, mileage > interval -> OVERDUE_NO_RECORD
    anything else                          -> OK
"""

from __future__ import annotations

from models.notification import NotificationType
from services.alerting.categories import (
    CategoryMatcher,
    MaintenanceCategory,
    default_matcher,
)
from services.alerting.types import (
    AlertDraft,
    Evaluation,
    FleetVehicle,
    MaintenanceStatus,
)

_OK = Evaluation(MaintenanceStatus.OK)


def evaluate(
    vehicle: FleetVehicle,
    interval: int,
    category: MaintenanceCategory,
    matcher: CategoryMatcher = default_matcher,
) -> Evaluation:
    record = matcher.last_service(vehicle.records, category)

    if record is None:
        if vehicle.current_mileage > interval:
            return Evaluation(MaintenanceStatus.OVERDUE_NO_RECORD)
        return _OK

    since_last = vehicle.current_mileage - (record.mileage or 0)

    if since_last > interval:
        return Evaluation(MaintenanceStatus.OVERDUE, since_last - interval, record)

    remaining = interval - since_last
    if 0 < remaining <= category.upcoming_window_km:
        return Evaluation(MaintenanceStatus.UPCOMING, remaining, record)

    return Evaluation(MaintenanceStatus.OK, record=record)


def build_alert(
    vehicle: FleetVehicle,
    category: MaintenanceCategory,
    evaluation: Evaluation,
) -> AlertDraft | None:
    """Turn a non-OK evaluation into the alert that should be raised."""
    status = evaluation.status
    name = vehicle.display_name

    if status == MaintenanceStatus.UPCOMING:
        kind = NotificationType.upcoming_maintenance
        title = f"{category.label} Due Soon"
        message = f"{name} needs {category.noun} in {evaluation.delta_km} km"
    elif status == MaintenanceStatus.OVERDUE:
        kind = NotificationType.overdue
        title = f"{category.label} Overdue"
        message = f"{name} is {evaluation.delta_km} km overdue for {category.noun}"
    elif status == MaintenanceStatus.OVERDUE_NO_RECORD:
        kind = NotificationType.overdue
        title = f"{category.label} Required"
        message = (
            f"{name} has no {category.noun} record and is at "
            f"{vehicle.current_mileage} km"
        )
    else:
        return None

    details = {
        "category": category.name,
        "status": status.value,
        "current_mileage": vehicle.current_mileage,
    }
    if evaluation.delta_km is not None:
        details["delta_km"] = evaluation.delta_km
    if evaluation.record is not None:
        details["last_service_mileage"] = evaluation.record.mileage

    return AlertDraft(
        kind=kind,
        title=title,
        message=message,
        vehicle=vehicle,
        category=category.name,
        status=status,
        delta_km=evaluation.delta_km,
        details=details,
    )
