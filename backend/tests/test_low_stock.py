"""Tests for the low-stock estimator."""
from fakes import record
from models.notification import NotificationType
from services.alerting.low_stock import (
    PART_CATALOG,
    build_low_stock_alert,
    estimate,
    usage_counts,
)
from services.alerting.types import LowStockFinding


def test_no_records_no_findings():
    """Baselines all exceed thresholds when nothing was used."""
    assert estimate([]) == []
    assert usage_counts([]) == {part: 0 for part in PART_CATALOG}


def test_oil_changes_drain_oil_and_filter():
    records = [record("Oil change", 1000 * i) for i in range(7)]
    findings = {f.part: f for f in estimate(records)}

    assert findings["Engine Oil"] == LowStockFinding("Engine Oil", 3, 3, 7)
    assert findings["Oil Filter"] == LowStockFinding("Oil Filter", 1, 2, 7)
    assert "Brake Pads" not in findings


def test_description_counts():
    records = [
        record("General service", 0, description="Replaced brake pads front axle"),
        record("General service", 0, description="New air filter"),
        record("General service", 0, description="tire puncture repair"),
    ]
    usage = usage_counts(records)
    assert usage["Brake Pads"] == 1
    assert usage["Air Filter"] == 1
    assert usage["Tire"] == 1
    assert usage["Engine Oil"] == 0


def test_filter_in_service_type_counts_air_filter():
    """Any 'filter' service is treated as air filter usage too."""
    usage = usage_counts([record("Oil filter replacement", 0)])
    assert usage["Engine Oil"] == 1
    assert usage["Oil Filter"] == 1
    assert usage["Air Filter"] == 1


def test_remaining_floors_at_zero():
    records = [record("Tire replacement", 0) for _ in range(6)]
    findings = {f.part: f for f in estimate(records)}
    assert findings["Tire"].estimated_remaining == 0
    assert findings["Tire"].used == 6


def test_low_stock_alert_text():
    alert = build_low_stock_alert(LowStockFinding("Brake Pads", 2, 2, 4))
    assert alert.kind == NotificationType.alert
    assert alert.title == "Low Stock Alert: Brake Pads"
    assert alert.vehicle_id is None
    assert alert.message == (
        "Brake Pads is running low (2 estimated remaining, threshold: 2). "
        "Used 4 in last 30 days."
    )
