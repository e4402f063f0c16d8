"""SQLAlchemy repositories against a throwaway SQLite database."""
import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from fakes import Clock, vehicle
from models import (
    FleetSettings,
    MaintenanceRecord,
    Notification,
    NotificationType,
    Truck,
    TruckStatus,
    User,
    UserRole,
)
from services.alerting.dedup import DeduplicationGate
from services.alerting.orchestrator import MaintenanceAlertOrchestrator
from services.alerting.repositories import (
    FleetRepository,
    NotificationSink,
    RecipientRepository,
    SettingsRepository,
)
from services.alerting.types import AlertDraft, GateOutcome

NOW = datetime(2026, 3, 10, 9, 0, 0)


def _truck(id: int, mileage: int, **kw) -> Truck:
    return Truck(
        id=id,
        vin=f"VIN{id:014d}",
        license_plate=f"TRK-{id}",
        make="Scania",
        model="R450",
        year=2020,
        current_mileage=mileage,
        **kw,
    )


def _service(truck_id: int, service_type: str, mileage: int, days_ago: int, **kw) -> MaintenanceRecord:
    return MaintenanceRecord(
        truck_id=truck_id,
        service_type=service_type,
        current_mileage=mileage,
        date_performed=NOW - timedelta(days=days_ago),
        **kw,
    )


async def _seed(factory, *rows) -> None:
    async with factory() as session:
        session.add_all(rows)
        await session.commit()


# =============================================================================
# Settings
# =============================================================================


def test_settings_absent(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            return await SettingsRepository(factory).load()

    assert asyncio.run(scenario()) is None


def test_settings_parsed(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(
                factory,
                FleetSettings(
                    company_name="Acme Haulage",
                    maintenance_intervals={"oilChange": 5000, "tireRotation": None},
                    notifications={"email": True, "overdueMaintenance": True},
                ),
            )
            return await SettingsRepository(factory).load()

    cfg = asyncio.run(scenario())
    assert cfg.company_name == "Acme Haulage"
    assert cfg.interval_for("oilChange") == 5000
    assert cfg.interval_for("tireRotation") is None
    assert cfg.interval_for("brakeInspection") is None
    assert cfg.notifications.email is True
    assert cfg.notifications.overdue_maintenance is True
    assert cfg.notifications.upcoming_maintenance is False
    assert cfg.notifications.low_stock is False


def test_settings_without_toggles(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(factory, FleetSettings(maintenance_intervals={"oilChange": 5000}))
            return await SettingsRepository(factory).load()

    assert asyncio.run(scenario()).notifications is None


# =============================================================================
# Fleet
# =============================================================================


def test_active_vehicles_filter_and_history(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(
                factory,
                _truck(1, 44600),
                _truck(2, 90000, status=TruckStatus.INACTIVE),
                _truck(3, 90000, is_deleted=True),
                _truck(4, 12000, status=TruckStatus.MAINTENANCE),
            )
            await _seed(
                factory,
                _service(1, "Oil change", 30000, days_ago=200),
                _service(1, "Oil change", 40000, days_ago=20),
                _service(1, "Brake inspection", 42000, days_ago=5),
                _service(2, "Oil change", 1000, days_ago=5),
            )
            repo = FleetRepository(factory)
            return await repo.active_vehicles(10), await repo.active_vehicles(2)

    full, shallow = asyncio.run(scenario())
    assert [v.id for v in full] == [1]
    truck = full[0]
    assert truck.current_mileage == 44600
    assert truck.display_name == "Scania R450 (TRK-1)"
    assert [r.mileage for r in truck.records] == [42000, 40000, 30000]
    assert [r.mileage for r in shallow[0].records] == [42000, 40000]


def test_history_depth_applies_per_truck(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(factory, _truck(1, 50000), _truck(2, 60000), _truck(3, 1000))
            await _seed(
                factory,
                *[_service(1, "Oil change", 10000 * i, days_ago=100 - i) for i in range(1, 5)],
                *[_service(2, "Tire rotation", 5000 * i, days_ago=50 - i) for i in range(1, 4)],
            )
            return await FleetRepository(factory).active_vehicles(1)

    vehicles = asyncio.run(scenario())
    assert {v.id: [r.mileage for r in v.records] for v in vehicles} == {
        1: [40000],
        2: [15000],
        3: [],
    }


def test_records_since(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(factory, _truck(1, 44600), _truck(2, 1000, status=TruckStatus.INACTIVE))
            await _seed(
                factory,
                _service(1, "Oil change", 40000, days_ago=3, description="5W-30"),
                _service(2, "Tire replacement", 900, days_ago=10),
                _service(1, "Oil change", 35000, days_ago=45),
            )
            return await FleetRepository(factory).records_since(NOW - timedelta(days=30))

    records = asyncio.run(scenario())
    assert [r.service_type for r in records] == ["Oil change", "Tire replacement"]
    assert records[0].description == "5W-30"


# =============================================================================
# Recipients
# =============================================================================


def test_administrators_only_active_and_approved(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(
                factory,
                User(email="boss@acme.test", name="Boss", role=UserRole.ADMIN, is_approved=True),
                User(email="new@acme.test", role=UserRole.ADMIN, is_approved=False),
                User(email="gone@acme.test", role=UserRole.ADMIN, is_approved=True, is_active=False),
                User(email="mgr@acme.test", role=UserRole.MANAGER, is_approved=True),
            )
            return await RecipientRepository(factory).administrators()

    admins = asyncio.run(scenario())
    assert [(r.email, r.name) for r in admins] == [("boss@acme.test", "Boss")]


# =============================================================================
# Notification sink
# =============================================================================


def _draft(truck_id: int | None = 1) -> AlertDraft:
    draft = AlertDraft(
        kind=NotificationType.overdue,
        title="Oil Change Overdue",
        message="Scania R450 (TRK-1) is 200 km overdue for oil change",
        details={"category": "oilChange", "delta_km": 200},
    )
    if truck_id is not None:
        draft.vehicle = vehicle(45200, id=truck_id)
    return draft


def test_sink_find_recent_window(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(factory, _truck(1, 45200))
            sink = NotificationSink(factory)
            created = await sink.create_if_absent(_draft(), dedup_key="k1", created_at=NOW)
            hit = await sink.find_recent(
                NotificationType.overdue, "Oil Change Overdue", 1, NOW - timedelta(hours=24)
            )
            stale = await sink.find_recent(
                NotificationType.overdue, "Oil Change Overdue", 1, NOW + timedelta(minutes=1)
            )
            other_truck = await sink.find_recent(
                NotificationType.overdue, "Oil Change Overdue", None, NOW - timedelta(hours=24)
            )
            return created, hit, stale, other_truck

    created, hit, stale, other_truck = asyncio.run(scenario())
    assert created.id is not None
    assert created.is_read is False
    assert created.details == {"category": "oilChange", "delta_km": 200}
    assert hit.id == created.id
    assert stale is None
    assert other_truck is None


def test_sink_fleetwide_alert_lookup(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            sink = NotificationSink(factory)
            await sink.create(NotificationType.alert, "Low Stock Alert: Tire", "Tire is running low", created_at=NOW)
            return await sink.find_recent(
                NotificationType.alert, "Low Stock Alert: Tire", None, NOW - timedelta(hours=1)
            )

    found = asyncio.run(scenario())
    assert found is not None
    assert found.truck_id is None


def test_sink_duplicate_dedup_key_returns_none(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(factory, _truck(1, 45200))
            sink = NotificationSink(factory)
            first = await sink.create_if_absent(_draft(), dedup_key="same", created_at=NOW)
            second = await sink.create_if_absent(_draft(), dedup_key="same", created_at=NOW)
            rows = await sink.list_recent()
            return first, second, rows

    first, second, rows = asyncio.run(scenario())
    assert first is not None
    assert second is None
    assert len(rows) == 1


def test_sink_list_recent_unread(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            sink = NotificationSink(factory)
            await sink.create(NotificationType.alert, "A", "a", created_at=NOW - timedelta(hours=2))
            await sink.create(NotificationType.alert, "B", "b", created_at=NOW - timedelta(hours=1))
            async with factory() as session:
                row = await session.get(Notification, 1)
                row.is_read = True
                await session.commit()
            return await sink.list_recent(), await sink.list_recent(unread_only=True)

    everything, unread = asyncio.run(scenario())
    assert [n.title for n in everything] == ["B", "A"]
    assert [n.title for n in unread] == ["B"]


class FakeRedis:

    def __init__(self):
        self.published = []

    async def publish(self, channel, message):
        self.published.append((channel, message))


def test_sink_publishes_created_alert(fleet_db):
    redis = FakeRedis()

    async def scenario():
        async with fleet_db() as factory:
            sink = NotificationSink(factory, redis, channel="notifications:test")
            await sink.create(NotificationType.alert, "Low Stock Alert: Tire", "low", created_at=NOW)

    asyncio.run(scenario())
    channel, message = redis.published[0]
    assert channel == "notifications:test"
    assert '"title": "Low Stock Alert: Tire"' in message


def test_sink_foreign_key_failure_propagates(fleet_db):
    """A missing truck is a real failure, not a duplicate."""

    async def scenario():
        async with fleet_db() as factory:
            sink = NotificationSink(factory)
            with pytest.raises(IntegrityError):
                await sink.create_if_absent(_draft(truck_id=99), dedup_key="k99", created_at=NOW)
            result = await DeduplicationGate(sink).submit(_draft(truck_id=99), NOW)
            return result, await sink.list_recent()

    result, rows = asyncio.run(scenario())
    assert result.outcome == GateOutcome.FAILED
    assert rows == []


def test_sink_find_by_dedup_key(fleet_db):
    async def scenario():
        async with fleet_db() as factory:
            await _seed(factory, _truck(1, 45200))
            sink = NotificationSink(factory)
            created = await sink.create_if_absent(_draft(), dedup_key="k1", created_at=NOW)
            return created, await sink.find_by_dedup_key("k1"), await sink.find_by_dedup_key("k2")

    created, hit, miss = asyncio.run(scenario())
    assert hit.id == created.id
    assert miss is None


# =============================================================================
# End to end
# =============================================================================


def test_orchestrator_on_database_is_idempotent(fleet_db):
    clock = Clock(NOW)

    async def scenario():
        async with fleet_db() as factory:
            await _seed(
                factory,
                FleetSettings(
                    maintenance_intervals={"oilChange": 5000},
                    notifications={"overdueMaintenance": True, "upcomingMaintenance": True},
                ),
                _truck(1, 45200),
                _truck(2, 44600),
                _truck(3, 6000),
            )
            await _seed(
                factory,
                _service(1, "Oil change", 40000, days_ago=30),
                _service(2, "Oil change", 40000, days_ago=30),
            )
            sink = NotificationSink(factory)
            orch = MaintenanceAlertOrchestrator(
                settings_source=SettingsRepository(factory),
                fleet_source=FleetRepository(factory),
                sink=sink,
                recipient_source=RecipientRepository(factory),
                clock=clock,
            )
            first = await orch.run()
            clock.advance(hours=2)
            second = await orch.run()
            return first, second, await sink.list_recent()

    first, second, rows = asyncio.run(scenario())
    assert first.created == 3
    assert second.created == 0
    assert second.suppressed == 3
    assert sorted((n.truck_id, n.title) for n in rows) == [
        (1, "Oil Change Overdue"),
        (2, "Oil Change Due Soon"),
        (3, "Oil Change Required"),
    ]
