"""SQLAlchemy-backed sources and sink used by the alerting orchestrator.

Each repository owns its sessions (one per call) and hands back plain
dataclasses, so nothing downstream touches the ORM.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from redis.asyncio import Redis
from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from config import settings
from models.fleet_settings import FleetSettings
from models.maintenance import MaintenanceRecord
from models.notification import Notification, NotificationType
from models.truck import Truck, TruckStatus
from models.user import User, UserRole
from services.alerting.config import AlertingConfig
from services.alerting.types import AlertDraft, FleetVehicle, Recipient, ServiceRecord

logger = logging.getLogger("fleet.alerting.repositories")


def _to_record(row: MaintenanceRecord) -> ServiceRecord:
    return ServiceRecord(
        id=row.id,
        truck_id=row.truck_id,
        service_type=row.service_type,
        category=row.category,
        description=row.description,
        date_performed=row.date_performed,
        mileage=row.current_mileage,
    )


class SettingsRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def load(self) -> AlertingConfig | None:
        async with self.session_factory() as session:
            stmt = select(FleetSettings).order_by(FleetSettings.id).limit(1)
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()

        if row is None:
            return None

        return AlertingConfig(
            maintenance_intervals=row.maintenance_intervals or {},
            notifications=row.notifications,
            company_name=row.company_name,
        )


class FleetRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def active_vehicles(self, history_depth: int | None = None) -> list[FleetVehicle]:
        """Active trucks with their newest ``history_depth`` service records."""
        depth = history_depth or settings.FLEET_HISTORY_DEPTH
        async with self.session_factory() as session:
            stmt = (
                select(Truck)
                .where(
                    and_(
                        Truck.status == TruckStatus.ACTIVE,
                        Truck.is_deleted == False,  # noqa: E712
                    )
                )
                .order_by(Truck.id)
            )
            result = await session.execute(stmt)
            trucks = result.scalars().all()
            history = await self._recent_records(session, [t.id for t in trucks], depth)

        return [
            FleetVehicle(
                id=truck.id,
                vin=truck.vin,
                license_plate=truck.license_plate,
                make=truck.make,
                model=truck.model,
                year=truck.year,
                current_mileage=truck.current_mileage,
                records=tuple(history.get(truck.id, ())),
            )
            for truck in trucks
        ]

    async def _recent_records(
        self, session: AsyncSession, truck_ids: list[int], depth: int
    ) -> dict[int, list[ServiceRecord]]:
        if not truck_ids:
            return {}
        rank = (
            func.row_number()
            .over(
                partition_by=MaintenanceRecord.truck_id,
                order_by=(MaintenanceRecord.date_performed.desc(), MaintenanceRecord.id.desc()),
            )
            .label("row_rank")
        )
        ranked = (
            select(MaintenanceRecord, rank)
            .where(MaintenanceRecord.truck_id.in_(truck_ids))
            .subquery()
        )
        record = aliased(MaintenanceRecord, ranked)
        stmt = (
            select(record)
            .where(ranked.c.row_rank <= depth)
            .order_by(record.truck_id, record.date_performed.desc(), record.id.desc())
        )
        result = await session.execute(stmt)

        history: dict[int, list[ServiceRecord]] = {}
        for row in result.scalars().all():
            history.setdefault(row.truck_id, []).append(_to_record(row))
        return history

    async def records_since(self, since: datetime) -> list[ServiceRecord]:
        """Fleet-wide maintenance records performed at or after ``since``."""
        async with self.session_factory() as session:
            stmt = (
                select(MaintenanceRecord)
                .where(MaintenanceRecord.date_performed >= since)
                .order_by(MaintenanceRecord.date_performed.desc())
            )
            result = await session.execute(stmt)
            return [_to_record(r) for r in result.scalars().all()]


class RecipientRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def administrators(self) -> list[Recipient]:
        async with self.session_factory() as session:
            stmt = (
                select(User)
                .where(
                    and_(
                        User.role == UserRole.ADMIN,
                        User.is_active == True,  # noqa: E712
                        User.is_approved == True,  # noqa: E712
                    )
                )
                .order_by(User.id)
            )
            result = await session.execute(stmt)
            return [Recipient(u.id, u.email, u.name) for u in result.scalars().all()]


class NotificationSink:
    """Notification feed storage plus Redis fan-out of created alerts."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: Redis | None = None,
        channel: str | None = None,
    ):
        self.session_factory = session_factory
        self.redis = redis
        self.channel = channel or settings.REDIS_CHANNEL_NOTIFICATIONS

    async def find_recent(
        self,
        kind: NotificationType,
        title: str,
        vehicle_id: int | None,
        since: datetime,
    ) -> Notification | None:
        truck_clause = (
            Notification.truck_id.is_(None)
            if vehicle_id is None
            else Notification.truck_id == vehicle_id
        )
        async with self.session_factory() as session:
            stmt = (
                select(Notification)
                .where(
                    and_(
                        Notification.type == kind,
                        Notification.title == title,
                        truck_clause,
                        Notification.created_at >= since,
                    )
                )
                .order_by(Notification.created_at.desc())
                .limit(1)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def create(
        self,
        kind: NotificationType,
        title: str,
        message: str,
        vehicle_id: int | None = None,
        recipient_id: int | None = None,
        *,
        details: dict | None = None,
        dedup_key: str | None = None,
        created_at: datetime | None = None,
    ) -> Notification:
        notification = Notification(
            type=kind,
            title=title,
            message=message,
            truck_id=vehicle_id,
            user_id=recipient_id,
            is_read=False,
            details=details or {},
            dedup_key=dedup_key,
        )
        if created_at is not None:
            notification.created_at = created_at

        async with self.session_factory() as session:
            session.add(notification)
            await session.commit()

        await self._publish(notification)
        return notification

    async def create_if_absent(
        self,
        draft: AlertDraft,
        *,
        dedup_key: str,
        created_at: datetime,
    ) -> Notification | None:
        """Insert unless a row with the same dedup key exists; None if it does.

        Other integrity failures (a truck deleted mid-run) propagate.
        """
        try:
            return await self.create(
                draft.kind,
                draft.title,
                draft.message,
                draft.vehicle_id,
                details=draft.details,
                dedup_key=dedup_key,
                created_at=created_at,
            )
        except IntegrityError:
            if await self.find_by_dedup_key(dedup_key) is None:
                raise
            return None

    async def find_by_dedup_key(self, dedup_key: str) -> Notification | None:
        async with self.session_factory() as session:
            stmt = select(Notification).where(Notification.dedup_key == dedup_key)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_recent(self, limit: int = 50, unread_only: bool = False) -> list[Notification]:
        async with self.session_factory() as session:
            stmt = select(Notification)
            if unread_only:
                stmt = stmt.where(Notification.is_read == False)  # noqa: E712
            stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def _publish(self, notification: Notification) -> None:
        if self.redis is None:
            return
        payload = {
            "type": "notification",
            "action": "created",
            "notification": {
                "id": notification.id,
                "type": notification.type.value,
                "title": notification.title,
                "message": notification.message,
                "truck_id": notification.truck_id,
                "is_read": notification.is_read,
                "metadata": notification.details,
                "created_at": notification.created_at.isoformat() if notification.created_at else None,
            },
        }
        try:
            await self.redis.publish(self.channel, json.dumps(payload, default=str))
        except Exception as exc:
            logger.warning("Notification publish failed: %s", exc)
