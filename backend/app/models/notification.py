"""Notification model: persisted alert feed written by the alerting engine."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, utcnow


class NotificationType(str, enum.Enum):
    upcoming_maintenance = "upcoming_maintenance"
    overdue = "overdue"
    alert = "alert"


class Notification(Base):
    __tablename__ = "notifications"

    __table_args__ = (
        Index("ix_notifications_lookup", "type", "title", "truck_id", "created_at"),
        Index("ix_notifications_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[NotificationType]
    title: Mapped[str] = mapped_column(String(200))
    message: Mapped[str] = mapped_column(String(1000))

    truck_id: Mapped[int | None] = mapped_column(
        ForeignKey("trucks.id", ondelete="SET NULL"), default=None
    )
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), default=None
    )

    is_read: Mapped[bool] = mapped_column(default=False)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict] = mapped_column("metadata", JSON, default=dict)

    # kind|title|truck|UTC-day, unique so overlapping runs cannot both insert
    dedup_key: Mapped[str | None] = mapped_column(String(400), unique=True, default=None)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now())

    truck = relationship("Truck")

    def __repr__(self) -> str:
        return f"<Notification {self.type.value} truck={self.truck_id} {self.title!r}>"
