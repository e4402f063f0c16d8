from models.base import Base, async_session, engine, utcnow
from models.truck import Truck, TruckStatus
from models.maintenance import MaintenanceRecord
from models.user import User, UserRole
from models.fleet_settings import FleetSettings
from models.notification import Notification, NotificationType

__all__ = [
    "Base",
    "async_session",
    "engine",
    "utcnow",
    "Truck",
    "TruckStatus",
    "MaintenanceRecord",
    "User",
    "UserRole",
    "FleetSettings",
    "Notification",
    "NotificationType",
]
