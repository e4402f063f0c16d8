"""Maintenance threshold alerting.

Entry point: MaintenanceAlertOrchestrator.run(). Everything else is either
pure computation (evaluator, low_stock, categories) or a storage adapter
(repositories) passed in from outside.
"""
from services.alerting.categories import CATEGORIES, CategoryMatcher, MaintenanceCategory
from services.alerting.config import AlertingConfig, NotificationToggles
from services.alerting.dedup import DeduplicationGate
from services.alerting.evaluator import build_alert, evaluate
from services.alerting.low_stock import estimate
from services.alerting.orchestrator import MaintenanceAlertOrchestrator
from services.alerting.repositories import (
    FleetRepository,
    NotificationSink,
    RecipientRepository,
    SettingsRepository,
)
from services.alerting.types import (
    AlertDraft,
    Evaluation,
    FleetVehicle,
    MaintenanceStatus,
    Recipient,
    RunReport,
    ServiceRecord,
)

__all__ = [
    "CATEGORIES",
    "CategoryMatcher",
    "MaintenanceCategory",
    "AlertingConfig",
    "NotificationToggles",
    "DeduplicationGate",
    "build_alert",
    "evaluate",
    "estimate",
    "MaintenanceAlertOrchestrator",
    "FleetRepository",
    "NotificationSink",
    "RecipientRepository",
    "SettingsRepository",
    "AlertDraft",
    "Evaluation",
    "FleetVehicle",
    "MaintenanceStatus",
    "Recipient",
    "RunReport",
    "ServiceRecord",
]
