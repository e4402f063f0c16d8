"""Low-stock estimator.

There is no parts ledger: stock is inferred from how often recent
maintenance records mention a part, subtracted from a fixed baseline.
"""

from __future__ import annotations

from collections.abc import Iterable

from models.notification import NotificationType
from services.alerting.types import AlertDraft, LowStockFinding, ServiceRecord

# part -> (baseline, threshold)
PART_CATALOG: dict[str, tuple[int, int]] = {
    "Engine Oil": (10, 3),
    "Oil Filter": (8, 2),
    "Brake Pads": (6, 2),
    "Air Filter": (5, 2),
    "Tire": (4, 1),
}


def usage_counts(records: Iterable[ServiceRecord]) -> dict[str, int]:
    usage = {part: 0 for part in PART_CATALOG}

    for record in records:
        service = (record.service_type or "").lower()
        description = (record.description or "").lower()

        if "oil" in service or "oil" in description:
            usage["Engine Oil"] += 1
            usage["Oil Filter"] += 1
        if "brake" in service or "brake" in description:
            usage["Brake Pads"] += 1
        if "filter" in service or "air filter" in description:
            usage["Air Filter"] += 1
        if "tire" in service or "tire" in description:
            usage["Tire"] += 1

    return usage


def estimate(records: Iterable[ServiceRecord]) -> list[LowStockFinding]:
    """Parts whose estimated remaining stock is at or below threshold."""
    usage = usage_counts(records)
    findings: list[LowStockFinding] = []
    for part, (baseline, threshold) in PART_CATALOG.items():
        remaining = max(0, baseline - usage[part])
        if remaining <= threshold:
            findings.append(LowStockFinding(part, remaining, threshold, usage[part]))
    return findings


def build_low_stock_alert(finding: LowStockFinding, lookback_days: int = 30) -> AlertDraft:
    return AlertDraft(
        kind=NotificationType.alert,
        title=f"Low Stock Alert: {finding.part}",
        message=(
            f"{finding.part} is running low ({finding.estimated_remaining} estimated "
            f"remaining, threshold: {finding.threshold}). Used {finding.used} in "
            f"last {lookback_days} days."
        ),
        details={
            "part": finding.part,
            "estimated_remaining": finding.estimated_remaining,
            "threshold": finding.threshold,
            "used": finding.used,
        },
    )
