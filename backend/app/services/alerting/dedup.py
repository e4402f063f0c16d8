"""Deduplication gate in front of the notification sink.

An alert is suppressed when the sink already holds one with the same
(kind, title, truck) created inside the rolling window. The insert itself
carries a derived ``dedup_key`` backed by a unique constraint, so a run
that loses a race against an overlapping run gets SUPPRESSED instead of a
duplicate row.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from models.notification import NotificationType
from services.alerting.types import AlertDraft, GateOutcome, GateResult

logger = logging.getLogger("fleet.alerting.dedup")

DEFAULT_WINDOW = timedelta(hours=24)


def dedup_key(
    kind: NotificationType,
    title: str,
    vehicle_id: int | None,
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
) -> str:
    # One bucket per window: alerts at least a window apart never share a key.
    bucket = int(now.replace(tzinfo=timezone.utc).timestamp() // window.total_seconds())
    truck = "-" if vehicle_id is None else str(vehicle_id)
    return f"{kind.value}|{title}|{truck}|{bucket}"


class DeduplicationGate:

    def __init__(self, sink, window: timedelta = DEFAULT_WINDOW):
        self.sink = sink
        self.window = window

    async def should_suppress(
        self,
        kind: NotificationType,
        title: str,
        vehicle_id: int | None,
        now: datetime,
    ) -> bool:
        existing = await self.sink.find_recent(kind, title, vehicle_id, now - self.window)
        return existing is not None

    async def submit(self, draft: AlertDraft, now: datetime) -> GateResult:
        if await self.should_suppress(draft.kind, draft.title, draft.vehicle_id, now):
            logger.debug(
                "Suppressed duplicate: %s %r truck=%s",
                draft.kind.value, draft.title, draft.vehicle_id,
            )
            return GateResult(GateOutcome.SUPPRESSED)

        key = dedup_key(draft.kind, draft.title, draft.vehicle_id, now, self.window)
        try:
            record = await self.sink.create_if_absent(draft, dedup_key=key, created_at=now)
        except Exception as exc:
            logger.error(
                "Failed to persist alert %r truck=%s: %s",
                draft.title, draft.vehicle_id, exc, exc_info=True,
            )
            return GateResult(GateOutcome.FAILED)

        if record is None:
            logger.debug("Alert %r truck=%s already written by another run", draft.title, draft.vehicle_id)
            return GateResult(GateOutcome.SUPPRESSED)

        logger.info(
            "Notification created: %s %r truck=%s",
            draft.kind.value, draft.title, draft.vehicle_id,
        )
        return GateResult(GateOutcome.CREATED, record)
