"""Maintenance alert run, the single entry point for an external scheduler.

One call to ``run()``:
1. Loads fleet settings; no notification toggles at all -> no-op
2. Upcoming pass: every active truck x configured category -> UPCOMING alerts
3. Overdue pass: same traversal -> OVERDUE / OVERDUE_NO_RECORD alerts
4. Low-stock pass: fleet-wide parts estimate from the last 30 days of records
5. Every alert goes through the deduplication gate; newly created
   maintenance alerts are emailed to administrators

Per truck/category failures are logged and counted, never raised.
Settings and fleet read errors propagate to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from config import settings
from models.base import utcnow
from services.alerting.categories import (
    CategoryMatcher,
    MaintenanceCategory,
    default_matcher,
    get_category,
)
from services.alerting.config import AlertingConfig
from services.alerting.dedup import DeduplicationGate
from services.alerting.evaluator import build_alert, evaluate
from services.alerting.low_stock import build_low_stock_alert, estimate
from services.alerting.types import (
    AlertDraft,
    FleetVehicle,
    GateOutcome,
    MaintenanceStatus,
    Recipient,
    RunReport,
)

logger = logging.getLogger("fleet.alerting.orchestrator")

UPCOMING_STATUSES = {MaintenanceStatus.UPCOMING}
OVERDUE_STATUSES = {MaintenanceStatus.OVERDUE, MaintenanceStatus.OVERDUE_NO_RECORD}


class MaintenanceAlertOrchestrator:
    """Runs the upcoming, overdue and low-stock checks once per call."""

    def __init__(
        self,
        settings_source,
        fleet_source,
        sink,
        recipient_source,
        dispatcher=None,
        *,
        matcher: CategoryMatcher = default_matcher,
        dedup_window: timedelta | None = None,
        low_stock_lookback: timedelta | None = None,
        history_depth: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings_source = settings_source
        self.fleet_source = fleet_source
        self.recipient_source = recipient_source
        self.dispatcher = dispatcher
        self.matcher = matcher
        self.gate = DeduplicationGate(
            sink, dedup_window or timedelta(hours=settings.NOTIFICATION_DEDUP_HOURS)
        )
        self.low_stock_lookback = low_stock_lookback or timedelta(
            days=settings.LOW_STOCK_LOOKBACK_DAYS
        )
        self.history_depth = history_depth or settings.FLEET_HISTORY_DEPTH
        self.clock = clock

    # ------------------------------------------------------------------
    # Main run
    # ------------------------------------------------------------------

    async def run(self) -> RunReport:
        report = RunReport()
        config = await self.settings_source.load()
        if config is None or config.notifications is None:
            logger.debug("No notification settings, skipping run")
            report.skipped = True
            return report

        toggles = config.notifications
        now = self.clock()
        recipients = _RecipientCache(self.recipient_source)

        categories = self._configured_categories(config)
        if categories and (toggles.upcoming_maintenance or toggles.overdue_maintenance):
            vehicles = await self.fleet_source.active_vehicles(self.history_depth)

            if toggles.upcoming_maintenance:
                await self._maintenance_pass(
                    vehicles, categories, UPCOMING_STATUSES, config, now, recipients, report,
                )
            if toggles.overdue_maintenance:
                await self._maintenance_pass(
                    vehicles, categories, OVERDUE_STATUSES, config, now, recipients, report,
                )

        if toggles.low_stock:
            await self._low_stock_pass(now, report)

        logger.info(
            "Notification run done: created=%d suppressed=%d failed=%d errors=%d "
            "emails sent=%d failed=%d",
            report.created, report.suppressed, report.failed, report.errors,
            report.emails_sent, report.emails_failed,
        )
        return report

    def _configured_categories(
        self, config: AlertingConfig
    ) -> list[tuple[MaintenanceCategory, int]]:
        out: list[tuple[MaintenanceCategory, int]] = []
        for name in config.maintenance_intervals:
            interval = config.interval_for(name)
            if interval is None:
                continue
            category = get_category(name)
            if category is None:
                logger.debug("No matching rule for interval %r, not evaluated", name)
                continue
            out.append((category, interval))
        return out

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    async def _maintenance_pass(
        self,
        vehicles: list[FleetVehicle],
        categories: list[tuple[MaintenanceCategory, int]],
        wanted: set[MaintenanceStatus],
        config: AlertingConfig,
        now: datetime,
        recipients: _RecipientCache,
        report: RunReport,
    ) -> None:
        for vehicle in vehicles:
            for category, interval in categories:
                try:
                    evaluation = evaluate(vehicle, interval, category, self.matcher)
                    if evaluation.status not in wanted:
                        continue
                    draft = build_alert(vehicle, category, evaluation)
                    if await self._submit(draft, now, report):
                        await self._email(draft, config, recipients, report)
                except Exception as exc:
                    report.errors += 1
                    logger.error(
                        "Check failed: truck=%d %s: %s",
                        vehicle.id, category.name, exc, exc_info=True,
                    )

    async def _low_stock_pass(self, now: datetime, report: RunReport) -> None:
        records = await self.fleet_source.records_since(now - self.low_stock_lookback)
        findings = estimate(records)
        lookback_days = self.low_stock_lookback.days
        for finding in findings:
            try:
                await self._submit(build_low_stock_alert(finding, lookback_days), now, report)
            except Exception as exc:
                report.errors += 1
                logger.error("Low stock alert failed: %s: %s", finding.part, exc, exc_info=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _submit(self, draft: AlertDraft, now: datetime, report: RunReport) -> bool:
        result = await self.gate.submit(draft, now)
        if result.outcome == GateOutcome.CREATED:
            report.created += 1
            return True
        if result.outcome == GateOutcome.SUPPRESSED:
            report.suppressed += 1
        else:
            report.failed += 1
        return False

    async def _email(
        self,
        draft: AlertDraft,
        config: AlertingConfig,
        recipients: _RecipientCache,
        report: RunReport,
    ) -> None:
        if self.dispatcher is None or not config.notifications.email:
            return
        results = await self.dispatcher.notify(
            draft,
            await recipients.get(),
            enabled=True,
            company_name=config.company_name,
        )
        for delivered in results.values():
            if delivered:
                report.emails_sent += 1
            else:
                report.emails_failed += 1


class _RecipientCache:
    """Reads administrators at most once per run, and only if needed."""

    def __init__(self, source):
        self.source = source
        self._recipients: list[Recipient] | None = None

    async def get(self) -> list[Recipient]:
        if self._recipients is None:
            self._recipients = await self.source.administrators()
        return self._recipients
