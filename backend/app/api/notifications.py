"""Notifications API: trigger an alerting run, read the alert feed."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from models.notification import NotificationType

router = APIRouter(prefix="/api/notifications", tags=["notifications"])
logger = logging.getLogger("fleet.api.notifications")


# ---------------------------------------------------------------------------
#  Pydantic schemas
# ---------------------------------------------------------------------------

class RunReportOut(BaseModel):
    skipped: bool
    created: int
    suppressed: int
    failed: int
    errors: int
    emails_sent: int
    emails_failed: int


class CheckOut(BaseModel):
    success: bool
    message: str
    report: RunReportOut


class NotificationOut(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    truck_id: int | None
    user_id: int | None
    is_read: bool
    metadata: dict = Field(default_factory=dict, validation_alias="details")
    created_at: datetime
    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
#  Endpoints
# ---------------------------------------------------------------------------

async def _run_checks(request: Request) -> CheckOut:
    orchestrator = request.app.state.alert_orchestrator
    try:
        report = await orchestrator.run()
    except Exception as exc:
        logger.error("Error running notification checks: %s", exc, exc_info=True)
        raise HTTPException(500, "Failed to run notification checks")
    return CheckOut(
        success=True,
        message="Notification checks completed successfully",
        report=RunReportOut(**report.as_dict()),
    )


@router.post("/check", response_model=CheckOut)
async def run_checks(request: Request):
    return await _run_checks(request)


@router.get("/check", response_model=CheckOut)
async def run_checks_get(request: Request):
    return await _run_checks(request)


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    request: Request,
    limit: int = Query(50, ge=1, le=500),
    unread_only: bool = False,
):
    sink = request.app.state.notification_sink
    return await sink.list_recent(limit=limit, unread_only=unread_only)
