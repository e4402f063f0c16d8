"""Branded maintenance alert email (HTML + plain text)."""

from __future__ import annotations

from datetime import datetime
from html import escape

from services.alerting.types import AlertDraft, MaintenanceStatus

OVERDUE_COLOR = "#dc2626"
UPCOMING_COLOR = "#f59e0b"


def _is_overdue(alert: AlertDraft) -> bool:
    return alert.status in (MaintenanceStatus.OVERDUE, MaintenanceStatus.OVERDUE_NO_RECORD)


def maintenance_subject(alert: AlertDraft) -> str:
    prefix = "Overdue" if _is_overdue(alert) else "Upcoming"
    vehicle = alert.vehicle
    name = f"{vehicle.make} {vehicle.model}" if vehicle else alert.title
    return f"{prefix} Maintenance Alert - {name}"


def render_maintenance_email(
    alert: AlertDraft,
    *,
    user_name: str,
    company_name: str,
    app_url: str,
    generated_at: datetime | None = None,
) -> tuple[str, str, str]:
    """Return (subject, html, text) for one recipient."""
    overdue = _is_overdue(alert)
    color = OVERDUE_COLOR if overdue else UPCOMING_COLOR
    badge = "OVERDUE" if overdue else "DUE SOON"
    box_bg, box_border = ("#fef2f2", "#fecaca") if overdue else ("#fffbeb", "#fed7aa")
    if overdue:
        action_title = "Immediate Action Required"
        action_text = (
            "This vehicle is overdue for maintenance. Please schedule service "
            "immediately to avoid potential breakdowns and safety issues."
        )
    else:
        action_title = "Schedule Maintenance Soon"
        action_text = (
            "Please schedule maintenance for this vehicle soon to maintain "
            "optimal performance and safety."
        )

    company = escape(company_name)
    vehicle_items = ""
    vehicle = alert.vehicle
    if vehicle is not None:
        rows = [
            ("Vehicle", f"{vehicle.make} {vehicle.model} ({vehicle.year})"),
            ("License Plate", vehicle.license_plate),
            ("VIN", vehicle.vin),
            ("Current Mileage", f"{vehicle.current_mileage:,} km"),
        ]
        if alert.delta_km is not None:
            label = "Overdue by" if overdue else "Remaining"
            rows.append((label, f"{alert.delta_km:,} km"))
        vehicle_items = "\n".join(
            f'                    <li><strong>{k}:</strong> {escape(str(v))}</li>'
            for k, v in rows
        )

    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M")

    html = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Maintenance Alert</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: #f8f9fa; padding: 20px; border-radius: 8px; margin-bottom: 20px;">
        <h1 style="color: #2563eb; margin: 0; font-size: 24px;">{company}</h1>
        <p style="margin: 5px 0 0 0; color: #6b7280;">Fleet Maintenance Alert</p>
    </div>

    <div style="background: white; border: 1px solid #e5e7eb; border-radius: 8px; padding: 20px; margin-bottom: 20px;">
        <h2 style="color: {color}; margin-top: 0;">
            <span style="background: {color}; color: white; padding: 4px 8px; border-radius: 4px; font-size: 12px; margin-right: 10px;">{badge}</span>
            {escape(alert.title)}
        </h2>

        <p>Hello {escape(user_name)},</p>
        <p>{escape(alert.message)}</p>

        <div style="background: #f3f4f6; padding: 15px; border-radius: 6px; margin: 20px 0;">
            <h3 style="margin: 0 0 10px 0; color: #374151;">Vehicle Details:</h3>
            <ul style="margin: 0; padding-left: 20px;">
{vehicle_items}
            </ul>
        </div>

        <div style="background: {box_bg}; border: 1px solid {box_border}; padding: 15px; border-radius: 6px; margin: 20px 0;">
            <h4 style="margin: 0 0 10px 0; color: {color};">{action_title}</h4>
            <p style="margin: 0;">{action_text}</p>
        </div>

        <p>Please log into the Fleet Management System to view more details and schedule the required maintenance.</p>

        <div style="text-align: center; margin: 30px 0;">
            <a href="{escape(app_url, quote=True)}"
               style="background: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">
                Open Fleet Manager
            </a>
        </div>
    </div>

    <div style="text-align: center; color: #6b7280; font-size: 12px; border-top: 1px solid #e5e7eb; padding-top: 20px;">
        <p>This is an automated message from {company} Fleet Management System.</p>
        <p>Generated on {stamp}</p>
    </div>
</body>
</html>
"""

    text = f"{alert.message}\n\n{action_title}: {action_text}\n\n{app_url}\n"
    return maintenance_subject(alert), html, text
