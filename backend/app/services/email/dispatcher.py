"""Fan a maintenance alert out to every administrator by email."""

from __future__ import annotations

import logging

from config import settings
from services.alerting.types import AlertDraft, Recipient
from services.email.client import EmailConfigError
from services.email.templates import render_maintenance_email

logger = logging.getLogger("fleet.email.dispatcher")


class EmailDispatcher:

    def __init__(self, client, app_url: str | None = None):
        self.client = client
        self.app_url = app_url or settings.APP_BASE_URL

    async def notify(
        self,
        alert: AlertDraft,
        recipients: list[Recipient],
        *,
        enabled: bool,
        company_name: str | None = None,
    ) -> dict[str, bool]:
        """Send ``alert`` to each recipient; returns {email: delivered}.

        A failure for one recipient is logged and does not stop the rest.
        Missing credentials (EmailConfigError) are not per-recipient and
        propagate on the first attempt.
        """
        if not enabled:
            logger.debug("Email notifications disabled in settings")
            return {}

        company = company_name or settings.DEFAULT_COMPANY_NAME
        results: dict[str, bool] = {}

        for recipient in recipients:
            subject, html, text = render_maintenance_email(
                alert,
                user_name=recipient.name or recipient.email,
                company_name=company,
                app_url=self.app_url,
            )
            try:
                results[recipient.email] = await self.client.send(
                    recipient.email, subject, html, text, sender_name=company,
                )
            except EmailConfigError:
                raise
            except Exception as exc:
                logger.error("Email to %s failed: %s", recipient.email, exc, exc_info=True)
                results[recipient.email] = False

        return results
