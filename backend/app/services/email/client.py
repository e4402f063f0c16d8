"""Resend HTTP client with retry.

Responsibilities:
- POST /emails to the Resend API
- Retry on 5xx / connection errors (exponential backoff)
- Fail loudly on missing credentials, but only when a send is attempted

Does NOT know about alerts or templates.
"""
import asyncio
import logging

import httpx

from config import settings

logger = logging.getLogger("fleet.email.client")


class EmailError(Exception):
    """Email transport error."""


class EmailConfigError(EmailError):
    """API key or sending domain missing."""


class EmailDeliveryError(EmailError):
    """Provider rejected the message or retries were exhausted."""


class ResendClient:

    def __init__(
        self,
        api_key: str | None = None,
        domain: str | None = None,
        *,
        base_url: str | None = None,
        sender_name: str | None = None,
        max_retries: int | None = None,
        retry_delay: float = 1.0,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = settings.RESEND_API_KEY if api_key is None else api_key
        self.domain = settings.RESEND_DOMAIN if domain is None else domain
        self.base_url = (base_url or settings.RESEND_API_URL).rstrip("/")
        self.sender_name = sender_name or settings.DEFAULT_COMPANY_NAME
        self.max_retries = settings.EMAIL_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.EMAIL_TIMEOUT,
            transport=transport,
        )

    def _check_config(self) -> None:
        if not self.api_key:
            raise EmailConfigError("RESEND_API_KEY is required to send email")
        if not self.domain:
            raise EmailConfigError("RESEND_DOMAIN is required to send email")

    def sender(self, name: str | None = None) -> str:
        return f"{name or self.sender_name} <noreply@{self.domain}>"

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
        *,
        sender_name: str | None = None,
    ) -> bool:
        """Send one message. False (logged) when delivery fails."""
        self._check_config()
        payload = {
            "from": self.sender(sender_name),
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        try:
            data = await self._post("/emails", payload)
        except (EmailDeliveryError, httpx.HTTPError) as exc:
            logger.error("Failed to send email to %s: %s", to, exc)
            return False

        logger.info("Email sent to %s (id=%s)", to, data.get("id"))
        return True

    async def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        attempts = self.max_retries + 1
        last_exc: Exception | None = None

        for attempt in range(attempts):
            try:
                resp = await self._client.post(url, json=payload, headers=headers)
                resp.raise_for_status()
                return resp.json() if resp.content else {}
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status < 500 and status != 429:
                    raise EmailDeliveryError(
                        f"Resend rejected message: HTTP {status} {exc.response.text}"
                    ) from exc
                last_exc = exc
                reason = f"HTTP {status}"
            except (httpx.ConnectError, httpx.TimeoutException) as exc:
                last_exc = exc
                reason = f"connection error: {exc}"

            if attempt == attempts - 1:
                break
            backoff = self.retry_delay * 2 ** attempt
            logger.warning(
                "Resend %s, retry %d/%d in %.1fs",
                reason, attempt + 1, self.max_retries, backoff,
            )
            await asyncio.sleep(backoff)

        raise EmailDeliveryError(f"Resend call failed after {attempts} attempts: {last_exc}")

    async def close(self) -> None:
        await self._client.aclose()
