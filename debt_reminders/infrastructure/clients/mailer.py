"""Mail relay HTTP client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Optional

import httpx

from debt_reminders.config import settings
from debt_reminders.domain.exceptions import MailRelayError
from debt_reminders.domain.models import MessageStatus, OutcomeReason, SendResult
from debt_reminders.infrastructure.observability.metrics import mail_failure_counter, mail_latency_histogram

logger = logging.getLogger(__name__)


class MailerClient:
    """Client for handing digests to the outbound mail relay"""

    def __init__(
        self,
        relay_url: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
    ):
        self.relay_url = relay_url or settings.mail_relay_url
        self.sender = sender or settings.mail_from
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.mail_max_retries
        self.backoff_base = settings.mail_backoff_base

    @property
    def configured(self) -> bool:
        return bool(self.relay_url)

    async def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> SendResult:
        """
        Deliver one message.

        Without a relay URL nothing is sent: the message is logged and the
        result is SKIPPED / NOT_CONFIGURED. Relay failures after all retries
        come back as FAILED / DELIVERY_FAILED instead of raising, so one bad
        recipient never aborts a batch.
        """
        if not self.configured:
            logger.info("Mail relay not configured, message not sent", extra={"to": to, "subject": subject})
            return SendResult(status=MessageStatus.SKIPPED, reason=OutcomeReason.NOT_CONFIGURED)

        payload = {"from": self.sender, "to": to, "subject": subject, "text": text, "html": html}
        try:
            await self._post_with_retry(payload)
        except MailRelayError as e:
            logger.error(f"Mail delivery failed: {e}", extra={"to": to})
            return SendResult(
                status=MessageStatus.FAILED,
                reason=OutcomeReason.DELIVERY_FAILED,
                error_message=str(e),
            )
        return SendResult(status=MessageStatus.SENT)

    async def _post_with_retry(self, payload: dict) -> None:
        """
        POST the message to the relay.

        Retry strategy:
        - Exponential backoff: base, 2x base, 4x base ... (base * 2^(attempt-1))
        - Retries on 5xx errors and network failures; 4xx fails immediately

        Raises:
            MailRelayError: When the relay rejects the message or all retries fail
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with mail_latency_histogram.time():
                        response = await client.post(self.relay_url, json=payload)
                        response.raise_for_status()
                        return

                except httpx.HTTPStatusError as e:
                    mail_failure_counter.inc()
                    if e.response.status_code < 500:
                        raise MailRelayError(f"Mail relay rejected message: {e.response.status_code}") from e
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise MailRelayError(f"Mail relay error: {e.response.status_code}") from e

                except httpx.RequestError as e:
                    mail_failure_counter.inc()
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise MailRelayError(f"Mail relay unreachable after {attempt} attempts") from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)
