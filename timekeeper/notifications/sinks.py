"""Outbound notification sinks.

A sink accepts ``(address, subject, message)`` and reports whether delivery
was accepted. Attendance flows never wait on a sink.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from timekeeper.common.constants import EmailService
from timekeeper.config import settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class NotificationSink(Protocol):
    async def send(self, address: str, subject: str, message: str) -> bool:
        ...


class LogNotificationSink:
    """Demo sink: writes the message to the log only."""

    async def send(self, address: str, subject: str, message: str) -> bool:
        logger.info("[demo email] to=%s subject=%r\n%s", address, subject, message)
        return True


class ResendNotificationSink:
    """Deliver through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str,
        *,
        timeout: float = 15,
    ) -> None:
        self.api_key = api_key
        self.sender = f"{from_name} <{from_email}>"
        self.timeout = timeout

    async def send(self, address: str, subject: str, message: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "from": self.sender,
                        "to": [address],
                        "subject": subject,
                        "text": message,
                    },
                )
        except httpx.HTTPError as exc:
            logger.warning("Resend delivery to %s failed: %s", address, exc)
            return False

        if response.status_code >= 400:
            logger.warning(
                "Resend rejected delivery to %s: %s %s",
                address, response.status_code, response.text,
            )
            return False
        return True


def get_notification_sink() -> NotificationSink:
    """FastAPI dependency: sink selected by ``EMAIL_SERVICE``."""
    if settings.EMAIL_SERVICE == EmailService.resend.value and settings.EMAIL_API_KEY:
        return ResendNotificationSink(
            settings.EMAIL_API_KEY, settings.FROM_EMAIL, settings.FROM_NAME,
        )
    return LogNotificationSink()
