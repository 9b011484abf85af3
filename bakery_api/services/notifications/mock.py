"""
Mock Notification Service

Simulates e-mail sending for development and tests.
No actual messages are sent - they are logged and kept in ``outbox``.
"""

import asyncio
import random
import re
import uuid
import logging
from dataclasses import dataclass
from typing import Optional

from bakery_api.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """A message captured by the mock service."""
    message_id: str
    to_email: str
    subject: str
    body_html: str
    body_text: Optional[str] = None


class MockNotificationService(BaseNotificationService):
    """Mock notification service for development."""

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.1,
        max_latency: float = 0.3,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.outbox: list[SentEmail] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Simulate sending email."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock email failed (simulated) to {to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider="mock"
            )

        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        self.outbox.append(SentEmail(message_id, to_email, subject, body_html, body_text))
        logger.info(f"Mock email sent to {to_email}: {subject} (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def send_otp(
        self,
        to_email: str,
        code: str,
        expires_minutes: int,
        restaurant_name: str,
    ) -> NotificationResult:
        result = await super().send_otp(to_email, code, expires_minutes, restaurant_name)
        if result.success:
            # No inbox in development, so the code goes to the log
            logger.info(f"OTP for {to_email}: {code}")
        return result

    def last_code_for(self, email: str) -> Optional[str]:
        """Return the most recent 6-digit code e-mailed to ``email``."""
        for sent in reversed(self.outbox):
            if sent.to_email == email and sent.body_text:
                match = re.search(r"\b(\d{6})\b", sent.body_text)
                if match:
                    return match.group(1)
        return None

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
