"""
Notification Service Abstract Base Class

Defines the interface for delivering signup codes by e-mail.
Supports both Mock (development) and Real (production) implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def render_otp_email(restaurant_name: str, code: str, expires_minutes: int) -> tuple[str, str]:
    """Return the (html, text) bodies of the verification e-mail."""
    html = f"""
    <div style="font-family: Arial, sans-serif; padding: 20px; color: #333;">
        <h2>Welcome to {restaurant_name}! 🎂</h2>
        <p>Your verification code is:</p>
        <h1 style="color: #ea580c; letter-spacing: 5px;">{code}</h1>
        <p>This code expires in {expires_minutes} minutes. Do not share it with anyone.</p>
    </div>
    """
    text = (
        f"Welcome to {restaurant_name}!\n"
        f"Your verification code is {code}.\n"
        f"It expires in {expires_minutes} minutes. Do not share it with anyone."
    )
    return html, text


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    async def send_otp(
        self,
        to_email: str,
        code: str,
        expires_minutes: int,
        restaurant_name: str,
    ) -> NotificationResult:
        """Send a signup verification code."""
        html, text = render_otp_email(restaurant_name, code, expires_minutes)
        return await self.send_email(
            to_email=to_email,
            subject="Your Verification Code (OTP)",
            body_html=html,
            body_text=text,
        )

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass
