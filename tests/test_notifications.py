"""
Tests for the notification service factory and the mock provider.
"""
import pytest

from bakery_api.core.config import get_settings
from bakery_api.services.notifications import (
    MockNotificationService,
    RealNotificationService,
    get_notification_service,
    reset_notification_service,
)


@pytest.fixture
def fresh_factory():
    get_settings.cache_clear()
    reset_notification_service()
    yield
    get_settings.cache_clear()
    reset_notification_service()


class TestFactory:

    def test_development_uses_mock(self, fresh_factory):
        service = get_notification_service()

        assert isinstance(service, MockNotificationService)
        assert get_notification_service() is service

    def test_reset_picks_up_new_mode(self, fresh_factory, monkeypatch):
        assert isinstance(get_notification_service(), MockNotificationService)

        monkeypatch.setenv("ENV_MODE", "staging")
        monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
        get_settings.cache_clear()
        assert isinstance(get_notification_service(), MockNotificationService)

        reset_notification_service()
        service = get_notification_service()

        assert isinstance(service, RealNotificationService)
        assert service.provider_name == "sendgrid"

    async def test_unconfigured_sendgrid_reports_failure(self, fresh_factory, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "production")
        monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
        get_settings.cache_clear()

        service = RealNotificationService()

        assert not await service.health_check()
        result = await service.send_email("a@x.com", "Hi", "<p>Hi</p>")
        assert not result.success


class TestMockService:

    async def test_otp_mail_lands_in_outbox(self, notifier):
        result = await notifier.send_otp(
            to_email="a@x.com", code="004217", expires_minutes=10, restaurant_name="Shree Krishna Bakers"
        )

        assert result.success
        assert len(notifier.outbox) == 1
        assert notifier.outbox[0].to_email == "a@x.com"
        assert notifier.last_code_for("a@x.com") == "004217"

    async def test_simulated_failure_sends_nothing(self):
        notifier = MockNotificationService(failure_rate=1.0, max_latency=0)

        result = await notifier.send_email("a@x.com", "Hi", "<p>Hi</p>")

        assert not result.success
        assert notifier.outbox == []
