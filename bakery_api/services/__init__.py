"""
                        Services Module

Business logic, independent of HTTP. Each service takes an AsyncSession;
the notification service follows the Mock/Real split selected by ENV_MODE.

Services:
    - otp: signup OTP gate
    - auth: session issuer (sign-in, tokens)
    - orders: order ledger and status changes
    - catalog: menu management
    - analytics: admin sales figures
    - notifications: e-mail delivery (mock / SendGrid)
"""

from bakery_api.services.analytics import SalesAnalytics
from bakery_api.services.auth import SessionIssuer
from bakery_api.services.catalog import CatalogService
from bakery_api.services.orders import OrderService
from bakery_api.services.otp import OtpGate

__all__ = ["OtpGate", "SessionIssuer", "OrderService", "CatalogService", "SalesAnalytics"]
