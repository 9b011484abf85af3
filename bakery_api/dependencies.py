"""
FastAPI dependencies: token guards and per-request service construction.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from bakery_api.core.config import get_settings
from bakery_api.core.exceptions import AdminRequired, MissingToken
from bakery_api.core.security import TokenPayload, decode_access_token
from bakery_api.database import get_db
from bakery_api.models import UserRole
from bakery_api.services import (
    CatalogService,
    OrderService,
    OtpGate,
    SalesAnalytics,
    SessionIssuer,
)
from bakery_api.services.notifications import BaseNotificationService, get_notification_service


# =============================================================================
# AUTH GUARDS
# =============================================================================

async def get_current_user(
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
) -> TokenPayload:
    """Identity from the ``x-auth-token`` header (401 when missing or bad)."""
    if not x_auth_token:
        raise MissingToken()
    return decode_access_token(x_auth_token)


async def require_admin(
    current: TokenPayload = Depends(get_current_user),
) -> TokenPayload:
    if current.role != UserRole.ADMIN.value:
        raise AdminRequired()
    return current


# =============================================================================
# SERVICES
# =============================================================================

def get_otp_gate(
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
) -> OtpGate:
    return OtpGate(db, notifier)


def get_session_issuer(db: AsyncSession = Depends(get_db)) -> SessionIssuer:
    return SessionIssuer(db)


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_sales_analytics(db: AsyncSession = Depends(get_db)) -> SalesAnalytics:
    return SalesAnalytics(db, history_limit=get_settings().analytics_history_limit)
