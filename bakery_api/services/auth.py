"""
Session Issuer

Turns a verified identity plus the right password into a bearer token.
Unknown e-mail, unverified account and wrong password all fail with the
same ``InvalidCredentials`` so the endpoint cannot be used to probe which
e-mails have accounts.
"""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bakery_api.core.exceptions import InvalidCredentials
from bakery_api.core.security import create_access_token, verify_password
from bakery_api.models import User
from bakery_api.services.otp import normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    token: str
    user: User


class SessionIssuer:
    """Authenticates credential records and signs access tokens."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate(self, email: str, password: str) -> Session:
        email = normalize_email(email)
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            logger.info(f"Sign-in rejected for {email}: no account")
            raise InvalidCredentials()
        if not user.is_verified:
            logger.info(f"Sign-in rejected for {email}: not verified")
            raise InvalidCredentials()
        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.info(f"Sign-in rejected for {email}: bad password")
            raise InvalidCredentials()

        token = create_access_token(user.id, user.role.value)
        logger.info(f"User #{user.id} signed in ({user.role.value})")
        return Session(token=token, user=user)
