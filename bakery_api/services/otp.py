"""
Signup OTP Gate

Bridges an unverified signup to a verified credential record using a
6-digit code e-mailed to the user.

The pending signup is stored as a real ``users`` row with
``is_verified = False``, so it survives restarts and needs no separate
expiry sweep: an expired code just sits inert until the next signup
attempt overwrites it or a verify attempt clears it.

Every mutation of the code is a single-row conditional UPDATE keyed by the
user, so a verify racing a fresh signup cannot succeed with the stale code.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bakery_api.core.clock import Clock, as_utc, utcnow
from bakery_api.core.config import get_settings
from bakery_api.core.exceptions import (
    AlreadyRegistered,
    AlreadyVerified,
    DeliveryFailed,
    NoPendingCode,
    OtpExpired,
    OtpMismatch,
    RegistrationConflict,
    RegistrationNotFound,
)
from bakery_api.core.security import hash_password
from bakery_api.models import User
from bakery_api.services.notifications import BaseNotificationService, NotificationResult

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


@dataclass(frozen=True)
class PendingRegistration:
    """A signup waiting for its code."""
    user_id: int
    email: str
    expires_at: datetime


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_otp() -> str:
    """Uniform over all one million 6-digit strings, leading zeros included."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


class OtpGate:
    """
    Issues and checks signup verification codes.

    Args:
        db: Session used for every read and conditional update
        notifier: Delivers the code out-of-band
        clock: Returns the current time (injectable for tests)
        expiry_minutes: Code lifetime, defaults to ``OTP_EXPIRY_MINUTES``
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: BaseNotificationService,
        clock: Clock = utcnow,
        expiry_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.expiry_minutes = expiry_minutes or settings.otp_expiry_minutes
        self.restaurant_name = settings.restaurant_name

    def _now(self) -> datetime:
        return self.clock().astimezone(timezone.utc)

    async def _find(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .where(User.email == email)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # SIGNUP
    # =========================================================================

    async def request_registration(
        self,
        name: str,
        email: str,
        password: str,
        phone: str,
    ) -> PendingRegistration:
        """
        Store (or refresh) a pending signup and e-mail its code.

        Raises:
            AlreadyRegistered: a verified account owns the e-mail
            RegistrationConflict: another first-time signup for the same
                e-mail was inserted concurrently
            DeliveryFailed: the code could not be sent; the pending record
                has been deleted
        """
        email = normalize_email(email)
        now = self._now()
        code = generate_otp()
        expires_at = now + timedelta(minutes=self.expiry_minutes)

        user = await self._find(email)
        if user is not None and user.is_verified:
            raise AlreadyRegistered()

        # argon2 is CPU-bound
        password_hash = await asyncio.to_thread(hash_password, password)

        if user is None:
            user = User(
                name=name,
                email=email,
                phone=phone,
                password_hash=password_hash,
                is_verified=False,
                otp_code=code,
                otp_expires_at=expires_at,
            )
            self.db.add(user)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                raise RegistrationConflict()
            logger.info(f"Pending signup created for {email}")
        else:
            # Abandoned signup: overwrite in place instead of duplicating
            result = await self.db.execute(
                update(User)
                .where(User.id == user.id, User.is_verified.is_(False))
                .values(
                    name=name,
                    phone=phone,
                    password_hash=password_hash,
                    otp_code=code,
                    otp_expires_at=expires_at,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.db.rollback()
                raise AlreadyRegistered()
            await self.db.commit()
            logger.info(f"Pending signup refreshed for {email}")

        user_id = user.id
        delivery = await self._dispatch(email, code)
        if not delivery.success:
            logger.warning(f"OTP delivery to {email} failed: {delivery.error_message}")
            await self.db.execute(
                delete(User).where(User.id == user_id, User.is_verified.is_(False))
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            raise DeliveryFailed()

        logger.info(f"OTP sent to {email} via {delivery.provider}")
        return PendingRegistration(user_id=user_id, email=email, expires_at=expires_at)

    async def _dispatch(self, email: str, code: str) -> NotificationResult:
        try:
            return await self.notifier.send_otp(
                to_email=email,
                code=code,
                expires_minutes=self.expiry_minutes,
                restaurant_name=self.restaurant_name,
            )
        except Exception as e:
            logger.exception(f"Notification provider raised while sending OTP: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider=self.notifier.provider_name,
            )

    # =========================================================================
    # VERIFICATION
    # =========================================================================

    async def verify(self, email: str, code: str) -> User:
        """
        Consume a code and mark the account verified.

        Raises:
            RegistrationNotFound: no record for the e-mail
            AlreadyVerified: the account is already active
            NoPendingCode: no code outstanding (already consumed or cleared)
            OtpExpired: the code is past its expiry; it is cleared, so the
                user has to sign up again
            OtpMismatch: the code differs from the stored one
        """
        email = normalize_email(email)
        now = self._now()

        user = await self._find(email)
        await self._ensure_pending(user, code, now)

        result = await self.db.execute(
            update(User)
            .where(
                User.id == user.id,
                User.is_verified.is_(False),
                User.otp_code == code,
                User.otp_expires_at >= now,
            )
            .values(is_verified=True, otp_code=None, otp_expires_at=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Lost a race with another signup or verify: explain from fresh state
            await self.db.rollback()
            user = await self._find(email)
            await self._ensure_pending(user, code, now)
            raise NoPendingCode()

        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Account verified: {email}")
        return user

    async def _ensure_pending(self, user: Optional[User], code: str, now: datetime) -> None:
        if user is None:
            raise RegistrationNotFound()
        if user.is_verified:
            raise AlreadyVerified()
        if user.otp_code is None:
            raise NoPendingCode()

        expires_at = as_utc(user.otp_expires_at)
        if expires_at is None or now > expires_at:
            await self.db.execute(
                update(User)
                .where(User.id == user.id, User.otp_code == user.otp_code)
                .values(otp_code=None, otp_expires_at=None)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            logger.info(f"Expired OTP cleared for {user.email}")
            raise OtpExpired()

        if user.otp_code != code:
            raise OtpMismatch()
