"""
Password hashing and access tokens.

Tokens are HS256 JWTs carrying the user id and role. Verification is a
pure signature + expiry check: there is no server-side revocation, so a
token stays valid for its whole lifetime and logout is client-side.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from bakery_api.core.clock import utcnow
from bakery_api.core.config import get_settings
from bakery_api.core.exceptions import InvalidToken, TokenExpired

pwd = CryptContext(schemes=["argon2"], deprecated="auto")


@dataclass(frozen=True)
class TokenPayload:
    """Identity decoded from a verified access token."""
    user_id: int
    role: str
    expires_at: datetime


def hash_password(p: str) -> str:
    return pwd.hash(p)


def verify_password(p: str, h: str) -> bool:
    return pwd.verify(p, h)


def create_access_token(
    user_id: int,
    role: str,
    now: Optional[datetime] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    settings = get_settings()
    issued = now or utcnow()
    if expires_minutes is None:
        expires_minutes = settings.jwt_expire_minutes
    payload = {
        "id": user_id,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """
    Verify a token's signature and expiry.

    Raises:
        TokenExpired: the token is past its ``exp`` claim
        InvalidToken: bad signature, malformed token or missing claims
    """
    settings = get_settings()
    try:
        data = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise InvalidToken()

    try:
        return TokenPayload(
            user_id=int(data["id"]),
            role=str(data["role"]),
            expires_at=datetime.fromtimestamp(int(data["exp"]), tz=utcnow().tzinfo),
        )
    except (KeyError, TypeError, ValueError):
        raise InvalidToken()
