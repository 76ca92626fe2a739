"""Authentication service: JWT tokens, password hashing and account lookup."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select

from mangasync.models.user import User
from mangasync.services.datetime_service import now_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from mangasync.config import Settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
_DUMMY_PASSWORD_HASH = bcrypt.hashpw(b"mangasync-dummy-password", bcrypt.gensalt()).decode(
    "utf-8"
)


class AuthenticationError(ValueError):
    """Credentials were rejected. The message is safe to show to clients."""


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(user_id: int, settings: Settings) -> str:
    """Create a signed access token carrying the user id."""
    now = now_utc()
    claims: dict[str, Any] = {
        "user_id": user_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.access_token_expire_hours)).timestamp()),
    }
    return str(jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM))


def decode_access_token(token: str, settings: Settings) -> int | None:
    """Validate a token and return its user id, or None if it is not acceptable."""
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError:
        logger.debug("Failed to decode access token", exc_info=True)
        return None

    user_id = payload.get("user_id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    return user_id


async def get_or_create_user(
    session: AsyncSession,
    email: str,
    password: str,
    allow_registration: bool,
) -> User:
    """Authenticate by email/password, registering unknown emails when allowed.

    Raises ``AuthenticationError`` for an unknown email with registration
    closed, or for a wrong password.
    """
    stmt = select(User).where(User.email == email)
    result = await session.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None:
        if not allow_registration:
            # Run a dummy hash check to reduce email timing side channels.
            verify_password(password, _DUMMY_PASSWORD_HASH)
            raise AuthenticationError("User is missing")
        user = User(email=email, password_hash=hash_password(password))
        session.add(user)
        await session.commit()
        await session.refresh(user)
        logger.info("Registered user %d", user.id)
        return user

    if not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credential")
    return user
