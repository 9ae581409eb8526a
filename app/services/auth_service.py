"""Signup, login and bearer-token handling.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs whose
``sub`` claim is the user id.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import AuthenticationError, InvalidRequest
from app.models.user import User

logger = logging.getLogger("app.auth")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(user_id: uuid.UUID, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": str(user_id), "iat": now, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> uuid.UUID:
    """Return the user id carried by *token*.

    Raises:
        AuthenticationError: bad signature, expired, or malformed subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
        return uuid.UUID(payload["sub"])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("token expired") from exc
    except (jwt.InvalidTokenError, ValueError) as exc:
        raise AuthenticationError(f"token rejected: {exc}") from exc


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(User.email == _normalize_email(email))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def signup(session: AsyncSession, email: str, password: str) -> str:
    """Create an account and return an access token for it."""
    if await get_user_by_email(session, email) is not None:
        raise InvalidRequest("User already exists", stage="signup")

    user = User(email=_normalize_email(email), password_hash=hash_password(password))
    session.add(user)
    await session.commit()
    logger.info("signup user_id=%s", user.id)
    return create_access_token(user.id)


async def login(session: AsyncSession, email: str, password: str) -> str:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidRequest("Invalid credentials", stage="login")
    logger.info("login user_id=%s", user.id)
    return create_access_token(user.id)


async def resolve_user(session: AsyncSession, token: str) -> User:
    """Decode *token* and load its user."""
    user = await session.get(User, decode_access_token(token))
    if user is None:
        raise AuthenticationError("token subject no longer exists")
    return user
