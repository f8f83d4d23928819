"""Password hashing and JWT creation/verification for bearer authentication."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import Settings, settings as default_settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 2
USERNAME_MAX_LEN = 64
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

TOKEN_TYPE = "bearer"


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Compared against when the username is unknown so login timing does not reveal it.
DUMMY_PASSWORD_HASH = hash_password("dummy-password-for-timing")


def create_access_token(
    sub: str,
    jti: str,
    expires_at: datetime,
    settings: Settings | None = None,
) -> str:
    """Create a JWT access token bound to a revocable token record (jti)."""
    settings = settings or default_settings
    payload: dict[str, Any] = {
        "sub": str(sub),
        "jti": jti,
        "exp": expires_at,
        "iat": datetime.now(UTC),
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, jti, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    settings = settings or default_settings
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "jti", "exp"]},
    )


def access_token_lifetime(settings: Settings | None = None) -> timedelta:
    settings = settings or default_settings
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
