"""Login, bearer token issuance, resolution and revocation."""

import logging
from dataclasses import dataclass
from datetime import datetime

import jwt
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.security import (
    DUMMY_PASSWORD_HASH,
    TOKEN_TYPE,
    access_token_lifetime,
    create_access_token,
    decode_access_token,
    verify_password,
)
from app.models import ApiToken, User
from app.models.base import as_utc, utcnow
from app.services.users import UserRepository

logger = logging.getLogger(__name__)


class InvalidCredentialsError(Exception):
    """Unknown username or wrong password. Callers report it on the password field."""


class EmailNotVerifiedError(Exception):
    """Correct credentials, but the email address has not been verified yet."""


@dataclass(frozen=True)
class IssuedToken:
    type: str
    token: str
    expires_at: datetime
    expires_in: int
    user: User


def issue_access_token(db: Session, user: User, settings: Settings) -> IssuedToken:
    """Persist a revocable token record and sign a JWT bound to it. Does not commit."""
    lifetime = access_token_lifetime(settings)
    expires_at = utcnow() + lifetime
    record = ApiToken(user_id=user.id, expires_at=expires_at)
    db.add(record)
    db.flush()
    token = create_access_token(sub=user.id, jti=record.id, expires_at=expires_at, settings=settings)
    return IssuedToken(
        type=TOKEN_TYPE,
        token=token,
        expires_at=expires_at,
        expires_in=int(lifetime.total_seconds()),
        user=user,
    )


def login(db: Session, username: str, password: str, settings: Settings) -> IssuedToken:
    """
    Authenticate by username (case-insensitive) and password and issue a token.

    Unknown username and wrong password raise the same InvalidCredentialsError;
    the unverified-email gate is only reported once the password has matched.
    """
    user = UserRepository(db).by_username(username)
    if user is None:
        verify_password(password, DUMMY_PASSWORD_HASH)
        logger.warning("Login failed: unknown username")
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        logger.warning("Login failed: wrong password for user id=%s", user.id)
        raise InvalidCredentialsError()
    if settings.REQUIRE_EMAIL_VERIFICATION and not user.is_verified:
        logger.warning("Login refused: email not verified for user id=%s", user.id)
        raise EmailNotVerifiedError()

    issued = issue_access_token(db, user, settings)
    db.commit()
    logger.info("Login: user id=%s", user.id)
    return issued


def resolve_access_token(db: Session, token: str, settings: Settings) -> tuple[User, ApiToken] | None:
    """Return (user, token record) for a valid, unrevoked, unexpired token; else None."""
    try:
        payload = decode_access_token(token, settings)
    except jwt.PyJWTError:
        return None
    record = db.get(ApiToken, str(payload.get("jti")))
    if record is None or record.user_id != str(payload.get("sub")):
        return None
    if as_utc(record.expires_at) <= utcnow():
        return None
    user = UserRepository(db).get(record.user_id)
    if user is None:
        return None
    return user, record


def revoke_access_token(db: Session, token_id: str) -> bool:
    """Delete one token record. Does not commit."""
    deleted = db.query(ApiToken).filter(ApiToken.id == token_id).delete(synchronize_session=False)
    return deleted > 0


def revoke_all_tokens(db: Session, user: User, keep: str | None = None) -> int:
    """Delete every token record of `user` except `keep`. Does not commit."""
    q = db.query(ApiToken).filter(ApiToken.user_id == user.id)
    if keep is not None:
        q = q.filter(ApiToken.id != keep)
    return q.delete(synchronize_session=False)
