"""
Email verification and password reset through signed, time-boxed user tokens.

Both flows mint a codec token carrying {id, purpose, expired_at, bind}, send it
as a link, and later redeem it. A token minted for one purpose is rejected by
the other flow. `bind` ties a verification token to the address it was mailed
to and a reset token to the password it replaces, so a changed email or an
already-used reset link no longer redeems. Expired verification tokens trigger
a fresh verification email.
"""

import hashlib
import logging
from datetime import datetime, timedelta
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.tokens import TokenCodec
from app.models import User
from app.models.base import as_utc, utcnow
from app.services.auth import revoke_all_tokens
from app.services.mail import Mailer, MailMessage
from app.services.users import UserRepository

logger = logging.getLogger(__name__)

PURPOSE_VERIFY = "verify"
PURPOSE_RESET = "reset"


class InvalidTokenError(Exception):
    """Token is missing, malformed, tampered, minted for another purpose, or stale."""


class UserNotFoundError(Exception):
    """Token decodes but the referenced user no longer exists."""


class TokenExpiredError(Exception):
    """Token is authentic but past its expired_at."""

    def __init__(self, user: User) -> None:
        self.user = user
        super().__init__("Token expired")


def _binding(user: User, purpose: str) -> str:
    """The user state a token is only valid against."""
    if purpose == PURPOSE_VERIFY:
        return user.email
    return hashlib.sha256(user.password_hash.encode("utf-8")).hexdigest()[:16]


def mint_user_token(
    codec: TokenCodec,
    user: User,
    purpose: str,
    hours: int,
    now: datetime | None = None,
) -> str:
    expired_at = (now or utcnow()) + timedelta(hours=hours)
    return codec.encode(
        {
            "id": user.id,
            "purpose": purpose,
            "expired_at": expired_at.isoformat(),
            "bind": _binding(user, purpose),
        }
    )


def read_user_token(
    db: Session,
    codec: TokenCodec,
    token: str | None,
    purpose: str,
    now: datetime | None = None,
) -> User:
    """Decode and check a user token; raise InvalidTokenError, UserNotFoundError or TokenExpiredError."""
    payload = codec.decode(token)
    if not isinstance(payload, dict) or payload.get("purpose") != purpose:
        raise InvalidTokenError()
    try:
        expired_at = as_utc(datetime.fromisoformat(str(payload["expired_at"])))
    except (KeyError, ValueError) as e:
        raise InvalidTokenError() from e

    user = UserRepository(db).get(str(payload.get("id")))
    if user is None:
        raise UserNotFoundError()
    if payload.get("bind") != _binding(user, purpose):
        logger.warning("Stale %s token rejected for user id=%s", purpose, user.id)
        raise InvalidTokenError()
    if (now or utcnow()) >= expired_at:
        raise TokenExpiredError(user)
    return user


def _link(base: str, path: str, token: str) -> str:
    return f"{base.rstrip('/')}{path}?{urlencode({'token': token})}"


def send_verification_email(
    user: User,
    codec: TokenCodec,
    mailer: Mailer,
    settings: Settings,
    next_url: str | None = None,
) -> str:
    """Mint a verification token and mail the link; returns the token."""
    token = mint_user_token(codec, user, PURPOSE_VERIFY, settings.VERIFICATION_TOKEN_TTL_HOURS)
    url = _link(next_url or settings.APP_URL, "/verify", token)
    mailer.send(
        MailMessage(
            to=user.email,
            subject="Email verification",
            body=f"Hello {user.name},\n\nConfirm your email address by opening:\n{url}\n",
            sender=settings.MAIL_FROM,
        )
    )
    logger.info("Verification email sent: user id=%s", user.id)
    return token


def verify_email(
    db: Session,
    token: str | None,
    codec: TokenCodec,
    mailer: Mailer,
    settings: Settings,
) -> User:
    """
    Mark the user's email as verified. Does not commit.

    On an expired token a new verification email is sent before
    TokenExpiredError propagates.
    """
    try:
        user = read_user_token(db, codec, token, PURPOSE_VERIFY)
    except TokenExpiredError as e:
        logger.info("Verification token expired; resending to user id=%s", e.user.id)
        send_verification_email(e.user, codec, mailer, settings)
        raise
    if user.email_verified_at is None:
        user.email_verified_at = utcnow()
    return user


def send_password_reset_email(
    user: User,
    codec: TokenCodec,
    mailer: Mailer,
    settings: Settings,
    next_url: str | None = None,
) -> str:
    token = mint_user_token(codec, user, PURPOSE_RESET, settings.PASSWORD_RESET_TOKEN_TTL_HOURS)
    url = _link(next_url or settings.APP_URL, "/reset-password", token)
    mailer.send(
        MailMessage(
            to=user.email,
            subject="Password reset",
            body=f"Hello {user.name},\n\nReset your password by opening:\n{url}\n",
            sender=settings.MAIL_FROM,
        )
    )
    logger.info("Password reset email sent: user id=%s", user.id)
    return token


def reset_password(db: Session, token: str | None, new_password: str, codec: TokenCodec) -> User:
    """Set a new password and revoke every existing session. Does not commit."""
    user = read_user_token(db, codec, token, PURPOSE_RESET)
    user.password = new_password
    revoke_all_tokens(db, user)
    return user
