"""
CSRF guard: per-IP, single-use, short-lived tokens.

generate_csrf_token keeps at most one live token per IP by consuming the
previous ones before inserting a new row. validate_csrf_token consumes a token
with one conditional UPDATE, so two concurrent requests presenting the same
token cannot both pass.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import text, update
from sqlalchemy.orm import Session

from app.core.tokens import TokenCodec
from app.models import CsrfToken
from app.models.base import utcnow

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"
CSRF_PROTECTED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def _lock_ip(db: Session, ip: str) -> None:
    """Serialize token issuance per IP for the rest of the transaction (PostgreSQL only)."""
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:ip))"), {"ip": ip})


def generate_csrf_token(
    db: Session,
    ip: str,
    codec: TokenCodec,
    ttl_seconds: int,
    now: datetime | None = None,
) -> str:
    """Invalidate live tokens for `ip`, issue a new one and return it encoded. Commits."""
    now = now or utcnow()
    _lock_ip(db, ip)
    superseded = db.execute(
        update(CsrfToken)
        .where(
            CsrfToken.ip == ip,
            CsrfToken.used.is_(False),
            CsrfToken.expired_at > now,
        )
        .values(used=True, updated_at=now)
    ).rowcount
    expired_at = now + timedelta(seconds=ttl_seconds)
    csrf = CsrfToken(ip=ip, expired_at=expired_at, used=False)
    db.add(csrf)
    db.flush()
    token_id = csrf.id
    db.commit()
    logger.info("CSRF token issued: ip=%s superseded=%s", ip, superseded)
    return codec.encode({"id": token_id, "ip": ip, "expired_at": expired_at.isoformat()})


def validate_csrf_token(
    db: Session,
    header_token: str | None,
    ip: str,
    codec: TokenCodec,
    now: datetime | None = None,
) -> bool:
    """Consume the token if it is unused, unexpired and was issued to `ip`. Commits on success."""
    if not header_token:
        return False
    payload = codec.decode(header_token)
    if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
        return False
    if payload.get("ip") != ip:
        logger.warning("CSRF token presented from a different IP: ip=%s", ip)
        return False

    now = now or utcnow()
    consumed = db.execute(
        update(CsrfToken)
        .where(
            CsrfToken.id == payload["id"],
            CsrfToken.ip == ip,
            CsrfToken.used.is_(False),
            CsrfToken.expired_at > now,
        )
        .values(used=True, updated_at=now)
    ).rowcount
    if consumed != 1:
        db.rollback()
        return False
    db.commit()
    return True
