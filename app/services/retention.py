"""Data retention: delete CSRF and access tokens that expired more than RETENTION_HOURS ago."""

import logging
from datetime import datetime, timezone, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.models import ApiToken, CsrfToken

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(session: Session, settings: "Settings") -> tuple[int, int]:
    """
    Delete expired CSRF tokens and expired access tokens past the grace window.

    Returns (csrf_tokens_deleted, access_tokens_deleted). Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return (0, 0)

    cutoff = datetime.now(timezone.utc) - timedelta(hours=settings.RETENTION_HOURS)
    csrf_deleted = (
        session.query(CsrfToken)
        .filter(CsrfToken.expired_at < cutoff)
        .delete(synchronize_session=False)
    )
    tokens_deleted = (
        session.query(ApiToken)
        .filter(ApiToken.expires_at < cutoff)
        .delete(synchronize_session=False)
    )
    session.commit()

    if csrf_deleted or tokens_deleted:
        logger.info(
            "Retention run: cutoff=%s, csrf_tokens_deleted=%s, access_tokens_deleted=%s",
            cutoff.isoformat(),
            csrf_deleted,
            tokens_deleted,
        )
    return (csrf_deleted, tokens_deleted)
