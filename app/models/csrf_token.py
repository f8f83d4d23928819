"""ORM model for single-use CSRF tokens."""

from sqlalchemy import Boolean, Column, DateTime, String, false

from app.models.base import Base, new_uuid, utcnow


class CsrfToken(Base):
    """
    One issued CSRF token. Lifecycle: issued -> used, or issued -> expired.

    Neither terminal state ever validates again.
    """

    __tablename__ = "csrf_tokens"

    id = Column(String(36), primary_key=True, default=new_uuid)
    ip = Column(String(64), nullable=False, index=True)
    expired_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
