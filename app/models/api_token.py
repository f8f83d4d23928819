"""ORM model for issued bearer tokens; deleting a row revokes the token."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from app.models.base import Base, new_uuid, utcnow


class ApiToken(Base):
    """Server-side record of one login session. `id` is the JWT `jti` claim."""

    __tablename__ = "api_tokens"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
