"""ORM model for atomic capabilities (permissions) and key normalization."""

from collections.abc import Iterable

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship, validates

from app.models.associations import permission_role
from app.models.base import Base, new_uuid, utcnow


def normalize_key(key: str) -> str:
    """Canonical permission/role key: trimmed, lowercase."""
    return key.strip().lower()


def as_key_list(keys: str | Iterable[str] | None) -> list[str]:
    """Accept one key or many; drop blanks."""
    if keys is None:
        return []
    if isinstance(keys, str):
        keys = [keys]
    return [normalize_key(k) for k in keys if k and k.strip()]


class Permission(Base):
    """Permission such as 'update role'. Referenced by key from route guards."""

    __tablename__ = "permissions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    key = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    roles = relationship(
        "Role",
        secondary=permission_role,
        back_populates="permissions",
        lazy="selectin",
        passive_deletes=True,
    )

    @validates("key")
    def _normalize_key(self, _attr: str, value: str) -> str:
        return normalize_key(value)

    @property
    def title(self) -> str:
        return self.name or self.key

    def __repr__(self) -> str:
        return f"<Permission {self.key!r}>"
