"""ORM model for roles and the superuser auto-grant hook."""

import logging
from collections.abc import Iterable

from sqlalchemy import Column, DateTime, String, event, inspect
from sqlalchemy.orm import Session, relationship, validates

from app.models.associations import permission_role
from app.models.base import Base, new_uuid, utcnow
from app.models.permission import Permission, as_key_list, normalize_key

logger = logging.getLogger(__name__)

SUPERUSER_ROLE_KEY = "superuser"


class Role(Base):
    """Named grouping of permissions. Roles do not contain other roles."""

    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=new_uuid)
    key = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    permissions = relationship(
        "Permission",
        secondary=permission_role,
        back_populates="roles",
        lazy="selectin",
        passive_deletes=True,
    )

    @validates("key")
    def _normalize_key(self, _attr: str, value: str) -> str:
        return normalize_key(value)

    @property
    def title(self) -> str:
        return self.name or self.key

    @property
    def permission_keys(self) -> set[str]:
        return {p.key for p in self.permissions}

    def has_permission(self, keys: str | Iterable[str]) -> bool:
        """True if this role holds ANY of the given permission keys."""
        granted = self.permission_keys
        return any(k in granted for k in as_key_list(keys))

    def __repr__(self) -> str:
        return f"<Role {self.key!r}>"


@event.listens_for(Session, "before_flush")
def _grant_new_permissions_to_superuser(session: Session, _flush_context, _instances) -> None:
    """Every permission always belongs to the superuser role, whichever is created first."""
    new_permissions = [o for o in session.new if isinstance(o, Permission)]
    new_superusers = [
        o for o in session.new if isinstance(o, Role) and o.key == SUPERUSER_ROLE_KEY
    ]
    # A role renamed into the superuser key becomes the superuser role.
    new_superusers += [
        o
        for o in session.dirty
        if isinstance(o, Role)
        and o.key == SUPERUSER_ROLE_KEY
        and inspect(o).attrs["key"].history.has_changes()
    ]
    if not new_permissions and not new_superusers:
        return

    with session.no_autoflush:
        if new_superusers:
            existing = session.query(Permission).all()
            for role in new_superusers:
                for permission in existing:
                    if permission not in role.permissions:
                        role.permissions.append(permission)

        if not new_permissions:
            return
        superuser = new_superusers[0] if new_superusers else (
            session.query(Role).filter(Role.key == SUPERUSER_ROLE_KEY).first()
        )
        if superuser is None:
            logger.warning(
                "No %r role exists; %d new permission(s) left ungranted",
                SUPERUSER_ROLE_KEY,
                len(new_permissions),
            )
            return
        for permission in new_permissions:
            if permission not in superuser.permissions:
                superuser.permissions.append(permission)
