"""ORM model for application users and their RBAC predicates."""

from collections.abc import Iterable

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship, validates

from app.core.security import hash_password
from app.models.associations import permission_user, role_user
from app.models.base import Base, new_uuid, utcnow
from app.models.permission import as_key_list


class User(Base):
    """
    User account with direct permissions and role memberships.

    The plaintext password is never kept: assigning `user.password` stores a
    bcrypt hash in `password_hash` immediately. `deleted_at` marks soft
    deletion; repositories filter it out (see SoftDeleteFilter).
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    profile_photo_path = Column(String(1024), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    roles = relationship("Role", secondary=role_user, lazy="selectin", passive_deletes=True)
    permissions = relationship(
        "Permission", secondary=permission_user, lazy="selectin", passive_deletes=True
    )

    @property
    def password(self) -> None:
        """Write-only; reading never exposes the password or its hash."""
        return None

    @password.setter
    def password(self, plain: str) -> None:
        self.password_hash = hash_password(plain)

    @validates("email", "username")
    def _lowercase(self, _attr: str, value: str) -> str:
        return value.strip().lower()

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None

    def granted_permission_keys(self) -> set[str]:
        """Direct permissions plus permissions of every role held (one level)."""
        keys = {p.key for p in self.permissions}
        for role in self.roles:
            keys.update(role.permission_keys)
        return keys

    def has_permission(self, keys: str | Iterable[str]) -> bool:
        """True if the user holds ANY of the keys, directly or through a role."""
        wanted = as_key_list(keys)
        if not wanted:
            return False
        granted = self.granted_permission_keys()
        return any(k in granted for k in wanted)

    def has_role(self, keys: str | Iterable[str]) -> bool:
        """True if the user holds ANY of the given role keys."""
        held = {r.key for r in self.roles}
        return any(k in held for k in as_key_list(keys))

    def can(self, keys: str | Iterable[str]) -> bool:
        """Ability check: the keys may name either permissions or roles."""
        return self.has_permission(keys) or self.has_role(keys)

    def __repr__(self) -> str:
        return f"<User {self.username!r}>"
