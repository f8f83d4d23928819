"""User lookups, uniqueness checks and membership changes, excluding soft-deleted users."""

import logging
from collections.abc import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.models import ApiToken, Permission, Role, User
from app.services.soft_delete import SoftDeleteFilter

logger = logging.getLogger(__name__)


class UserRepository:
    """Data access for users. Every read goes through the soft-delete filter."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.soft_delete = SoftDeleteFilter(User.deleted_at)

    def query(self) -> Query:
        return self.soft_delete.apply(self.db.query(User))

    def get(self, user_id: str) -> User | None:
        return self.query().filter(User.id == user_id).first()

    def by_username(self, username: str) -> User | None:
        return self.query().filter(func.lower(User.username) == username.strip().lower()).first()

    def by_email(self, email: str) -> User | None:
        return self.query().filter(func.lower(User.email) == email.strip().lower()).first()

    def username_taken(self, username: str, exclude_id: str | None = None) -> bool:
        # Soft-deleted rows still hold the unique index, so they count.
        q = self.db.query(User.id).filter(func.lower(User.username) == username.strip().lower())
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        return q.first() is not None

    def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        q = self.db.query(User.id).filter(func.lower(User.email) == email.strip().lower())
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        return q.first() is not None

    def unique_field_errors(
        self, username: str, email: str, exclude_id: str | None = None
    ) -> list[dict[str, str]]:
        """Field-level errors for a username or email already in use."""
        errors = []
        if self.username_taken(username, exclude_id):
            errors.append({"field": "username", "message": "Username is already taken."})
        if self.email_taken(email, exclude_id):
            errors.append({"field": "email", "message": "Email is already registered."})
        return errors

    def all(self) -> list[User]:
        return self.query().order_by(User.name, User.username).all()

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def delete(self, user: User) -> None:
        """Soft delete and drop every live session of the user."""
        self.soft_delete.mark(user)
        self.db.query(ApiToken).filter(ApiToken.user_id == user.id).delete(
            synchronize_session=False
        )
        logger.info("User soft-deleted: id=%s", user.id)


def sync_roles(db: Session, user: User, role_ids: Iterable[str]) -> list[str]:
    """Replace the user's roles; return ids that do not exist."""
    wanted = set(role_ids)
    roles = db.query(Role).filter(Role.id.in_(wanted)).all() if wanted else []
    user.roles = roles
    return sorted(wanted - {r.id for r in roles})


def sync_permissions(db: Session, user: User, permission_ids: Iterable[str]) -> list[str]:
    """Replace the user's direct permissions; return ids that do not exist."""
    wanted = set(permission_ids)
    permissions = db.query(Permission).filter(Permission.id.in_(wanted)).all() if wanted else []
    user.permissions = permissions
    return sorted(wanted - {p.id for p in permissions})


def toggle_membership(collection: list, item: object) -> bool:
    """Remove item if present, else add it. Returns True when the item is now attached."""
    if item in collection:
        collection.remove(item)
        return False
    collection.append(item)
    return True
