"""
Seed the initial RBAC data. Run once after migrations:
  python -m app.scripts.seed

Creates the superuser and developer roles, CRUD permissions for permission,
role and user, and two verified accounts (su / dev) with the given password.
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.models import SUPERUSER_ROLE_KEY, Permission, Role, User
from app.models.base import utcnow
from app.services.users import UserRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

RESOURCES = ("permission", "role", "user")
ABILITIES = ("create", "read", "update", "delete")
DEVELOPER_ROLE_KEY = "developer"


def seed(db: Session, password: str) -> None:
    """Idempotent: existing roles, permissions and users are left as they are."""
    roles = {}
    # The superuser role goes first so every permission below is granted to it on insert.
    for key in (SUPERUSER_ROLE_KEY, DEVELOPER_ROLE_KEY):
        role = db.query(Role).filter(Role.key == key).first()
        if role is None:
            role = Role(key=key)
            db.add(role)
            db.flush()
        roles[key] = role

    developer_permissions = []
    for resource in RESOURCES:
        for ability in ABILITIES:
            key = f"{ability} {resource}"
            permission = db.query(Permission).filter(Permission.key == key).first()
            if permission is None:
                permission = Permission(key=key)
                db.add(permission)
                db.flush()
            if resource != "user":
                developer_permissions.append(permission)
    for permission in developer_permissions:
        if permission not in roles[DEVELOPER_ROLE_KEY].permissions:
            roles[DEVELOPER_ROLE_KEY].permissions.append(permission)

    repo = UserRepository(db)
    for username, role_key in (("su", SUPERUSER_ROLE_KEY), ("dev", DEVELOPER_ROLE_KEY)):
        if repo.username_taken(username):
            continue
        user = User(
            name=role_key,
            email=f"{username}@local.app",
            username=username,
            password=password,
            email_verified_at=utcnow(),
        )
        user.roles = [roles[role_key]]
        repo.add(user)
        logger.info("Seeded user %s with role %s", username, role_key)
    db.commit()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed AdminKit roles, permissions and accounts.")
    parser.add_argument("--password", default="password", help="Password for the seeded accounts")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        seed(db, args.password)
        logger.info("Seed completed")
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Seed failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
