"""
Create a verified user, optionally with roles. Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD [--name NAME] [--role KEY ...]
Example:
  python -m app.scripts.create_user admin admin@example.com your-secure-password --role superuser
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN
from app.models import Role, User
from app.models.base import utcnow
from app.services.users import UserRepository


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a verified AdminKit user.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--name", default=None, help="Display name (defaults to username)")
    parser.add_argument("--role", action="append", default=[], help="Role key; repeatable")
    args = parser.parse_args()

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        repo = UserRepository(db)
        errors = repo.unique_field_errors(username, args.email)
        if errors:
            for error in errors:
                print(error["message"], file=sys.stderr)
            return 1
        roles = []
        for key in args.role:
            role = db.query(Role).filter(Role.key == key.strip().lower()).first()
            if role is None:
                print(f"Role '{key}' does not exist.", file=sys.stderr)
                return 1
            roles.append(role)
        user = User(
            name=args.name or username,
            email=args.email,
            username=username,
            password=args.password,
            email_verified_at=utcnow(),
        )
        user.roles = roles
        repo.add(user)
        db.commit()
        print(f"Created user '{user.username}' with roles {[r.key for r in roles]}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
