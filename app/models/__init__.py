"""SQLAlchemy ORM models."""

from app.models.api_token import ApiToken
from app.models.associations import permission_role, permission_user, role_user
from app.models.base import Base
from app.models.csrf_token import CsrfToken
from app.models.permission import Permission
from app.models.role import SUPERUSER_ROLE_KEY, Role
from app.models.user import User

__all__ = [
    "ApiToken",
    "Base",
    "CsrfToken",
    "Permission",
    "Role",
    "SUPERUSER_ROLE_KEY",
    "User",
    "permission_role",
    "permission_user",
    "role_user",
]
