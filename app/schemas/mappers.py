"""Explicit ORM -> response mappers. Password hashes are never mapped."""

from app.models import Permission, Role, User
from app.schemas.rbac import AdminUserOut, PermissionOut, RoleOut, RoleSummaryOut
from app.schemas.user import KeyOut, RoleWithPermissionsOut, UserOut, UserProfileOut


def user_to_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        name=user.name,
        email=user.email,
        username=user.username,
        email_verified_at=user.email_verified_at,
        profile_photo_path=user.profile_photo_path,
        created_at=user.created_at,
    )


def user_to_profile(user: User) -> UserProfileOut:
    """Current-user view: direct permission keys and role keys with their permission keys."""
    return UserProfileOut(
        **user_to_out(user).model_dump(),
        permissions=[KeyOut(key=p.key) for p in sorted(user.permissions, key=lambda p: p.key)],
        roles=[
            RoleWithPermissionsOut(
                key=r.key,
                permissions=[KeyOut(key=p.key) for p in sorted(r.permissions, key=lambda p: p.key)],
            )
            for r in sorted(user.roles, key=lambda r: r.key)
        ],
    )


def permission_to_out(permission: Permission) -> PermissionOut:
    return PermissionOut(id=permission.id, key=permission.key, title=permission.title)


def role_to_out(role: Role) -> RoleOut:
    return RoleOut(
        id=role.id,
        key=role.key,
        title=role.title,
        permissions=[permission_to_out(p) for p in sorted(role.permissions, key=lambda p: p.key)],
    )


def user_to_admin_out(user: User) -> AdminUserOut:
    return AdminUserOut(
        **user_to_out(user).model_dump(),
        roles=[
            RoleSummaryOut(id=r.id, key=r.key, title=r.title)
            for r in sorted(user.roles, key=lambda r: r.key)
        ],
        permissions=[permission_to_out(p) for p in sorted(user.permissions, key=lambda p: p.key)],
    )
