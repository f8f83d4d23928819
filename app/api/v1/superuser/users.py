"""Superuser administration of user accounts, their roles and direct permissions."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_or_404
from app.api.v1.guards import require_permission
from app.core.database import get_db, transaction
from app.models import Permission, Role, User
from app.models.base import utcnow
from app.schemas.auth import MessageResponse
from app.schemas.mappers import user_to_admin_out
from app.schemas.rbac import (
    AdminPasswordUpdate,
    AdminUserCreate,
    AdminUserOut,
    AdminUserResponse,
    AdminUserUpdate,
    ToggleResponse,
)
from app.services.auth import revoke_all_tokens
from app.services.users import UserRepository, sync_permissions, sync_roles, toggle_membership

router = APIRouter()


def _get_user_or_404(repo: UserRepository, user_id: str) -> User:
    user = repo.get(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return user


def _apply_memberships(
    db: Session,
    user: User,
    role_ids: list[str] | None,
    permission_ids: list[str] | None,
) -> None:
    """Replace roles/permissions when given; unknown ids abort with 422 (caller's transaction rolls back)."""
    errors = []
    if role_ids is not None:
        missing = sync_roles(db, user, role_ids)
        if missing:
            errors.append({"field": "roles", "message": f"Unknown role id(s): {', '.join(missing)}"})
    if permission_ids is not None:
        missing = sync_permissions(db, user, permission_ids)
        if missing:
            errors.append(
                {"field": "permissions", "message": f"Unknown permission id(s): {', '.join(missing)}"}
            )
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)


@router.get("", response_model=list[AdminUserOut])
def list_users(
    _admin: Annotated[User, Depends(require_permission("read user"))],
    db: Annotated[Session, Depends(get_db)],
) -> list[AdminUserOut]:
    return [user_to_admin_out(u) for u in UserRepository(db).all()]


@router.get("/{user_id}", response_model=AdminUserOut)
def get_user(
    user_id: str,
    _admin: Annotated[User, Depends(require_permission("read user"))],
    db: Annotated[Session, Depends(get_db)],
) -> AdminUserOut:
    return user_to_admin_out(_get_user_or_404(UserRepository(db), user_id))


@router.post("", response_model=AdminUserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: AdminUserCreate,
    _admin: Annotated[User, Depends(require_permission("create user"))],
    db: Annotated[Session, Depends(get_db)],
) -> AdminUserResponse:
    repo = UserRepository(db)
    errors = repo.unique_field_errors(body.username, body.email)
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)
    with transaction(db):
        user = repo.add(
            User(
                name=body.name.strip(),
                email=body.email,
                username=body.username,
                password=body.password,
                email_verified_at=utcnow() if body.verified else None,
            )
        )
        _apply_memberships(db, user, body.roles, body.permissions)
    return AdminUserResponse(
        message=f"User {user.name} has been created.", user=user_to_admin_out(user)
    )


@router.put("/{user_id}", response_model=AdminUserResponse)
def update_user(
    user_id: str,
    body: AdminUserUpdate,
    _admin: Annotated[User, Depends(require_permission("update user"))],
    db: Annotated[Session, Depends(get_db)],
) -> AdminUserResponse:
    repo = UserRepository(db)
    user = _get_user_or_404(repo, user_id)
    errors = repo.unique_field_errors(body.username, body.email, exclude_id=user.id)
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)
    with transaction(db):
        user.name = body.name.strip()
        user.username = body.username
        user.email = body.email
        _apply_memberships(db, user, body.roles, body.permissions)
    return AdminUserResponse(
        message=f"User {user.name} has been updated.", user=user_to_admin_out(user)
    )


@router.put("/{user_id}/password", response_model=MessageResponse)
def update_user_password(
    user_id: str,
    body: AdminPasswordUpdate,
    _admin: Annotated[User, Depends(require_permission("update user"))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Set a user's password and sign them out everywhere."""
    user = _get_user_or_404(UserRepository(db), user_id)
    with transaction(db):
        user.password = body.password
        revoke_all_tokens(db, user)
    return MessageResponse(message="Password has been updated.")


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    admin: Annotated[User, Depends(require_permission("delete user"))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    repo = UserRepository(db)
    user = _get_user_or_404(repo, user_id)
    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"field": "id", "message": "You cannot delete your own account."}],
        )
    with transaction(db):
        repo.delete(user)
    return MessageResponse(message=f"User {user.name} has been deleted.")


@router.put("/{user_id}/permission/{permission_id}", response_model=ToggleResponse)
def toggle_user_permission(
    user_id: str,
    permission_id: str,
    _admin: Annotated[User, Depends(require_permission("update user"))],
    db: Annotated[Session, Depends(get_db)],
) -> ToggleResponse:
    """Grant the permission directly, or revoke the direct grant if present."""
    user = _get_user_or_404(UserRepository(db), user_id)
    permission = get_or_404(db, Permission, permission_id, "Permission")
    with transaction(db):
        attached = toggle_membership(user.permissions, permission)
    verb = "granted to" if attached else "revoked from"
    return ToggleResponse(
        message=f"Permission {permission.title} {verb} user {user.name}.", attached=attached
    )


@router.put("/{user_id}/role/{role_id}", response_model=ToggleResponse)
def toggle_user_role(
    user_id: str,
    role_id: str,
    _admin: Annotated[User, Depends(require_permission("update user"))],
    db: Annotated[Session, Depends(get_db)],
) -> ToggleResponse:
    """Add the user to the role, or remove them if already a member."""
    user = _get_user_or_404(UserRepository(db), user_id)
    role = get_or_404(db, Role, role_id, "Role")
    with transaction(db):
        attached = toggle_membership(user.roles, role)
    verb = "assigned to" if attached else "removed from"
    return ToggleResponse(message=f"Role {role.title} {verb} user {user.name}.", attached=attached)
