"""Superuser CRUD for roles and their permission sets."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_or_404
from app.api.v1.guards import require_permission
from app.core.database import get_db, transaction
from app.models import SUPERUSER_ROLE_KEY, Permission, Role, User
from app.models.permission import normalize_key
from app.schemas.auth import MessageResponse
from app.schemas.mappers import role_to_out
from app.schemas.rbac import RoleIn, RoleOut, RoleResponse, ToggleResponse
from app.services.users import toggle_membership

router = APIRouter()


def _key_taken(db: Session, key: str, exclude_id: str | None = None) -> bool:
    q = db.query(Role.id).filter(Role.key == normalize_key(key))
    if exclude_id is not None:
        q = q.filter(Role.id != exclude_id)
    return q.first() is not None


def _key_error(key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[{"field": "key", "message": f"Role key '{normalize_key(key)}' already exists."}],
    )


def _protect_superuser(role: Role) -> None:
    if role.key == SUPERUSER_ROLE_KEY:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"field": "key", "message": "The superuser role cannot be changed."}],
        )


@router.get("", response_model=list[RoleOut])
def list_roles(
    _user: Annotated[User, Depends(require_permission("read role"))],
    db: Annotated[Session, Depends(get_db)],
) -> list[RoleOut]:
    return [role_to_out(r) for r in db.query(Role).order_by(Role.key).all()]


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    body: RoleIn,
    _user: Annotated[User, Depends(require_permission("create role"))],
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    if _key_taken(db, body.key):
        raise _key_error(body.key)
    with transaction(db):
        role = Role(key=body.key, name=body.name)
        db.add(role)
    return RoleResponse(message=f"Role {role.title} has been created.", role=role_to_out(role))


@router.put("/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: str,
    body: RoleIn,
    _user: Annotated[User, Depends(require_permission("update role"))],
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    role = get_or_404(db, Role, role_id, "Role")
    if normalize_key(body.key) != role.key:
        _protect_superuser(role)
    if _key_taken(db, body.key, exclude_id=role.id):
        raise _key_error(body.key)
    with transaction(db):
        role.key = body.key
        if body.name is not None:
            role.name = body.name
    return RoleResponse(message=f"Role {role.title} has been updated.", role=role_to_out(role))


@router.delete("/{role_id}", response_model=MessageResponse)
def delete_role(
    role_id: str,
    _user: Annotated[User, Depends(require_permission("delete role"))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    role = get_or_404(db, Role, role_id, "Role")
    _protect_superuser(role)
    title = role.title
    with transaction(db):
        db.delete(role)
    return MessageResponse(message=f"Role {title} has been deleted.")


@router.put("/{role_id}/toggle-permission/{permission_id}", response_model=ToggleResponse)
def toggle_role_permission(
    role_id: str,
    permission_id: str,
    _user: Annotated[User, Depends(require_permission("update role"))],
    db: Annotated[Session, Depends(get_db)],
) -> ToggleResponse:
    """Attach the permission to the role, or detach it if already attached."""
    role = get_or_404(db, Role, role_id, "Role")
    permission = get_or_404(db, Permission, permission_id, "Permission")
    _protect_superuser(role)
    with transaction(db):
        attached = toggle_membership(role.permissions, permission)
    verb = "attached to" if attached else "detached from"
    return ToggleResponse(
        message=f"Permission {permission.title} {verb} role {role.title}.",
        attached=attached,
    )
