"""Superuser CRUD for permissions. Every new permission is granted to the superuser role."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_or_404
from app.api.v1.guards import require_permission
from app.core.database import get_db, transaction
from app.models import Permission, User
from app.models.permission import normalize_key
from app.schemas.auth import MessageResponse
from app.schemas.mappers import permission_to_out
from app.schemas.rbac import (
    PermissionIn,
    PermissionOut,
    PermissionResponse,
    PermissionsIn,
    PermissionsResponse,
)

router = APIRouter()


def _key_taken(db: Session, key: str, exclude_id: str | None = None) -> bool:
    q = db.query(Permission.id).filter(Permission.key == normalize_key(key))
    if exclude_id is not None:
        q = q.filter(Permission.id != exclude_id)
    return q.first() is not None


def _key_error(key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[{"field": "key", "message": f"Permission key '{normalize_key(key)}' already exists."}],
    )


@router.get("", response_model=list[PermissionOut])
def list_permissions(
    _user: Annotated[User, Depends(require_permission("read permission"))],
    db: Annotated[Session, Depends(get_db)],
) -> list[PermissionOut]:
    return [permission_to_out(p) for p in db.query(Permission).order_by(Permission.key).all()]


@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
def create_permission(
    body: PermissionIn,
    _user: Annotated[User, Depends(require_permission("create permission"))],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionResponse:
    if _key_taken(db, body.key):
        raise _key_error(body.key)
    with transaction(db):
        permission = Permission(key=body.key, name=body.name)
        db.add(permission)
    return PermissionResponse(
        message=f"Permission {permission.title} has been created.",
        permission=permission_to_out(permission),
    )


@router.post("/multiple", response_model=PermissionsResponse, status_code=status.HTTP_201_CREATED)
def create_permissions(
    body: PermissionsIn,
    _user: Annotated[User, Depends(require_permission("create permission"))],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionsResponse:
    """Create several permissions in one transaction; any duplicate rejects the batch."""
    seen: set[str] = set()
    for item in body.permissions:
        key = normalize_key(item.key)
        if key in seen or _key_taken(db, key):
            raise _key_error(key)
        seen.add(key)
    with transaction(db):
        created = [Permission(key=item.key, name=item.name) for item in body.permissions]
        db.add_all(created)
    return PermissionsResponse(
        message=f"{len(created)} permission(s) have been created.",
        permissions=[permission_to_out(p) for p in created],
    )


@router.put("/{permission_id}", response_model=PermissionResponse)
def update_permission(
    permission_id: str,
    body: PermissionIn,
    _user: Annotated[User, Depends(require_permission("update permission"))],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionResponse:
    permission = get_or_404(db, Permission, permission_id, "Permission")
    if _key_taken(db, body.key, exclude_id=permission.id):
        raise _key_error(body.key)
    with transaction(db):
        permission.key = body.key
        if body.name is not None:
            permission.name = body.name
    return PermissionResponse(
        message=f"Permission {permission.title} has been updated.",
        permission=permission_to_out(permission),
    )


@router.delete("/{permission_id}", response_model=MessageResponse)
def delete_permission(
    permission_id: str,
    _user: Annotated[User, Depends(require_permission("delete permission"))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    permission = get_or_404(db, Permission, permission_id, "Permission")
    title = permission.title
    with transaction(db):
        db.delete(permission)
    return MessageResponse(message=f"Permission {title} has been deleted.")
