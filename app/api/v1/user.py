"""Current-user endpoints: profile, permission checks, profile and password updates."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import get_events, get_mailer
from app.api.v1.auth import AuthContext, get_auth_context, get_current_user
from app.core.config import Settings, get_settings
from app.core.database import get_db, transaction
from app.core.security import verify_password
from app.core.tokens import TokenCodec, get_token_codec
from app.models import Permission, Role, User
from app.models.permission import as_key_list
from app.schemas.auth import MessageResponse
from app.schemas.mappers import user_to_profile
from app.schemas.user import (
    AbilityCheckRequest,
    CheckResponse,
    PermissionCheckRequest,
    RoleCheckRequest,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UserProfileOut,
)
from app.services.auth import revoke_all_tokens
from app.services.events import EventDispatcher
from app.services.mail import Mailer
from app.services.users import UserRepository
from app.services.verification import send_verification_email

logger = logging.getLogger(__name__)
router = APIRouter()
profile_router = APIRouter()

CHECK_RESPONSES = {401: {"model": CheckResponse, "description": "Not granted or not authenticated"}}


def _check_response(granted: bool) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK if granted else status.HTTP_401_UNAUTHORIZED,
        content=CheckResponse(granted=granted).model_dump(),
    )


def _require_known_keys(db: Session, model: type[Permission] | type[Role], keys: list[str], field: str) -> None:
    wanted = set(as_key_list(keys))
    known = {k for (k,) in db.query(model.key).filter(model.key.in_(wanted))} if wanted else set()
    unknown = sorted(wanted - known)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"field": field, "message": f"Unknown key(s): {', '.join(unknown)}"}],
        )


@router.get("", response_model=UserProfileOut)
def get_user(user: Annotated[User, Depends(get_current_user)]) -> UserProfileOut:
    """Current user with direct permissions and roles."""
    return user_to_profile(user)


@router.post("/has-permission", response_model=CheckResponse, responses=CHECK_RESPONSES)
def post_has_permission(
    body: PermissionCheckRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> JSONResponse:
    """200 if the user holds ANY of the permissions, else 401."""
    _require_known_keys(db, Permission, body.permissions, "permissions")
    return _check_response(user.has_permission(body.permissions))


@router.post("/has-role", response_model=CheckResponse, responses=CHECK_RESPONSES)
def post_has_role(
    body: RoleCheckRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> JSONResponse:
    """200 if the user holds ANY of the roles, else 401."""
    _require_known_keys(db, Role, body.roles, "roles")
    return _check_response(user.has_role(body.roles))


@router.post("/can", response_model=CheckResponse, responses=CHECK_RESPONSES)
def post_can(
    body: AbilityCheckRequest,
    user: Annotated[User, Depends(get_current_user)],
) -> JSONResponse:
    """200 if ANY ability matches a permission or role of the user, else 401."""
    return _check_response(user.can(body.abilities))


@profile_router.put("", response_model=MessageResponse)
def put_profile(
    body: UpdateProfileRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
    events: Annotated[EventDispatcher, Depends(get_events)],
) -> MessageResponse:
    """
    Update name, username and email. Changing the email clears the verified
    flag and sends a verification link to the new address.
    """
    repo = UserRepository(db)
    errors = repo.unique_field_errors(body.username, body.email, exclude_id=user.id)
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)

    email_changed = body.email.strip().lower() != user.email
    with transaction(db):
        user.name = body.name.strip()
        user.username = body.username
        user.email = body.email
        if email_changed:
            user.email_verified_at = None
    if email_changed:
        send_verification_email(user, codec, mailer, settings, body.next)

    events.emit("auth:profile-updated", user_id=user.id, email_changed=email_changed)
    return MessageResponse(message=f"User {user.name} has been updated.")


@profile_router.patch("", response_model=MessageResponse)
def patch_password(
    body: UpdatePasswordRequest,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[Session, Depends(get_db)],
    events: Annotated[EventDispatcher, Depends(get_events)],
) -> MessageResponse:
    """Change password after confirming the old one. Other sessions are revoked."""
    user = auth.user
    if not verify_password(body.old_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"field": "old_password", "message": "Wrong password."}],
        )
    with transaction(db):
        user.password = body.password
        revoked = revoke_all_tokens(db, user, keep=auth.token_id)

    logger.info("Password updated: user id=%s, other sessions revoked=%s", user.id, revoked)
    events.emit("auth:password-updated", user_id=user.id)
    return MessageResponse(message=f"User {user.name} has been updated.")
