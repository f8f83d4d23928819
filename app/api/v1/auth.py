"""Login/logout endpoints and bearer authentication dependencies."""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.api.deps import get_events
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.models import User
from app.schemas.auth import LoginRequest, LoginResponse, MessageResponse
from app.schemas.mappers import user_to_out
from app.services.auth import (
    EmailNotVerifiedError,
    InvalidCredentialsError,
    login,
    resolve_access_token,
    revoke_access_token,
)
from app.services.events import EventDispatcher

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Authenticated principal plus the token record that authenticated it."""

    user: User
    token_id: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthContext:
    """Dependency: require a valid, unrevoked Bearer token. Raises 401 if missing or invalid."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    resolved = resolve_access_token(db, credentials.credentials, settings)
    if resolved is None:
        raise _unauthorized("Invalid or expired token")
    user, record = resolved
    return AuthContext(user=user, token_id=record.id)


def get_current_user(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
) -> User:
    """Dependency: the authenticated user."""
    return auth.user


@router.post("/login", response_model=LoginResponse)
def post_login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    events: Annotated[EventDispatcher, Depends(get_events)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns a bearer token valid for
    ACCESS_TOKEN_EXPIRE_MINUTES. Send it as: Authorization: Bearer <token>
    """
    try:
        issued = login(db, body.username, body.password, settings)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"field": "password", "message": "Invalid username or password."}],
        )
    except EmailNotVerifiedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email address has not been verified.",
        )
    events.emit("user:login", user_id=issued.user.id)
    return LoginResponse(
        message="Authenticated.",
        type=issued.type,
        token=issued.token,
        expires_at=issued.expires_at,
        expires_in=issued.expires_in,
        user=user_to_out(issued.user),
    )


@router.delete("/logout", response_model=MessageResponse)
def delete_logout(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[Session, Depends(get_db)],
    events: Annotated[EventDispatcher, Depends(get_events)],
) -> MessageResponse:
    """Revoke the presented bearer token."""
    revoke_access_token(db, auth.token_id)
    db.commit()
    logger.info("Logout: user id=%s", auth.user.id)
    events.emit("user:logout", user_id=auth.user.id)
    return MessageResponse(message="Logged out.")
