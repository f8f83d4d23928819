"""
Route guards: CSRF enforcement for mutating requests and RBAC checks.

csrf_protect is attached to the whole v1 router, so it runs before any
handler. The RBAC guards authenticate first (401) and then check the
user's permissions/roles (403).
"""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import client_ip
from app.api.v1.auth import get_current_user
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.tokens import TokenCodec, get_token_codec
from app.models import User
from app.services.csrf import CSRF_HEADER, CSRF_PROTECTED_METHODS, validate_csrf_token

logger = logging.getLogger(__name__)

# Starlette only knows registered status phrases; 419 has none.
HTTP_419_PAGE_EXPIRED = 419


def _relative_path(path: str, prefix: str) -> str:
    if prefix and path.startswith(prefix):
        path = path[len(prefix):]
    return "/" + path.strip("/")


def csrf_protect(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> None:
    """Dependency: consume a valid X-CSRF-Token on POST/PUT/PATCH/DELETE or abort with 419."""
    if not settings.CSRF_ENABLED or request.method.upper() not in CSRF_PROTECTED_METHODS:
        return
    if _relative_path(request.url.path, settings.API_V1_PREFIX) in settings.CSRF_EXEMPT_PATHS:
        return
    ip = client_ip(request)
    if not validate_csrf_token(db, request.headers.get(CSRF_HEADER), ip, codec):
        logger.warning("CSRF rejected: %s %s ip=%s", request.method, request.url.path, ip)
        raise HTTPException(
            status_code=HTTP_419_PAGE_EXPIRED,
            detail="Page expired. Request a new CSRF token and try again.",
        )


def _guard(check: Callable[[User, list[str]], bool], keys: tuple[str, ...]) -> Callable[..., User]:
    wanted = list(keys)

    def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if not check(user, wanted):
            logger.warning("Access denied: user id=%s guard=%s", user.id, wanted)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action.",
            )
        return user

    return dependency


def require_permission(*keys: str) -> Callable[..., User]:
    """Guard: the user holds ANY of the permission keys (directly or via a role)."""
    return _guard(User.has_permission, keys)


def require_role(*keys: str) -> Callable[..., User]:
    """Guard: the user holds ANY of the role keys."""
    return _guard(User.has_role, keys)


def require_ability(*keys: str) -> Callable[..., User]:
    """Guard: the keys may be permissions or roles; ANY match passes."""
    return _guard(User.can, keys)
