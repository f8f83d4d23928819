"""Registration and email verification endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_events, get_mailer
from app.api.v1.guards import HTTP_419_PAGE_EXPIRED
from app.core.config import Settings, get_settings
from app.core.database import get_db, transaction
from app.core.tokens import TokenCodec, get_token_codec
from app.models import User
from app.schemas.auth import MessageResponse, RegisterRequest, RegisterResponse
from app.schemas.mappers import user_to_out
from app.services.events import EventDispatcher
from app.services.mail import Mailer
from app.services.users import UserRepository
from app.services.verification import (
    InvalidTokenError,
    TokenExpiredError,
    UserNotFoundError,
    send_verification_email,
    verify_email,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def post_register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
    events: Annotated[EventDispatcher, Depends(get_events)],
) -> RegisterResponse:
    """Create an unverified account and email a verification link."""
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
            )
        )
    send_verification_email(user, codec, mailer, settings, body.next)

    logger.info("User registered: id=%s", user.id)
    events.emit("user:registered", user_id=user.id)
    return RegisterResponse(
        message=f"A verification link has been sent to {user.email}.",
        user=user_to_out(user),
    )


@router.get("/verify", response_model=MessageResponse)
def get_verify(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
    events: Annotated[EventDispatcher, Depends(get_events)],
    token: Annotated[str | None, Query(max_length=4096)] = None,
) -> MessageResponse:
    """
    Redeem an email verification token. An expired token responds 419 and a
    fresh verification email is sent automatically.
    """
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing token.")
    try:
        with transaction(db):
            user = verify_email(db, token, codec, mailer, settings)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token.")
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    except TokenExpiredError:
        raise HTTPException(
            status_code=HTTP_419_PAGE_EXPIRED,
            detail="Verification link expired. A new link has been sent to your email.",
        )
    events.emit("user:verified", user_id=user.id)
    return MessageResponse(message="Email address verified.")
