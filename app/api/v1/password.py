"""Forgot-password endpoints: request a reset link, then redeem it."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_events, get_mailer
from app.api.v1.guards import HTTP_419_PAGE_EXPIRED
from app.core.config import Settings, get_settings
from app.core.database import get_db, transaction
from app.core.tokens import TokenCodec, get_token_codec
from app.schemas.auth import ForgotPasswordRequest, MessageResponse, ResetPasswordRequest
from app.services.events import EventDispatcher
from app.services.mail import Mailer
from app.services.users import UserRepository
from app.services.verification import (
    InvalidTokenError,
    TokenExpiredError,
    UserNotFoundError,
    reset_password,
    send_password_reset_email,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def post_forgot_password(
    body: ForgotPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> MessageResponse:
    """
    Email a password reset link. The response is identical whether or not the
    address belongs to an account.
    """
    user = UserRepository(db).by_email(body.email)
    if user is not None:
        send_password_reset_email(user, codec, mailer, settings, body.next)
    else:
        logger.info("Password reset requested for unknown email")
    return MessageResponse(
        message="If the address belongs to an account, a reset link has been sent to it."
    )


@router.put("", response_model=MessageResponse)
def put_forgot_password(
    body: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    events: Annotated[EventDispatcher, Depends(get_events)],
) -> MessageResponse:
    """Redeem a reset token and set the new password. All existing sessions are revoked."""
    try:
        with transaction(db):
            user = reset_password(db, body.token, body.password, codec)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token.")
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    except TokenExpiredError:
        raise HTTPException(
            status_code=HTTP_419_PAGE_EXPIRED,
            detail="Reset link expired. Request a new one.",
        )
    logger.info("Password reset: user id=%s", user.id)
    events.emit("user:password-reset", user_id=user.id)
    return MessageResponse(message="Password has been reset.")
