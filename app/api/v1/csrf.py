"""CSRF token issuance endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.api.deps import client_ip
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.tokens import TokenCodec, get_token_codec
from app.schemas.csrf import CsrfTokenResponse
from app.services.csrf import generate_csrf_token

router = APIRouter()


@router.post("", response_model=CsrfTokenResponse, status_code=status.HTTP_201_CREATED)
def post_csrf(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> CsrfTokenResponse:
    """
    Issue a single-use CSRF token for the caller's IP. Any earlier unused token
    for the same IP stops validating.
    """
    token = generate_csrf_token(db, client_ip(request), codec, settings.CSRF_TOKEN_TTL_SECONDS)
    return CsrfTokenResponse(token=token)
