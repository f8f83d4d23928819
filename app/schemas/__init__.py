"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
)
from app.schemas.csrf import CsrfTokenResponse
from app.schemas.health import HealthResponse
from app.schemas.user import (
    CheckResponse,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UserOut,
    UserProfileOut,
)

__all__ = [
    "CheckResponse",
    "CsrfTokenResponse",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RegisterRequest",
    "RegisterResponse",
    "ResetPasswordRequest",
    "UpdatePasswordRequest",
    "UpdateProfileRequest",
    "UserOut",
    "UserProfileOut",
]
