"""Request/response schemas for login, registration, verification and password reset."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.core.security import PASSWORD_MAX_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN
from app.schemas.user import ConfirmedPassword, UserOut


class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class LoginResponse(BaseModel):
    """Bearer token returned after successful login."""

    message: str
    type: str = Field(default="bearer", description="Token type")
    token: str = Field(..., description="Bearer token for the Authorization header")
    expires_at: datetime
    expires_in: int = Field(..., description="Seconds until the token expires")
    user: UserOut


class RegisterRequest(ConfirmedPassword):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    next: str | None = Field(default=None, max_length=2048, description="Base URL for the verification link")


class RegisterResponse(BaseModel):
    message: str
    user: UserOut


class ForgotPasswordRequest(BaseModel):
    email: EmailStr
    next: str | None = Field(default=None, max_length=2048, description="Base URL for the reset link")


class ResetPasswordRequest(ConfirmedPassword):
    token: str = Field(..., min_length=1)
