"""Schemas for users and the current-user endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN


class ConfirmedPassword(BaseModel):
    """Body carrying a new password and its confirmation."""

    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    password_confirmation: str = Field(..., max_length=PASSWORD_MAX_LEN)

    @model_validator(mode="after")
    def passwords_match(self) -> "ConfirmedPassword":
        if self.password != self.password_confirmation:
            raise ValueError("password_confirmation does not match password")
        return self


class KeyOut(BaseModel):
    key: str


class RoleWithPermissionsOut(BaseModel):
    key: str
    permissions: list[KeyOut]


class UserOut(BaseModel):
    """Public user representation. Never includes the password or its hash."""

    id: str
    name: str
    email: str
    username: str
    email_verified_at: datetime | None = None
    profile_photo_path: str | None = None
    created_at: datetime | None = None


class UserProfileOut(UserOut):
    """Current user with direct permissions and roles (with their permissions)."""

    permissions: list[KeyOut]
    roles: list[RoleWithPermissionsOut]


class PermissionCheckRequest(BaseModel):
    permissions: list[str] = Field(..., max_length=100)


class RoleCheckRequest(BaseModel):
    roles: list[str] = Field(..., max_length=100)


class AbilityCheckRequest(BaseModel):
    abilities: list[str] = Field(..., max_length=100)


class CheckResponse(BaseModel):
    granted: bool


class UpdateProfileRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: EmailStr
    next: str | None = Field(default=None, max_length=2048)


class UpdatePasswordRequest(ConfirmedPassword):
    old_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
