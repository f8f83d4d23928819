"""Schemas for superuser administration of permissions, roles and users."""

from pydantic import BaseModel, EmailStr, Field

from app.core.security import USERNAME_MAX_LEN, USERNAME_MIN_LEN
from app.schemas.user import ConfirmedPassword, UserOut

KEY_MAX_LENGTH = 255


class PermissionOut(BaseModel):
    id: str
    key: str
    title: str


class PermissionIn(BaseModel):
    key: str = Field(..., min_length=1, max_length=KEY_MAX_LENGTH)
    name: str | None = Field(default=None, max_length=255)


class PermissionsIn(BaseModel):
    permissions: list[PermissionIn] = Field(..., min_length=1, max_length=100)


class PermissionResponse(BaseModel):
    message: str
    permission: PermissionOut


class PermissionsResponse(BaseModel):
    message: str
    permissions: list[PermissionOut]


class RoleOut(BaseModel):
    id: str
    key: str
    title: str
    permissions: list[PermissionOut]


class RoleIn(BaseModel):
    key: str = Field(..., min_length=1, max_length=KEY_MAX_LENGTH)
    name: str | None = Field(default=None, max_length=255)


class RoleResponse(BaseModel):
    message: str
    role: RoleOut


class ToggleResponse(BaseModel):
    message: str
    attached: bool


class RoleSummaryOut(BaseModel):
    id: str
    key: str
    title: str


class AdminUserOut(UserOut):
    roles: list[RoleSummaryOut]
    permissions: list[PermissionOut]


class AdminUserCreate(ConfirmedPassword):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    verified: bool = Field(default=False, description="Mark the email as verified on creation")
    roles: list[str] | None = Field(default=None, description="Role ids")
    permissions: list[str] | None = Field(default=None, description="Permission ids")


class AdminUserUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    roles: list[str] | None = None
    permissions: list[str] | None = None


class AdminPasswordUpdate(ConfirmedPassword):
    pass


class AdminUserResponse(BaseModel):
    message: str
    user: AdminUserOut
