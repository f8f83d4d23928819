"""Superuser administration routes (permissions, roles, users)."""

from fastapi import APIRouter

from app.api.v1.superuser import permissions, roles, users

router = APIRouter()
router.include_router(permissions.router, prefix="/permission", tags=["superuser"])
router.include_router(roles.router, prefix="/role", tags=["superuser"])
router.include_router(users.router, prefix="/user", tags=["superuser"])
