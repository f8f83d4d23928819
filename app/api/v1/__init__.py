"""API v1 routes. Every route passes the CSRF guard before its handler."""

from fastapi import APIRouter, Depends

from app.api.v1 import auth, csrf, guards, health, password, register, superuser, user

router = APIRouter(dependencies=[Depends(guards.csrf_protect)])
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(csrf.router, prefix="/csrf", tags=["csrf"])
router.include_router(auth.router, tags=["auth"])
router.include_router(register.router, tags=["auth"])
router.include_router(password.router, prefix="/forgot-password", tags=["auth"])
router.include_router(user.router, prefix="/user", tags=["user"])
router.include_router(user.profile_router, prefix="/auth/user", tags=["user"])
router.include_router(superuser.router, prefix="/superuser")
