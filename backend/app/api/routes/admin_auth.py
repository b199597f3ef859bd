from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Depends, Response

from app.core.auth import (
    clear_auth_cookie,
    create_admin_token,
    require_admin,
    set_auth_cookie,
    token_lifetime,
    verify_password,
)
from app.core.config import settings
from app.core.errors import AuthError, ServerConfigError, ValidationError
from app.schemas.admin import AdminContext, LoginData, LoginIn, LoginOut, MeOut

logger = logging.getLogger("svr.auth")

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/login", response_model=LoginOut, response_model_exclude_none=True)
async def login(payload: LoginIn, response: Response):
    username = (payload.username or "").strip()
    password = payload.password or ""
    if not username or not password:
        raise ValidationError(message="username and password required")

    if not settings.jwt_secret:
        raise ServerConfigError("JWT_SECRET missing")
    if not settings.admin_password_hash:
        raise ServerConfigError("ADMIN_PASSWORD_HASH missing")

    # bcrypt runs even when the username is wrong.
    password_ok = await anyio.to_thread.run_sync(verify_password, password, settings.admin_password_hash)
    if username != settings.admin_username or not password_ok:
        logger.info("admin_login_failed", extra={"username": username})
        raise AuthError("Invalid credentials")

    lifetime = token_lifetime(payload.remember)
    token = create_admin_token(username, lifetime=lifetime)
    delivery = settings.auth_token_delivery
    if delivery in ("cookie", "both"):
        set_auth_cookie(response, token, lifetime)

    logger.info("admin_login", extra={"username": username, "delivery": delivery})
    return LoginOut(
        data=LoginData(
            username=username,
            token=token if delivery in ("body", "both") else None,
            expires_in=int(lifetime.total_seconds()),
        )
    )


@router.post("/logout")
async def logout(response: Response):
    clear_auth_cookie(response)
    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=MeOut)
async def me(admin: AdminContext = Depends(require_admin())):
    return MeOut(data=admin)
