from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import bcrypt
import jwt
from fastapi import Request, Response

from app.core.config import settings
from app.core.errors import AuthError, ForbiddenError, ServerConfigError
from app.core.roles import Role, has_required_role, parse_role
from app.schemas.admin import AdminContext

logger = logging.getLogger("svr.auth")

JWT_ALGORITHM = "HS256"


def _jwt_secret() -> str:
    if not settings.jwt_secret:
        raise ServerConfigError("JWT secret missing")
    return settings.jwt_secret


def token_lifetime(remember: bool | None) -> timedelta:
    # An explicit "don't remember me" gets the short session; everything else the long one.
    if remember is False:
        return timedelta(hours=settings.short_token_ttl_hours)
    return timedelta(days=settings.token_ttl_days)


def create_admin_token(username: str, *, lifetime: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "role": Role.ADMIN.value,
        "username": username,
        "iat": now,
        "exp": now + (lifetime or token_lifetime(None)),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_admin_token(token: str) -> AdminContext:
    secret = _jwt_secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM], options={"require": ["exp"]})
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError as exc:
        logger.info("invalid_token", extra={"error": str(exc)})
        raise AuthError("Invalid token")

    raw_role = payload.get("role")
    if not raw_role:
        raise AuthError("Invalid token")
    role = parse_role(raw_role)
    if role is None:
        raise ForbiddenError("Forbidden")
    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise AuthError("Invalid token")
    return AdminContext(username=username, role=role, exp=payload.get("exp"))


def verify_password(password: str, password_hash: str) -> bool:
    """Slow bcrypt comparison; callers run it off the event loop."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        raise ServerConfigError("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")


def hash_password(password: str, *, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def read_token(request: Request) -> Optional[str]:
    # Header first for programmatic clients, then the browser cookie.
    auth = request.headers.get("authorization") or ""
    prefix = "bearer "
    if auth.lower().startswith(prefix):
        token = auth[len(prefix) :].strip()
        if token:
            return token
    cookie = request.cookies.get(settings.auth_cookie_name)
    if cookie:
        return cookie.strip() or None
    return None


async def get_current_admin(request: Request) -> AdminContext:
    token = read_token(request)
    if not token:
        raise AuthError("Unauthorized")
    context = decode_admin_token(token)
    request.state.admin = context
    return context


def require_roles(required: Iterable[Role]):
    required_roles = list(required)

    async def dependency(request: Request) -> AdminContext:
        context = await get_current_admin(request)
        if not has_required_role([context.role], required_roles):
            raise ForbiddenError("Forbidden")
        return context

    return dependency


def require_admin():
    return require_roles([Role.ADMIN])


def _cookie_attributes() -> dict:
    return {
        "key": settings.auth_cookie_name,
        "path": "/",
        "httponly": True,
        "secure": settings.auth_cookie_secure,
        "samesite": "none" if settings.auth_cookie_secure else "lax",
    }


def set_auth_cookie(response: Response, token: str, lifetime: timedelta) -> None:
    response.set_cookie(value=token, max_age=int(lifetime.total_seconds()), **_cookie_attributes())


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(**_cookie_attributes())
