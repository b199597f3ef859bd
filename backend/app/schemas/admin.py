from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from app.core.roles import Role


class AdminContext(BaseModel):
    username: str
    role: Role
    exp: Optional[int] = None


class LoginIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    remember: Optional[bool] = None


class LoginData(BaseModel):
    username: str
    token: Optional[str] = None
    expires_in: int


class LoginOut(BaseModel):
    success: bool = True
    data: LoginData


class MeOut(BaseModel):
    success: bool = True
    data: AdminContext
