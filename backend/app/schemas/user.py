"""
Pydantic schemas for registration, login and session responses.
"""

from typing import Optional
from pydantic import BaseModel

from app.schemas.sanitize import CleanEmail, NameStr, PasswordStr


class RegisterInput(BaseModel):
    name: NameStr
    email: CleanEmail
    password: PasswordStr


class LoginInput(BaseModel):
    email: CleanEmail
    password: PasswordStr


class OkResponse(BaseModel):
    ok: bool = True


class AuthUserOut(BaseModel):
    id: str


class MeResponse(BaseModel):
    user: Optional[AuthUserOut] = None
