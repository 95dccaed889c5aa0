"""
Authentication endpoints: register, login, me and logout.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    clear_session_cookies,
    get_auth_user,
    get_identity_provider,
    set_session_cookies,
)
from app.db.session import get_db
from app.schemas.user import AuthUserOut, LoginInput, MeResponse, OkResponse, RegisterInput
from app.services.auth_service import login_user, register_user
from app.services.interfaces.identity import AuthIdentity, IdentityProvider

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterInput,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """Create an account with the identity provider and its local user row."""
    await register_user(db, identity, data)
    return OkResponse()


@router.post("/login", response_model=OkResponse)
async def login(
    data: LoginInput,
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """Check credentials and set the access/refresh session cookies."""
    session = await login_user(identity, data)
    set_session_cookies(response, session)
    return OkResponse()


@router.get("/me", response_model=MeResponse)
async def me(auth_user: Optional[AuthIdentity] = Depends(get_auth_user)):
    """The authenticated identity, or null."""
    return MeResponse(user=AuthUserOut(id=auth_user.id) if auth_user else None)


@router.post("/logout", response_model=OkResponse)
async def logout(response: Response):
    """Clear the session cookies. Tokens are not revoked with the provider."""
    clear_session_cookies(response)
    return OkResponse()
