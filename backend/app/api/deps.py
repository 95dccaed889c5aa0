"""
Request dependencies: provider/storage handles and the resolved identity.

Every route receives the database session, the identity provider and the
caller's identity as explicit parameters instead of reading them from a
shared request context.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import Unauthorized
from app.db.session import get_db
from app.services.auth_service import current_user_id
from app.services.interfaces.identity import AuthIdentity, AuthSession, IdentityProvider
from app.services.interfaces.storage import ObjectStorage
from app.services.strategy_factory import build_identity_provider, get_storage

settings = get_settings()


def get_identity_provider(db: AsyncSession = Depends(get_db)) -> IdentityProvider:
    return build_identity_provider(db)


def get_object_storage() -> ObjectStorage:
    return get_storage()


def set_session_cookies(response: Response, session: AuthSession) -> None:
    common = {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "path": "/",
    }
    response.set_cookie(
        settings.ACCESS_TOKEN_COOKIE,
        session.access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **common,
    )
    response.set_cookie(
        settings.REFRESH_TOKEN_COOKIE,
        session.refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **common,
    )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(settings.ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(settings.REFRESH_TOKEN_COOKIE, path="/")


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def get_auth_user(
    request: Request,
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Optional[AuthIdentity]:
    """
    Identity of the caller, or None.

    The access token comes from the session cookie, falling back to an
    `Authorization: Bearer` header. If it no longer resolves and a refresh
    cookie is present, the session is refreshed and new cookies are issued.
    """
    access_token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE) or _bearer_token(request)
    refresh_token = request.cookies.get(settings.REFRESH_TOKEN_COOKIE)

    if access_token:
        user = await identity.get_user(access_token)
        if user is not None:
            return user

    if refresh_token:
        session = await identity.set_session(access_token, refresh_token)
        if session is not None:
            set_session_cookies(response, session)
            return session.user

    return None


async def require_auth_user(
    auth_user: Optional[AuthIdentity] = Depends(get_auth_user),
) -> AuthIdentity:
    if auth_user is None:
        raise Unauthorized()
    return auth_user


async def get_current_user_id(
    auth_user: AuthIdentity = Depends(require_auth_user),
    db: AsyncSession = Depends(get_db),
) -> UUID:
    """Local `users.id` of the authenticated caller."""
    return await current_user_id(db, auth_user)
