"""
Authentication service: registration, login and mapping provider identities
to local user rows.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import UpstreamError
from app.core.logging import get_logger
from app.models.user import User
from app.schemas.user import LoginInput, RegisterInput
from app.services.interfaces.identity import AuthIdentity, AuthSession, IdentityError, IdentityProvider

logger = get_logger(__name__)


async def register_user(db: AsyncSession, identity: IdentityProvider, data: RegisterInput) -> User:
    """
    Create the provider account, then the local mirror row.

    If the mirror insert fails the provider account is left in place; there
    is no compensating deletion.
    """
    try:
        account = await identity.sign_up(data.email, data.password)
    except IdentityError as e:
        logger.warning("registration_failed", reason="provider", email=data.email, error=str(e))
        raise UpstreamError(str(e))

    user = User(
        auth_user_id=account.id,
        name=data.name,
        email=data.email,
        is_admin=False,
    )
    try:
        async with db.begin_nested():
            db.add(user)
    except SQLAlchemyError as e:
        logger.error(
            "registration_mirror_failed",
            auth_user_id=account.id,
            email=data.email,
            error=str(e),
        )
        raise UpstreamError("Could not create user profile")

    logger.info("user_registered", user_id=str(user.id), auth_user_id=account.id)
    return user


async def login_user(identity: IdentityProvider, data: LoginInput) -> AuthSession:
    try:
        session = await identity.sign_in_with_password(data.email, data.password)
    except IdentityError as e:
        logger.warning("login_failed", email=data.email)
        raise UpstreamError(str(e))

    logger.info("user_logged_in", auth_user_id=session.user.id)
    return session


async def current_user_id(db: AsyncSession, auth_user: AuthIdentity) -> UUID:
    """Local `users.id` for a provider identity."""
    result = await db.execute(select(User.id).where(User.auth_user_id == auth_user.id))
    user_id = result.scalar_one_or_none()
    if user_id is None:
        logger.error("user_mapping_missing", auth_user_id=auth_user.id)
        raise UpstreamError("User mapping missing", status_code=500)
    return user_id
