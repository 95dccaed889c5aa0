"""
Local identity provider - credentials in our own database.
Used for development, tests and single-node deployments.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models.auth_identity import AuthIdentity as AuthIdentityRecord
from app.services.interfaces.identity import AuthIdentity, AuthSession, IdentityError, IdentityProvider


class LocalIdentityProvider(IdentityProvider):
    """
    Stores hashed credentials in `auth_identities` and issues HS256 JWTs.

    Shares the request's database session, so an account created here is
    committed or rolled back together with the rest of the request.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find_by_email(self, email: str) -> Optional[AuthIdentityRecord]:
        result = await self.db.execute(
            select(AuthIdentityRecord).where(AuthIdentityRecord.email == email)
        )
        return result.scalar_one_or_none()

    async def _exists(self, identity_id: str) -> bool:
        try:
            key = UUID(identity_id)
        except ValueError:
            return False
        return await self.db.get(AuthIdentityRecord, key) is not None

    def _open_session(self, record_id: str, email: Optional[str] = None) -> AuthSession:
        return AuthSession(
            access_token=create_access_token(record_id),
            refresh_token=create_refresh_token(record_id),
            user=AuthIdentity(id=record_id, email=email),
        )

    async def sign_up(self, email: str, password: str) -> AuthIdentity:
        if await self._find_by_email(email):
            raise IdentityError("User already registered")

        record = AuthIdentityRecord(email=email, hashed_password=hash_password(password))
        try:
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            raise IdentityError("User already registered")
        return AuthIdentity(id=str(record.id), email=record.email)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        record = await self._find_by_email(email)
        if not record or not verify_password(password, record.hashed_password):
            raise IdentityError("Invalid login credentials")
        return self._open_session(str(record.id), record.email)

    async def get_user(self, access_token: str) -> Optional[AuthIdentity]:
        subject = decode_token(access_token, ACCESS_TOKEN_TYPE)
        if subject is None:
            return None
        return AuthIdentity(id=subject)

    async def set_session(self, access_token: Optional[str], refresh_token: str) -> Optional[AuthSession]:
        if access_token:
            user = await self.get_user(access_token)
            if user is not None:
                return AuthSession(access_token=access_token, refresh_token=refresh_token, user=user)

        subject = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
        if subject is None or not await self._exists(subject):
            return None
        return self._open_session(subject)
