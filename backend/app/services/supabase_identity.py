"""
Supabase Auth (GoTrue) identity provider.

Talks to the REST API directly:
  POST /auth/v1/signup
  POST /auth/v1/token?grant_type=password
  POST /auth/v1/token?grant_type=refresh_token
  GET  /auth/v1/user
"""

from typing import Optional

import httpx

from app.core.logging import get_logger
from app.infrastructure.supabase_client import error_message
from app.services.interfaces.identity import AuthIdentity, AuthSession, IdentityError, IdentityProvider

logger = get_logger(__name__)


class SupabaseIdentityProvider(IdentityProvider):

    def __init__(self, client: httpx.AsyncClient, anon_key: str):
        self.client = client
        self.anon_key = anon_key

    def _headers(self, access_token: Optional[str] = None) -> dict:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
        }

    @staticmethod
    def _identity(user: dict) -> AuthIdentity:
        return AuthIdentity(id=str(user["id"]), email=user.get("email"))

    def _session(self, body: dict) -> AuthSession:
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body["refresh_token"],
            user=self._identity(body["user"]),
        )

    async def sign_up(self, email: str, password: str) -> AuthIdentity:
        response = await self.client.post(
            "/auth/v1/signup",
            json={"email": email, "password": password},
            headers=self._headers(),
        )
        if response.is_error:
            raise IdentityError(error_message(response))
        body = response.json()
        # With email confirmation on, the user object is returned bare
        user = body.get("user") or body
        if not user.get("id"):
            raise IdentityError("Sign-up returned no user")
        return self._identity(user)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = await self.client.post(
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._headers(),
        )
        if response.is_error:
            raise IdentityError(error_message(response))
        return self._session(response.json())

    async def get_user(self, access_token: str) -> Optional[AuthIdentity]:
        response = await self.client.get("/auth/v1/user", headers=self._headers(access_token))
        if response.is_error:
            if response.status_code >= 500:
                logger.warning("identity_lookup_failed", status_code=response.status_code)
            return None
        return self._identity(response.json())

    async def set_session(self, access_token: Optional[str], refresh_token: str) -> Optional[AuthSession]:
        if access_token:
            user = await self.get_user(access_token)
            if user is not None:
                return AuthSession(access_token=access_token, refresh_token=refresh_token, user=user)

        response = await self.client.post(
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
            headers=self._headers(),
        )
        if response.is_error:
            logger.info("session_refresh_rejected", status_code=response.status_code)
            return None
        return self._session(response.json())
