"""
Identity provider interface.
Account creation, credential checks and session tokens are delegated to a
provider so the application never handles them itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AuthIdentity:
    """A user as known to the identity provider."""

    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: str
    user: AuthIdentity


class IdentityError(Exception):
    """Provider rejected the request (bad credentials, existing account, ...)."""


class IdentityProvider(ABC):
    """
    Interface for identity providers.

    Implementations:
    - LocalIdentityProvider: credentials in our own database, self-issued JWTs
    - SupabaseIdentityProvider: Supabase Auth (GoTrue) over HTTP
    """

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthIdentity:
        """
        Create an account.

        Raises:
            IdentityError: if the provider refuses the account
        """

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """
        Check credentials and open a session.

        Raises:
            IdentityError: on invalid credentials
        """

    @abstractmethod
    async def get_user(self, access_token: str) -> Optional[AuthIdentity]:
        """Resolve an access token, or None if it is invalid or expired."""

    @abstractmethod
    async def set_session(self, access_token: Optional[str], refresh_token: str) -> Optional[AuthSession]:
        """
        Restore a session from its tokens, refreshing it when the access
        token no longer resolves. Returns None if the refresh token is rejected.
        """
