"""
Provider factory.
Configures which identity provider and object storage backend to use.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.infrastructure.supabase_client import get_supabase_http
from app.services.interfaces.identity import IdentityProvider
from app.services.interfaces.local_identity import LocalIdentityProvider
from app.services.interfaces.local_storage import LocalObjectStorage
from app.services.interfaces.storage import ObjectStorage
from app.services.supabase_identity import SupabaseIdentityProvider
from app.services.supabase_storage import SupabaseObjectStorage

settings = get_settings()


def build_identity_provider(db: AsyncSession) -> IdentityProvider:
    """
    Identity provider for one request.

    Selected by IDENTITY_PROVIDER:
    - local: credentials in our database (bound to the request session)
    - supabase: Supabase Auth
    """
    if settings.IDENTITY_PROVIDER == "supabase":
        return SupabaseIdentityProvider(get_supabase_http(), settings.SUPABASE_ANON_KEY)
    return LocalIdentityProvider(db)


def build_object_storage() -> ObjectStorage:
    """Object storage selected by STORAGE_BACKEND (local | supabase)."""
    if settings.STORAGE_BACKEND == "supabase":
        return SupabaseObjectStorage(
            get_supabase_http(),
            settings.SUPABASE_SERVICE_ROLE_KEY,
            settings.STORAGE_BUCKET,
            settings.SUPABASE_URL,
        )
    return LocalObjectStorage(settings.MEDIA_ROOT, settings.STORAGE_BUCKET, settings.PUBLIC_BASE_URL)


# Singleton instance
_storage: Optional[ObjectStorage] = None


def get_storage() -> ObjectStorage:
    """Get object storage singleton."""
    global _storage
    if _storage is None:
        _storage = build_object_storage()
    return _storage
