"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .identity import AuthIdentity, AuthSession, IdentityError, IdentityProvider
from .storage import ObjectAlreadyExists, ObjectStorage, StorageError, StoredObject
from .local_identity import LocalIdentityProvider
from .local_storage import LocalObjectStorage

__all__ = [
    'AuthIdentity', 'AuthSession', 'IdentityError', 'IdentityProvider',
    'ObjectAlreadyExists', 'ObjectStorage', 'StorageError', 'StoredObject',
    'LocalIdentityProvider', 'LocalObjectStorage',
]
