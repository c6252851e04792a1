"""
Repository Layer Package.

Provides data-access abstractions over the Supabase identity/data store.
All store operations flow through repositories; services never touch
``db.supabase`` directly.
"""

from internhub.repositories.base_repository import BaseRepository
from internhub.repositories.identity_store import (
    IdentityStore,
    IdentityStoreError,
    SupabaseIdentityStore,
)
from internhub.repositories.profile_repository import ProfileRepository, ProfileStore

__all__ = [
    "BaseRepository",
    "IdentityStore",
    "IdentityStoreError",
    "ProfileRepository",
    "ProfileStore",
    "SupabaseIdentityStore",
]
