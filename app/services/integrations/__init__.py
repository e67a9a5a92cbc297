"""
Adapters for the external services the pipeline consumes.

- base.py: narrow interfaces (BlobStore, IdentityProvider)
- local_storage.py: disk-backed blob store (default and upload fallback)
- supabase_service.py: Supabase storage and auth adapters
"""

from .base import BlobStore, IdentityProvider
from .local_storage import LocalBlobStore
from .supabase_service import SupabaseBlobStore, SupabaseIdentityProvider

__all__ = [
    'BlobStore',
    'IdentityProvider',
    'LocalBlobStore',
    'SupabaseBlobStore',
    'SupabaseIdentityProvider',
]
