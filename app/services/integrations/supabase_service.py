"""
Supabase adapters for blob storage and identity.

The Supabase Python client is synchronous; every call runs in a worker thread
bounded by ``STORAGE_REQUEST_TIMEOUT_SECONDS``.
"""
import asyncio
import logging
from functools import lru_cache
from typing import Any, Callable, Optional, TypeVar

from supabase import Client, create_client

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConfigurationError, StorageError, ValidationError
from app.schemas.records import AuthSession, IdentityUser, StoredBlob
from app.services.integrations.base import BlobStore, IdentityProvider
from app.services.integrations.local_storage import LOCAL_URL_SCHEME, LocalBlobStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@lru_cache
def get_supabase_client() -> Client:
    """Get the service-role Supabase client."""
    if not settings.supabase_configured:
        raise ConfigurationError("SUPABASE_URL / SUPABASE_SERVICE_KEY are not configured")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


async def _call(func: Callable[..., T], *args: Any, timeout: Optional[float] = None) -> T:
    return await asyncio.wait_for(
        asyncio.to_thread(func, *args),
        timeout=timeout or settings.STORAGE_REQUEST_TIMEOUT_SECONDS,
    )


class SupabaseBlobStore(BlobStore):
    """
    Uploads documents to a Supabase storage bucket.

    Upload failures never abort the request: the document is written to the
    local fallback store instead and addressed with a ``local://`` marker.
    """

    def __init__(self, client: Client, bucket: str, fallback: LocalBlobStore, max_file_size: int):
        self.client = client
        self.bucket = bucket
        self.fallback = fallback
        self.max_file_size = max_file_size
        self._bucket_ready = False

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        buckets = self.client.storage.list_buckets()
        if not any(bucket.name == self.bucket for bucket in buckets):
            logger.info(f"Creating storage bucket: {self.bucket}")
            self.client.storage.create_bucket(
                self.bucket,
                options={
                    "public": True,
                    "allowed_mime_types": ["application/pdf"],
                    "file_size_limit": self.max_file_size,
                },
            )
        self._bucket_ready = True

    def _upload(self, path: str, content: bytes, content_type: str) -> str:
        self._ensure_bucket()
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path=path,
            file=content,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        return bucket.get_public_url(path)

    async def store_blob(self, path: str, content: bytes, content_type: str) -> StoredBlob:
        try:
            url = await _call(self._upload, path, content, content_type)
        except Exception as e:
            logger.error(f"Storage upload error for {path}: {e}. Falling back to local storage")
            local_blob = await self.fallback.store_blob(path, content, content_type)
            # The marker URL doubles as the key so retrieval is routed back to local disk
            return StoredBlob(key=local_blob.url, url=local_blob.url)

        logger.info(f"Uploaded {path} to bucket '{self.bucket}'")
        return StoredBlob(key=path, url=url)

    async def retrieve_blob(self, key: str) -> bytes:
        if key.startswith(LOCAL_URL_SCHEME):
            return await self.fallback.retrieve_blob(key)
        try:
            return await _call(self.client.storage.from_(self.bucket).download, key)
        except Exception as e:
            logger.error(f"Storage download error for {key}: {e}")
            raise StorageError(f"Stored document is unavailable: {key}", {"key": key}) from e


def _identity_from_supabase(user: Any) -> IdentityUser:
    metadata = getattr(user, "user_metadata", None) or {}
    return IdentityUser(id=str(user.id), email=getattr(user, "email", None), full_name=metadata.get("full_name"))


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth: email/password accounts and access-token lookups."""

    def __init__(self, client: Client):
        self.client = client

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> IdentityUser:
        credentials = {"email": email, "password": password, "options": {"data": {"full_name": full_name or ""}}}
        try:
            response = await _call(self.client.auth.sign_up, credentials)
        except asyncio.TimeoutError as e:
            raise AuthenticationError("Identity service timed out during signup") from e
        except Exception as e:
            logger.warning(f"Supabase signup rejected for {email}: {e}")
            raise ValidationError(str(e) or "Signup rejected by identity service") from e

        if response.user is None:
            raise ValidationError("Signup rejected by identity service")
        return _identity_from_supabase(response.user)

    async def sign_in(self, email: str, password: str) -> tuple[IdentityUser, AuthSession]:
        try:
            response = await _call(
                self.client.auth.sign_in_with_password, {"email": email, "password": password}
            )
        except asyncio.TimeoutError as e:
            raise AuthenticationError("Identity service timed out during login") from e
        except Exception as e:
            logger.warning(f"Supabase login rejected for {email}: {e}")
            raise AuthenticationError("Invalid login credentials") from e

        if response.user is None or response.session is None:
            raise AuthenticationError("Invalid login credentials")

        logger.info(f"Supabase authentication successful for user: {email}")
        session = AuthSession(
            access_token=response.session.access_token,
            refresh_token=response.session.refresh_token,
            expires_in=response.session.expires_in,
        )
        return _identity_from_supabase(response.user), session

    async def get_user(self, access_token: str) -> IdentityUser:
        try:
            response = await _call(self.client.auth.get_user, access_token)
        except Exception as e:
            logger.warning(f"Supabase token lookup failed: {e}")
            raise AuthenticationError("Invalid or expired token") from e

        if response is None or response.user is None:
            raise AuthenticationError("Invalid or expired token")
        return _identity_from_supabase(response.user)
