from abc import ABC, abstractmethod
from typing import Optional

from app.schemas.records import AuthSession, IdentityUser, StoredBlob


class BlobStore(ABC):
    """Stores original uploaded documents."""

    @abstractmethod
    async def store_blob(self, path: str, content: bytes, content_type: str) -> StoredBlob:
        """Persist ``content`` under ``path``. Raises StorageError when nothing could be stored."""

    @abstractmethod
    async def retrieve_blob(self, key: str) -> bytes:
        """Fetch a previously stored document. Raises StorageError when it is unavailable."""


class IdentityProvider(ABC):
    """Externally-managed user accounts."""

    @abstractmethod
    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> IdentityUser: ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> tuple[IdentityUser, AuthSession]: ...

    @abstractmethod
    async def get_user(self, access_token: str) -> IdentityUser: ...
