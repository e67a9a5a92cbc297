"""Disk-backed blob store."""

import asyncio
import logging
from pathlib import Path

from app.core.exceptions import StorageError
from app.schemas.records import StoredBlob
from app.services.integrations.base import BlobStore

logger = logging.getLogger(__name__)

LOCAL_URL_SCHEME = "local://"


class LocalBlobStore(BlobStore):
    """
    Writes documents below a base directory and addresses them with a
    ``local://<path>`` marker URL.
    """

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir).resolve()

    def _resolve(self, key: str) -> Path:
        if key.startswith(LOCAL_URL_SCHEME):
            key = key[len(LOCAL_URL_SCHEME):]
        target = (self.base_dir / key).resolve()
        if not target.is_relative_to(self.base_dir):
            raise StorageError(f"Blob key escapes the upload directory: {key}", {"key": key})
        return target

    def _write(self, target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    async def store_blob(self, path: str, content: bytes, content_type: str) -> StoredBlob:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write, target, content)
        except OSError as e:
            logger.error(f"Local blob write failed for {path}: {e}")
            raise StorageError(f"Failed to store document: {e}", {"path": path}) from e

        logger.info(f"Stored {len(content)} bytes locally at {target} ({content_type})")
        return StoredBlob(key=path, url=f"{LOCAL_URL_SCHEME}{path}")

    async def retrieve_blob(self, key: str) -> bytes:
        target = self._resolve(key)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            logger.error(f"Local blob read failed for {key}: {e}")
            raise StorageError(f"Stored document is unavailable: {key}", {"key": key}) from e
