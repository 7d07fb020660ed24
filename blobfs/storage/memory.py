"""In-memory blob storage client for tests and throwaway environments."""

from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional

from blobfs.core.errors import already_exists_error, not_found_error
from blobfs.core.logging_config import get_logger
from blobfs.storage.protocol import BlobProperties


logger = get_logger(__name__)


class InMemoryBlobStorageClient:
    """Dict-backed blob store for a single container.

    Keeps content and metadata in two maps keyed by blob key. Nothing
    survives the process.
    """

    def __init__(self, container_name: str = "media", base_url: str = "http://127.0.0.1:10000/memory/"):
        self.container_name = container_name
        self._base_url = base_url
        self._objects: Dict[str, bytes] = {}
        self._metadata: Dict[str, BlobProperties] = {}

    @property
    def base_url(self) -> str:
        return self._base_url

    async def upload(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        existing = self._metadata.get(key)
        if existing is not None and not overwrite:
            raise already_exists_error(key, self.container_name)

        now = datetime.now(timezone.utc)
        self._objects[key] = bytes(data)
        self._metadata[key] = BlobProperties(
            key=key,
            size=len(data),
            created_on=existing.created_on if existing else now,
            last_modified=now,
            content_type=content_type,
            cache_control=cache_control,
        )
        logger.debug("memory_blob_uploaded", key=key, size=len(data))

    async def download(self, key: str) -> bytes:
        try:
            return self._objects[key]
        except KeyError:
            raise not_found_error(key, self.container_name) from None

    async def get_properties(self, key: str) -> Optional[BlobProperties]:
        return self._metadata.get(key)

    async def delete(self, key: str) -> bool:
        if key not in self._objects:
            return False
        del self._objects[key]
        del self._metadata[key]
        logger.debug("memory_blob_deleted", key=key)
        return True

    async def list_blobs(self, prefix: str = "") -> AsyncIterator[BlobProperties]:
        # Snapshot so callers may delete while iterating
        for key in sorted(k for k in self._metadata if k.startswith(prefix)):
            properties = self._metadata.get(key)
            if properties is not None:
                yield properties

    async def close(self) -> None:
        return None
