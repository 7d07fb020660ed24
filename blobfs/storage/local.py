"""Local filesystem blob storage client."""

import mimetypes
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles

from blobfs.core.errors import already_exists_error, not_found_error
from blobfs.core.logging_config import get_logger
from blobfs.storage.protocol import BlobProperties


logger = get_logger(__name__)


class LocalBlobStorageClient:
    """Blob store laid out as files under ``base_path/container_name``.

    Suitable for development and single-server deployments. Keys map
    one-to-one onto relative file paths; cache-control hints are not
    persisted.
    """

    def __init__(self, base_path: str, container_name: str = "media", base_url: str = "http://localhost:8000/storage"):
        """Initialize local blob storage.

        Args:
            base_path: Root directory for all containers
            container_name: Subdirectory holding this container's blobs
            base_url: Public URL prefix the directory is served under
        """
        self.container_name = container_name
        self.root = Path(base_path) / container_name
        self.root.mkdir(parents=True, exist_ok=True)
        self._base_url = base_url

    @property
    def base_url(self) -> str:
        return self._base_url

    def _blob_path(self, key: str) -> Path:
        full_path = (self.root / key).resolve()
        if self.root.resolve() not in full_path.parents:
            raise ValueError(f"Blob key escapes the container directory: {key}")
        return full_path

    def _properties(self, key: str, full_path: Path) -> BlobProperties:
        stat = full_path.stat()
        birthtime = getattr(stat, "st_birthtime", None)
        return BlobProperties(
            key=key,
            size=stat.st_size,
            created_on=datetime.fromtimestamp(birthtime, tz=timezone.utc) if birthtime else None,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            content_type=mimetypes.guess_type(key)[0],
        )

    async def upload(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        full_path = self._blob_path(key)

        logger.debug(
            "local_blob_upload_started",
            key=key,
            full_path=str(full_path),
            overwrite=overwrite,
        )

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            # A key that is already a file cannot also be a directory here
            logger.error(
                "local_blob_upload_failed",
                key=key,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

        try:
            # 'xb' fails atomically when the file already exists
            async with aiofiles.open(full_path, 'wb' if overwrite else 'xb') as f:
                await f.write(data)
        except FileExistsError:
            raise already_exists_error(key, self.container_name) from None
        except Exception as exc:
            logger.error(
                "local_blob_upload_failed",
                key=key,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.info("local_blob_upload_success", key=key, bytes_written=len(data))

    async def download(self, key: str) -> bytes:
        full_path = self._blob_path(key)
        try:
            async with aiofiles.open(full_path, 'rb') as f:
                return await f.read()
        except (FileNotFoundError, IsADirectoryError):
            raise not_found_error(key, self.container_name) from None

    async def get_properties(self, key: str) -> Optional[BlobProperties]:
        full_path = self._blob_path(key)
        if not full_path.is_file():
            return None
        return self._properties(key, full_path)

    async def delete(self, key: str) -> bool:
        full_path = self._blob_path(key)
        if not full_path.is_file():
            logger.debug("local_blob_delete_not_found", key=key)
            return False
        full_path.unlink()
        logger.info("local_blob_delete_success", key=key)
        return True

    async def list_blobs(self, prefix: str = "") -> AsyncIterator[BlobProperties]:
        keys = []
        for dirpath, _, filenames in os.walk(self.root):
            for filename in filenames:
                relative = Path(dirpath, filename).relative_to(self.root).as_posix()
                if relative.startswith(prefix):
                    keys.append(relative)

        for key in sorted(keys):
            full_path = self.root / key
            if full_path.is_file():
                yield self._properties(key, full_path)

    async def close(self) -> None:
        return None
