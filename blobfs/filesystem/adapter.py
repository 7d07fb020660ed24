"""File-system contract implemented on top of a flat blob store."""

import io
import mimetypes
from contextlib import aclosing
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from typing import AsyncIterator, BinaryIO, Optional, Union

from blobfs.core.config import BlobFileSystemConfig
from blobfs.core.errors import AlreadyExistsError, not_found_error
from blobfs.core.logging_config import get_logger
from blobfs.filesystem import paths
from blobfs.storage.protocol import BlobProperties, BlobStorageClient


logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Filters that select every file
MATCH_ALL_FILTERS = ("", "*", "*.*")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _read_content(content: Union[bytes, bytearray, memoryview, BinaryIO]) -> bytes:
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    # Ensure file pointer is at the beginning
    if hasattr(content, 'seekable') and content.seekable():
        content.seek(0)
    return content.read()


class BlobFileSystem:
    """Hierarchical file-system operations over a container of flat blobs.

    Paths are reduced to blob keys by ``paths.normalize_path``; directories
    exist only as key prefixes and are never stored. The instance keeps no
    state besides its configuration and client, so a single instance can be
    shared by concurrent callers.
    """

    def __init__(self, config: BlobFileSystemConfig, client: BlobStorageClient):
        self.config = config
        self.client = client

    @property
    def container_name(self) -> str:
        return self.config.container_name

    def _key(self, path: Optional[str]) -> str:
        return paths.normalize_path(path, self.container_name, self.client.base_url)

    def _file_key(self, path: Optional[str]) -> str:
        return paths.require_file_key(self._key(path), path)

    async def _require_properties(self, path: Optional[str]) -> BlobProperties:
        key = self._file_key(path)
        properties = await self.client.get_properties(key)
        if properties is None:
            raise not_found_error(key, self.container_name)
        return properties

    async def add_file(
        self,
        path: str,
        content: Union[bytes, bytearray, memoryview, BinaryIO],
        overwrite: bool = False,
    ) -> None:
        """Store content at path.

        Args:
            path: Target file path
            content: Bytes or a readable binary file object
            overwrite: Replace an existing blob instead of failing

        Raises:
            InvalidPathError: If path is empty or traverses upwards
            AlreadyExistsError: If overwrite is False and the file exists
        """
        key = self._file_key(path)
        data = _read_content(content)
        content_type = mimetypes.guess_type(key)[0] or DEFAULT_CONTENT_TYPE

        logger.debug(
            "blob_filesystem_add_file_started",
            container=self.container_name,
            key=key,
            overwrite=overwrite,
        )

        try:
            await self.client.upload(
                key,
                data,
                overwrite=overwrite,
                content_type=content_type,
                cache_control=self.config.cache_control,
            )
        except AlreadyExistsError:
            logger.info("blob_filesystem_add_file_exists", container=self.container_name, key=key)
            raise

        logger.info(
            "blob_filesystem_add_file_success",
            container=self.container_name,
            key=key,
            size=len(data),
            content_type=content_type,
        )

    async def delete_file(self, path: str) -> None:
        """Delete the file at path. Deleting a missing file is a no-op."""
        key = self._file_key(path)
        deleted = await self.client.delete(key)
        logger.info(
            "blob_filesystem_delete_file",
            container=self.container_name,
            key=key,
            existed=deleted,
        )

    async def delete_directory(self, path: str, recursive: bool = False) -> None:
        """Delete every blob under the directory at path.

        Blob storage has no real directories, so deletion is always
        recursive: with ``recursive=False`` nested "subdirectories" are
        removed as well. Existing callers depend on this, so it is kept.

        The listing is taken before deleting; blobs written under the prefix
        while this runs may survive.
        """
        key = self._key(path)
        prefix = paths.directory_prefix(key)

        keys = [blob.key async for blob in self.client.list_blobs(prefix)]
        nested = sum(1 for k in keys if paths.SEPARATOR in k[len(prefix):])

        for blob_key in keys:
            await self.client.delete(blob_key)

        if nested and not recursive:
            logger.warning(
                "blob_filesystem_non_recursive_delete_removed_nested",
                container=self.container_name,
                prefix=prefix,
                nested_blobs=nested,
            )

        logger.info(
            "blob_filesystem_delete_directory",
            container=self.container_name,
            prefix=prefix,
            recursive=recursive,
            deleted=len(keys),
        )

    async def file_exists(self, path: str) -> bool:
        key = self._file_key(path)
        return await self.client.get_properties(key) is not None

    async def directory_exists(self, path: str) -> bool:
        prefix = paths.directory_prefix(self._key(path))
        async with aclosing(self.client.list_blobs(prefix)) as blobs:
            async for _ in blobs:
                return True
        return False

    async def get_created(self, path: str) -> datetime:
        """Creation time of the file in UTC.

        Falls back to the last-modified time when the store does not report
        a creation time.

        Raises:
            NotFoundError: If no file exists at path
        """
        properties = await self._require_properties(path)
        return _as_utc(properties.created_on or properties.last_modified)

    async def get_last_modified(self, path: str) -> datetime:
        """Last-modified time of the file in UTC.

        Raises:
            NotFoundError: If no file exists at path
        """
        properties = await self._require_properties(path)
        return _as_utc(properties.last_modified)

    async def get_size(self, path: str) -> int:
        properties = await self._require_properties(path)
        return properties.size

    async def get_directories(self, path: str) -> AsyncIterator[str]:
        """Yield the immediate subdirectories of path.

        Each subdirectory is yielded once, as a key-relative path, in the
        order its first blob appears in the listing.
        """
        prefix = paths.directory_prefix(self._key(path))
        seen = set()

        async for blob in self.client.list_blobs(prefix):
            remainder = blob.key[len(prefix):]
            if paths.SEPARATOR not in remainder:
                continue
            child = remainder.split(paths.SEPARATOR, 1)[0]
            if child and child not in seen:
                seen.add(child)
                yield f"{prefix}{child}"

    async def get_files(self, path: str, filter: Optional[str] = None) -> AsyncIterator[str]:
        """Yield the keys of files directly inside path.

        Args:
            path: Directory to list; files in subdirectories are skipped
            filter: Optional glob such as ``*.jpg``, case-insensitive
        """
        prefix = paths.directory_prefix(self._key(path))
        pattern = (filter or "").strip().lower()
        match_all = pattern in MATCH_ALL_FILTERS

        async for blob in self.client.list_blobs(prefix):
            name = blob.key[len(prefix):]
            if not name or paths.SEPARATOR in name:
                continue
            if match_all or fnmatchcase(name.lower(), pattern):
                yield blob.key

    def get_full_path(self, path: str) -> str:
        return paths.full_path(self._key(path))

    def get_relative_path(self, full_path_or_url: str) -> str:
        """Key-relative path of a full path or URL.

        Strips the container URL (or any scheme, host and container
        segment) and the root separator. Inverse of ``get_full_path``.

        Only scheme-qualified URLs lose the container segment. A
        root-relative URL from ``get_url`` such as ``/media/a.txt`` reads
        as a full path and keeps it; use ``get_url`` with the virtual path
        layer disabled when the URL must map back to its key.
        """
        return self._key(full_path_or_url)

    def get_url(self, path: str) -> str:
        """URL of the file at path.

        Absolute when the virtual path layer is disabled; otherwise a
        root-relative URL for the layer to rewrite.
        """
        return paths.build_url(
            self._key(path),
            self.container_name,
            self.client.base_url,
            self.config.virtual_path_disabled,
        )

    async def open_file(self, path: str) -> BinaryIO:
        """Readable stream over the file's content. The caller closes it.

        Raises:
            NotFoundError: If no file exists at path
        """
        key = self._file_key(path)
        data = await self.client.download(key)
        logger.debug(
            "blob_filesystem_open_file",
            container=self.container_name,
            key=key,
            bytes_read=len(data),
        )
        return io.BytesIO(data)
