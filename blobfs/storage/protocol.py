"""Blob storage client protocol definition."""

from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Optional, Protocol


@dataclass(frozen=True)
class BlobProperties:
    """Metadata of a stored blob as reported by a client."""

    key: str
    size: int
    created_on: Optional[datetime]
    last_modified: datetime
    content_type: Optional[str] = None
    cache_control: Optional[str] = None


class BlobStorageClient(Protocol):
    """Protocol defining the flat object store the file system runs on.

    A client is bound to a single container and addresses blobs by key only.
    It knows nothing about directories; those are emulated on top of
    ``list_blobs`` prefix queries.
    """

    @property
    def base_url(self) -> str:
        """Public account endpoint, without the container segment."""
        ...

    async def upload(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        """Store data under key.

        Raises:
            AlreadyExistsError: If overwrite is False and the key is occupied
        """
        ...

    async def download(self, key: str) -> bytes:
        """Read the full content of a blob.

        Raises:
            NotFoundError: If no blob exists at key
        """
        ...

    async def get_properties(self, key: str) -> Optional[BlobProperties]:
        """Return blob metadata, or None when the key is absent."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete a blob. Returns False when there was nothing to delete."""
        ...

    def list_blobs(self, prefix: str = "") -> AsyncIterator[BlobProperties]:
        """Flat listing of every blob whose key starts with prefix, in key order."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
