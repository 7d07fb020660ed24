"""Blob storage clients the file system runs on."""

from typing import Optional

from blobfs.core.config import BlobFileSystemConfig, Settings, settings as default_settings
from .protocol import BlobProperties, BlobStorageClient
from .local import LocalBlobStorageClient
from .memory import InMemoryBlobStorageClient
# Azure client imported lazily when needed


def create_blob_client(
    config: BlobFileSystemConfig,
    settings: Optional[Settings] = None,
) -> BlobStorageClient:
    """Factory function for blob storage clients.

    Returns a client for config's container based on BLOB_BACKEND.

    Raises:
        ValueError: If unknown blob backend is configured
    """
    settings = settings or default_settings

    if settings.BLOB_BACKEND == "azure":
        # Lazy import to avoid requiring the Azure SDK for local storage
        from .azure import AzureBlobStorageClient
        return AzureBlobStorageClient(
            connection_string=config.connection_string,
            container_name=config.container_name,
            use_local_emulator=config.use_local_emulator,
        )
    elif settings.BLOB_BACKEND == "local":
        return LocalBlobStorageClient(
            base_path=settings.STORAGE_PATH,
            container_name=config.container_name,
            base_url=settings.LOCAL_BASE_URL,
        )
    elif settings.BLOB_BACKEND == "memory":
        return InMemoryBlobStorageClient(container_name=config.container_name)
    else:
        raise ValueError(f"Unknown blob backend: {settings.BLOB_BACKEND}")


__all__ = [
    "create_blob_client",
    "BlobProperties",
    "BlobStorageClient",
    "InMemoryBlobStorageClient",
    "LocalBlobStorageClient",
]
