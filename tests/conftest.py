"""
Pytest configuration and shared fixtures for blobfs tests.

This module provides:
- Configuration record fixtures
- Blob storage client fixtures
- File system fixtures wired to the in-memory client
"""

from pathlib import Path

import pytest

from blobfs.core.config import BlobFileSystemConfig, resolve_config
from blobfs.filesystem.adapter import BlobFileSystem
from blobfs.storage.local import LocalBlobStorageClient
from blobfs.storage.memory import InMemoryBlobStorageClient


TEST_BASE_URL = "https://account.blob.core.windows.net/"


# ============================================================================
# Configuration fixtures
# ============================================================================

@pytest.fixture
def blob_config() -> BlobFileSystemConfig:
    """Default record: "media" container, virtual path layer active."""
    return resolve_config(connection_string="UseDevelopmentStorage=true")


@pytest.fixture
def absolute_url_config() -> BlobFileSystemConfig:
    """Record with the virtual path layer disabled."""
    return resolve_config(
        connection_string="UseDevelopmentStorage=true",
        virtual_path_disabled=True,
    )


# ============================================================================
# Storage fixtures
# ============================================================================

@pytest.fixture
def memory_client(blob_config: BlobFileSystemConfig) -> InMemoryBlobStorageClient:
    """In-memory blob client for the default container.

    Returns:
        InMemoryBlobStorageClient: Empty store
    """
    return InMemoryBlobStorageClient(
        container_name=blob_config.container_name,
        base_url=TEST_BASE_URL,
    )


@pytest.fixture
def local_client(tmp_path: Path) -> LocalBlobStorageClient:
    """Filesystem blob client rooted in a temporary directory."""
    return LocalBlobStorageClient(
        base_path=str(tmp_path / "storage"),
        container_name="media",
        base_url="http://localhost:8000/storage",
    )


# ============================================================================
# File system fixtures
# ============================================================================

@pytest.fixture
def filesystem(blob_config, memory_client) -> BlobFileSystem:
    """File system over the in-memory client, root-relative URLs."""
    return BlobFileSystem(blob_config, memory_client)


@pytest.fixture
def absolute_filesystem(absolute_url_config) -> BlobFileSystem:
    """File system over its own in-memory client, absolute URLs."""
    client = InMemoryBlobStorageClient(container_name="media", base_url=TEST_BASE_URL)
    return BlobFileSystem(absolute_url_config, client)
