"""Path-addressed file system backed by Azure Blob Storage."""

from blobfs.core.config import BlobFileSystemConfig, config_from_lookup, resolve_config
from blobfs.core.errors import (
    AlreadyExistsError,
    BlobFileSystemError,
    ConfigurationError,
    InvalidPathError,
    NotFoundError,
)
from blobfs.filesystem import BlobFileSystem, FileSystemRegistry, get_filesystem

__all__ = [
    "AlreadyExistsError",
    "BlobFileSystem",
    "BlobFileSystemConfig",
    "BlobFileSystemError",
    "ConfigurationError",
    "FileSystemRegistry",
    "InvalidPathError",
    "NotFoundError",
    "config_from_lookup",
    "get_filesystem",
    "resolve_config",
]
