"""Hierarchical file-system contract emulated over blob storage."""

from .adapter import BlobFileSystem
from .registry import FileSystemRegistry, get_filesystem

__all__ = ["BlobFileSystem", "FileSystemRegistry", "get_filesystem"]
