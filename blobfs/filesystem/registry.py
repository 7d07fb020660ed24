"""One file system per configuration, created on first use."""

import threading
from typing import Callable, Dict, Optional

from blobfs.core.config import BlobFileSystemConfig, config_from_lookup, settings
from blobfs.core.logging_config import get_logger, is_logging_configured, setup_logging
from blobfs.filesystem.adapter import BlobFileSystem
from blobfs.storage import create_blob_client
from blobfs.storage.protocol import BlobStorageClient


logger = get_logger(__name__)

ClientFactory = Callable[[BlobFileSystemConfig], BlobStorageClient]


class FileSystemRegistry:
    """Maps configuration records to lazily constructed file systems.

    Equal records share one instance. Construction of each instance runs
    under its own lock so concurrent first requests build a single client,
    while lookups for other configurations are not blocked.
    """

    def __init__(self, client_factory: ClientFactory = create_blob_client):
        self._client_factory = client_factory
        self._instances: Dict[BlobFileSystemConfig, BlobFileSystem] = {}
        self._locks: Dict[BlobFileSystemConfig, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, config: BlobFileSystemConfig) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(config, threading.Lock())

    def get(self, config: BlobFileSystemConfig) -> BlobFileSystem:
        instance = self._instances.get(config)
        if instance is not None:
            return instance

        with self._lock_for(config):
            instance = self._instances.get(config)
            if instance is None:
                instance = BlobFileSystem(config, self._client_factory(config))
                self._instances[config] = instance
                logger.info(
                    "blob_filesystem_created",
                    container=config.container_name,
                    local_emulator=config.use_local_emulator,
                    cache_max_days=config.cache_max_days,
                    virtual_path_disabled=config.virtual_path_disabled,
                )
        return instance

    def __len__(self) -> int:
        return len(self._instances)

    async def close(self) -> None:
        """Close every client and forget all instances."""
        with self._guard:
            instances = list(self._instances.values())
            self._instances.clear()
            self._locks.clear()
        for instance in instances:
            await instance.client.close()


_registry = FileSystemRegistry()


def _ensure_logging() -> None:
    # Hosts that configured logging themselves keep their setup
    if not is_logging_configured():
        setup_logging(debug=settings.is_debug_mode, json_logs=settings.use_json_logs)


def get_filesystem(config: Optional[BlobFileSystemConfig] = None) -> BlobFileSystem:
    """Process-wide entry point.

    Without an explicit config the record is resolved from the environment
    through ``settings.blob_lookup()``. Logging is set up from ``settings``
    on first use unless the host already called ``setup_logging``.

    Raises:
        ConfigurationError: If the environment lacks a connection string
    """
    _ensure_logging()
    if config is None:
        config = config_from_lookup(settings.blob_lookup())
    return _registry.get(config)
