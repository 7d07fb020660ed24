"""Azure Blob Storage client."""

import asyncio
from typing import AsyncIterator, Optional

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from blobfs.core.errors import already_exists_error, not_found_error
from blobfs.core.logging_config import get_logger
from blobfs.storage.protocol import BlobProperties


logger = get_logger(__name__)

# Well-known account of the local storage emulator (Azurite)
DEVELOPMENT_STORAGE_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=http;"
    "AccountName=devstoreaccount1;"
    "AccountKey=Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw==;"
    "BlobEndpoint=http://127.0.0.1:10000/devstoreaccount1;"
)


class AzureBlobStorageClient:
    """Azure Blob Storage implementation bound to a single container.

    The container is created on first use with anonymous read access to
    blobs, so URLs handed out by the file system resolve without a SAS token.

    Missing and conflicting blobs are translated to the package's
    NotFoundError/AlreadyExistsError; every other SDK error (network,
    throttling, auth) is logged and re-raised unchanged.
    """

    def __init__(
        self,
        connection_string: str,
        container_name: str,
        use_local_emulator: bool = False,
    ):
        """Initialize Azure blob storage client.

        Args:
            connection_string: Storage account connection string
            container_name: Container holding the blobs
            use_local_emulator: Target the local emulator instead of the
                account named in connection_string
        """
        if use_local_emulator:
            connection_string = DEVELOPMENT_STORAGE_CONNECTION_STRING

        self.container_name = container_name
        self.use_local_emulator = use_local_emulator
        self.service = BlobServiceClient.from_connection_string(connection_string)
        self.container = self.service.get_container_client(container_name)
        self._container_ready = False
        self._container_lock = asyncio.Lock()

        logger.info(
            "azure_blob_client_initialized",
            container=container_name,
            account_url=self.service.url,
            local_emulator=use_local_emulator,
        )

    @property
    def base_url(self) -> str:
        return self.service.url

    async def _ensure_container(self) -> None:
        if self._container_ready:
            return
        async with self._container_lock:
            if self._container_ready:
                return
            try:
                await self.container.create_container(public_access="blob")
                logger.info("azure_blob_container_created", container=self.container_name)
            except ResourceExistsError:
                pass
            self._container_ready = True

    def _log_failure(self, operation: str, key: str, exc: Exception) -> None:
        logger.error(
            f"azure_blob_{operation}_failed",
            container=self.container_name,
            key=key,
            error_type=type(exc).__name__,
            error=str(exc),
            exc_info=True,
        )

    @staticmethod
    def _to_properties(key: str, blob) -> BlobProperties:
        content_settings = getattr(blob, "content_settings", None)
        return BlobProperties(
            key=key,
            size=blob.size,
            created_on=blob.creation_time,
            last_modified=blob.last_modified,
            content_type=getattr(content_settings, "content_type", None),
            cache_control=getattr(content_settings, "cache_control", None),
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
        await self._ensure_container()

        logger.debug(
            "azure_blob_upload_started",
            container=self.container_name,
            key=key,
            overwrite=overwrite,
            size=len(data),
        )

        try:
            await self.container.upload_blob(
                name=key,
                data=data,
                overwrite=overwrite,
                content_settings=ContentSettings(
                    content_type=content_type,
                    cache_control=cache_control,
                ),
            )
        except ResourceExistsError:
            raise already_exists_error(key, self.container_name) from None
        except Exception as exc:
            self._log_failure("upload", key, exc)
            raise

        logger.info(
            "azure_blob_upload_success",
            container=self.container_name,
            key=key,
            size=len(data),
        )

    async def download(self, key: str) -> bytes:
        await self._ensure_container()
        try:
            downloader = await self.container.download_blob(key)
            return await downloader.readall()
        except ResourceNotFoundError:
            raise not_found_error(key, self.container_name) from None
        except Exception as exc:
            self._log_failure("download", key, exc)
            raise

    async def get_properties(self, key: str) -> Optional[BlobProperties]:
        await self._ensure_container()
        try:
            blob = await self.container.get_blob_client(key).get_blob_properties()
        except ResourceNotFoundError:
            return None
        except Exception as exc:
            self._log_failure("get_properties", key, exc)
            raise
        return self._to_properties(key, blob)

    async def delete(self, key: str) -> bool:
        await self._ensure_container()
        try:
            await self.container.delete_blob(key, delete_snapshots="include")
        except ResourceNotFoundError:
            logger.debug("azure_blob_delete_not_found", container=self.container_name, key=key)
            return False
        except Exception as exc:
            self._log_failure("delete", key, exc)
            raise
        logger.info("azure_blob_delete_success", container=self.container_name, key=key)
        return True

    async def list_blobs(self, prefix: str = "") -> AsyncIterator[BlobProperties]:
        await self._ensure_container()
        try:
            async for blob in self.container.list_blobs(name_starts_with=prefix or None):
                yield self._to_properties(blob.name, blob)
        except Exception as exc:
            self._log_failure("list", prefix, exc)
            raise

    async def close(self) -> None:
        await self.service.close()
