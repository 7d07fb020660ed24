"""Configuration using Pydantic Settings, plus the blob file-system resolver."""

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_settings import BaseSettings
from typing import Dict, Mapping, Optional, Union
import os

from blobfs.core.errors import ConfigurationError, ErrorCode, config_error


# Connection string that selects the local storage emulator (Azurite)
DEVELOPMENT_STORAGE_SENTINEL = "UseDevelopmentStorage=true"

DEFAULT_CONTAINER_NAME = "media"
DEFAULT_MAX_DAYS = 365

# Lookup keys understood by config_from_lookup()
CONNECTION_STRING_KEY = "AZURE_BLOB_CONNECTION_STRING"
CONTAINER_NAME_KEY = "AZURE_BLOB_CONTAINER_NAME"
MAX_DAYS_KEY = "AZURE_BLOB_MAX_DAYS"
DISABLE_VIRTUAL_PATH_KEY = "AZURE_BLOB_DISABLE_VIRTUAL_PATH"


class BlobFileSystemConfig(BaseModel):
    """Immutable, validated configuration for one blob file system.

    Equal inputs always produce equal (and hashable) records, which is what
    the registry keys adapter instances on.

    Example:
        container_name="media", cache_max_days=365 means uploaded blobs are
        stored in the "media" container and tagged for a year of caching.
    """
    model_config = ConfigDict(frozen=True)

    container_name: str = DEFAULT_CONTAINER_NAME
    connection_string: str
    cache_max_days: int = DEFAULT_MAX_DAYS
    use_local_emulator: bool = False
    virtual_path_disabled: bool = False

    @field_validator('cache_max_days')
    @classmethod
    def validate_cache_max_days(cls, v: int) -> int:
        """Cache lifetime cannot be negative."""
        if v < 0:
            raise ValueError(f"Cache max days must not be negative, got {v}")
        return v

    @property
    def cache_max_age_seconds(self) -> int:
        """Cache lifetime in seconds."""
        return self.cache_max_days * 86400

    @property
    def cache_control(self) -> str:
        """Cache-Control value stored on every uploaded blob."""
        return f"public, max-age={self.cache_max_age_seconds}"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _parse_max_days(max_days: Union[int, str, None]) -> int:
    if isinstance(max_days, int) and not isinstance(max_days, bool):
        return max_days
    if _is_blank(max_days):
        return DEFAULT_MAX_DAYS
    try:
        return int(str(max_days).strip())
    except ValueError:
        return DEFAULT_MAX_DAYS


def _parse_flag(value: Union[bool, str, None]) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


def resolve_config(
    container_name: Optional[str] = None,
    connection_string: Optional[str] = None,
    max_days: Union[int, str, None] = None,
    virtual_path_disabled: Union[bool, str, None] = None,
) -> BlobFileSystemConfig:
    """Turn raw configuration inputs into a validated record.

    Pure string/validation logic; no network access happens here.

    Args:
        container_name: Logical container; blank means "media"
        connection_string: Storage credentials, required
        max_days: Cache lifetime in days; blank or unparseable means 365
        virtual_path_disabled: Absolute URLs when true; defaults to false

    Returns:
        BlobFileSystemConfig: Normalized record

    Raises:
        ConfigurationError: If the connection string is blank or
            max_days is negative
    """
    if _is_blank(connection_string):
        raise config_error(
            ErrorCode.CONFIG_MISSING_CONNECTION_STRING,
            f"Unable to resolve the blob storage configuration: "
            f"{CONNECTION_STRING_KEY} was not defined or is empty.",
            {"key": CONNECTION_STRING_KEY},
        )

    use_local_emulator = (
        connection_string.strip().lower() == DEVELOPMENT_STORAGE_SENTINEL.lower()
    )

    # Every spelling of the sentinel resolves to the same record
    if use_local_emulator:
        connection_string = DEVELOPMENT_STORAGE_SENTINEL

    if _is_blank(container_name):
        container_name = DEFAULT_CONTAINER_NAME

    try:
        return BlobFileSystemConfig(
            container_name=container_name.strip(),
            connection_string=connection_string.strip(),
            cache_max_days=_parse_max_days(max_days),
            use_local_emulator=use_local_emulator,
            virtual_path_disabled=_parse_flag(virtual_path_disabled),
        )
    except ValidationError as exc:
        errors = exc.errors()
        raise config_error(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"Invalid blob storage configuration: {errors[0]['msg']}",
            {"errors": [{"field": e["loc"], "message": e["msg"]} for e in errors]},
        ) from exc


def config_from_lookup(lookup: Mapping[str, Optional[str]]) -> BlobFileSystemConfig:
    """Resolve a record from an injected key-value configuration source.

    Args:
        lookup: Any mapping, e.g. ``settings.blob_lookup()`` or a plain dict

    Returns:
        BlobFileSystemConfig: Normalized record
    """
    return resolve_config(
        container_name=lookup.get(CONTAINER_NAME_KEY),
        connection_string=lookup.get(CONNECTION_STRING_KEY),
        max_days=lookup.get(MAX_DAYS_KEY),
        virtual_path_disabled=lookup.get(DISABLE_VIRTUAL_PATH_KEY),
    )


class Settings(BaseSettings):
    """Process settings with environment variable support."""

    # Service Identity
    SERVICE_NAME: str = "blobfs"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging Configuration
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = True    # JSON logs (prod) vs pretty console (dev)
    DEBUG: bool = False      # Enable debug mode features

    # Blob client selection
    BLOB_BACKEND: str = "azure"  # Options: "azure", "local" or "memory"

    # Local backend
    STORAGE_PATH: str = os.path.join(os.getcwd(), "storage")
    LOCAL_BASE_URL: str = "http://localhost:8000/storage"

    # Raw blob file-system inputs, resolved by config_from_lookup()
    AZURE_BLOB_CONNECTION_STRING: Optional[str] = None
    AZURE_BLOB_CONTAINER_NAME: Optional[str] = None
    AZURE_BLOB_MAX_DAYS: Optional[str] = None
    AZURE_BLOB_DISABLE_VIRTUAL_PATH: Optional[str] = None

    @field_validator('BLOB_BACKEND')
    @classmethod
    def validate_blob_backend(cls, v: str) -> str:
        """Restrict the backend to the known client implementations."""
        v = v.strip().lower()
        if v not in ("azure", "local", "memory"):
            raise ValueError(
                f"BLOB_BACKEND must be one of 'azure', 'local', 'memory', got '{v}'"
            )
        return v

    def blob_lookup(self) -> Dict[str, Optional[str]]:
        """Expose the raw blob inputs as a lookup for the resolver."""
        return {
            CONNECTION_STRING_KEY: self.AZURE_BLOB_CONNECTION_STRING,
            CONTAINER_NAME_KEY: self.AZURE_BLOB_CONTAINER_NAME,
            MAX_DAYS_KEY: self.AZURE_BLOB_MAX_DAYS,
            DISABLE_VIRTUAL_PATH_KEY: self.AZURE_BLOB_DISABLE_VIRTUAL_PATH,
        }

    @property
    def is_debug_mode(self) -> bool:
        """Check if debug mode is active."""
        return self.DEBUG or self.LOG_LEVEL.upper() == "DEBUG"

    @property
    def use_json_logs(self) -> bool:
        """Determine if JSON logging should be used.

        In production, always use JSON logs.
        In development, allow override via LOG_JSON setting.
        """
        if self.ENVIRONMENT == "production":
            return True
        if self.DEBUG:
            return self.LOG_JSON
        return True

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
