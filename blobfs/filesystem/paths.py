"""Translation between hierarchical paths, blob keys and URLs.

Blob stores have a flat key space, so every path a caller hands in is reduced
to a canonical key first: separators unified, duplicates collapsed, the root
and any URL prefix stripped. Two paths that address the same blob always
produce the same key.
"""

from typing import Optional
from urllib.parse import quote, unquote, urlsplit

from blobfs.core.errors import ErrorCode, path_error

SEPARATOR = "/"


def container_root_url(base_url: str, container_name: str) -> str:
    """Public URL of the container, with a trailing separator."""
    return f"{base_url.rstrip(SEPARATOR)}{SEPARATOR}{container_name}{SEPARATOR}"


def _is_url(value: str) -> bool:
    parts = urlsplit(value)
    return bool(parts.scheme and parts.netloc)


def _strip_url(value: str, container_name: str) -> str:
    segments = unquote(urlsplit(value).path).strip(SEPARATOR).split(SEPARATOR)
    if segments and segments[0] == container_name:
        segments = segments[1:]
    return SEPARATOR.join(segments)


def normalize_path(path: Optional[str], container_name: str, base_url: Optional[str] = None) -> str:
    """Reduce a path, full path or URL to its blob key.

    Args:
        path: Caller-supplied path using '/' or '\\' separators
        container_name: Container whose segment is dropped from URLs
        base_url: Public account endpoint; URLs under it lose the whole
            endpoint and container prefix

    Returns:
        str: Blob key, '' for the container root

    Raises:
        InvalidPathError: If the path contains a '..' segment
    """
    value = (path or "").strip()

    if base_url:
        root_url = container_root_url(base_url, container_name)
        if value.lower().startswith(root_url.lower()):
            value = unquote(value[len(root_url):])
        elif _is_url(value):
            value = _strip_url(value, container_name)
    elif _is_url(value):
        value = _strip_url(value, container_name)

    value = value.replace("\\", SEPARATOR)

    segments = [s for s in value.split(SEPARATOR) if s and s != "."]
    # '~' segments at the start mark the application root; '~name' is a plain name
    while segments and segments[0] == "~":
        segments.pop(0)
    if ".." in segments:
        raise path_error(
            ErrorCode.PATH_TRAVERSAL,
            f"Path traversal segments (..) are not allowed: {path}",
            {"path": path},
        )

    return SEPARATOR.join(segments)


def require_file_key(key: str, path: Optional[str]) -> str:
    """Reject the container root where a file key is needed."""
    if not key:
        raise path_error(
            ErrorCode.PATH_EMPTY,
            f"Path does not name a file: {path!r}",
            {"path": path},
        )
    return key


def directory_prefix(key: str) -> str:
    """Listing prefix for everything beneath a directory key."""
    return f"{key}{SEPARATOR}" if key else ""


def full_path(key: str) -> str:
    return f"{SEPARATOR}{key}"


def build_url(key: str, container_name: str, base_url: str, virtual_path_disabled: bool) -> str:
    """URL handed out for a key.

    Absolute (endpoint + container + key) when the virtual path layer is
    disabled, otherwise root-relative so the host can intercept and rewrite it.
    """
    if virtual_path_disabled:
        return f"{container_root_url(base_url, container_name)}{quote(key)}"
    return f"{SEPARATOR}{container_name}{SEPARATOR}{key}"
