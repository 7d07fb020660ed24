"""
File system tests for blobfs.

Exercises the BlobFileSystem contract against the in-memory blob client:
writes, deletes, directory emulation, timestamps, listings and URLs.
"""

import io
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from blobfs.core.errors import AlreadyExistsError, ErrorCode, InvalidPathError, NotFoundError
from blobfs.filesystem.adapter import BlobFileSystem
from blobfs.storage.protocol import BlobProperties


async def collect(iterator) -> list:
    return [item async for item in iterator]


async def read(filesystem: BlobFileSystem, path: str) -> bytes:
    stream = await filesystem.open_file(path)
    try:
        return stream.read()
    finally:
        stream.close()


# ============================================================================
# add_file / open_file
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_and_open_file(filesystem):
    await filesystem.add_file("1001/image.jpg", b"jpeg-bytes")

    assert await read(filesystem, "1001/image.jpg") == b"jpeg-bytes"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_file_from_stream(filesystem):
    """Test file objects are read from the start."""
    stream = io.BytesIO(b"stream-content")
    stream.seek(7)

    await filesystem.add_file("docs/readme.txt", stream)

    assert await read(filesystem, "docs/readme.txt") == b"stream-content"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_equivalent_paths_address_same_blob(filesystem):
    await filesystem.add_file("\\1001\\image.jpg", b"one")

    assert await filesystem.file_exists("/1001/image.jpg")
    assert await read(filesystem, "1001//image.jpg") == b"one"
    assert await read(
        filesystem, "https://account.blob.core.windows.net/media/1001/image.jpg"
    ) == b"one"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_file_without_overwrite_keeps_original(filesystem):
    """Test the second non-overwriting write fails and changes nothing."""
    await filesystem.add_file("a/b.txt", b"original")

    with pytest.raises(AlreadyExistsError) as exc_info:
        await filesystem.add_file("/a/b.txt", b"replacement", overwrite=False)

    assert exc_info.value.code == ErrorCode.BLOB_ALREADY_EXISTS
    assert await read(filesystem, "a/b.txt") == b"original"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_file_with_overwrite_replaces(filesystem):
    await filesystem.add_file("a/b.txt", b"original")
    await filesystem.add_file("a/b.txt", b"replacement", overwrite=True)
    await filesystem.add_file("a/b.txt", b"replacement", overwrite=True)

    assert await read(filesystem, "a/b.txt") == b"replacement"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_file_stores_content_type_and_cache_control(filesystem, memory_client):
    await filesystem.add_file("1001/photo.PNG", b"png")
    await filesystem.add_file("1001/blob.unknownext", b"???")

    png = await memory_client.get_properties("1001/photo.PNG")
    other = await memory_client.get_properties("1001/blob.unknownext")

    assert png.content_type == "image/png"
    assert png.cache_control == "public, max-age=31536000"
    assert other.content_type == "application/octet-stream"


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["", "/", "a/../b.txt"])
async def test_add_file_rejects_invalid_paths(filesystem, path):
    with pytest.raises(InvalidPathError):
        await filesystem.add_file(path, b"data")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_missing_file(filesystem):
    with pytest.raises(NotFoundError) as exc_info:
        await filesystem.open_file("nope.txt")

    assert exc_info.value.to_dict() == {
        "code": "BLOB_002",
        "message": "Blob not found: nope.txt",
        "details": {"key": "nope.txt", "container": "media"},
    }


# ============================================================================
# delete_file / delete_directory
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_file(filesystem):
    await filesystem.add_file("a/b.txt", b"x")

    await filesystem.delete_file("a/b.txt")

    assert not await filesystem.file_exists("a/b.txt")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_missing_file_is_noop(filesystem):
    await filesystem.delete_file("missing.txt")
    await filesystem.delete_file("missing.txt")


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("recursive", [True, False])
async def test_delete_directory_always_recursive(filesystem, recursive):
    """Test nested blobs go too, whatever the recursive flag says."""
    await filesystem.add_file("a/b/c.txt", b"1")
    await filesystem.add_file("a/b/d/e.txt", b"2")
    await filesystem.add_file("a/bc.txt", b"sibling")

    await filesystem.delete_directory("a/b", recursive=recursive)

    assert not await filesystem.file_exists("a/b/c.txt")
    assert not await filesystem.file_exists("a/b/d/e.txt")
    assert not await filesystem.directory_exists("a/b")
    assert await filesystem.file_exists("a/bc.txt")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_missing_directory_is_noop(filesystem):
    await filesystem.delete_directory("nothing/here")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_root_directory_empties_container(filesystem, memory_client):
    await filesystem.add_file("a.txt", b"1")
    await filesystem.add_file("b/c.txt", b"2")

    await filesystem.delete_directory("/", recursive=True)

    assert await collect(memory_client.list_blobs()) == []


# ============================================================================
# Existence
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_directory_exists_follows_its_blobs(filesystem):
    await filesystem.add_file("a/b.txt", b"x")
    assert await filesystem.directory_exists("a")
    assert await filesystem.directory_exists("/a/")

    await filesystem.delete_file("a/b.txt")
    assert not await filesystem.directory_exists("a")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_file_is_not_a_directory(filesystem):
    await filesystem.add_file("a/b.txt", b"x")

    assert not await filesystem.directory_exists("a/b.txt")
    assert not await filesystem.file_exists("a")
    assert not await filesystem.directory_exists("a/b")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_root_directory_exists_when_container_has_blobs(filesystem):
    assert not await filesystem.directory_exists("")

    await filesystem.add_file("top.txt", b"x")

    assert await filesystem.directory_exists("")


# ============================================================================
# Timestamps and size
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_timestamps_are_utc(filesystem):
    before = datetime.now(timezone.utc) - timedelta(seconds=1)
    await filesystem.add_file("a.txt", b"x")

    created = await filesystem.get_created("a.txt")
    modified = await filesystem.get_last_modified("a.txt")

    assert created.tzinfo is not None and created.utcoffset() == timedelta(0)
    assert modified.utcoffset() == timedelta(0)
    assert before <= created <= modified


@pytest.mark.unit
@pytest.mark.asyncio
async def test_overwrite_keeps_creation_time(filesystem):
    await filesystem.add_file("a.txt", b"x")
    created = await filesystem.get_created("a.txt")

    await filesystem.add_file("a.txt", b"yy", overwrite=True)

    assert await filesystem.get_created("a.txt") == created
    assert await filesystem.get_size("a.txt") == 2


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["get_created", "get_last_modified", "get_size"])
async def test_stat_missing_file(filesystem, operation):
    with pytest.raises(NotFoundError):
        await getattr(filesystem, operation)("missing.txt")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_created_falls_back_to_last_modified(blob_config):
    """Test stores without a creation time report the modification time."""
    modified = datetime(2024, 1, 15, 10, 0, 0)

    class FixedClient:
        base_url = "https://account.blob.core.windows.net/"

        async def get_properties(self, key):
            return BlobProperties(key=key, size=1, created_on=None, last_modified=modified)

    filesystem = BlobFileSystem(blob_config, FixedClient())

    created = await filesystem.get_created("a.txt")

    assert created == modified.replace(tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_timestamps_converted_to_utc(blob_config):
    offset = timezone(timedelta(hours=2))
    modified = datetime(2024, 1, 15, 12, 0, 0, tzinfo=offset)

    class FixedClient:
        base_url = "https://account.blob.core.windows.net/"

        async def get_properties(self, key):
            return BlobProperties(key=key, size=1, created_on=modified, last_modified=modified)

    filesystem = BlobFileSystem(blob_config, FixedClient())

    result = await filesystem.get_last_modified("a.txt")

    assert result.tzinfo == timezone.utc
    assert result.hour == 10


# ============================================================================
# Listings
# ============================================================================

@pytest_asyncio.fixture
async def populated(filesystem):
    for path in [
        "images/a.jpg",
        "images/B.JPG",
        "images/c.png",
        "images/thumbs/a.jpg",
        "images/2024/01/d.jpg",
        "images/2023/e.jpg",
        "imagesx/f.jpg",
        "root.jpg",
    ]:
        await filesystem.add_file(path, b"data")
    return filesystem


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_files_direct_children_only(populated):
    files = await collect(populated.get_files("images"))

    assert files == ["images/B.JPG", "images/a.jpg", "images/c.png"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_files_filter_is_case_insensitive(populated):
    """Test *.jpg matches JPG too, and skips nested directories."""
    files = await collect(populated.get_files("/images/", "*.jpg"))

    assert sorted(files) == ["images/B.JPG", "images/a.jpg"]


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("filter", [None, "", "*", "*.*"])
async def test_get_files_match_all_filters(populated, filter):
    files = await collect(populated.get_files("images", filter))
    assert len(files) == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_files_at_root(populated):
    assert await collect(populated.get_files("")) == ["root.jpg"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_listed_keys_address_their_blobs(filesystem):
    """Test every key returned by get_files can be used as a path again."""
    for path in ["~~notes.txt", "~draft.txt", "~/home.txt", "docs/~tmp.txt", "plain.txt"]:
        await filesystem.add_file(path, path.encode())

    keys = await collect(filesystem.get_files("")) + await collect(filesystem.get_files("docs"))

    assert sorted(keys) == ["docs/~tmp.txt", "home.txt", "plain.txt", "~draft.txt", "~~notes.txt"]
    for key in keys:
        assert await filesystem.file_exists(key), key
        await filesystem.delete_file(key)
        assert not await filesystem.file_exists(key), key


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_directories(populated):
    directories = await collect(populated.get_directories("images"))

    assert directories == ["images/2023", "images/2024", "images/thumbs"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_directories_at_root(populated):
    assert await collect(populated.get_directories("/")) == ["images", "imagesx"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_directories_of_missing_directory(populated):
    assert await collect(populated.get_directories("nothing")) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_directories_is_stable(populated):
    first = await collect(populated.get_directories("images"))
    second = await collect(populated.get_directories("images"))

    assert first == second


# ============================================================================
# Paths and URLs
# ============================================================================

@pytest.mark.unit
def test_get_full_path(filesystem):
    assert filesystem.get_full_path("1001\\image.jpg") == "/1001/image.jpg"


@pytest.mark.unit
@pytest.mark.parametrize("key", ["a.txt", "1001/image.jpg", "media/x/y.png", "deep/er/still.txt"])
def test_relative_path_inverts_full_path(filesystem, key):
    assert filesystem.get_relative_path(filesystem.get_full_path(key)) == key


@pytest.mark.unit
def test_relative_path_of_absolute_url(filesystem):
    url = "https://account.blob.core.windows.net/media/1001/image.jpg"
    assert filesystem.get_relative_path(url) == "1001/image.jpg"


@pytest.mark.unit
def test_get_url_root_relative(filesystem):
    assert filesystem.get_url("/1001/image.jpg") == "/media/1001/image.jpg"


@pytest.mark.unit
def test_root_relative_url_reads_as_full_path(filesystem):
    """Test a virtual URL keeps its container segment; absolute URLs do not."""
    url = filesystem.get_url("1001/image.jpg")

    assert filesystem.get_relative_path(url) == "media/1001/image.jpg"


@pytest.mark.unit
def test_get_url_absolute(absolute_filesystem):
    url = absolute_filesystem.get_url("/1001/image.jpg")

    assert url == "https://account.blob.core.windows.net/media/1001/image.jpg"
    assert absolute_filesystem.get_relative_path(url) == "1001/image.jpg"
