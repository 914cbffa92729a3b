"""Unit tests for the file storage backends."""
import io
import uuid
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from hypercyber.config import Settings
from hypercyber.errors import StorageError
from hypercyber.storage import LocalStorage, S3Storage, build_storage


class FakeS3Client:
    """In-memory stand-in for the handful of boto3 S3 calls we make."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}

    def put_object(self, Bucket: str, Key: str, Body: bytes) -> dict:
        self.objects[(Bucket, Key)] = Body
        return {}

    def get_object(self, Bucket: str, Key: str) -> dict:
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def delete_object(self, Bucket: str, Key: str) -> dict:
        self.objects.pop((Bucket, Key), None)
        return {}

    def head_object(self, Bucket: str, Key: str) -> dict:
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "404"}}, "HeadObject")
        return {"ContentLength": len(self.objects[(Bucket, Key)])}


@pytest.mark.asyncio
async def test_local_storage_round_trip(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path / "files")
    owner = uuid.uuid4()

    path = await storage.save(b"hello", "notes.txt", owner)

    assert Path(path) == (tmp_path / "files" / str(owner) / "notes.txt").resolve()
    assert await storage.get(path) == b"hello"
    assert await storage.size(path) == 5

    await storage.delete(path)
    with pytest.raises(StorageError):
        await storage.get(path)


@pytest.mark.asyncio
async def test_local_storage_strips_directories(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    owner = uuid.uuid4()

    path = await storage.save(b"x", "../../etc/passwd", owner)
    assert Path(path).parent == (tmp_path / str(owner)).resolve()

    with pytest.raises(StorageError):
        await storage.get(str(tmp_path.parent / "outside.txt"))


@pytest.mark.asyncio
async def test_s3_storage_round_trip() -> None:
    client = FakeS3Client()
    storage = S3Storage("licenses", client)
    owner = uuid.uuid4()

    key = await storage.save(b"payload", "seat.lic", owner)

    assert key == f"{owner}/seat.lic"
    assert client.objects[("licenses", key)] == b"payload"
    assert await storage.get(key) == b"payload"
    assert await storage.size(key) == 7

    await storage.delete(key)
    with pytest.raises(StorageError):
        await storage.get(key)


def test_build_storage_picks_backend(tmp_path: Path) -> None:
    local = build_storage(Settings(STORAGE_TYPE="local", STORAGE_LOCAL_PATH=str(tmp_path)))
    assert local.backend == "local"

    with pytest.raises(ValueError):
        build_storage(Settings(STORAGE_TYPE="s3"))

    with pytest.raises(ValueError):
        build_storage(Settings(STORAGE_TYPE="ftp"))
