"""File storage backends for uploaded license key files.

Every backend offers the same four async operations keyed by an opaque path
string: ``save``, ``get``, ``delete`` and ``size``. The backend is picked once
at startup by :func:`build_storage`.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path, PurePath
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import StorageError

logger = logging.getLogger(__name__)

LOCAL = "local"
S3 = "s3"


class Storage(Protocol):
    """Capability every storage backend provides."""

    backend: str

    async def save(self, data: bytes, filename: str, owner_id: uuid.UUID) -> str: ...

    async def get(self, path: str) -> bytes: ...

    async def delete(self, path: str) -> None: ...

    async def size(self, path: str) -> int: ...


def clean_filename(filename: str) -> str | None:
    """Final path component of ``filename``, or None when nothing usable is left."""

    # Keep only the final path component so uploads cannot climb directories.
    name = PurePath(filename.replace("\\", "/")).name
    if name in {"", ".", ".."}:
        return None
    return name


def _safe_filename(filename: str) -> str:
    name = clean_filename(filename)
    if name is None:
        raise StorageError(f"Invalid file name: {filename!r}")
    return name


class LocalStorage:
    """Stores files under ``<base_path>/<owner_id>/<filename>``."""

    backend = LOCAL

    def __init__(self, base_path: str | Path) -> None:
        self._base = Path(base_path).resolve()
        self._base.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        resolved = Path(path).resolve()
        if not resolved.is_relative_to(self._base):
            raise StorageError(f"Path outside storage root: {path}")
        return resolved

    async def save(self, data: bytes, filename: str, owner_id: uuid.UUID) -> str:
        target = self._base / str(owner_id) / _safe_filename(filename)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise StorageError(f"Could not write {target}") from exc
        return str(target)

    async def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise StorageError(f"Could not read {path}") from exc

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink)
        except OSError as exc:
            raise StorageError(f"Could not delete {path}") from exc

    async def size(self, path: str) -> int:
        target = self._resolve(path)
        try:
            stat = await asyncio.to_thread(target.stat)
        except OSError as exc:
            raise StorageError(f"Could not stat {path}") from exc
        return stat.st_size


class S3Storage:
    """Stores files in one bucket under ``<owner_id>/<filename>`` keys."""

    backend = S3

    def __init__(self, bucket: str, client: Any) -> None:
        self._bucket = bucket
        self._client = client

    async def _call(self, method: str, **kwargs: Any) -> Any:
        # boto3 is blocking; keep it off the event loop.
        func = getattr(self._client, method)
        try:
            return await asyncio.to_thread(func, Bucket=self._bucket, **kwargs)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"S3 {method} failed for {kwargs.get('Key')}") from exc

    async def save(self, data: bytes, filename: str, owner_id: uuid.UUID) -> str:
        key = f"{owner_id}/{_safe_filename(filename)}"
        await self._call("put_object", Key=key, Body=data)
        return key

    async def get(self, path: str) -> bytes:
        response = await self._call("get_object", Key=path)
        return await asyncio.to_thread(response["Body"].read)

    async def delete(self, path: str) -> None:
        await self._call("delete_object", Key=path)

    async def size(self, path: str) -> int:
        response = await self._call("head_object", Key=path)
        return int(response["ContentLength"])


def build_storage(settings: Settings) -> Storage:
    """Instantiate the backend named by ``STORAGE_TYPE``."""

    storage_type = settings.storage_type.lower()
    if storage_type == LOCAL:
        logger.info("Using local file storage at %s", settings.storage_local_path)
        return LocalStorage(settings.storage_local_path)
    if storage_type == S3:
        if not settings.s3_bucket:
            raise ValueError("STORAGE_TYPE=s3 requires S3_BUCKET")
        client = boto3.client(
            "s3",
            region_name=settings.s3_region or None,
            endpoint_url=settings.s3_endpoint or None,
            aws_access_key_id=settings.s3_access_key_id or None,
            aws_secret_access_key=settings.s3_secret_access_key or None,
        )
        logger.info("Using S3 file storage in bucket %s", settings.s3_bucket)
        return S3Storage(settings.s3_bucket, client)
    raise ValueError(f"Unknown STORAGE_TYPE: {settings.storage_type}")
