"""S3-compatible object storage gateway.

boto3 is synchronous, so every client call is pushed to a worker thread.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import anyio
import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.errors import NotFoundError, ServerConfigError, StorageError
from app.core.uploads import FileKind, extension_for, normalize_content_type

logger = logging.getLogger("svr.storage")

KEY_PREFIXES: dict[FileKind, str] = {"photo": "photos", "cv": "cvs"}
STREAM_CHUNK_SIZE = 64 * 1024


def _normalize_endpoint(endpoint_url: str | None) -> str | None:
    if endpoint_url:
        return endpoint_url.rstrip("/")
    return None


def _build_s3_config() -> Config | None:
    style = (settings.s3_url_style or "").strip().lower()
    if style in {"path", "virtual"}:
        return Config(s3={"addressing_style": style})
    return None


def get_s3_client() -> BaseClient:
    """Return a configured S3 client (supports S3-compatible endpoints)."""
    endpoint = _normalize_endpoint(settings.s3_endpoint_url)
    return boto3.client(
        "s3",
        region_name=settings.s3_region or None,
        aws_access_key_id=settings.aws_access_key_id or None,
        aws_secret_access_key=settings.aws_secret_access_key or None,
        endpoint_url=endpoint,
        config=_build_s3_config(),
    )


def build_object_key(kind: FileKind, content_type: str | None) -> str:
    ext = extension_for(None, content_type).lstrip(".") or "bin"
    return f"{KEY_PREFIXES[kind]}/{uuid.uuid4()}.{ext}"


def _is_missing(exc: ClientError) -> bool:
    code = str(exc.response.get("Error", {}).get("Code", ""))
    return code in {"NoSuchKey", "404", "NotFound"}


@dataclass
class StoredObject:
    body_iter: AsyncIterator[bytes]
    content_type: str
    content_length: Optional[int] = None


class ObjectStorage:
    def __init__(self, client: BaseClient, bucket: str, *, url_ttl_seconds: int = 300) -> None:
        self.client = client
        self.bucket = bucket
        self.url_ttl_seconds = url_ttl_seconds

    async def _call(self, operation: str, func, *args: Any, **kwargs: Any) -> Any:
        try:
            return await anyio.to_thread.run_sync(lambda: func(*args, **kwargs))
        except ClientError as exc:
            if operation == "open" and _is_missing(exc):
                raise NotFoundError("File not found")
            logger.warning("storage_call_failed", extra={"operation": operation, "error": str(exc)})
            raise StorageError(f"Storage {operation} failed")
        except BotoCoreError as exc:
            logger.warning("storage_call_failed", extra={"operation": operation, "error": str(exc)})
            raise StorageError(f"Storage {operation} failed")

    async def presign_put(self, key: str, content_type: str) -> str:
        return await self._call(
            "presign",
            self.client.generate_presigned_url,
            "put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": normalize_content_type(content_type)},
            ExpiresIn=self.url_ttl_seconds,
        )

    async def presign_get(self, key: str) -> str:
        return await self._call(
            "presign",
            self.client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.url_ttl_seconds,
        )

    async def delete(self, key: str) -> None:
        await self._call("delete", self.client.delete_object, Bucket=self.bucket, Key=key)

    async def open(self, key: str) -> StoredObject:
        response = await self._call("open", self.client.get_object, Bucket=self.bucket, Key=key)
        body = response["Body"]

        async def chunks() -> AsyncIterator[bytes]:
            try:
                while True:
                    chunk = await anyio.to_thread.run_sync(body.read, STREAM_CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
            finally:
                body.close()

        return StoredObject(
            body_iter=chunks(),
            content_type=response.get("ContentType") or "application/octet-stream",
            content_length=response.get("ContentLength"),
        )


_storage: ObjectStorage | None = None


def get_object_storage() -> ObjectStorage:
    global _storage
    if _storage is None:
        if not settings.s3_bucket:
            raise ServerConfigError("S3 bucket missing")
        _storage = ObjectStorage(get_s3_client(), settings.s3_bucket, url_ttl_seconds=settings.presign_ttl_seconds)
    return _storage
