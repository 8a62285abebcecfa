"""MinIO implementation of blob storage."""

import asyncio
import io
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import BinaryIO

from minio import Minio
from minio.error import S3Error

from vidpipe.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    HealthStatus,
)

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchObject"})


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of blob storage.

    The MinIO SDK is blocking, so every call is pushed to the default
    executor. Works with both MinIO and AWS S3 endpoints.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint

    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        """Upload a blob to storage."""
        if isinstance(data, bytes):
            stream: BinaryIO = io.BytesIO(data)
            length = len(data)
        else:
            data.seek(0, io.SEEK_END)
            length = data.tell()
            data.seek(0)
            stream = data

        def _put() -> None:
            self._client.put_object(
                bucket_name=bucket,
                object_name=path,
                data=stream,
                length=length,
                content_type=content_type,
                metadata=metadata,
            )

        await asyncio.get_running_loop().run_in_executor(None, _put)
        return await self.get_metadata(bucket, path)

    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        """Upload a local file using the SDK's multipart upload."""

        def _fput() -> None:
            self._client.fput_object(
                bucket_name=bucket,
                object_name=path,
                file_path=str(local_path),
                content_type=content_type,
            )

        await asyncio.get_running_loop().run_in_executor(None, _fput)
        return await self.get_metadata(bucket, path)

    async def download(self, bucket: str, path: str) -> bytes:
        """Download a blob from storage."""

        def _get() -> bytes:
            try:
                response = self._client.get_object(bucket, path)
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    raise BlobNotFoundError(bucket, path) from e
                raise
            try:
                data: bytes = response.read()
                return data
            finally:
                response.close()
                response.release_conn()

        return await asyncio.get_running_loop().run_in_executor(None, _get)

    async def download_to_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
    ) -> None:
        """Stream a blob to disk."""
        local_path.parent.mkdir(parents=True, exist_ok=True)

        def _fget() -> None:
            try:
                self._client.fget_object(bucket, path, str(local_path))
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    raise BlobNotFoundError(bucket, path) from e
                raise

        await asyncio.get_running_loop().run_in_executor(None, _fget)

    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob from storage."""
        if not await self.exists(bucket, path):
            return False
        await asyncio.get_running_loop().run_in_executor(
            None, self._client.remove_object, bucket, path
        )
        return True

    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""

        def _stat() -> bool:
            try:
                self._client.stat_object(bucket, path)
                return True
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    return False
                raise

        return await asyncio.get_running_loop().run_in_executor(None, _stat)

    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading."""

        def _stat() -> BlobMetadata:
            try:
                stat = self._client.stat_object(bucket, path)
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    raise BlobNotFoundError(bucket, path) from e
                raise
            return BlobMetadata(
                path=path,
                size_bytes=stat.size or 0,
                content_type=stat.content_type or "application/octet-stream",
                created_at=stat.last_modified or datetime.now(UTC),
                etag=stat.etag or "",
            )

        return await asyncio.get_running_loop().run_in_executor(None, _stat)

    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
    ) -> str:
        """Generate a presigned GET URL."""

        def _presign() -> str:
            return str(
                self._client.presigned_get_object(
                    bucket_name=bucket,
                    object_name=path,
                    expires=timedelta(seconds=expiry_seconds),
                )
            )

        return await asyncio.get_running_loop().run_in_executor(None, _presign)

    async def ensure_bucket(self, bucket: str) -> bool:
        """Create the bucket if it is missing."""

        def _ensure() -> bool:
            if self._client.bucket_exists(bucket):
                return False
            self._client.make_bucket(bucket)
            return True

        return await asyncio.get_running_loop().run_in_executor(None, _ensure)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await asyncio.get_running_loop().run_in_executor(
                None, self._client.list_buckets
            )
        except Exception as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MinIO is healthy",
            details={"endpoint": self._endpoint},
        )
