"""In-process blob storage for tests and single-process development."""

import asyncio
import hashlib
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import BinaryIO

from vidpipe.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    HealthStatus,
)


@dataclass
class _StoredBlob:
    data: bytes
    content_type: str
    created_at: datetime
    metadata: dict[str, str]

    def describe(self, path: str) -> BlobMetadata:
        return BlobMetadata(
            path=path,
            size_bytes=len(self.data),
            content_type=self.content_type,
            created_at=self.created_at,
            etag=hashlib.md5(self.data, usedforsecurity=False).hexdigest(),
        )


class InMemoryBlobStorage(BlobStorageBase):
    """Dictionary-backed blob storage.

    Buckets are created on first write. Overwrites replace the stored
    bytes, matching object-store semantics.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, _StoredBlob]] = {}
        self._lock = asyncio.Lock()

    def _get(self, bucket: str, path: str) -> _StoredBlob:
        try:
            return self._buckets[bucket][path]
        except KeyError:
            raise BlobNotFoundError(bucket, path) from None

    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        payload = data if isinstance(data, bytes) else data.read()
        blob = _StoredBlob(
            data=bytes(payload),
            content_type=content_type,
            created_at=datetime.now(UTC),
            metadata=dict(metadata or {}),
        )
        async with self._lock:
            self._buckets.setdefault(bucket, {})[path] = blob
        return blob.describe(path)

    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        return await self.upload(bucket, path, local_path.read_bytes(), content_type)

    async def download(self, bucket: str, path: str) -> bytes:
        return self._get(bucket, path).data

    async def download_to_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
    ) -> None:
        blob = self._get(bucket, path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(blob.data)

    async def delete(self, bucket: str, path: str) -> bool:
        async with self._lock:
            return self._buckets.get(bucket, {}).pop(path, None) is not None

    async def exists(self, bucket: str, path: str) -> bool:
        return path in self._buckets.get(bucket, {})

    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        return self._get(bucket, path).describe(path)

    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
    ) -> str:
        expires = datetime.now(UTC) + timedelta(seconds=expiry_seconds)
        return f"memory://{bucket}/{path}?expires={int(expires.timestamp())}"

    async def ensure_bucket(self, bucket: str) -> bool:
        async with self._lock:
            if bucket in self._buckets:
                return False
            self._buckets[bucket] = {}
            return True

    def list_paths(self, bucket: str, prefix: str = "") -> list[str]:
        """List stored keys under a prefix, sorted."""
        return sorted(p for p in self._buckets.get(bucket, {}) if p.startswith(prefix))

    async def health_check(self) -> HealthStatus:
        return HealthStatus(
            healthy=True,
            latency_ms=0.0,
            message="In-memory blob storage is healthy",
            details={"buckets": str(len(self._buckets))},
        )
