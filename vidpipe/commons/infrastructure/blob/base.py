"""Abstract chunk/asset store used for upload chunks, merged assets and renditions."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    path: str
    size_bytes: int
    content_type: str
    created_at: datetime
    etag: str


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobNotFoundError(Exception):
    """Raised when a blob is not found."""

    def __init__(self, bucket: str, path: str) -> None:
        self.bucket = bucket
        self.path = path
        super().__init__(f"Blob not found: {bucket}/{path}")


class BlobStorageBase(ABC):
    """Keyed put/get/delete store for binary objects.

    Implementations:
    - MinIO / S3 (production)
    - In-process dictionary (tests and single-process development)
    """

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        """Upload a blob, overwriting any existing object at the same key.

        Args:
            bucket: Target bucket name.
            path: Path within the bucket.
            data: File-like object or bytes to upload.
            content_type: MIME type of the content.
            metadata: Optional key-value metadata.

        Returns:
            Metadata of the uploaded blob.
        """

    @abstractmethod
    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        """Upload a local file without reading it fully into memory.

        Args:
            bucket: Target bucket name.
            path: Path within the bucket.
            local_path: File to upload.
            content_type: MIME type of the content.

        Returns:
            Metadata of the uploaded blob.
        """

    @abstractmethod
    async def download(self, bucket: str, path: str) -> bytes:
        """Download a blob.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def download_to_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
    ) -> None:
        """Download a blob to a local file.

        Args:
            bucket: Source bucket name.
            path: Path within the bucket.
            local_path: Local filesystem path to write to.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob.

        Returns:
            True if deleted, False if it didn't exist.
        """

    @abstractmethod
    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""

    @abstractmethod
    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
    ) -> str:
        """Generate a time-limited GET URL for direct access.

        Args:
            bucket: Bucket name.
            path: Path within the bucket.
            expiry_seconds: URL validity duration.

        Returns:
            Presigned URL string.
        """

    @abstractmethod
    async def ensure_bucket(self, bucket: str) -> bool:
        """Create a bucket if it is missing.

        Returns:
            True if created, False if it already existed.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""
