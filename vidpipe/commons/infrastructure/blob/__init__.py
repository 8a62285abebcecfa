"""Blob storage abstractions and implementations."""

from vidpipe.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    HealthStatus,
)
from vidpipe.commons.infrastructure.blob.memory_provider import InMemoryBlobStorage
from vidpipe.commons.infrastructure.blob.minio_provider import MinioBlobStorage

__all__ = [
    # Base classes
    "BlobMetadata",
    "BlobStorageBase",
    "HealthStatus",
    # Implementations
    "MinioBlobStorage",
    "InMemoryBlobStorage",
    # Exceptions
    "BlobNotFoundError",
]
