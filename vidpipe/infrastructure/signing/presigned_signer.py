"""Signed URLs delegated to the blob store's presigning."""

from datetime import UTC, datetime, timedelta

from vidpipe.commons.infrastructure.blob.base import BlobStorageBase
from vidpipe.domain.exceptions import ValidationException
from vidpipe.infrastructure.signing.base import SignedUrl, SignedUrlIssuerBase


class PresignedBlobUrlSigner(SignedUrlIssuerBase):
    """Uses S3-style presigned GET URLs; the store enforces expiry."""

    def __init__(self, blob_storage: BlobStorageBase) -> None:
        self._blob = blob_storage

    async def sign(self, bucket: str, path: str, ttl_seconds: int) -> SignedUrl:
        if not path.strip("/"):
            raise ValidationException("Path is required for a signed URL", field="path")
        if ttl_seconds <= 0:
            raise ValidationException("Expiry must be positive", field="ttl_seconds")

        expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
        url = await self._blob.generate_presigned_url(bucket, path, ttl_seconds)
        return SignedUrl(url=url, expires_at=expires_at)
