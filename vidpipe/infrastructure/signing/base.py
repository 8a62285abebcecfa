"""Abstract issuer of time-limited asset URLs."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SignedUrl:
    """A URL granting read access until ``expires_at``."""

    url: str
    expires_at: datetime


class SignedUrlIssuerBase(ABC):
    """Produces tamper-evident, time-bounded URLs for stored objects."""

    @abstractmethod
    async def sign(self, bucket: str, path: str, ttl_seconds: int) -> SignedUrl:
        """Sign a URL for one object.

        Args:
            bucket: Bucket holding the object.
            path: Object key within the bucket.
            ttl_seconds: Validity window, must be positive.

        Returns:
            The signed URL and its expiry.

        Raises:
            ValidationException: If the path is empty or the TTL is not positive.
        """
