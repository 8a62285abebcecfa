"""HMAC-SHA256 token signing for CDN-style playback URLs."""

import base64
import binascii
import hashlib
import hmac
import time
from collections.abc import Callable
from datetime import UTC, datetime
from urllib.parse import parse_qs, quote, unquote, urlsplit

from vidpipe.domain.exceptions import AccessDeniedException, ValidationException
from vidpipe.infrastructure.signing.base import SignedUrl, SignedUrlIssuerBase


def _token(key: bytes, path: str, expires: int) -> str:
    digest = hmac.new(key, f"/{path}exp={expires}".encode(), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class HmacUrlSigner(SignedUrlIssuerBase):
    """Signs ``{base_url}/{bucket}/{path}?exp=<unix>&h=<token>``.

    The token is an unpadded url-safe base64 HMAC-SHA256 of
    ``"/{bucket}/{path}exp={unix}"`` under a shared base64 key, so an edge
    server holding the key can validate it without calling back.
    """

    def __init__(
        self,
        base_url: str,
        security_key: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the signer.

        Args:
            base_url: Public origin serving the objects.
            security_key: Base64-encoded HMAC key.
            clock: Source of the current unix time.

        Raises:
            ValueError: If the key is empty or not valid base64.
        """
        if not security_key:
            raise ValueError("Signing security key is not configured")
        try:
            self._key = base64.b64decode(security_key, validate=True)
        except binascii.Error as e:
            raise ValueError("Signing security key is not valid base64") from e
        self._base_url = base_url.rstrip("/")
        self._clock = clock

    async def sign(self, bucket: str, path: str, ttl_seconds: int) -> SignedUrl:
        """Build a signed URL valid for ``ttl_seconds``."""
        object_path = f"{bucket.strip('/')}/{path.lstrip('/')}"
        if not path.strip("/"):
            raise ValidationException("Path is required for a signed URL", field="path")
        if ttl_seconds <= 0:
            raise ValidationException("Expiry must be positive", field="ttl_seconds")

        expires = int(self._clock()) + ttl_seconds
        token = _token(self._key, object_path, expires)
        return SignedUrl(
            url=f"{self._base_url}/{quote(object_path)}?exp={expires}&h={token}",
            expires_at=datetime.fromtimestamp(expires, UTC),
        )

    def verify(self, url: str) -> str:
        """Check a URL produced by :meth:`sign`.

        Returns:
            The signed ``bucket/path``.

        Raises:
            AccessDeniedException: If the URL is expired, tampered with, or
                not one of ours. The cases are indistinguishable.
        """
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}"
        base = urlsplit(self._base_url)
        prefix = base.path.rstrip("/") + "/"
        if origin != f"{base.scheme}://{base.netloc}" or not parts.path.startswith(prefix):
            raise AccessDeniedException()

        object_path = unquote(parts.path[len(prefix) :])
        query = parse_qs(parts.query)
        try:
            expires = int(query["exp"][0])
            supplied = query["h"][0]
        except (KeyError, IndexError, ValueError):
            raise AccessDeniedException() from None

        expected = _token(self._key, object_path, expires)
        if not hmac.compare_digest(expected, supplied) or expires < self._clock():
            raise AccessDeniedException()
        return object_path
