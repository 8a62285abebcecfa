"""Unit tests for signed URL issuers."""

import base64
import hashlib
import hmac
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import pytest

from vidpipe.domain.exceptions import AccessDeniedException, ValidationException
from vidpipe.infrastructure.signing import HmacUrlSigner, PresignedBlobUrlSigner


class TestHmacUrlSigner:
    """Tests for HMAC token URLs."""

    async def test_url_layout_and_token(self, signer, clock, signing_key):
        signed = await signer.sign("renditions", "job-1/job-1_720p.mp4", 3600)

        parts = urlsplit(signed.url)
        query = parse_qs(parts.query)
        expires = int(clock.now) + 3600
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == (
            "https://cdn.example.com/media/renditions/job-1/job-1_720p.mp4"
        )
        assert query["exp"] == [str(expires)]

        digest = hmac.new(
            base64.b64decode(signing_key),
            f"/renditions/job-1/job-1_720p.mp4exp={expires}".encode(),
            hashlib.sha256,
        ).digest()
        expected = base64.urlsafe_b64encode(digest).rstrip(b"=").decode()
        assert query["h"] == [expected]
        assert signed.expires_at.timestamp() == expires

    async def test_verify_within_ttl(self, signer, clock):
        signed = await signer.sign("renditions", "job-1/out.mp4", 60)

        clock.advance(59)

        assert signer.verify(signed.url) == "renditions/job-1/out.mp4"

    async def test_expired_url_denied(self, signer, clock):
        signed = await signer.sign("renditions", "job-1/out.mp4", 60)

        clock.advance(61)

        with pytest.raises(AccessDeniedException) as exc_info:
            signer.verify(signed.url)
        assert str(exc_info.value) == "Access denied"

    async def test_tampered_path_denied(self, signer):
        signed = await signer.sign("renditions", "job-1/out.mp4", 60)

        with pytest.raises(AccessDeniedException):
            signer.verify(signed.url.replace("job-1", "job-2"))

    async def test_extended_expiry_denied(self, signer, clock):
        signed = await signer.sign("renditions", "job-1/out.mp4", 60)
        forged = signed.url.replace(f"exp={int(clock.now) + 60}", f"exp={int(clock.now) + 9999}")

        with pytest.raises(AccessDeniedException):
            signer.verify(forged)

    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example.com/media/renditions/job-1/out.mp4",
            "https://cdn.example.com/media/renditions/job-1/out.mp4?exp=abc&h=x",
            "https://evil.example.com/media/renditions/job-1/out.mp4?exp=1&h=x",
            "not a url",
        ],
    )
    def test_malformed_urls_denied(self, signer, url):
        with pytest.raises(AccessDeniedException):
            signer.verify(url)

    async def test_other_key_denied(self, signer, clock):
        other = HmacUrlSigner(
            "https://cdn.example.com/media",
            base64.b64encode(b"another-key").decode(),
            clock=clock,
        )
        signed = await other.sign("renditions", "job-1/out.mp4", 60)

        with pytest.raises(AccessDeniedException):
            signer.verify(signed.url)

    @pytest.mark.parametrize("ttl", [0, -5])
    async def test_non_positive_ttl_rejected(self, signer, ttl):
        with pytest.raises(ValidationException):
            await signer.sign("renditions", "job-1/out.mp4", ttl)

    async def test_empty_path_rejected(self, signer):
        with pytest.raises(ValidationException):
            await signer.sign("renditions", "/", 60)

    @pytest.mark.parametrize("key", ["", "not base64!"])
    def test_bad_key_rejected(self, key):
        with pytest.raises(ValueError):
            HmacUrlSigner("https://cdn.example.com", key)


class TestPresignedBlobUrlSigner:
    """Tests for blob-store presigned URLs."""

    async def test_delegates_to_blob_storage(self, blob):
        blob.generate_presigned_url = AsyncMock(return_value="https://minio/renditions/x?sig")
        signer = PresignedBlobUrlSigner(blob)

        signed = await signer.sign("renditions", "job-1/out.mp4", 120)

        assert signed.url == "https://minio/renditions/x?sig"
        blob.generate_presigned_url.assert_awaited_once_with("renditions", "job-1/out.mp4", 120)

    async def test_non_positive_ttl_rejected(self, blob):
        with pytest.raises(ValidationException):
            await PresignedBlobUrlSigner(blob).sign("renditions", "job-1/out.mp4", 0)
