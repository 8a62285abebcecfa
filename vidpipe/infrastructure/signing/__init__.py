"""Signed URL issuers."""

from vidpipe.infrastructure.signing.base import SignedUrl, SignedUrlIssuerBase
from vidpipe.infrastructure.signing.hmac_signer import HmacUrlSigner
from vidpipe.infrastructure.signing.presigned_signer import PresignedBlobUrlSigner

__all__ = [
    "SignedUrl",
    "SignedUrlIssuerBase",
    "HmacUrlSigner",
    "PresignedBlobUrlSigner",
]
