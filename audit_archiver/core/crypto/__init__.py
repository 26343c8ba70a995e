"""
Request signing primitives for OCI APIs.

- **request_signing**: RSA-SHA256 ``Signature version="1"`` HTTP message signatures
"""

from audit_archiver.core.crypto.request_signing import (
    RequestSigner,
    SignableRequest,
    SigningIdentity,
    build_signing_string,
    http_date,
)

__all__ = [
    "RequestSigner",
    "SignableRequest",
    "SigningIdentity",
    "build_signing_string",
    "http_date",
]
