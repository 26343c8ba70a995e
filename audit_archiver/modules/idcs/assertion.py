"""
Client assertions for the IDCS client-credentials grant.

An assertion is a compact JWT (``header.payload.signature``) whose subject and
issuer are the IDCS client id. The signature segment comes from an
:class:`AssertionSigner`: either a local RSA key held by the process or a
key that never leaves the vault.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import load_pem_private_key
from jwt.utils import base64url_encode

from audit_archiver.modules.vault.signing import RSA_PKCS1_SHA256, KeyManagementSigner

IDCS_AUDIENCE = "https://identity.oraclecloud.com/"
DEFAULT_ASSERTION_TTL_SECONDS = 30


class AssertionSigner(Protocol):
    """Produces the third segment of a compact token."""

    algorithm: str

    async def sign(self, signing_input: bytes) -> str: ...


class LocalKeyAssertionSigner:
    """Signs assertions with an RSA private key held in process."""

    algorithm = "RS256"

    def __init__(self, private_key_pem: str, passphrase: str | None = None) -> None:
        password = passphrase.encode("utf-8") if passphrase else None
        key = load_pem_private_key(private_key_pem.encode("utf-8"), password=password)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise TypeError("Expected an RSA private key")
        self._key = key

    async def sign(self, signing_input: bytes) -> str:
        signature = self._key.sign(signing_input, padding.PKCS1v15(), hashes.SHA256())
        return base64url_encode(signature).decode("ascii")


class RemoteKeyAssertionSigner:
    """Delegates assertion signing to a vault key.

    The vault returns its signature already encoded, so the value is used as
    the third segment as-is.
    """

    algorithm = "RS256"

    def __init__(self, kms: KeyManagementSigner, key_id: str) -> None:
        self._kms = kms
        self._key_id = key_id

    async def sign(self, signing_input: bytes) -> str:
        message = base64.b64encode(signing_input).decode("ascii")
        return await self._kms.sign(self._key_id, message, RSA_PKCS1_SHA256)


@dataclass(frozen=True)
class ClientAssertionClaims:
    subject: str
    issuer: str
    issued_at: int
    expires_at: int
    audience: tuple[str, ...] = (IDCS_AUDIENCE,)

    @classmethod
    def for_client(
        cls,
        client_id: str,
        ttl_seconds: int = DEFAULT_ASSERTION_TTL_SECONDS,
        now: datetime | None = None,
    ) -> ClientAssertionClaims:
        issued_at = int((now or datetime.now(UTC)).timestamp())
        return cls(
            subject=client_id,
            issuer=client_id,
            issued_at=issued_at,
            expires_at=issued_at + ttl_seconds,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "sub": self.subject,
            "iss": self.issuer,
            "aud": list(self.audience),
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


def _encode_segment(value: dict[str, Any]) -> str:
    raw = json.dumps(value, separators=(",", ":")).encode("utf-8")
    return base64url_encode(raw).decode("ascii")


def assertion_signing_input(key_alias: str, claims: ClientAssertionClaims, algorithm: str) -> str:
    """Return ``base64url(header) + "." + base64url(payload)``."""
    header = {"alg": algorithm, "typ": "JWT", "kid": key_alias}
    return f"{_encode_segment(header)}.{_encode_segment(claims.to_payload())}"


async def build_client_assertion(
    subject: str,
    key_alias: str,
    signer: AssertionSigner,
    ttl_seconds: int = DEFAULT_ASSERTION_TTL_SECONDS,
    now: datetime | None = None,
) -> str:
    """Build and sign a client assertion for ``subject``.

    Output is byte-identical for a fixed subject, alias, key and clock.
    """
    claims = ClientAssertionClaims.for_client(subject, ttl_seconds=ttl_seconds, now=now)
    signing_input = assertion_signing_input(key_alias, claims, signer.algorithm)
    signature = await signer.sign(signing_input.encode("ascii"))
    return f"{signing_input}.{signature}"
