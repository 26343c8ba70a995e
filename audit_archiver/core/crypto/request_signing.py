"""
RSA-SHA256 HTTP message signatures for OCI API requests.

Implements the ``Signature version="1"`` scheme: a fixed list of headers is
rendered into a newline-joined signing string, signed with the caller's
private key and carried in the ``Authorization`` header.
"""

from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import format_datetime

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import load_pem_private_key

_AUTHORITY_RE = re.compile(r"^https?://([^/?#]+)", re.IGNORECASE)

BASE_SIGNING_HEADERS = ("date", "(request-target)", "host")
BODY_SIGNING_HEADERS = ("content-type", "content-length", "x-content-sha256")
_METHODS_WITH_BODY = frozenset({"POST", "PUT"})

_AUTHORIZATION_TEMPLATE = (
    'Signature version="1",keyId="{key_id}",algorithm="rsa-sha256",'
    'headers="{headers}",signature="{signature}"'
)


@dataclass
class SignableRequest:
    """Outbound request description that the signer mutates in place."""

    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


@dataclass(frozen=True)
class SigningIdentity:
    """Key identifier and PEM private key used to sign API requests."""

    key_id: str
    private_key: str
    passphrase: str | None = None

    def load_private_key(self) -> rsa.RSAPrivateKey:
        """Load the RSA key, unwrapping it with the passphrase when encrypted."""
        password = None
        if self.passphrase and "ENCRYPTED" in self.private_key:
            password = self.passphrase.encode("utf-8")
        key = load_pem_private_key(self.private_key.encode("utf-8"), password=password)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise TypeError("Expected an RSA private key")
        return key


def http_date(now: datetime | None = None) -> str:
    """Format a timestamp as an RFC 7231 ``Date`` header value."""
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    return format_datetime(moment.replace(microsecond=0), usegmt=True)


def split_url(url: str) -> tuple[str, str]:
    """Return ``(host, path_and_query)`` for an absolute http(s) URL.

    The path and query are kept exactly as written so percent-encoding in the
    signed request target matches what is sent on the wire.
    """
    trimmed = url.strip()
    match = _AUTHORITY_RE.match(trimmed)
    if match is None:
        raise ValueError(f"Cannot sign request with malformed URL: {url!r}")
    target = trimmed[match.end() :]
    if not target.startswith("/"):
        target = "/" + target
    return match.group(1), target


def build_signing_string(headers: list[str], values: dict[str, str]) -> str:
    """Render the ordered header list into the canonical signing string."""
    return "\n".join(f"{name.lower()}: {values[name]}" for name in headers)


class RequestSigner:
    """
    Signs outbound requests for a single identity.

    The signer holds no state besides the identity; the only input that
    varies between calls is the current time rendered into ``date``.
    """

    def __init__(self, identity: SigningIdentity) -> None:
        self._identity = identity
        self._private_key: rsa.RSAPrivateKey | None = None

    @property
    def key_id(self) -> str:
        return self._identity.key_id

    def _key(self) -> rsa.RSAPrivateKey:
        if self._private_key is None:
            self._private_key = self._identity.load_private_key()
        return self._private_key

    def signing_values(
        self, request: SignableRequest, now: datetime | None = None
    ) -> tuple[list[str], dict[str, str]]:
        """Compute the ordered header list and the values that will be signed.

        Body headers (``Content-Length`` and ``x-content-sha256``) are set on
        the request as a side effect for POST and PUT.
        """
        host, target = split_url(request.url)
        method = request.method.upper()
        headers = list(BASE_SIGNING_HEADERS)
        values = {
            "date": http_date(now),
            "(request-target)": f"{method.lower()} {target}",
            "host": host,
        }

        if method in _METHODS_WITH_BODY:
            body = request.body or b""
            digest = base64.b64encode(hashlib.sha256(body).digest()).decode("ascii")
            headers.extend(BODY_SIGNING_HEADERS)
            values["content-type"] = request.header("content-type") or ""
            values["content-length"] = str(len(body))
            values["x-content-sha256"] = digest
            request.headers["Content-Length"] = values["content-length"]
            request.headers["x-content-sha256"] = digest

        return headers, values

    def sign(self, request: SignableRequest, now: datetime | None = None) -> SignableRequest:
        """Add ``Authorization``, ``hostname`` and ``date`` headers to the request."""
        headers, values = self.signing_values(request, now)
        signing_string = build_signing_string(headers, values)
        signature = self._key().sign(
            signing_string.encode("utf-8"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        request.headers["Authorization"] = _AUTHORIZATION_TEMPLATE.format(
            key_id=self._identity.key_id,
            headers=" ".join(headers),
            signature=base64.b64encode(signature).decode("ascii"),
        )
        request.headers["hostname"] = values["host"]
        request.headers["date"] = values["date"]
        return request
