"""Remote signing through the OCI Vault key management crypto endpoint."""

from __future__ import annotations

import json
from typing import Any

import httpx

from audit_archiver.core.crypto.request_signing import RequestSigner, SignableRequest
from audit_archiver.core.errors import AuthError
from audit_archiver.core.http import ensure_scheme, read_json, send_signed
from audit_archiver.core.logging import get_logger

logger = get_logger(__name__)

KMS_CRYPTO_API_VERSION = "20180608"
RSA_PKCS1_SHA256 = "SHA_256_RSA_PKCS1_V1_5"


class KeyManagementSigner:
    """Signed client for ``POST /sign`` on a vault crypto endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        signer: RequestSigner,
        crypto_endpoint: str,
    ) -> None:
        self._client = client
        self._signer = signer
        self._base = f"{ensure_scheme(crypto_endpoint)}/{KMS_CRYPTO_API_VERSION}"

    async def sign(
        self,
        key_id: str,
        message_b64: str,
        algorithm: str = RSA_PKCS1_SHA256,
    ) -> str:
        """Sign a base64-encoded raw message with a vault key and return the signature."""
        body = json.dumps(
            {
                "keyId": key_id,
                "message": message_b64,
                "signingAlgorithm": algorithm,
                "messageType": "RAW",
            }
        ).encode("utf-8")
        request = SignableRequest(
            url=f"{self._base}/sign",
            method="POST",
            headers={"content-type": "application/json"},
            body=body,
        )
        response = await send_signed(self._client, self._signer, request)
        payload: dict[str, Any] = read_json(response, check_status=False)

        signature = payload.get("signature")
        if not signature:
            raise AuthError(f"Signing with key {key_id} returned no signature")
        logger.debug("remote_signature_obtained", key_id=key_id, algorithm=algorithm)
        return str(signature)
