"""Signed access to the archive bucket in OCI Object Storage."""

from __future__ import annotations

from urllib.parse import urlencode

import httpx

from audit_archiver.core.crypto.request_signing import RequestSigner, SignableRequest
from audit_archiver.core.errors import MalformedResponseError, TransportError
from audit_archiver.core.http import read_json, send_signed
from audit_archiver.core.logging import get_logger

logger = get_logger(__name__)


class ObjectStoreClient:
    """
    Lists and writes objects in a single bucket.

    ``bucket_url`` is the full bucket URL, e.g.
    ``https://objectstorage.<region>.oraclecloud.com/n/<namespace>/b/<bucket>``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        signer: RequestSigner,
        bucket_url: str,
    ) -> None:
        self._client = client
        self._signer = signer
        self._bucket_url = bucket_url.rstrip("/")

    async def list_object_names(self, prefix: str) -> list[str]:
        """Return every object name starting with ``prefix`` in listing order.

        Listings are alphabetical; follows ``nextStartWith`` until the last page.
        """
        names: list[str] = []
        start: str | None = None
        while True:
            params = {"prefix": prefix}
            if start is not None:
                params["start"] = start
            request = SignableRequest(
                url=f"{self._bucket_url}/o?{urlencode(params)}",
                method="GET",
            )
            response = await send_signed(self._client, self._signer, request)
            payload = read_json(response)

            objects = payload.get("objects")
            if objects is None:
                raise MalformedResponseError(f"Object listing for prefix {prefix!r} has no objects")
            names.extend(str(obj["name"]) for obj in objects if "name" in obj)

            start = payload.get("nextStartWith")
            if not start:
                return names

    async def put_object(
        self,
        name: str,
        body: bytes,
        content_type: str = "text/plain",
    ) -> None:
        """Create (or overwrite) the object ``name``."""
        request = SignableRequest(
            url=f"{self._bucket_url}/o/{name}",
            method="PUT",
            headers={"content-type": content_type},
            body=body,
        )
        response = await send_signed(self._client, self._signer, request)
        if response.is_error:
            raise TransportError(f"PUT object {name} returned {response.status_code}")
        logger.info("archive_object_written", object_name=name, size=len(body))
