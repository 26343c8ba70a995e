"""Shared httpx plumbing for signed and bearer-authenticated API calls."""

from __future__ import annotations

from typing import Any, cast

import httpx

from audit_archiver.core.config import get_settings
from audit_archiver.core.crypto.request_signing import RequestSigner, SignableRequest
from audit_archiver.core.errors import TransportError


def create_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create the client used for every outbound call of a run."""
    if timeout is None:
        timeout = get_settings().http_timeout_seconds
    return httpx.AsyncClient(timeout=timeout, follow_redirects=False)


def ensure_scheme(base_url: str) -> str:
    """Prefix ``https://`` when the URL carries no scheme."""
    base_url = base_url.strip().rstrip("/")
    if base_url.startswith("http"):
        return base_url
    return f"https://{base_url}"


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """Issue a request, translating transport failures into :class:`TransportError`."""
    try:
        return await client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc


async def send_signed(
    client: httpx.AsyncClient,
    signer: RequestSigner,
    request: SignableRequest,
) -> httpx.Response:
    """Sign ``request`` in place and send it exactly as signed."""
    signer.sign(request)
    return await send(
        client,
        request.method,
        request.url,
        headers=request.headers,
        content=request.body,
    )


def read_json(response: httpx.Response, *, check_status: bool = True) -> dict[str, Any]:
    """Decode a JSON object body, raising :class:`TransportError` on failure."""
    if check_status:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"{response.request.method} {response.request.url} returned "
                f"{response.status_code}"
            ) from exc
    try:
        payload = response.json()
    except ValueError as exc:
        raise TransportError(
            f"{response.request.method} {response.request.url} returned a non-JSON body"
        ) from exc
    if not isinstance(payload, dict):
        raise TransportError(
            f"{response.request.method} {response.request.url} returned a non-object body"
        )
    return cast(dict[str, Any], payload)
