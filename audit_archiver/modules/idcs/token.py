"""Exchange client assertions for IDCS access tokens."""

from __future__ import annotations

from datetime import datetime

import httpx

from audit_archiver.core.errors import AuthError
from audit_archiver.core.http import ensure_scheme, read_json, send
from audit_archiver.core.logging import get_logger
from audit_archiver.modules.idcs.assertion import (
    DEFAULT_ASSERTION_TTL_SECONDS,
    AssertionSigner,
    build_client_assertion,
)

logger = get_logger(__name__)

TOKEN_PATH = "/oauth2/v1/token"
IDCS_SCOPE = "urn:opc:idm:__myscopes__"
JWT_BEARER_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


async def exchange_assertion(
    client: httpx.AsyncClient,
    idcs_base_url: str,
    client_id: str,
    assertion: str,
) -> str:
    """POST the assertion to the token endpoint and return the access token.

    Not retried; a response without ``access_token`` raises :class:`AuthError`.
    """
    response = await send(
        client,
        "POST",
        f"{ensure_scheme(idcs_base_url)}{TOKEN_PATH}",
        data={
            "grant_type": "client_credentials",
            "scope": IDCS_SCOPE,
            "client_assertion_type": JWT_BEARER_ASSERTION_TYPE,
            "clientId": client_id,
            "client_assertion": assertion,
        },
    )
    payload = read_json(response, check_status=False)
    token = payload.get("access_token")
    if not token:
        error = payload.get("error_description") or payload.get("error") or response.status_code
        raise AuthError(f"Error obtaining token from IDCS: {error}")
    logger.debug("idcs_token_obtained", client_id=client_id)
    return str(token)


async def get_access_token(
    client: httpx.AsyncClient,
    idcs_base_url: str,
    client_id: str,
    key_alias: str,
    signer: AssertionSigner,
    ttl_seconds: int = DEFAULT_ASSERTION_TTL_SECONDS,
    now: datetime | None = None,
) -> str:
    """Build a fresh client assertion and exchange it for an access token."""
    assertion = await build_client_assertion(
        client_id, key_alias, signer, ttl_seconds=ttl_seconds, now=now
    )
    return await exchange_assertion(client, idcs_base_url, client_id, assertion)
