"""
Incremental export of IDCS audit events into the archive bucket.

One run: resolve the resume point from archived object names, optionally
stop if the previous batch is too recent, authenticate against IDCS, fetch a
budgeted window of events and write it as a single new object. Nothing is
retried; the first failure aborts the run.
"""

from __future__ import annotations

import json
from contextlib import AsyncExitStack
from datetime import UTC, datetime

import httpx
from prometheus_client import Counter

from audit_archiver.core.config import Settings, get_settings
from audit_archiver.core.crypto.request_signing import RequestSigner
from audit_archiver.core.errors import (
    ArchiverError,
    AuthError,
    ConfigError,
    MalformedResponseError,
    TooSoonError,
)
from audit_archiver.core.http import create_http_client
from audit_archiver.core.logging import bind_run_context, get_logger
from audit_archiver.core.security.identity import load_signing_identity
from audit_archiver.modules.archive.cursor import ArchiveCursor
from audit_archiver.modules.archive.naming import archive_object_name, parse_timestamp
from audit_archiver.modules.archive.store import ObjectStoreClient
from audit_archiver.modules.export.schemas import ExportResult, ExportWindow
from audit_archiver.modules.idcs.assertion import (
    AssertionSigner,
    LocalKeyAssertionSigner,
    RemoteKeyAssertionSigner,
)
from audit_archiver.modules.idcs.audit_events import AuditEventFetcher
from audit_archiver.modules.idcs.token import get_access_token
from audit_archiver.modules.vault.secrets import SecretsClient
from audit_archiver.modules.vault.signing import KeyManagementSigner

logger = get_logger(__name__)

_export_runs_total = Counter(
    "audit_export_runs_total",
    "Export runs grouped by outcome.",
    ("result",),
)
_export_events_total = Counter(
    "audit_export_events_total",
    "Audit events written to the archive bucket.",
)


class ExportService:
    """Runs one export against the configured bucket and IDCS tenant."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        signer: RequestSigner,
    ) -> None:
        missing = settings.missing_export_settings()
        if missing:
            raise ConfigError(f"Export is not configured, missing: {', '.join(missing)}")
        self.settings = settings
        self._client = client
        self._signer = signer
        self.store = ObjectStoreClient(client, signer, str(settings.obj_store_bucket_url))
        self.cursor = ArchiveCursor(self.store)

    async def assertion_signer(self) -> AssertionSigner:
        """Select the assertion signer from the configured key reference."""
        settings = self.settings
        if settings.uses_remote_signing:
            kms = KeyManagementSigner(
                self._client, self._signer, str(settings.kms_crypto_endpoint)
            )
            return RemoteKeyAssertionSigner(kms, str(settings.idcs_signing_key_id))

        logger.debug("fetching_assertion_key", secret_id=settings.idcs_cert_secret_id)
        secrets = SecretsClient(self._client, self._signer, str(settings.oci_region))
        private_key = await secrets.get_private_key(str(settings.idcs_cert_secret_id))
        try:
            return LocalKeyAssertionSigner(private_key)
        except (ValueError, TypeError) as exc:
            raise AuthError(f"Assertion signing key is unusable: {exc}") from exc

    async def authenticate(self) -> str:
        signer = await self.assertion_signer()
        return await get_access_token(
            self._client,
            str(self.settings.idcs_base_url),
            str(self.settings.idcs_client_id),
            str(self.settings.idcs_cert_alias),
            signer,
        )

    @staticmethod
    def check_min_interval(
        start_timestamp: str,
        now: datetime,
        min_elapsed_seconds: int | None,
    ) -> None:
        if not min_elapsed_seconds:
            return
        elapsed = (now - parse_timestamp(start_timestamp)).total_seconds()
        if elapsed < min_elapsed_seconds:
            raise TooSoonError(
                f"Min time not elapsed: {elapsed:.0f}s since {start_timestamp}, "
                f"need {min_elapsed_seconds}s"
            )

    async def write_window(self, window: ExportWindow) -> str:
        name = archive_object_name(window.start_timestamp, window.end_timestamp)
        body = json.dumps(window.events, indent=2).encode("utf-8")
        await self.store.put_object(name, body, content_type="text/plain")
        return name

    async def run(
        self,
        now: datetime | None = None,
        max_events: int | None = None,
        min_elapsed_seconds: int | None = None,
    ) -> ExportResult:
        now = (now or datetime.now(UTC)).astimezone(UTC)
        max_events = max_events or self.settings.max_events
        if min_elapsed_seconds is None:
            min_elapsed_seconds = self.settings.min_elapsed_seconds

        start_timestamp = await self.cursor.resolve_start(now)
        logger.info("export_start_resolved", start_timestamp=start_timestamp)
        self.check_min_interval(start_timestamp, now, min_elapsed_seconds)

        token = await self.authenticate()
        fetcher = AuditEventFetcher(self._client, str(self.settings.idcs_base_url), token)
        events = await fetcher.fetch(start_timestamp, max_events)

        if not events:
            logger.info("export_no_new_events", start_timestamp=start_timestamp)
            return ExportResult(start_timestamp=start_timestamp)

        end_timestamp = events[-1].get("timestamp")
        if not end_timestamp:
            raise MalformedResponseError("Last audit event carries no timestamp")

        window = ExportWindow(
            start_timestamp=start_timestamp,
            end_timestamp=str(end_timestamp),
            events=events,
        )
        object_name = await self.write_window(window)
        _export_events_total.inc(len(events))
        logger.info(
            "export_completed",
            object_name=object_name,
            event_count=len(events),
        )
        return ExportResult(
            start_timestamp=start_timestamp,
            end_timestamp=window.end_timestamp,
            event_count=len(events),
            object_name=object_name,
        )


async def run_export(
    settings: Settings | None = None,
    max_events: int | None = None,
    min_elapsed_seconds: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> ExportResult:
    """Load the signing identity, run one export and record the outcome."""
    settings = settings or get_settings()
    bind_run_context(idcs_client_id=settings.idcs_client_id)
    try:
        missing = settings.missing_export_settings()
        if missing:
            raise ConfigError(f"Export is not configured, missing: {', '.join(missing)}")
        identity = load_signing_identity(settings)
        try:
            identity.load_private_key()
        except (ValueError, TypeError) as exc:
            raise ConfigError(f"API signing key for {identity.key_id} is unusable") from exc
        signer = RequestSigner(identity)

        async with AsyncExitStack() as stack:
            if client is None:
                client = await stack.enter_async_context(
                    create_http_client(settings.http_timeout_seconds)
                )
            service = ExportService(settings, client, signer)
            result = await service.run(
                max_events=max_events,
                min_elapsed_seconds=min_elapsed_seconds,
            )
    except TooSoonError:
        _export_runs_total.labels(result="too_soon").inc()
        raise
    except ArchiverError:
        _export_runs_total.labels(result="failed").inc()
        raise

    _export_runs_total.labels(result="written" if result.object_name else "empty").inc()
    return result
