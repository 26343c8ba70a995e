"""
Resume point resolution from archived object names.

Object names are the only record of progress. The next run starts at the
end timestamp of the latest well-formed archive for today, else for
yesterday, else at the start of yesterday (UTC).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from audit_archiver.core.logging import get_logger
from audit_archiver.modules.archive.naming import day_prefix, format_timestamp, parse_end_timestamp
from audit_archiver.modules.archive.store import ObjectStoreClient

logger = get_logger(__name__)


class ArchiveCursor:
    """Determines where the next export resumes."""

    def __init__(self, store: ObjectStoreClient) -> None:
        self._store = store

    async def last_timestamp_for_day(self, day: datetime) -> str | None:
        """End timestamp of the day's latest well-formed archive, if any."""
        prefix = day_prefix(day)
        names = await self._store.list_object_names(prefix)
        # Listings are alphabetical and names lead with ISO timestamps: newest last.
        for name in reversed(names):
            timestamp = parse_end_timestamp(name)
            if timestamp is None:
                logger.warning("archive_object_name_malformed", object_name=name)
                continue
            return timestamp
        return None

    async def resolve_start(self, now: datetime | None = None) -> str:
        now = (now or datetime.now(UTC)).astimezone(UTC)

        timestamp = await self.last_timestamp_for_day(now)
        if timestamp is not None:
            return timestamp

        yesterday = now - timedelta(days=1)
        timestamp = await self.last_timestamp_for_day(yesterday)
        if timestamp is not None:
            return timestamp

        fallback = format_timestamp(
            yesterday.replace(hour=0, minute=0, second=0, microsecond=0)
        )
        logger.info("archive_cursor_fallback", start_timestamp=fallback)
        return fallback
